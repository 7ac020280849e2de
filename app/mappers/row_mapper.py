"""
app/mappers/row_mapper.py

Turns extracted raw rows into typed canonical price-list rows.

This is the only place where loosely-typed ``header -> text`` maps become
``CanonicalRow`` values; nothing downstream sees raw rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Mapping, Sequence

from app.domain.price_list import CanonicalRow, ColumnSource, RawRow, RowError
from app.domain.transformations import Transformation, apply_transformation
from app.mappers.field_aliases import (
    CANONICAL_FIELDS,
    IDENTIFIER_FIELDS,
    LEGACY_NET_PRICE_FIELD,
    normalize_header,
    suggest_column_mapping,
)

DECIMAL_FIELDS: tuple[str, ...] = ("gross_price", "discount_percentage", "net_price")
INTEGER_FIELDS: tuple[str, ...] = ("quantity", "lead_time_days")
_TEXT_FIELDS: tuple[str, ...] = (
    "variant_sku",
    "supplier_sku",
    "product_id",
    "discount_code",
    "description",
    "category",
    "notes",
)
_KNOWN_FIELDS = frozenset((*CANONICAL_FIELDS, LEGACY_NET_PRICE_FIELD))

# Accepted numbers stay below 10**15 in magnitude.
MAX_DECIMAL_EXPONENT = 14


@dataclass(frozen=True)
class ResolvedMapping:
    """
    Target field to concrete source column, resolved against one file's headers.
    """

    target_to_source: dict[str, str]
    match_strategies: dict[str, str]
    missing_columns: dict[str, str] = field(default_factory=dict)


def resolve_column_mapping(
    headers: Sequence[str],
    column_mapping: Mapping[str, ColumnSource],
    *,
    auto_match: bool = True,
    identity_fallback: bool = False,
) -> ResolvedMapping:
    """
    Resolve configured column sources against the headers of one file.

    Explicit names are used as-is; alias lists pick the first header present
    (case- and punctuation-insensitive). Fields left unmapped are filled from
    the Field Alias Table when ``auto_match`` is set, and columns named after a
    field map to themselves when ``identity_fallback`` is set.
    """

    normalized_lookup: dict[str, str] = {}
    for header in headers:
        normalized = normalize_header(header)
        if normalized and normalized not in normalized_lookup:
            normalized_lookup[normalized] = header

    resolved: dict[str, str] = {}
    strategies: dict[str, str] = {}
    missing: dict[str, str] = {}

    for target, source in column_mapping.items():
        if isinstance(source, str):
            matched = source if source in headers else normalized_lookup.get(normalize_header(source))
            if matched is None:
                missing[target] = source
                continue
            resolved[target] = matched
            strategies[target] = "explicit"
            continue
        for candidate in source:
            matched = normalized_lookup.get(normalize_header(candidate))
            if matched is not None:
                resolved[target] = matched
                strategies[target] = "configured_alias"
                break

    used = set(resolved.values())
    if identity_fallback:
        for header in headers:
            if header in used or header in resolved:
                continue
            resolved[header] = header
            strategies[header] = "identity"
            used.add(header)

    if auto_match:
        suggestion = suggest_column_mapping(headers, exclude_headers=tuple(used))
        for target, header in suggestion.target_to_source.items():
            if target in resolved or (target == "net_price" and LEGACY_NET_PRICE_FIELD in resolved):
                continue
            resolved[target] = header
            strategies[target] = suggestion.match_strategies[target]

    return ResolvedMapping(
        target_to_source=resolved,
        match_strategies=strategies,
        missing_columns=missing,
    )


class RowMapper:
    """
    Applies the resolved column mapping and transformations to raw rows.
    """

    def __init__(
        self,
        *,
        mapping: ResolvedMapping,
        transformations: Mapping[str, Transformation] | None = None,
    ) -> None:
        self._mapping = mapping
        self._transformations = dict(transformations or {})

    @property
    def mapping(self) -> ResolvedMapping:
        return self._mapping

    def map_row(self, raw_row: RawRow) -> CanonicalRow | RowError:
        """
        Map one raw row; returns a RowError instead of raising.
        """

        values: dict[str, str] = {}
        for target, source in self._mapping.target_to_source.items():
            value = raw_row.values.get(source, "")
            transformation = self._transformations.get(target)
            if transformation is not None and value != "":
                value = apply_transformation(value, transformation)
            values[target] = value

        if not values.get("net_price", "").strip() and values.get(LEGACY_NET_PRICE_FIELD, "").strip():
            values["net_price"] = values[LEGACY_NET_PRICE_FIELD]

        text = {name: _optional_text(values.get(name)) for name in _TEXT_FIELDS}
        if not any(text[name] for name in IDENTIFIER_FIELDS):
            return RowError(
                row_number=raw_row.row_number,
                message="Either variant_sku, supplier_sku or product_id is required.",
            )

        decimals: dict[str, Decimal | None] = {}
        for name in DECIMAL_FIELDS:
            raw_value = values.get(name, "")
            parsed = _parse_decimal(raw_value)
            if parsed is _OUT_OF_RANGE:
                return RowError(
                    row_number=raw_row.row_number,
                    message=f"Invalid {name} value \"{raw_value.strip()}\": must be below 1e15.",
                    field=name,
                    value=raw_value,
                )
            if parsed is _INVALID:
                return _invalid_number(raw_row.row_number, name, raw_value)
            decimals[name] = parsed

        integers: dict[str, int | None] = {}
        for name in INTEGER_FIELDS:
            raw_value = values.get(name, "")
            parsed_int = _parse_non_negative_int(raw_value)
            if parsed_int is _INVALID:
                return RowError(
                    row_number=raw_row.row_number,
                    message=f"Invalid {name} value \"{raw_value.strip()}\": expected a whole number >= 0.",
                    field=name,
                    value=raw_value,
                )
            integers[name] = parsed_int

        extra = {
            target: value.strip()
            for target, value in values.items()
            if target not in _KNOWN_FIELDS and value.strip()
        }

        quantity = integers["quantity"]
        return CanonicalRow(
            row_number=raw_row.row_number,
            variant_sku=text["variant_sku"],
            supplier_sku=text["supplier_sku"],
            product_id=text["product_id"],
            gross_price=decimals["gross_price"],
            discount_code=text["discount_code"],
            discount_percentage=decimals["discount_percentage"],
            net_price=decimals["net_price"],
            description=text["description"],
            category=text["category"],
            quantity=1 if quantity is None else quantity,
            lead_time_days=integers["lead_time_days"],
            notes=text["notes"],
            extra=extra,
        )


class _Invalid:
    pass


_INVALID = _Invalid()
_OUT_OF_RANGE = _Invalid()


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _parse_decimal(value: str) -> Decimal | None | _Invalid:
    raw = value.strip()
    if not raw:
        return None
    try:
        number = Decimal(raw)
    except (InvalidOperation, ValueError):
        return _INVALID
    if not number.is_finite():
        return _INVALID
    if number.is_zero():
        return Decimal(0)
    if number.adjusted() > MAX_DECIMAL_EXPONENT:
        return _OUT_OF_RANGE
    return number


def _parse_non_negative_int(value: str) -> int | None | _Invalid:
    number = _parse_decimal(value)
    if number is None:
        return None
    if isinstance(number, _Invalid):
        return _INVALID
    if number != number.to_integral_value() or number < 0:
        return _INVALID
    return int(number)


def _invalid_number(row_number: int, field: str, raw_value: str) -> RowError:
    return RowError(
        row_number=row_number,
        message=f"Invalid {field} value \"{raw_value.strip()}\": not a number.",
        field=field,
        value=raw_value,
    )
