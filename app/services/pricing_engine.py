"""
app/services/pricing_engine.py

Mode-aware net price resolution for mapped price-list rows.

Modes mirror the supplier discount structures:

    net_only      net_price as supplied; gross/discount cleared
    calculated    discount derived from gross and net
    percentage    net from gross and a discount percentage
    code_mapping  net from gross and the percentage mapped to discount_code

Failures are returned as RowError values; nothing here raises per row.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Sequence

from app.domain.discount_structure import (
    CodeMappingStructure,
    DiscountStructure,
    PercentageStructure,
)
from app.domain.price_list import CanonicalRow, PricingMode, RowError

_HUNDRED = Decimal("100")

CODE_MAPPING_REMEDIATION = (
    "Configure discount codes for this supplier under Supplier > Discount Structure "
    "(type 'code_mapping') before importing in code_mapping mode."
)


class PricingResolutionEngine:
    """
    Computes the final net price of each row for one pricing mode.
    """

    def __init__(self, *, decimal_places: int = 4) -> None:
        self._quantum = Decimal(1).scaleb(-max(0, decimal_places))

    def configuration_problem(
        self,
        mode: PricingMode,
        structure: DiscountStructure | None,
    ) -> str | None:
        """
        Describe a systemic mode/structure mismatch, or None when consistent.
        """

        if mode is PricingMode.CODE_MAPPING and not isinstance(structure, CodeMappingStructure):
            configured = structure.type if structure is not None else "none"
            return (
                f"Pricing mode 'code_mapping' requires a code_mapping discount structure "
                f"(configured: {configured}). {CODE_MAPPING_REMEDIATION}"
            )
        return None

    def resolve_price(
        self,
        row: CanonicalRow,
        mode: PricingMode,
        structure: DiscountStructure | None,
    ) -> CanonicalRow | RowError:
        try:
            if mode is PricingMode.NET_ONLY:
                return self._net_only(row)
            if mode is PricingMode.CALCULATED:
                return self._calculated(row)
            if mode is PricingMode.PERCENTAGE:
                return self._percentage(row, structure)
            if mode is PricingMode.CODE_MAPPING:
                return self._code_mapping(row, structure)
        except InvalidOperation:
            # Raised when a value has too many digits to round at the configured scale.
            return _error(row, "Price is outside the supported range and cannot be rounded.")
        raise ValueError(f"Unsupported pricing mode: {mode!r}")

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def _net_only(self, row: CanonicalRow) -> CanonicalRow | RowError:
        if row.net_price is None:
            return _error(row, "net_price is required in net_only mode.", "net_price")
        net = self._quantize(row.net_price)
        if net <= 0:
            return _error(row, f"Invalid net_price ({row.net_price}): must be greater than 0.", "net_price")
        return replace(
            row,
            net_price=net,
            gross_price=None,
            discount_percentage=None,
            discount_code=None,
        )

    def _calculated(self, row: CanonicalRow) -> CanonicalRow | RowError:
        gross, net = row.gross_price, row.net_price
        if gross is None or net is None:
            return _error(row, "gross_price and net_price are both required in calculated mode.")
        if gross <= 0:
            return _error(row, f"Invalid gross_price ({gross}): must be greater than 0.", "gross_price")
        if self._quantize(net) <= 0:
            return _error(row, f"Invalid net_price ({net}): must be greater than 0.", "net_price")
        if net > gross:
            return _error(row, f"Net price ({net}) exceeds gross price ({gross}).", "net_price")
        discount = (gross - net) / gross * _HUNDRED
        return replace(
            row,
            net_price=self._quantize(net),
            discount_percentage=self._quantize(discount),
        )

    def _percentage(
        self,
        row: CanonicalRow,
        structure: DiscountStructure | None,
    ) -> CanonicalRow | RowError:
        gross = row.gross_price
        if gross is None:
            return _error(row, "gross_price is required in percentage mode.", "gross_price")
        if gross <= 0:
            return _error(row, f"Invalid gross_price ({gross}): must be greater than 0.", "gross_price")

        percentage = row.discount_percentage
        if percentage is None and isinstance(structure, PercentageStructure):
            percentage = structure.default_percentage
        if percentage is None:
            return _error(
                row,
                "discount_percentage is required in percentage mode "
                "(no default percentage is configured for this supplier).",
                "discount_percentage",
            )
        if percentage < 0 or percentage > _HUNDRED:
            return _error(
                row,
                f"Discount percentage {percentage} is out of range (must be between 0 and 100).",
                "discount_percentage",
            )
        return self._apply_discount(row, gross, percentage)

    def _code_mapping(
        self,
        row: CanonicalRow,
        structure: DiscountStructure | None,
    ) -> CanonicalRow | RowError:
        if not isinstance(structure, CodeMappingStructure):
            return _error(
                row,
                "No discount code mapping is configured for this supplier. " + CODE_MAPPING_REMEDIATION,
                "discount_code",
            )

        gross = row.gross_price
        if gross is None:
            return _error(row, "gross_price is required in code_mapping mode.", "gross_price")
        if gross <= 0:
            return _error(row, f"Invalid gross_price ({gross}): must be greater than 0.", "gross_price")
        if not row.discount_code:
            return _error(row, "discount_code is required in code_mapping mode.", "discount_code")

        percentage = structure.percentage_for(row.discount_code)
        if percentage is None:
            available = ", ".join(structure.available_codes) or "none"
            return _error(
                row,
                f"Unknown discount code \"{row.discount_code}\" (no mapping found). "
                f"Available codes: {available}",
                "discount_code",
            )
        return self._apply_discount(row, gross, percentage)

    def _apply_discount(
        self,
        row: CanonicalRow,
        gross: Decimal,
        percentage: Decimal,
    ) -> CanonicalRow | RowError:
        net = gross * (1 - percentage / _HUNDRED)
        rounded = self._quantize(net)
        # A full discount yields 0; a positive price must not round away to 0.
        if net > 0 and rounded <= 0:
            return _error(
                row,
                f"Net price ({net}) rounds to {rounded}; gross_price ({gross}) is too small to price.",
                "net_price",
            )
        return replace(
            row,
            discount_percentage=percentage,
            net_price=rounded,
        )

    def _quantize(self, value: Decimal) -> Decimal:
        return value.quantize(self._quantum, rounding=ROUND_HALF_UP)


def cap_error_messages(messages: Sequence[str], limit: int) -> list[str]:
    """
    Keep the first ``limit`` messages and summarize the rest in one line.
    """

    limit = max(1, limit)
    if len(messages) <= limit:
        return list(messages)
    omitted = len(messages) - limit
    return [*messages[:limit], f"... and {omitted} more errors omitted"]


def _error(row: CanonicalRow, message: str, field: str | None = None) -> RowError:
    return RowError(row_number=row.row_number, message=message, field=field)
