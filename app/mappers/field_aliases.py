"""
app/mappers/field_aliases.py

Canonical price-list fields and the header variants suppliers use for them.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import SequenceMatcher
from types import MappingProxyType
from typing import Mapping, Sequence

CANONICAL_FIELDS: tuple[str, ...] = (
    "supplier_sku",
    "variant_sku",
    "product_id",
    "gross_price",
    "discount_code",
    "discount_percentage",
    "net_price",
    "description",
    "category",
    "quantity",
    "lead_time_days",
    "notes",
)

IDENTIFIER_FIELDS: tuple[str, ...] = ("variant_sku", "supplier_sku", "product_id")

# Legacy name for net_price still found in stored configurations.
LEGACY_NET_PRICE_FIELD = "cost_price"

FIELD_ALIASES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "supplier_sku": (
            "sku",
            "part_number",
            "part_no",
            "partnumber",
            "onderdeelnummer",
            "supplier_part",
            "part_id",
        ),
        "variant_sku": ("internal_sku", "our_sku", "product_sku", "item_sku"),
        "product_id": ("product", "productid"),
        "gross_price": (
            "gross",
            "gross price",
            "list_price",
            "listprice",
            "lijstprijs",
            "bruto prijs",
            "msrp",
            "retail_price",
        ),
        "discount_code": ("code", "discount code", "discount_cd", "disc_code", "kortingscode"),
        "discount_percentage": (
            "discount %",
            "discount_pct",
            "disc_pct",
            "discount_percent",
            "korting %",
            "korting",
        ),
        "net_price": (
            "net",
            "net price",
            "netto prijs",
            "final_price",
            "cost_price",
            "purchase_price",
            "inkoopprijs",
            "price",
        ),
        "description": (
            "desc",
            "product_description",
            "omschrijving",
            "beschrijving",
            "product_desc",
            "item_description",
            "name",
            "product_name",
        ),
        "category": (
            "product_category",
            "cat",
            "categorie",
            "productcategorie",
            "item_category",
            "group",
        ),
        "quantity": ("qty", "amount", "stock", "available"),
        "lead_time_days": ("lead_time", "delivery_time", "levertijd", "days"),
        "notes": ("comment", "remarks", "info", "opmerkingen"),
    }
)


def normalize_header(header: str) -> str:
    """
    Normalize a column name for flexible matching.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


@dataclass(frozen=True)
class ColumnSuggestion:
    """
    Suggested target-field to source-header mapping for one file.
    """

    target_to_source: dict[str, str]
    match_strategies: dict[str, str]


def suggest_column_mapping(
    headers: Sequence[str],
    *,
    aliases: Mapping[str, Sequence[str]] = FIELD_ALIASES,
    fuzzy_threshold: float = 0.84,
    exclude_headers: Sequence[str] = (),
) -> ColumnSuggestion:
    """
    Match file headers to canonical fields by exact name, alias, then fuzzy score.

    A header is assigned to at most one field.
    """

    normalized_lookup: dict[str, str] = {}
    for header in headers:
        normalized = normalize_header(header)
        if normalized and normalized not in normalized_lookup:
            normalized_lookup[normalized] = header

    used: set[str] = set(exclude_headers)
    resolved: dict[str, str] = {}
    strategies: dict[str, str] = {}

    for field in CANONICAL_FIELDS:
        candidates = (field, *aliases.get(field, ()))
        for candidate in candidates:
            match = normalized_lookup.get(normalize_header(candidate))
            if match is not None and match not in used:
                resolved[field] = match
                strategies[field] = "exact_or_alias"
                used.add(match)
                break

    threshold = max(0.0, min(1.0, fuzzy_threshold))
    for field in CANONICAL_FIELDS:
        if field in resolved:
            continue
        match = _best_fuzzy_match(
            candidates=[field, *aliases.get(field, ())],
            normalized_lookup=normalized_lookup,
            used=used,
            threshold=threshold,
        )
        if match is not None:
            resolved[field] = match
            strategies[field] = "fuzzy"
            used.add(match)

    return ColumnSuggestion(target_to_source=resolved, match_strategies=strategies)


def _best_fuzzy_match(
    *,
    candidates: Sequence[str],
    normalized_lookup: Mapping[str, str],
    used: set[str],
    threshold: float,
) -> str | None:
    normalized_candidates = [normalize_header(item) for item in candidates if normalize_header(item)]

    best_header: str | None = None
    best_score = 0.0
    for header_norm, header_raw in normalized_lookup.items():
        if header_raw in used:
            continue
        for candidate in normalized_candidates:
            score = SequenceMatcher(None, header_norm, candidate).ratio()
            if len(candidate) >= 4 and (header_norm in candidate or candidate in header_norm):
                score = max(score, 0.9)
            if score > best_score:
                best_score = score
                best_header = header_raw

    if best_header is not None and best_score >= threshold:
        return best_header
    return None
