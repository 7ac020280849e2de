"""
app/parsers/templates.py

Named parser presets for common supplier file layouts.

The registry is built once at import time and exposed read-only.
"""

from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from app.domain.price_list import (
    DelimitedConfig,
    FixedColumn,
    FixedColumnConfig,
    ParserConfig,
    ParserFormat,
)
from app.domain.transformations import Divide, Trim

GENERIC_CSV = "generic-csv"
SEMICOLON_CSV = "semicolon-csv"
TAB_DELIMITED = "tab-delimited"
CATERPILLAR_FIXED_WIDTH = "caterpillar-fixed-width"
GENERIC_FIXED_WIDTH = "generic-fixed-width"

_DELIMITED_MAPPING = {
    "supplier_sku": ("supplier_sku", "sku", "part_number", "onderdeelnummer"),
    "net_price": ("net_price", "net", "cost_price", "price"),
    "variant_sku": ("variant_sku", "internal_sku", "our_sku"),
    "description": ("description", "desc", "name", "omschrijving"),
    "quantity": ("quantity", "qty", "amount"),
    "lead_time_days": ("lead_time_days", "lead_time", "delivery_time"),
    "notes": ("notes", "comment", "remarks"),
}

# Caterpillar prices carry five implied decimals.
_CATERPILLAR_PRICE_DIVISOR = Decimal("100000")


def _delimited(name: str, delimiter: str) -> ParserConfig:
    return ParserConfig(
        format=ParserFormat.DELIMITED,
        template_name=name,
        format_config=DelimitedConfig(
            delimiter=delimiter,
            quote_char='"',
            has_header=True,
            skip_rows=0,
            column_mapping=dict(_DELIMITED_MAPPING),
        ),
    )


_TEMPLATES: dict[str, ParserConfig] = {
    GENERIC_CSV: _delimited(GENERIC_CSV, ","),
    SEMICOLON_CSV: _delimited(SEMICOLON_CSV, ";"),
    TAB_DELIMITED: _delimited(TAB_DELIMITED, "\t"),
    CATERPILLAR_FIXED_WIDTH: ParserConfig(
        format=ParserFormat.FIXED_COLUMN,
        template_name=CATERPILLAR_FIXED_WIDTH,
        format_config=FixedColumnConfig(
            skip_rows=1,
            columns=(
                FixedColumn(name="supplier_sku", start=0, width=18),
                FixedColumn(name="description", start=18, width=40),
                FixedColumn(name="gross_price", start=69, width=13),
                FixedColumn(name="net_price", start=82, width=13),
                FixedColumn(name="currency", start=95, width=3),
                FixedColumn(name="availability", start=98, width=1),
                FixedColumn(name="lead_time_days", start=99, width=2),
                FixedColumn(name="brand", start=101, width=2),
                FixedColumn(name="category", start=103, width=2),
                FixedColumn(name="subcategory", start=105, width=2),
                FixedColumn(name="weight", start=107, width=6),
                FixedColumn(name="dimensions", start=113, width=15),
                FixedColumn(name="notes", start=128, width=20),
            ),
            transformations={
                "gross_price": Divide(divisor=_CATERPILLAR_PRICE_DIVISOR),
                "net_price": Divide(divisor=_CATERPILLAR_PRICE_DIVISOR),
                "supplier_sku": Trim(),
                "description": Trim(),
            },
        ),
    ),
    GENERIC_FIXED_WIDTH: ParserConfig(
        format=ParserFormat.FIXED_COLUMN,
        template_name=GENERIC_FIXED_WIDTH,
        format_config=FixedColumnConfig(
            skip_rows=0,
            columns=(
                FixedColumn(name="supplier_sku", start=0, width=20),
                FixedColumn(name="description", start=20, width=40),
                FixedColumn(name="net_price", start=60, width=15),
                FixedColumn(name="quantity", start=75, width=8),
                FixedColumn(name="notes", start=83, width=30),
            ),
        ),
    ),
}

PARSER_TEMPLATES: Mapping[str, ParserConfig] = MappingProxyType(_TEMPLATES)


def get_parser_template(name: str) -> ParserConfig | None:
    return PARSER_TEMPLATES.get(name.strip()) if isinstance(name, str) else None


def list_parser_templates() -> list[ParserConfig]:
    return list(PARSER_TEMPLATES.values())
