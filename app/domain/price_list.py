"""
app/domain/price_list.py

Domain models for supplier price-list parsing and pricing resolution.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Union

from app.domain.transformations import Transformation


class ParserFormat(str, Enum):
    DELIMITED = "delimited"
    FIXED_COLUMN = "fixed_column"


class PricingMode(str, Enum):
    NET_ONLY = "net_only"
    CALCULATED = "calculated"
    PERCENTAGE = "percentage"
    CODE_MAPPING = "code_mapping"


# A target field maps to one source column, or to an ordered list of
# candidate header names where the first header present wins.
ColumnSource = Union[str, tuple[str, ...]]


@dataclass(frozen=True)
class FixedColumn:
    """
    One fixed-position column: characters ``[start, start + width)``.
    """

    name: str
    start: int
    width: int

    @property
    def end(self) -> int:
        return self.start + self.width


@dataclass(frozen=True)
class DelimitedConfig:
    delimiter: str = ","
    quote_char: str = '"'
    has_header: bool = True
    skip_rows: int = 0
    column_mapping: dict[str, ColumnSource] = field(default_factory=dict)
    transformations: dict[str, Transformation] = field(default_factory=dict)


@dataclass(frozen=True)
class FixedColumnConfig:
    skip_rows: int = 0
    columns: tuple[FixedColumn, ...] = ()
    column_mapping: dict[str, ColumnSource] = field(default_factory=dict)
    transformations: dict[str, Transformation] = field(default_factory=dict)

    @property
    def line_width(self) -> int:
        """
        Minimum line length needed to read every declared column in full.
        """

        return max((column.end for column in self.columns), default=0)


FormatConfig = Union[DelimitedConfig, FixedColumnConfig]


@dataclass(frozen=True)
class ParserConfig:
    """
    Fully resolved parser configuration for one import run.
    """

    format: ParserFormat
    format_config: FormatConfig
    template_name: str | None = None

    def __post_init__(self) -> None:
        expected = DelimitedConfig if self.format is ParserFormat.DELIMITED else FixedColumnConfig
        if not isinstance(self.format_config, expected):
            raise TypeError(
                f"ParserConfig format '{self.format.value}' requires {expected.__name__}, "
                f"got {type(self.format_config).__name__}."
            )

    @property
    def skip_rows(self) -> int:
        return self.format_config.skip_rows


@dataclass(frozen=True)
class RawRow:
    """
    One extracted source row before mapping: header/column name to raw text.
    """

    row_number: int
    values: dict[str, str]


@dataclass(frozen=True)
class CanonicalRow:
    """
    Typed, format-independent price-list line.
    """

    row_number: int
    variant_sku: str | None = None
    supplier_sku: str | None = None
    product_id: str | None = None
    gross_price: Decimal | None = None
    discount_code: str | None = None
    discount_percentage: Decimal | None = None
    net_price: Decimal | None = None
    description: str | None = None
    category: str | None = None
    quantity: int = 1
    lead_time_days: int | None = None
    notes: str | None = None
    extra: dict[str, str] = field(default_factory=dict)

    @property
    def identifier(self) -> str | None:
        return self.variant_sku or self.supplier_sku or self.product_id


@dataclass(frozen=True)
class RowError:
    """
    One row-level diagnostic; rendered as ``Row <n>: <message>``.
    """

    row_number: int
    message: str
    field: str | None = None
    value: str | None = None

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


@dataclass(frozen=True)
class ParseResult:
    """
    Outcome of one import run. ``items`` are fully priced rows in file order.

    ``errors`` is the display list (capped, with a summary line); ``row_errors``
    keeps every row failure.
    """

    items: list[CanonicalRow] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    total_rows: int = 0
    processed_rows: int = 0
    parser_config: ParserConfig | None = None
    pricing_mode: PricingMode | None = None
    row_errors: list[RowError] = field(default_factory=list)

    @property
    def failed_rows(self) -> int:
        return len(self.row_errors)
