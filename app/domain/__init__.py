"""
app/domain package marker.
"""

from app.domain.discount_structure import (
    CalculatedStructure,
    CodeMappingStructure,
    DiscountStructure,
    NetOnlyStructure,
    PercentageStructure,
)
from app.domain.price_list import (
    CanonicalRow,
    DelimitedConfig,
    FixedColumn,
    FixedColumnConfig,
    ParseResult,
    ParserConfig,
    ParserFormat,
    PricingMode,
    RawRow,
    RowError,
)

__all__ = [
    "CalculatedStructure",
    "CanonicalRow",
    "CodeMappingStructure",
    "DelimitedConfig",
    "DiscountStructure",
    "FixedColumn",
    "FixedColumnConfig",
    "NetOnlyStructure",
    "ParseResult",
    "ParserConfig",
    "ParserFormat",
    "PercentageStructure",
    "PricingMode",
    "RawRow",
    "RowError",
]
