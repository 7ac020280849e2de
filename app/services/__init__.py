"""
app/services package marker.
"""

from app.services.parser_config_resolver import ParserConfigResolver, SupplierConfigStore
from app.services.price_list_import_service import (
    PriceListFormatError,
    PriceListImportService,
    get_price_list_import_service,
)
from app.services.pricing_engine import PricingResolutionEngine

__all__ = [
    "ParserConfigResolver",
    "PriceListFormatError",
    "PriceListImportService",
    "PricingResolutionEngine",
    "SupplierConfigStore",
    "get_price_list_import_service",
]
