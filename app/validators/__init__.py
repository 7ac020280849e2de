"""
app/validators package marker.
"""

from app.validators.discount_structure_validator import (
    DiscountStructureValidationError,
    validate_discount_structure,
)
from app.validators.errors import ConfigErrorDetail
from app.validators.parser_config_validator import (
    ParserConfigValidationError,
    check_parser_config,
    parse_parser_config,
)

__all__ = [
    "ConfigErrorDetail",
    "DiscountStructureValidationError",
    "ParserConfigValidationError",
    "check_parser_config",
    "parse_parser_config",
    "validate_discount_structure",
]
