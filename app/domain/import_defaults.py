"""
app/domain/import_defaults.py

Per-supplier import defaults used to pre-populate repeat imports.

Stored in supplier metadata under ``import_defaults``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from app.domain.discount_structure import DiscountStructure
from app.domain.price_list import PricingMode
from app.validators.errors import ConfigErrorDetail


class ParsingMethod(str, Enum):
    TEMPLATE = "template"
    DELIMITED = "delimited"
    FIXED_COLUMN = "fixed_column"


class ImportDefaultsValidationError(ValueError):
    """
    Raised when stored or submitted import defaults are inconsistent.
    """

    def __init__(self, *, message: str, errors: list[ConfigErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": [error.to_dict() for error in self.errors],
        }


class ImportDefaults(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
    )

    pricing_mode: PricingMode
    parsing_method: ParsingMethod
    template_id: str | None = None
    delimiter: str | None = None
    is_derived: bool = False

    @field_validator("parsing_method", mode="before")
    @classmethod
    def _accept_wire_alias(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in {"fixed-width", "fixed_width"}:
            return ParsingMethod.FIXED_COLUMN
        return value

    @field_validator("template_id", mode="before")
    @classmethod
    def _strip_template_id(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("delimiter", mode="before")
    @classmethod
    def _keep_tab_delimiter(cls, value: Any) -> Any:
        if isinstance(value, str) and value in {"\\t", "tab"}:
            return "\t"
        return value

    @model_validator(mode="after")
    def _check_method_requirements(self) -> "ImportDefaults":
        if self.parsing_method is ParsingMethod.TEMPLATE and not self.template_id:
            raise ValueError("template_id is required when parsing_method is 'template'")
        if self.parsing_method is ParsingMethod.DELIMITED and not self.delimiter:
            raise ValueError("delimiter is required when parsing_method is 'delimited'")
        if self.delimiter is not None and len(self.delimiter) != 1:
            raise ValueError("delimiter must be a single character")
        return self

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True, exclude={"is_derived"})


def parse_import_defaults(payload: Any) -> ImportDefaults:
    if not isinstance(payload, dict):
        raise ImportDefaultsValidationError(
            message="Import defaults must be an object.",
            errors=[ConfigErrorDetail(code="invalid_type", message="Expected a JSON object.")],
        )
    try:
        return ImportDefaults.model_validate({**payload, "is_derived": False})
    except ValidationError as exc:
        details = [
            ConfigErrorDetail(
                code=str(error.get("type", "invalid")),
                message=str(error.get("msg", "Invalid value.")),
                field=".".join(str(part) for part in error.get("loc", ())) or None,
            )
            for error in exc.errors()
        ]
        raise ImportDefaultsValidationError(
            message="Invalid import defaults: " + "; ".join(detail.message for detail in details),
            errors=details,
        ) from exc


def derive_import_defaults(structure: DiscountStructure | None) -> ImportDefaults:
    """
    Defaults for a supplier that has none stored: pricing mode follows the
    discount structure type, parsing is comma-delimited.
    """

    pricing_mode = PricingMode(structure.type) if structure is not None else PricingMode.NET_ONLY
    return ImportDefaults(
        pricing_mode=pricing_mode,
        parsing_method=ParsingMethod.DELIMITED,
        delimiter=",",
        is_derived=True,
    )
