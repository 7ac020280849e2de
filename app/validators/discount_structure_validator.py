"""
app/validators/discount_structure_validator.py

Validation of operator-supplied supplier discount structures.
"""

from __future__ import annotations

from typing import Any, Sequence

from pydantic import TypeAdapter, ValidationError

from app.domain.discount_structure import DISCOUNT_STRUCTURE_TYPES, DiscountStructure
from app.validators.errors import ConfigErrorDetail

_ADAPTER: TypeAdapter[DiscountStructure] = TypeAdapter(DiscountStructure)


class DiscountStructureValidationError(ValueError):
    """
    Raised when a discount structure payload is malformed.
    """

    def __init__(self, *, message: str, errors: Sequence[ConfigErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": [error.to_dict() for error in self.errors],
        }


def validate_discount_structure(candidate: Any) -> DiscountStructure:
    """
    Validate a raw payload and return the typed discount structure.

    Percentages must lie in [0, 100]; both bounds are accepted.
    """

    if not isinstance(candidate, dict):
        raise DiscountStructureValidationError(
            message="Discount structure must be an object.",
            errors=[
                ConfigErrorDetail(
                    code="invalid_type",
                    message="Expected a JSON object with a 'type' field.",
                    context={"received": type(candidate).__name__},
                )
            ],
        )

    kind = candidate.get("type")
    if kind not in DISCOUNT_STRUCTURE_TYPES:
        allowed = ", ".join(DISCOUNT_STRUCTURE_TYPES)
        raise DiscountStructureValidationError(
            message=f"Unknown discount structure type. Allowed types: {allowed}.",
            errors=[
                ConfigErrorDetail(
                    code="missing_type" if kind is None else "unknown_type",
                    message="Discount structure type is missing or not recognized.",
                    field="type",
                    context={"received": kind, "allowed": list(DISCOUNT_STRUCTURE_TYPES)},
                )
            ],
        )

    try:
        return _ADAPTER.validate_python(candidate)
    except ValidationError as exc:
        details = [
            ConfigErrorDetail(
                code=str(error.get("type", "invalid")),
                message=str(error.get("msg", "Invalid value.")),
                field=".".join(str(part) for part in error.get("loc", ()) if part != kind) or None,
                context={"input": error.get("input")},
            )
            for error in exc.errors()
        ]
        raise DiscountStructureValidationError(
            message=f"Invalid '{kind}' discount structure.",
            errors=details,
        ) from exc


def is_valid_discount_structure(candidate: Any) -> bool:
    try:
        validate_discount_structure(candidate)
    except DiscountStructureValidationError:
        return False
    return True
