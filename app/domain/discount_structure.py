"""
app/domain/discount_structure.py

Supplier discount structures: the four supported pricing conventions.

Each supplier has exactly one active structure, stored in supplier metadata
under ``discount_structure`` and discriminated by its ``type`` tag.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

Percentage = Annotated[Decimal, Field(ge=0, le=100, allow_inf_nan=False)]


class _DiscountStructureBase(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    description: str | None = None


class CodeMappingStructure(_DiscountStructureBase):
    """Discount codes (e.g. ``A``, ``B``) mapped to percentages."""

    type: Literal["code_mapping"] = "code_mapping"
    mappings: dict[str, Percentage]

    def percentage_for(self, code: str) -> Decimal | None:
        """
        Look up a code exactly, then case-insensitively.
        """

        if code in self.mappings:
            return self.mappings[code]
        wanted = code.strip().upper()
        for mapped_code, percentage in self.mappings.items():
            if mapped_code.strip().upper() == wanted:
                return percentage
        return None

    @property
    def available_codes(self) -> list[str]:
        return sorted(self.mappings)


class PercentageStructure(_DiscountStructureBase):
    """One percentage discount applied to every item."""

    type: Literal["percentage"] = "percentage"
    default_percentage: Percentage


class CalculatedStructure(_DiscountStructureBase):
    """Supplier provides gross and net; the discount is derived."""

    type: Literal["calculated"] = "calculated"


class NetOnlyStructure(_DiscountStructureBase):
    """Supplier provides net prices only."""

    type: Literal["net_only"] = "net_only"


DiscountStructure = Annotated[
    Union[CodeMappingStructure, PercentageStructure, CalculatedStructure, NetOnlyStructure],
    Field(discriminator="type"),
]

DISCOUNT_STRUCTURE_TYPES: tuple[str, ...] = (
    "code_mapping",
    "percentage",
    "calculated",
    "net_only",
)
