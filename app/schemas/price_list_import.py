"""
app/schemas/price_list_import.py

Serializable views of price-list import results.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from app.domain.price_list import CanonicalRow, ParseResult, RowError
from app.validators.parser_config_validator import parser_config_to_dict


class PriceListItemResponse(BaseModel):
    """
    One fully priced price-list line.
    """

    row_number: int = Field(..., ge=1)
    variant_sku: str | None = None
    supplier_sku: str | None = None
    product_id: str | None = None
    gross_price: Decimal | None = None
    discount_code: str | None = None
    discount_percentage: Decimal | None = None
    net_price: Decimal | None = None
    description: str | None = None
    category: str | None = None
    quantity: int = Field(1, ge=0)
    lead_time_days: int | None = Field(None, ge=0)
    notes: str | None = None
    extra: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_row(cls, row: CanonicalRow) -> "PriceListItemResponse":
        return cls(
            row_number=row.row_number,
            variant_sku=row.variant_sku,
            supplier_sku=row.supplier_sku,
            product_id=row.product_id,
            gross_price=row.gross_price,
            discount_code=row.discount_code,
            discount_percentage=row.discount_percentage,
            net_price=row.net_price,
            description=row.description,
            category=row.category,
            quantity=row.quantity,
            lead_time_days=row.lead_time_days,
            notes=row.notes,
            extra=dict(row.extra),
        )


class PriceListRowErrorResponse(BaseModel):
    row_number: int = Field(..., ge=1)
    message: str
    field: str | None = None
    value: str | None = None

    @classmethod
    def from_error(cls, error: RowError) -> "PriceListRowErrorResponse":
        return cls(
            row_number=error.row_number,
            message=error.message,
            field=error.field,
            value=error.value,
        )


class PriceListParseResponse(BaseModel):
    """
    Import summary surfaced to operators: counts, capped errors, warnings.
    """

    total_rows: int = Field(..., ge=0)
    processed_rows: int = Field(..., ge=0)
    failed_rows: int = Field(..., ge=0)
    pricing_mode: str | None = None
    parser_config: dict[str, Any] | None = None
    items: list[PriceListItemResponse] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    row_errors: list[PriceListRowErrorResponse] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ParseResult, *, include_row_errors: bool = False) -> "PriceListParseResponse":
        return cls(
            total_rows=result.total_rows,
            processed_rows=result.processed_rows,
            failed_rows=result.failed_rows,
            pricing_mode=result.pricing_mode.value if result.pricing_mode is not None else None,
            parser_config=parser_config_to_dict(result.parser_config) if result.parser_config else None,
            items=[PriceListItemResponse.from_row(item) for item in result.items],
            errors=list(result.errors),
            warnings=list(result.warnings),
            row_errors=(
                [PriceListRowErrorResponse.from_error(error) for error in result.row_errors]
                if include_row_errors
                else []
            ),
        )
