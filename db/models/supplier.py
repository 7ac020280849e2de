"""
db/models/supplier.py

Suppliers and their operator-maintained price-list configuration.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
MetadataJSON = JSON().with_variant(JSONB(), "postgresql")


class Supplier(Base, TimestampMixin):
    __tablename__ = "suppliers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(
        MetadataJSON,
        nullable=True,
        comment="price_list_parser, discount_structure and import_defaults",
    )

    __table_args__ = (Index("ix_suppliers_name", "name"),)
