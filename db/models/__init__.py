"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.supplier import Supplier

__all__ = [
    "Supplier",
]
