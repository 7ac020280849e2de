"""
app/repositories package marker.
"""

from app.repositories.supplier_config_repository import SupplierConfigRepository, SupplierConfigStoreError

__all__ = [
    "SupplierConfigRepository",
    "SupplierConfigStoreError",
]
