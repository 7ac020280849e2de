"""
app/repositories/supplier_config_repository.py

SQLAlchemy-backed supplier configuration store.

Configuration lives in ``suppliers.metadata_json``::

    {
        "price_list_parser": {"type": ..., "config": {...}} | {"template_name": ...},
        "discount_structure": {"type": ...},
        "import_defaults": {"pricing_mode": ..., "parsing_method": ...}
    }

Reads validate stored payloads; writers validate before storing. The caller
owns the session and its transaction.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.discount_structure import DiscountStructure
from app.domain.import_defaults import ImportDefaults, parse_import_defaults
from app.domain.price_list import ParserConfig
from app.parsers.templates import get_parser_template
from app.validators.discount_structure_validator import validate_discount_structure
from app.validators.parser_config_validator import (
    check_parser_config,
    parse_parser_config,
    parser_config_to_dict,
)
from db.models.supplier import Supplier

PARSER_CONFIG_KEY = "price_list_parser"
DISCOUNT_STRUCTURE_KEY = "discount_structure"
IMPORT_DEFAULTS_KEY = "import_defaults"


class SupplierConfigStoreError(RuntimeError):
    """
    Raised when supplier configuration cannot be read or written.
    """


class SupplierConfigRepository:
    """
    Reads and writes supplier price-list configuration.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Suppliers
    # ------------------------------------------------------------------

    def get_supplier(self, supplier_id: str) -> Supplier | None:
        try:
            stmt = select(Supplier).where(Supplier.id == supplier_id.strip())
            return self._session.execute(stmt).scalars().first()
        except SQLAlchemyError as exc:
            raise SupplierConfigStoreError(f"Failed to load supplier {supplier_id}: {exc}") from exc

    def upsert_supplier(self, *, supplier_id: str, name: str) -> Supplier:
        supplier = self.get_supplier(supplier_id)
        try:
            if supplier is None:
                supplier = Supplier(id=supplier_id.strip(), name=name.strip(), metadata_json={})
                self._session.add(supplier)
            else:
                supplier.name = name.strip()
            self._session.flush()
        except SQLAlchemyError as exc:
            raise SupplierConfigStoreError(f"Failed to save supplier {supplier_id}: {exc}") from exc
        return supplier

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_parser_config(self, supplier_id: str) -> ParserConfig | None:
        """
        Return the explicit parser configuration, or None when only a
        template reference (or nothing) is stored.

        Raises ParserConfigValidationError when the stored payload is invalid.
        """

        payload = self._metadata(supplier_id).get(PARSER_CONFIG_KEY)
        if not isinstance(payload, dict):
            return None
        if "config" not in payload and "format_config" not in payload:
            return None
        return parse_parser_config(payload)

    def get_template_name(self, supplier_id: str) -> str | None:
        payload = self._metadata(supplier_id).get(PARSER_CONFIG_KEY)
        if not isinstance(payload, dict):
            return None
        template_name = payload.get("template_name")
        if isinstance(template_name, str) and template_name.strip():
            return template_name.strip()
        return None

    def get_named_template(self, name: str) -> ParserConfig | None:
        return get_parser_template(name)

    def get_discount_structure(self, supplier_id: str) -> DiscountStructure | None:
        """
        Raises DiscountStructureValidationError when the stored payload is invalid.
        """

        payload = self._metadata(supplier_id).get(DISCOUNT_STRUCTURE_KEY)
        if payload is None:
            return None
        return validate_discount_structure(payload)

    def get_import_defaults(self, supplier_id: str) -> ImportDefaults | None:
        payload = self._metadata(supplier_id).get(IMPORT_DEFAULTS_KEY)
        if payload is None:
            return None
        return parse_import_defaults(payload)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_parser_config(
        self,
        supplier_id: str,
        config: ParserConfig | dict[str, Any],
    ) -> ParserConfig:
        parsed = parse_parser_config(config) if isinstance(config, dict) else config
        check_parser_config(parsed)
        self._update_metadata(supplier_id, PARSER_CONFIG_KEY, parser_config_to_dict(parsed))
        return parsed

    def save_template_name(self, supplier_id: str, template_name: str) -> None:
        self._update_metadata(supplier_id, PARSER_CONFIG_KEY, {"template_name": template_name.strip()})

    def save_discount_structure(self, supplier_id: str, payload: dict[str, Any]) -> DiscountStructure:
        structure = validate_discount_structure(payload)
        self._update_metadata(
            supplier_id,
            DISCOUNT_STRUCTURE_KEY,
            structure.model_dump(mode="json", exclude_none=True),
        )
        return structure

    def save_import_defaults(self, supplier_id: str, payload: dict[str, Any]) -> ImportDefaults:
        defaults = parse_import_defaults(payload)
        self._update_metadata(supplier_id, IMPORT_DEFAULTS_KEY, defaults.to_dict())
        return defaults

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _metadata(self, supplier_id: str) -> dict[str, Any]:
        supplier = self.get_supplier(supplier_id)
        if supplier is None or not isinstance(supplier.metadata_json, dict):
            return {}
        return supplier.metadata_json

    def _update_metadata(self, supplier_id: str, key: str, value: dict[str, Any]) -> None:
        supplier = self.get_supplier(supplier_id)
        if supplier is None:
            raise SupplierConfigStoreError(f"Supplier {supplier_id} not found.")
        try:
            # Reassign so the JSON column registers the change.
            supplier.metadata_json = {**(supplier.metadata_json or {}), key: value}
            self._session.flush()
        except SQLAlchemyError as exc:
            raise SupplierConfigStoreError(f"Failed to save {key} for supplier {supplier_id}: {exc}") from exc
