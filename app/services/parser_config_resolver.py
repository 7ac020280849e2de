"""
app/services/parser_config_resolver.py

Resolves the parser configuration for one import run.

Resolution order, first success wins:

    1. Explicit supplier configuration (validated before use)
    2. Named template referenced in supplier metadata
    3. Content-based auto-detection
    4. Generic delimited fallback

Steps 1-3 never fail the import: any error is logged at WARNING level,
recorded on the resolution and treated as "try the next step".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from app.domain.discount_structure import DiscountStructure
from app.domain.import_defaults import ImportDefaults
from app.domain.price_list import ParserConfig
from app.logging_utils import log_event
from app.parsers.detection import select_template_name
from app.parsers.templates import GENERIC_CSV, PARSER_TEMPLATES, get_parser_template
from app.validators.parser_config_validator import check_parser_config

logger = logging.getLogger(__name__)

SOURCE_SUPPLIER = "supplier"
SOURCE_TEMPLATE = "template"
SOURCE_DETECTED = "detected"
SOURCE_FALLBACK = "fallback"


class SupplierConfigStore(Protocol):
    """
    Read side of the supplier configuration store consumed by the pipeline.
    """

    def get_parser_config(self, supplier_id: str) -> ParserConfig | None: ...

    def get_template_name(self, supplier_id: str) -> str | None: ...

    def get_named_template(self, name: str) -> ParserConfig | None: ...

    def get_discount_structure(self, supplier_id: str) -> DiscountStructure | None: ...

    def get_import_defaults(self, supplier_id: str) -> ImportDefaults | None: ...


@dataclass(frozen=True)
class ParserConfigResolution:
    """
    Resolved configuration plus where it came from.
    """

    config: ParserConfig
    source: str
    warnings: list[str] = field(default_factory=list)


class ParserConfigResolver:
    def __init__(self, *, store: SupplierConfigStore) -> None:
        self._store = store

    def resolve(self, supplier_id: str, file_name: str, file_content: str) -> ParserConfig:
        return self.resolve_with_details(supplier_id, file_name, file_content).config

    def resolve_with_details(
        self,
        supplier_id: str,
        file_name: str,
        file_content: str,
    ) -> ParserConfigResolution:
        """
        Run the resolution chain. Never raises.
        """

        warnings: list[str] = []

        try:
            explicit = self._store.get_parser_config(supplier_id)
            if explicit is not None:
                warnings.extend(check_parser_config(explicit))
                return self._resolved(supplier_id, explicit, SOURCE_SUPPLIER, warnings)
        except Exception as exc:  # noqa: BLE001
            self._fall_through(
                warnings,
                supplier_id=supplier_id,
                step=SOURCE_SUPPLIER,
                message=f"Invalid supplier parser config for {supplier_id}: {exc}",
            )

        try:
            template_name = self._store.get_template_name(supplier_id)
            if template_name:
                template = self._store.get_named_template(template_name)
                if template is not None:
                    return self._resolved(supplier_id, template, SOURCE_TEMPLATE, warnings)
                self._fall_through(
                    warnings,
                    supplier_id=supplier_id,
                    step=SOURCE_TEMPLATE,
                    message=f"Template {template_name} not found for supplier {supplier_id}",
                )
        except Exception as exc:  # noqa: BLE001
            self._fall_through(
                warnings,
                supplier_id=supplier_id,
                step=SOURCE_TEMPLATE,
                message=f"Template lookup failed for supplier {supplier_id}: {exc}",
            )

        try:
            detected = get_parser_template(select_template_name(file_name, file_content))
            if detected is not None:
                return self._resolved(supplier_id, detected, SOURCE_DETECTED, warnings)
        except Exception as exc:  # noqa: BLE001
            self._fall_through(
                warnings,
                supplier_id=supplier_id,
                step=SOURCE_DETECTED,
                message=f"Format detection failed for {file_name}: {exc}",
            )

        return self._resolved(supplier_id, PARSER_TEMPLATES[GENERIC_CSV], SOURCE_FALLBACK, warnings)

    def _resolved(
        self,
        supplier_id: str,
        config: ParserConfig,
        source: str,
        warnings: list[str],
    ) -> ParserConfigResolution:
        log_event(
            logger,
            logging.INFO,
            "parser_config_resolved",
            supplier_id=supplier_id,
            source=source,
            format=config.format.value,
            template_name=config.template_name,
        )
        return ParserConfigResolution(config=config, source=source, warnings=list(warnings))

    @staticmethod
    def _fall_through(warnings: list[str], *, supplier_id: str, step: str, message: str) -> None:
        warnings.append(message)
        log_event(
            logger,
            logging.WARNING,
            "parser_config_fall_through",
            supplier_id=supplier_id,
            step=step,
            reason=message,
        )
