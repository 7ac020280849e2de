"""
app/services/price_list_import_service.py

Supplier price-list import pipeline.

    bytes -> decode -> resolve parser config -> extract raw rows
          -> map rows -> resolve net prices -> ParseResult

Row-level problems never abort the run: they are collected as RowError
values and surfaced (capped) in ``ParseResult.errors``. Only an empty or
unreadable file, an invalid caller-supplied configuration, or a failing
supplier configuration store stop the operation.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from sqlalchemy.orm import Session

from app.config import PriceListImportSettings, get_price_list_import_settings
from app.domain.discount_structure import DiscountStructure
from app.domain.import_defaults import ImportDefaultsValidationError, derive_import_defaults
from app.domain.price_list import (
    CanonicalRow,
    DelimitedConfig,
    FixedColumnConfig,
    ParseResult,
    ParserConfig,
    PricingMode,
    RawRow,
    RowError,
)
from app.logging_utils import log_event
from app.mappers.row_mapper import ResolvedMapping, RowMapper, resolve_column_mapping
from app.parsers.delimited_parser import DelimitedTextParser, non_blank_lines
from app.parsers.fixed_column_parser import FixedColumnParser
from app.repositories.supplier_config_repository import SupplierConfigRepository
from app.services.parser_config_resolver import (
    ParserConfigResolver,
    SupplierConfigStore,
)
from app.services.pricing_engine import PricingResolutionEngine, cap_error_messages
from app.validators.discount_structure_validator import DiscountStructureValidationError
from app.validators.parser_config_validator import check_parser_config

logger = logging.getLogger(__name__)

NO_DATA_ROWS_MESSAGE = "No data rows found in file after skipping rows"


class PriceListFormatError(ValueError):
    """
    Raised when the uploaded file is empty or cannot be read as text.
    """


class PriceListImportService:
    """
    Coordinates configuration resolution, extraction, mapping and pricing.
    """

    def __init__(
        self,
        *,
        store: SupplierConfigStore,
        settings: PriceListImportSettings | None = None,
        resolver: ParserConfigResolver | None = None,
        pricing_engine: PricingResolutionEngine | None = None,
        delimited_parser: DelimitedTextParser | None = None,
        fixed_column_parser: FixedColumnParser | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or get_price_list_import_settings()
        self._resolver = resolver or ParserConfigResolver(store=store)
        self._pricing_engine = pricing_engine or PricingResolutionEngine(
            decimal_places=self._settings.price_decimal_places,
        )
        self._delimited_parser = delimited_parser or DelimitedTextParser()
        self._fixed_column_parser = fixed_column_parser or FixedColumnParser()

    def parse_price_list(
        self,
        *,
        supplier_id: str,
        file_name: str,
        file_content: bytes | str,
        pricing_mode: PricingMode | str | None = None,
        parser_config: ParserConfig | None = None,
    ) -> ParseResult:
        """
        Run the full pipeline over one file.

        Args:
            supplier_id:    Supplier whose configuration drives the import.
            file_name:      Original file name, used as a detection hint.
            file_content:   Raw bytes (UTF-8, optionally with BOM, or Latin-1) or text.
            pricing_mode:   Overrides the supplier's import defaults when given.
            parser_config:  Skips resolution and uses this configuration as-is.
        """

        return self._run(
            supplier_id=supplier_id,
            file_name=file_name,
            text=decode_price_list(file_content),
            pricing_mode=pricing_mode,
            parser_config=parser_config,
            line_limit=None,
        )

    def preview_price_list(
        self,
        *,
        supplier_id: str,
        file_name: str,
        file_content: bytes | str,
        pricing_mode: PricingMode | str | None = None,
        parser_config: ParserConfig | None = None,
        line_limit: int | None = None,
    ) -> ParseResult:
        """
        Run the same pipeline over the first lines of the file only.
        """

        return self._run(
            supplier_id=supplier_id,
            file_name=file_name,
            text=decode_price_list(file_content),
            pricing_mode=pricing_mode,
            parser_config=parser_config,
            line_limit=max(1, line_limit or self._settings.preview_line_limit),
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(
        self,
        *,
        supplier_id: str,
        file_name: str,
        text: str,
        pricing_mode: PricingMode | str | None,
        parser_config: ParserConfig | None,
        line_limit: int | None,
    ) -> ParseResult:
        warnings: list[str] = []

        if parser_config is not None:
            warnings.extend(check_parser_config(parser_config))
            config = parser_config
            source = "caller"
        else:
            resolution = self._resolver.resolve_with_details(supplier_id, file_name, text)
            warnings.extend(resolution.warnings)
            config = resolution.config
            source = resolution.source

        if line_limit is not None:
            text = _leading_lines(text, line_limit + config.skip_rows)

        structure = self._load_discount_structure(supplier_id, warnings)
        mode = self._resolve_pricing_mode(supplier_id, pricing_mode, structure, warnings)

        raw_rows, mapping, extraction_warnings = self._extract(text, config)
        warnings.extend(extraction_warnings)
        for target, column in mapping.missing_columns.items():
            warnings.append(f"Configured column '{column}' for {target} was not found in the file.")

        if not raw_rows:
            log_event(
                logger,
                logging.WARNING,
                "price_list_no_data_rows",
                supplier_id=supplier_id,
                file_name=file_name,
                skip_rows=config.skip_rows,
            )
            return ParseResult(
                errors=[NO_DATA_ROWS_MESSAGE],
                warnings=warnings,
                parser_config=config,
                pricing_mode=mode,
            )

        problem = self._pricing_engine.configuration_problem(mode, structure)
        if problem is not None:
            warnings.append(problem)
            log_event(
                logger,
                logging.WARNING,
                "pricing_configuration_mismatch",
                supplier_id=supplier_id,
                pricing_mode=mode.value,
                discount_structure=structure.type if structure is not None else None,
            )

        mapper = RowMapper(mapping=mapping, transformations=config.format_config.transformations)
        items, row_errors = self._process_rows(raw_rows, mapper, mode, structure)

        if self._settings.log_row_errors:
            for error in row_errors:
                log_event(
                    logger,
                    logging.WARNING,
                    "price_list_row_rejected",
                    supplier_id=supplier_id,
                    row_number=error.row_number,
                    field=error.field,
                    reason=error.message,
                )

        result = ParseResult(
            items=items,
            errors=cap_error_messages([str(error) for error in row_errors], self._settings.max_displayed_errors),
            warnings=warnings,
            total_rows=len(raw_rows),
            processed_rows=len(items),
            parser_config=config,
            pricing_mode=mode,
            row_errors=row_errors,
        )
        log_event(
            logger,
            logging.INFO,
            "price_list_parsed",
            supplier_id=supplier_id,
            file_name=file_name,
            config_source=source,
            template_name=config.template_name,
            pricing_mode=mode.value,
            total_rows=result.total_rows,
            processed_rows=result.processed_rows,
            failed_rows=result.failed_rows,
            warnings=len(warnings),
            preview=line_limit is not None,
        )
        return result

    def _extract(
        self,
        text: str,
        config: ParserConfig,
    ) -> tuple[list[RawRow], ResolvedMapping, list[str]]:
        format_config = config.format_config
        if isinstance(format_config, DelimitedConfig):
            rows, headers = self._delimited_parser.parse(text, format_config)
            mapping = resolve_column_mapping(headers, format_config.column_mapping, auto_match=True)
            return rows, mapping, []
        if isinstance(format_config, FixedColumnConfig):
            rows, warnings = self._fixed_column_parser.parse(
                text,
                format_config.columns,
                format_config.skip_rows,
            )
            mapping = resolve_column_mapping(
                [column.name for column in format_config.columns],
                format_config.column_mapping,
                auto_match=False,
                identity_fallback=True,
            )
            return rows, mapping, warnings
        raise TypeError(f"Unsupported format config: {type(format_config).__name__}")

    def _process_rows(
        self,
        raw_rows: Sequence[RawRow],
        mapper: RowMapper,
        mode: PricingMode,
        structure: DiscountStructure | None,
    ) -> tuple[list[CanonicalRow], list[RowError]]:
        def process(raw_row: RawRow) -> CanonicalRow | RowError:
            mapped = mapper.map_row(raw_row)
            if isinstance(mapped, RowError):
                return mapped
            return self._pricing_engine.resolve_price(mapped, mode, structure)

        workers = self._settings.row_workers
        if workers > 1 and len(raw_rows) > 1:
            # map() yields in submission order, so outcomes stay in file order.
            with ThreadPoolExecutor(max_workers=workers) as executor:
                outcomes = list(executor.map(process, raw_rows))
        else:
            outcomes = [process(raw_row) for raw_row in raw_rows]

        items: list[CanonicalRow] = []
        errors: list[RowError] = []
        for outcome in outcomes:
            if isinstance(outcome, RowError):
                errors.append(outcome)
            else:
                items.append(outcome)
        return items, errors

    # ------------------------------------------------------------------
    # Supplier configuration
    # ------------------------------------------------------------------

    def _load_discount_structure(self, supplier_id: str, warnings: list[str]) -> DiscountStructure | None:
        try:
            return self._store.get_discount_structure(supplier_id)
        except DiscountStructureValidationError as exc:
            warnings.append(f"Stored discount structure for supplier {supplier_id} is invalid: {exc.message}")
            log_event(
                logger,
                logging.WARNING,
                "discount_structure_invalid",
                supplier_id=supplier_id,
                errors=[error.to_dict() for error in exc.errors],
            )
            return None

    def _resolve_pricing_mode(
        self,
        supplier_id: str,
        pricing_mode: PricingMode | str | None,
        structure: DiscountStructure | None,
        warnings: list[str],
    ) -> PricingMode:
        if pricing_mode is not None:
            try:
                return PricingMode(pricing_mode)
            except ValueError as exc:
                allowed = ", ".join(mode.value for mode in PricingMode)
                raise ValueError(f"Unknown pricing mode '{pricing_mode}'. Allowed modes: {allowed}.") from exc

        try:
            defaults = self._store.get_import_defaults(supplier_id)
        except ImportDefaultsValidationError as exc:
            warnings.append(f"Stored import defaults for supplier {supplier_id} are invalid: {exc.message}")
            defaults = None
        if defaults is None:
            defaults = derive_import_defaults(structure)
        return defaults.pricing_mode


def _leading_lines(text: str, count: int) -> str:
    """
    Cut ``text`` after its ``count``-th non-blank line, keeping line numbers intact.
    """

    kept = non_blank_lines(text)[:count]
    last_line = kept[-1][0] if kept else 0
    return "\n".join(text.splitlines()[:last_line])


def decode_price_list(file_content: bytes | str) -> str:
    """
    Decode file bytes as UTF-8 (BOM tolerated), falling back to Latin-1.

    Raises PriceListFormatError for empty or binary input.
    """

    if isinstance(file_content, bytes):
        try:
            text = file_content.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = file_content.decode("latin-1")
    else:
        text = file_content.lstrip("\ufeff")

    if not text.strip():
        raise PriceListFormatError("Price list file is empty.")
    if "\x00" in text:
        raise PriceListFormatError("Price list file is not readable as text.")
    return text


def get_price_list_import_service(session: Session) -> PriceListImportService:
    """
    Build a service backed by the database supplier configuration store.
    """

    return PriceListImportService(
        store=SupplierConfigRepository(session),
        settings=get_price_list_import_settings(),
    )
