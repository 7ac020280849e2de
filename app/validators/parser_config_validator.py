"""
app/validators/parser_config_validator.py

Parsing and validation of stored parser configurations.

Stored payload shape (supplier metadata ``price_list_parser``)::

    {
        "type": "csv" | "delimited" | "fixed-width" | "fixed_column",
        "template_name": "optional",
        "config": {...}
    }
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from app.domain.price_list import (
    ColumnSource,
    DelimitedConfig,
    FixedColumn,
    FixedColumnConfig,
    ParserConfig,
    ParserFormat,
)
from app.domain.transformations import (
    Transformation,
    TransformationConfigError,
    parse_transformation,
    transformation_to_dict,
)
from app.validators.errors import ConfigErrorDetail

_FORMAT_ALIASES: dict[str, ParserFormat] = {
    "csv": ParserFormat.DELIMITED,
    "delimited": ParserFormat.DELIMITED,
    "fixed-width": ParserFormat.FIXED_COLUMN,
    "fixed_width": ParserFormat.FIXED_COLUMN,
    "fixed_column": ParserFormat.FIXED_COLUMN,
    "fixed-column": ParserFormat.FIXED_COLUMN,
}


class ParserConfigValidationError(ValueError):
    """
    Raised when a parser configuration cannot be used safely.
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


def parse_parser_config(payload: Any) -> ParserConfig:
    """
    Build a typed ParserConfig from a stored payload, collecting every problem.
    """

    if not isinstance(payload, Mapping):
        raise ParserConfigValidationError(
            message="Parser configuration must be an object.",
            errors=[ConfigErrorDetail(code="invalid_type", message="Expected a JSON object.")],
        )

    errors: list[ConfigErrorDetail] = []
    raw_format = str(payload.get("type", payload.get("format", ""))).strip().lower()
    parser_format = _FORMAT_ALIASES.get(raw_format)
    if parser_format is None:
        raise ParserConfigValidationError(
            message="Parser configuration has an unknown format type.",
            errors=[
                ConfigErrorDetail(
                    code="unknown_format",
                    message="Format type must be one of: " + ", ".join(sorted(_FORMAT_ALIASES)) + ".",
                    field="type",
                    context={"received": raw_format or None},
                )
            ],
        )

    raw_config = payload.get("config", payload.get("format_config"))
    if not isinstance(raw_config, Mapping):
        raise ParserConfigValidationError(
            message="Parser configuration is missing its 'config' object.",
            errors=[ConfigErrorDetail(code="missing_config", message="'config' must be an object.", field="config")],
        )

    template_name = payload.get("template_name")
    if template_name is not None and not isinstance(template_name, str):
        errors.append(
            ConfigErrorDetail(code="invalid_template_name", message="template_name must be a string.", field="template_name")
        )
        template_name = None

    column_mapping = _parse_column_mapping(raw_config.get("column_mapping"), errors)
    transformations = _parse_transformations(raw_config.get("transformations"), errors)
    skip_rows = _parse_non_negative_int(raw_config.get("skip_rows", 0), "skip_rows", errors)

    if parser_format is ParserFormat.DELIMITED:
        delimiter = _parse_single_char(raw_config.get("delimiter", ","), "delimiter", errors)
        quote_char = _parse_single_char(raw_config.get("quote_char", '"'), "quote_char", errors)
        has_header = raw_config.get("has_header", True)
        if not isinstance(has_header, bool):
            errors.append(ConfigErrorDetail(code="invalid_bool", message="has_header must be a boolean.", field="has_header"))
            has_header = True
        format_config: DelimitedConfig | FixedColumnConfig = DelimitedConfig(
            delimiter=delimiter,
            quote_char=quote_char,
            has_header=has_header,
            skip_rows=skip_rows,
            column_mapping=column_mapping,
            transformations=transformations,
        )
    else:
        raw_columns = raw_config.get("columns", raw_config.get("fixed_width_columns"))
        columns = _parse_columns(raw_columns, errors)
        format_config = FixedColumnConfig(
            skip_rows=skip_rows,
            columns=columns,
            column_mapping=column_mapping,
            transformations=transformations,
        )

    if errors:
        raise ParserConfigValidationError(
            message=f"Invalid {parser_format.value} parser configuration: "
            + "; ".join(error.message for error in errors),
            errors=errors,
        )

    config = ParserConfig(
        format=parser_format,
        format_config=format_config,
        template_name=template_name.strip() if isinstance(template_name, str) and template_name.strip() else None,
    )
    check_parser_config(config)
    return config


def check_parser_config(config: ParserConfig) -> list[str]:
    """
    Validate semantic rules of a typed config. Returns non-fatal warnings.
    """

    errors: list[ConfigErrorDetail] = []
    warnings: list[str] = []
    format_config = config.format_config

    if isinstance(format_config, DelimitedConfig):
        if format_config.delimiter == format_config.quote_char:
            errors.append(
                ConfigErrorDetail(
                    code="delimiter_equals_quote",
                    message="delimiter and quote_char must differ.",
                    field="delimiter",
                )
            )
        if format_config.delimiter in {"\n", "\r"}:
            errors.append(
                ConfigErrorDetail(code="invalid_delimiter", message="delimiter cannot be a line break.", field="delimiter")
            )
    elif isinstance(format_config, FixedColumnConfig):
        if not format_config.columns:
            errors.append(
                ConfigErrorDetail(
                    code="no_columns",
                    message="Fixed-column configuration declares no columns.",
                    field="columns",
                )
            )
        seen: set[str] = set()
        ordered = sorted(format_config.columns, key=lambda column: column.start)
        for column in format_config.columns:
            if column.name in seen:
                errors.append(
                    ConfigErrorDetail(
                        code="duplicate_column",
                        message=f"Column '{column.name}' is declared more than once.",
                        field="columns",
                    )
                )
            seen.add(column.name)
        for previous, current in zip(ordered, ordered[1:]):
            if current.start < previous.end:
                warnings.append(
                    f"Columns '{previous.name}' and '{current.name}' overlap "
                    f"({previous.start}-{previous.end} and {current.start}-{current.end})."
                )

    if errors:
        raise ParserConfigValidationError(
            message="; ".join(error.message for error in errors),
            errors=errors,
        )
    return warnings


def parser_config_to_dict(config: ParserConfig) -> dict[str, Any]:
    """
    Serialize a ParserConfig into its stored payload shape.
    """

    format_config = config.format_config
    body: dict[str, Any] = {
        "skip_rows": format_config.skip_rows,
        "column_mapping": {
            field: list(source) if isinstance(source, tuple) else source
            for field, source in format_config.column_mapping.items()
        },
        "transformations": {
            field: transformation_to_dict(transformation)
            for field, transformation in format_config.transformations.items()
        },
    }
    if isinstance(format_config, DelimitedConfig):
        body.update(
            delimiter=format_config.delimiter,
            quote_char=format_config.quote_char,
            has_header=format_config.has_header,
        )
    else:
        body["columns"] = [
            {"name": column.name, "start": column.start, "width": column.width}
            for column in format_config.columns
        ]

    payload: dict[str, Any] = {"type": config.format.value, "config": body}
    if config.template_name:
        payload["template_name"] = config.template_name
    return payload


def _parse_column_mapping(raw: Any, errors: list[ConfigErrorDetail]) -> dict[str, ColumnSource]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        errors.append(ConfigErrorDetail(code="invalid_mapping", message="column_mapping must be an object.", field="column_mapping"))
        return {}

    mapping: dict[str, ColumnSource] = {}
    for target, source in raw.items():
        if not isinstance(target, str) or not target.strip():
            errors.append(ConfigErrorDetail(code="invalid_mapping", message="column_mapping keys must be field names.", field="column_mapping"))
            continue
        if isinstance(source, str):
            if source.strip():
                mapping[target.strip()] = source.strip()
        elif isinstance(source, (list, tuple)) and all(isinstance(item, str) for item in source):
            candidates = tuple(item.strip() for item in source if item.strip())
            if candidates:
                mapping[target.strip()] = candidates
        else:
            errors.append(
                ConfigErrorDetail(
                    code="invalid_mapping",
                    message=f"column_mapping for '{target}' must be a column name or a list of names.",
                    field=f"column_mapping.{target}",
                )
            )
    return mapping


def _parse_transformations(raw: Any, errors: list[ConfigErrorDetail]) -> dict[str, Transformation]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        errors.append(
            ConfigErrorDetail(code="invalid_transformations", message="transformations must be an object.", field="transformations")
        )
        return {}

    parsed: dict[str, Transformation] = {}
    for target, payload in raw.items():
        try:
            parsed[str(target).strip()] = parse_transformation(payload)
        except TransformationConfigError as exc:
            errors.append(
                ConfigErrorDetail(
                    code="invalid_transformation",
                    message=str(exc),
                    field=f"transformations.{target}",
                )
            )
    return parsed


def _parse_columns(raw: Any, errors: list[ConfigErrorDetail]) -> tuple[FixedColumn, ...]:
    if not isinstance(raw, (list, tuple)):
        errors.append(ConfigErrorDetail(code="invalid_columns", message="columns must be a list.", field="columns"))
        return ()

    columns: list[FixedColumn] = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, Mapping):
            errors.append(ConfigErrorDetail(code="invalid_column", message=f"Column #{index} must be an object.", field="columns"))
            continue
        name = entry.get("name", entry.get("field"))
        start = entry.get("start")
        width = entry.get("width")
        if not isinstance(name, str) or not name.strip():
            errors.append(ConfigErrorDetail(code="invalid_column", message=f"Column #{index} needs a name.", field="columns"))
            continue
        if isinstance(start, bool) or not isinstance(start, int) or start < 0:
            errors.append(
                ConfigErrorDetail(code="invalid_column", message=f"Column '{name}' start must be an integer >= 0.", field="columns")
            )
            continue
        if isinstance(width, bool) or not isinstance(width, int) or width < 1:
            errors.append(
                ConfigErrorDetail(code="invalid_column", message=f"Column '{name}' width must be an integer >= 1.", field="columns")
            )
            continue
        columns.append(FixedColumn(name=name.strip(), start=start, width=width))
    return tuple(columns)


def _parse_non_negative_int(raw: Any, field: str, errors: list[ConfigErrorDetail]) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        errors.append(ConfigErrorDetail(code="invalid_int", message=f"{field} must be an integer >= 0.", field=field))
        return 0
    return raw


def _parse_single_char(raw: Any, field: str, errors: list[ConfigErrorDetail]) -> str:
    if isinstance(raw, str) and raw in {"\\t", "tab"}:
        return "\t"
    if not isinstance(raw, str) or len(raw) != 1:
        errors.append(ConfigErrorDetail(code="invalid_char", message=f"{field} must be a single character.", field=field))
        return ","
    return raw
