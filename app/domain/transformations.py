"""
app/domain/transformations.py

Value transformations applied to extracted price-list fields.

Every transformation is a frozen dataclass; ``apply_transformation`` is the
single dispatch point. Transforms take and return strings and never raise:
a numeric transform over a non-numeric value returns the value unchanged so
the Row Mapper can report it as a row error.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, DivisionByZero, InvalidOperation
from typing import Any, Mapping, Union

_DATE_TOKENS: tuple[tuple[str, str], ...] = (
    ("YYYY", "%Y"),
    ("YY", "%y"),
    ("MM", "%m"),
    ("DD", "%d"),
)


@dataclass(frozen=True)
class Divide:
    divisor: Decimal


@dataclass(frozen=True)
class Multiply:
    multiplier: Decimal


@dataclass(frozen=True)
class Trim:
    pass


@dataclass(frozen=True)
class Uppercase:
    pass


@dataclass(frozen=True)
class Lowercase:
    pass


@dataclass(frozen=True)
class Substring:
    start: int
    length: int | None = None


@dataclass(frozen=True)
class DateReformat:
    """
    Reformat a date written as ``input_format`` (e.g. ``YYYYMMDD``) to ISO.
    """

    input_format: str


Transformation = Union[Divide, Multiply, Trim, Uppercase, Lowercase, Substring, DateReformat]

TRANSFORMATION_TYPES: tuple[str, ...] = (
    "divide",
    "multiply",
    "trim",
    "uppercase",
    "lowercase",
    "substring",
    "date",
)


class TransformationConfigError(ValueError):
    """
    Raised when a transformation payload cannot be turned into a Transformation.
    """


def apply_transformation(value: str, transformation: Transformation) -> str:
    """
    Apply one transformation to a raw field value.
    """

    if isinstance(transformation, Divide):
        return _scale(value, transformation.divisor, divide=True)
    if isinstance(transformation, Multiply):
        return _scale(value, transformation.multiplier, divide=False)
    if isinstance(transformation, Trim):
        return value.strip()
    if isinstance(transformation, Uppercase):
        return value.upper()
    if isinstance(transformation, Lowercase):
        return value.lower()
    if isinstance(transformation, Substring):
        start = max(0, transformation.start)
        if transformation.length is None:
            return value[start:]
        return value[start:start + max(0, transformation.length)]
    if isinstance(transformation, DateReformat):
        return _reformat_date(value, transformation.input_format)
    raise TypeError(f"Unsupported transformation: {transformation!r}")


def parse_transformation(payload: Mapping[str, Any]) -> Transformation:
    """
    Build a Transformation from its stored ``{"type": ...}`` payload.
    """

    if not isinstance(payload, Mapping):
        raise TransformationConfigError("Transformation must be an object with a 'type'.")

    kind = str(payload.get("type", "")).strip().lower()
    if kind == "divide":
        divisor = _require_decimal(payload, "divisor")
        if divisor == 0:
            raise TransformationConfigError("divide transformation requires a non-zero divisor.")
        return Divide(divisor=divisor)
    if kind == "multiply":
        return Multiply(multiplier=_require_decimal(payload, "multiplier"))
    if kind == "trim":
        return Trim()
    if kind == "uppercase":
        return Uppercase()
    if kind == "lowercase":
        return Lowercase()
    if kind == "substring":
        start = _require_int(payload, "start")
        length = payload.get("length")
        if start < 0:
            raise TransformationConfigError("substring start must be >= 0.")
        if length is not None:
            length = _require_int(payload, "length")
            if length < 0:
                raise TransformationConfigError("substring length must be >= 0.")
        return Substring(start=start, length=length)
    if kind in {"date", "date_reformat"}:
        input_format = payload.get("input_format")
        if not isinstance(input_format, str) or not input_format.strip():
            raise TransformationConfigError("date transformation requires an input_format.")
        return DateReformat(input_format=input_format.strip())

    allowed = ", ".join(TRANSFORMATION_TYPES)
    raise TransformationConfigError(
        f"Unknown transformation type '{kind or '<missing>'}'. Allowed types: {allowed}."
    )


def transformation_to_dict(transformation: Transformation) -> dict[str, Any]:
    """
    Serialize a Transformation back to its stored payload shape.
    """

    if isinstance(transformation, Divide):
        return {"type": "divide", "divisor": float(transformation.divisor)}
    if isinstance(transformation, Multiply):
        return {"type": "multiply", "multiplier": float(transformation.multiplier)}
    if isinstance(transformation, Trim):
        return {"type": "trim"}
    if isinstance(transformation, Uppercase):
        return {"type": "uppercase"}
    if isinstance(transformation, Lowercase):
        return {"type": "lowercase"}
    if isinstance(transformation, Substring):
        payload: dict[str, Any] = {"type": "substring", "start": transformation.start}
        if transformation.length is not None:
            payload["length"] = transformation.length
        return payload
    if isinstance(transformation, DateReformat):
        return {"type": "date", "input_format": transformation.input_format}
    raise TypeError(f"Unsupported transformation: {transformation!r}")


def _scale(value: str, factor: Decimal, *, divide: bool) -> str:
    try:
        number = Decimal(value.strip())
    except (InvalidOperation, ValueError):
        return value
    if not number.is_finite():
        return value

    try:
        result = number / factor if divide else number * factor
    except (DivisionByZero, InvalidOperation):
        return "NaN"
    return format(result, "f")


def _reformat_date(value: str, input_format: str) -> str:
    raw = value.strip()
    if not raw:
        return value

    pattern = input_format
    for token, directive in _DATE_TOKENS:
        pattern = pattern.replace(token, directive)
    try:
        parsed = datetime.strptime(raw, pattern)
    except ValueError:
        return value
    return parsed.strftime("%Y-%m-%d")


def _require_decimal(payload: Mapping[str, Any], key: str) -> Decimal:
    raw = payload.get(key)
    if isinstance(raw, bool) or raw is None:
        raise TransformationConfigError(f"Transformation field '{key}' must be a number.")
    try:
        number = Decimal(str(raw))
    except (InvalidOperation, ValueError) as exc:
        raise TransformationConfigError(f"Transformation field '{key}' must be a number.") from exc
    if not number.is_finite():
        raise TransformationConfigError(f"Transformation field '{key}' must be finite.")
    return number


def _require_int(payload: Mapping[str, Any], key: str) -> int:
    raw = payload.get(key)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise TransformationConfigError(f"Transformation field '{key}' must be an integer.")
    return raw
