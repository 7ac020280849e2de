"""
app/logging_utils.py

JSON-line event logging for price-list import runs.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from enum import Enum
from typing import Any


def _json_default(value: Any) -> Any:
    # Prices stay exact in logs.
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit ``{"event": ..., **fields}`` as one compact JSON line.

    Fields with a ``None`` value are dropped.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event}
    payload.update((key, value) for key, value in fields.items() if value is not None)
    logger.log(level, json.dumps(payload, default=_json_default, sort_keys=True, separators=(",", ":")))
