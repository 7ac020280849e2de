"""
app/config.py

Runtime settings for the supplier price-list import pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


@dataclass(frozen=True)
class PriceListImportSettings:
    """
    Runtime settings for price-list parsing and pricing resolution.
    """

    max_displayed_errors: int = 50
    preview_line_limit: int = 12
    log_row_errors: bool = True
    row_workers: int = 1
    price_decimal_places: int = 4


@lru_cache(maxsize=1)
def get_price_list_import_settings() -> PriceListImportSettings:
    """
    Return cached price-list import settings from environment variables.
    """

    return PriceListImportSettings(
        max_displayed_errors=max(1, _get_int_env("PRICE_LIST_MAX_DISPLAYED_ERRORS", 50)),
        preview_line_limit=max(2, _get_int_env("PRICE_LIST_PREVIEW_LINE_LIMIT", 12)),
        log_row_errors=_get_bool_env("PRICE_LIST_LOG_ROW_ERRORS", True),
        row_workers=max(1, _get_int_env("PRICE_LIST_ROW_WORKERS", 1)),
        price_decimal_places=min(8, max(0, _get_int_env("PRICE_LIST_PRICE_DECIMAL_PLACES", 4))),
    )
