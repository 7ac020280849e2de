"""
app/validators/errors.py

Structured configuration error details shared by the config validators.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ConfigErrorDetail:
    """
    Structured configuration error detail.
    """

    code: str
    message: str
    field: str | None = None
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "field": self.field,
            "context": self.context,
        }
