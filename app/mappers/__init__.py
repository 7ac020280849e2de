"""
app/mappers package marker.
"""

from app.mappers.field_aliases import CANONICAL_FIELDS, FIELD_ALIASES, suggest_column_mapping
from app.mappers.row_mapper import ResolvedMapping, RowMapper, resolve_column_mapping

__all__ = [
    "CANONICAL_FIELDS",
    "FIELD_ALIASES",
    "ResolvedMapping",
    "RowMapper",
    "resolve_column_mapping",
    "suggest_column_mapping",
]
