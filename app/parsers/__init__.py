"""
app/parsers package marker.
"""

from app.parsers.delimited_parser import DelimitedTextParser, tokenize_line
from app.parsers.detection import detect_delimiter, select_template_name
from app.parsers.fixed_column_parser import FixedColumnParser
from app.parsers.templates import get_parser_template, list_parser_templates

__all__ = [
    "DelimitedTextParser",
    "FixedColumnParser",
    "detect_delimiter",
    "get_parser_template",
    "list_parser_templates",
    "select_template_name",
    "tokenize_line",
]
