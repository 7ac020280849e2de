"""
app/parsers/detection.py

Content heuristics used when a supplier has no usable stored configuration.
"""

from __future__ import annotations

import re

from app.domain.price_list import ParserFormat
from app.parsers.delimited_parser import non_blank_lines
from app.parsers.templates import (
    CATERPILLAR_FIXED_WIDTH,
    GENERIC_CSV,
    GENERIC_FIXED_WIDTH,
    SEMICOLON_CSV,
    TAB_DELIMITED,
)

SAMPLE_LINES = 10
LENGTH_TOLERANCE = 10
LONG_LINE_THRESHOLD = 50
CATERPILLAR_MIN_LINE_LENGTH = 100
DELIMITER_SAMPLE_LINES = 3
DELIMITER_CANDIDATES: tuple[str, ...] = (",", ";", "\t", "|")

_CATERPILLAR_PART_NUMBER = re.compile(r"^\d{10,18}")


def is_fixed_column_format(content: str) -> bool:
    """
    Lines of near-equal, long length indicate a fixed-column file.
    """

    lines = [line for _, line in non_blank_lines(content)]
    if len(lines) < 2:
        return False

    lengths = [len(line) for line in lines[:SAMPLE_LINES]]
    average = sum(lengths) / len(lengths)
    consistent = all(abs(length - average) < LENGTH_TOLERANCE for length in lengths)
    return consistent and average > LONG_LINE_THRESHOLD


def is_caterpillar_format(content: str) -> bool:
    return any(
        _CATERPILLAR_PART_NUMBER.match(line) and len(line) > CATERPILLAR_MIN_LINE_LENGTH
        for _, line in non_blank_lines(content)
    )


def detect_format(content: str) -> ParserFormat:
    return ParserFormat.FIXED_COLUMN if is_fixed_column_format(content) else ParserFormat.DELIMITED


def select_template_name(file_name: str, content: str) -> str:
    """
    Pick the registry template that best fits the file.
    """

    if detect_format(content) is ParserFormat.FIXED_COLUMN:
        if is_caterpillar_format(content):
            return CATERPILLAR_FIXED_WIDTH
        return GENERIC_FIXED_WIDTH

    lines = non_blank_lines(content)
    first_line = lines[0][1] if lines else ""
    if ";" in first_line and "," not in first_line:
        return SEMICOLON_CSV
    if "\t" in first_line and "," not in first_line and ";" not in first_line:
        return TAB_DELIMITED
    if file_name.lower().endswith(".tsv") and "\t" in first_line:
        return TAB_DELIMITED
    return GENERIC_CSV


def detect_delimiter(content: str) -> str:
    """
    Return the candidate delimiter with a consistent and highest per-line count.
    """

    sample = [line for _, line in non_blank_lines(content)[:DELIMITER_SAMPLE_LINES]]
    if not sample:
        return ","

    best = ","
    best_average = 0.0
    for candidate in DELIMITER_CANDIDATES:
        counts = [line.count(candidate) for line in sample]
        if counts[0] == 0 or any(count != counts[0] for count in counts):
            continue
        average = sum(counts) / len(counts)
        if average > best_average:
            best = candidate
            best_average = average
    return best
