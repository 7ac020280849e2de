"""
app/parsers/delimited_parser.py

Delimited-text extraction: quote-aware tokenizing of supplier CSV-style files.

Rows come out as ``header -> raw text`` maps; typing happens in the Row Mapper.
"""

from __future__ import annotations

import csv
from typing import Sequence

from app.domain.price_list import DelimitedConfig, RawRow


def tokenize_line(line: str, delimiter: str = ",", quote_char: str = '"') -> list[str]:
    """
    Split one line into stripped cells.

    The delimiter separates cells only outside quotes. Inside quotes, a doubled
    quote character is a literal quote, so ``"a""b,c"`` yields ``a"b,c``.
    """

    reader = csv.reader(
        [line],
        delimiter=delimiter,
        quotechar=quote_char,
        doublequote=True,
        skipinitialspace=True,
    )
    cells = next(reader, None) or [""]
    return [cell.strip() for cell in cells]


def positional_headers(count: int) -> list[str]:
    return [f"column_{position}" for position in range(1, count + 1)]


def non_blank_lines(content: str) -> list[tuple[int, str]]:
    """
    Return ``(line_number, line)`` for every non-blank line, numbered from 1.
    """

    return [
        (number, line)
        for number, line in enumerate(content.splitlines(), start=1)
        if line.strip()
    ]


class DelimitedTextParser:
    """
    Extracts raw rows from delimited text using a DelimitedConfig.
    """

    def parse(self, content: str, config: DelimitedConfig) -> tuple[list[RawRow], list[str]]:
        """
        Parse ``content`` into raw rows and the header list.

        Blank lines are dropped and ``skip_rows`` leading lines removed before
        the header is read. Without a header, cells are named ``column_1``,
        ``column_2`` and so on. Missing trailing cells map to ``""`` and surplus
        cells are ignored.
        """

        lines = non_blank_lines(content)[config.skip_rows:]
        if not lines:
            return [], []

        tokenized = [
            (number, tokenize_line(line, config.delimiter, config.quote_char))
            for number, line in lines
        ]

        if config.has_header:
            _, header_cells = tokenized[0]
            headers = _unique_headers(header_cells)
            data = tokenized[1:]
        else:
            widest = max(len(cells) for _, cells in tokenized)
            headers = positional_headers(widest)
            data = tokenized

        rows = [
            RawRow(row_number=number, values=_row_values(headers, cells))
            for number, cells in data
        ]
        return rows, headers


def _row_values(headers: Sequence[str], cells: Sequence[str]) -> dict[str, str]:
    return {
        header: cells[position] if position < len(cells) else ""
        for position, header in enumerate(headers)
    }


def _unique_headers(cells: Sequence[str]) -> list[str]:
    headers: list[str] = []
    seen: set[str] = set()
    for position, cell in enumerate(cells, start=1):
        name = cell or f"column_{position}"
        if name in seen:
            name = f"{name}_{position}"
        seen.add(name)
        headers.append(name)
    return headers
