"""
app/parsers/fixed_column_parser.py

Fixed-column extraction for vendor files with positional fields.
"""

from __future__ import annotations

from typing import Sequence

from app.domain.price_list import FixedColumn, RawRow
from app.parsers.delimited_parser import non_blank_lines


class FixedColumnParser:
    """
    Cuts each line into the declared ``[start, start + width)`` ranges.
    """

    def parse(
        self,
        content: str,
        columns: Sequence[FixedColumn],
        skip_rows: int = 0,
    ) -> tuple[list[RawRow], list[str]]:
        """
        Return raw rows and per-line warnings.

        A line shorter than the widest column end is still extracted; the
        columns it does not reach come back as ``""`` and one warning is
        recorded for that line.
        """

        line_width = max((column.end for column in columns), default=0)
        rows: list[RawRow] = []
        warnings: list[str] = []

        for number, line in non_blank_lines(content)[skip_rows:]:
            if len(line) < line_width:
                warnings.append(
                    f"Row {number}: Line shorter than expected "
                    f"({len(line)} < {line_width}), some fields may be empty"
                )
            values = {column.name: line[column.start:column.end].strip() for column in columns}
            rows.append(RawRow(row_number=number, values=values))

        return rows, warnings
