# SPDX-License-Identifier: Apache-2.0
"""CSV text to row matrix conversion.

Quoting and whitespace of the input are not preserved: cells are trimmed
on read and written back with minimal quoting.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Sequence

from csv_translator.constants import MAX_FILE_SIZE
from csv_translator.core.models import Row


class ParseError(ValueError):
    """Malformed CSV input."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message if line is None else f"Line {line}: {message}")
        self.line = line


def parse_rows(text: str) -> tuple[list[str], list[Row]]:
    """Parse CSV text into headers and rows.

    The first non-blank record is the header. Blank lines are skipped and
    cells are trimmed.

    Args:
        text: CSV document.

    Returns:
        Tuple of (headers, rows).

    Raises:
        ParseError: If there is no header row, the CSV syntax is invalid,
            or a row has a different number of columns than the header.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    headers: list[str] | None = None
    rows: list[Row] = []

    try:
        for record in reader:
            if not record or all(not cell.strip() for cell in record):
                continue
            cells = [cell.strip() for cell in record]
            if headers is None:
                headers = cells
                continue
            if len(cells) != len(headers):
                raise ParseError(
                    f"Invalid record length: expected {len(headers)} columns, got {len(cells)}",
                    line=reader.line_num,
                )
            rows.append(cells)
    except csv.Error as e:
        raise ParseError(f"CSV parsing error: {e}", line=reader.line_num) from e

    if headers is None:
        raise ParseError("CSV file is empty (no header row)")
    return headers, rows


def serialize_rows(headers: Sequence[str], rows: Sequence[Row]) -> str:
    """Serialize headers and rows back into CSV text."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def read_csv_file(path: Path, max_size: int = MAX_FILE_SIZE) -> str:
    """Read a CSV file as text, enforcing the upload size limit.

    Raises:
        ParseError: If the file is larger than ``max_size`` bytes or is
            not valid UTF-8.
    """
    size = path.stat().st_size
    if size > max_size:
        raise ParseError(
            f"File size exceeds maximum allowed size of {max_size // (1024 * 1024)}MB"
        )
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"File is not valid UTF-8: {e}") from e
