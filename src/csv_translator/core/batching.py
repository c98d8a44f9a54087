# SPDX-License-Identifier: Apache-2.0
"""Row batching for the translation pipeline."""

from __future__ import annotations

from typing import Sequence

from csv_translator.constants import DEFAULT_BATCH_SIZE, MAX_BATCH_SIZE, MIN_BATCH_SIZE
from csv_translator.core.models import Batch, Row


def clamp_batch_size(
    requested: int | None,
    minimum: int = MIN_BATCH_SIZE,
    maximum: int = MAX_BATCH_SIZE,
) -> int:
    """Clamp a requested batch size to ``[minimum, maximum]``.

    ``None`` or ``0`` selects the default batch size.
    """
    size = requested or DEFAULT_BATCH_SIZE
    return min(max(size, minimum), maximum)


def row_char_count(row: Row) -> int:
    """Number of characters in all cells of a row."""
    return sum(len(cell) for cell in row)


def partition(
    rows: Sequence[Row],
    batch_size: int,
    *,
    max_chars: int | None = None,
) -> list[Batch]:
    """Split rows into ordered, contiguous batches.

    Without ``max_chars`` batch ``i`` holds rows ``[i*b, min((i+1)*b, n))``.
    With ``max_chars`` a batch is also closed before a row that would push
    its character count over the bound; a row larger than the bound gets a
    batch of its own. Rows are never split or reordered.

    Args:
        rows: Rows to split.
        batch_size: Maximum rows per batch.
        max_chars: Optional maximum characters per batch.

    Returns:
        Batches covering every row exactly once, in order.

    Raises:
        ValueError: If ``batch_size`` or ``max_chars`` is below 1.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    if max_chars is not None and max_chars < 1:
        raise ValueError(f"max_chars must be >= 1, got {max_chars}")

    if max_chars is None:
        return [
            Batch(index=i, start_row_index=start, rows=list(rows[start : start + batch_size]))
            for i, start in enumerate(range(0, len(rows), batch_size))
        ]

    batches: list[Batch] = []
    current: list[Row] = []
    current_chars = 0
    start = 0

    for row in rows:
        row_chars = row_char_count(row)
        if current and (len(current) >= batch_size or current_chars + row_chars > max_chars):
            batches.append(Batch(index=len(batches), start_row_index=start, rows=current))
            start += len(current)
            current = []
            current_chars = 0
        current.append(row)
        current_chars += row_chars

    if current:
        batches.append(Batch(index=len(batches), start_row_index=start, rows=current))

    return batches
