# SPDX-License-Identifier: Apache-2.0
"""Table models, batching and CSV conversion."""

from .batching import clamp_batch_size, partition
from .csv_codec import ParseError, parse_rows, read_csv_file, serialize_rows
from .models import Batch, BatchResult, CellOutcome, ColumnMapping, Row, TranslationConfig

__all__ = [
    "Batch",
    "BatchResult",
    "CellOutcome",
    "ColumnMapping",
    "ParseError",
    "Row",
    "TranslationConfig",
    "clamp_batch_size",
    "parse_rows",
    "partition",
    "read_csv_file",
    "serialize_rows",
]
