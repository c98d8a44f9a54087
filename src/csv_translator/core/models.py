# SPDX-License-Identifier: Apache-2.0
"""Data models for the CSV translation pipeline.

A table is a header list plus a list of rows, each row a list of cell
strings of the same length as the header. Column mappings select which
cells are translated and into which language.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from csv_translator.constants import DEFAULT_BATCH_SIZE

Row = list[str]


@dataclass(frozen=True)
class ColumnMapping:
    """Translation setting for one column.

    Attributes:
        column_index: Zero-based column position.
        column_name: Header text of the column.
        should_translate: Whether the column is selected for translation.
        target_language: Language code to translate into.
    """

    column_index: int
    column_name: str = ""
    should_translate: bool = False
    target_language: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """True when cells of this column must be sent to the translator."""
        return self.should_translate and bool(self.target_language)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "columnIndex": self.column_index,
            "columnName": self.column_name,
            "shouldTranslate": self.should_translate,
            "targetLanguage": self.target_language,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ColumnMapping:
        """Create from dictionary (camelCase or snake_case keys)."""
        index = data.get("columnIndex", data.get("column_index"))
        if index is None:
            raise KeyError("columnIndex")
        return cls(
            column_index=int(index),
            column_name=str(data.get("columnName", data.get("column_name", ""))),
            should_translate=bool(data.get("shouldTranslate", data.get("should_translate", False))),
            target_language=data.get("targetLanguage", data.get("target_language")) or None,
        )


@dataclass(frozen=True)
class TranslationConfig:
    """Per-run translation settings.

    Attributes:
        source_language: Source language code ("auto" lets the service detect).
        column_mappings: Column settings; indices are unique.
        batch_size: Rows per batch.
    """

    source_language: str
    column_mappings: tuple[ColumnMapping, ...] = ()
    batch_size: int = DEFAULT_BATCH_SIZE

    def __post_init__(self) -> None:
        # Accept any iterable of mappings but store an immutable tuple
        object.__setattr__(self, "column_mappings", tuple(self.column_mappings))

    @property
    def active_mappings(self) -> dict[int, ColumnMapping]:
        """Mappings that translate, keyed by column index."""
        return {m.column_index: m for m in self.column_mappings if m.is_active}

    def mapping_for(self, column_index: int) -> ColumnMapping | None:
        """Return the active mapping for a column, or None for pass-through."""
        return self.active_mappings.get(column_index)

    def validate(self, header_count: int) -> None:
        """Check the configuration against a table with ``header_count`` columns.

        Raises:
            InvalidConfigurationError: On a bad batch size or column index.
        """
        from csv_translator.pipeline.errors import InvalidConfigurationError

        if self.batch_size < 1:
            raise InvalidConfigurationError(f"Batch size must be at least 1, got {self.batch_size}")

        seen: set[int] = set()
        for mapping in self.column_mappings:
            index = mapping.column_index
            if index < 0 or index >= header_count:
                raise InvalidConfigurationError(
                    f"Column index {index} ({mapping.column_name or 'unnamed'}) "
                    f"is out of range for {header_count} columns"
                )
            if index in seen:
                raise InvalidConfigurationError(f"Duplicate column mapping for index {index}")
            seen.add(index)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "sourceLanguage": self.source_language,
            "columnMappings": [m.to_dict() for m in self.column_mappings],
            "batchSize": self.batch_size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TranslationConfig:
        """Create from the JSON configuration sent with an upload."""
        mappings = data.get("columnMappings", data.get("column_mappings", []))
        return cls(
            source_language=str(data.get("sourceLanguage", data.get("source_language", "auto"))),
            column_mappings=tuple(ColumnMapping.from_dict(m) for m in mappings),
            batch_size=int(data.get("batchSize", data.get("batch_size")) or DEFAULT_BATCH_SIZE),
        )


@dataclass(frozen=True)
class Batch:
    """Contiguous slice of rows.

    Attributes:
        index: Zero-based batch number.
        start_row_index: Global index of the first row in the batch.
        rows: Rows of the batch, in input order.
    """

    index: int
    start_row_index: int
    rows: list[Row] = field(default_factory=list)

    @property
    def end_row_index(self) -> int:
        """Global index one past the last row of the batch."""
        return self.start_row_index + len(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class CellOutcome:
    """Result of translating one cell.

    ``text`` is the translation, or the original text when the cell was
    blank, too long, or failed after all retries.
    """

    text: str
    translated: bool = False
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        """True when translation was attempted but the original text was kept."""
        return self.error is not None


@dataclass
class BatchResult:
    """Executor output for one batch."""

    rows: list[Row]
    failed_rows: int = 0
    degraded_cells: int = 0
