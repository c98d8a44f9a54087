# SPDX-License-Identifier: Apache-2.0
"""Progress events and callback protocol for the translation pipeline.

A run produces ``ProgressUpdate`` events and ends with exactly one
``CompleteEvent`` or ``ErrorEvent``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Protocol, Union, runtime_checkable

from csv_translator.core.models import Row


@dataclass(frozen=True)
class ProgressUpdate:
    """Running totals of a run, or an informational message."""

    type: ClassVar[str] = "progress"

    message: str
    total_rows: Optional[int] = None
    processed_rows: Optional[int] = None
    current_batch: Optional[int] = None
    total_batches: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON payload of the event stream."""
        data: dict[str, Any] = {"type": self.type, "message": self.message}
        for key, value in (
            ("totalRows", self.total_rows),
            ("processedRows", self.processed_rows),
            ("currentBatch", self.current_batch),
            ("totalBatches", self.total_batches),
        ):
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class ErrorEvent:
    """Run-fatal failure. Nothing follows this event."""

    type: ClassVar[str] = "error"

    message: str

    @property
    def is_terminal(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON payload of the event stream."""
        return {"type": self.type, "error": self.message}


@dataclass(frozen=True)
class CompleteEvent:
    """Successful end of a run, carrying the full translated table."""

    type: ClassVar[str] = "complete"

    total_rows: int
    processed_rows: int
    headers: list[str] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)
    failed_rows: int = 0
    failed_batches: tuple[int, ...] = ()
    degraded_cells: int = 0
    message: str = "Translation completed successfully"

    @property
    def is_terminal(self) -> bool:
        return True

    @property
    def final_data(self) -> list[Row]:
        """Header row followed by all rows, ready for serialization."""
        return [list(self.headers), *self.rows]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON payload of the event stream."""
        return {
            "type": self.type,
            "message": self.message,
            "totalRows": self.total_rows,
            "processedRows": self.processed_rows,
            "failedRows": self.failed_rows,
            "failedBatches": list(self.failed_batches),
            "degradedCells": self.degraded_cells,
            "finalData": self.final_data,
        }


ProgressEvent = Union[ProgressUpdate, ErrorEvent, CompleteEvent]


@runtime_checkable
class ProgressCallback(Protocol):
    """Progress callback protocol."""

    def __call__(self, event: ProgressEvent) -> None: ...


def format_sse(event: ProgressEvent) -> str:
    """Frame an event as a server-sent event."""
    return f"data: {json.dumps(event.to_dict(), ensure_ascii=False)}\n\n"
