# SPDX-License-Identifier: Apache-2.0
"""Row translation executor.

Translates the selected cells of every row in a batch. A row that fails
for an unexpected reason is replaced by its original cells so that the
batch always keeps its shape.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from csv_translator.constants import DEFAULT_CONCURRENCY, MAX_CONCURRENCY
from csv_translator.core.models import (
    Batch,
    BatchResult,
    ColumnMapping,
    Row,
    TranslationConfig,
)
from csv_translator.translators.base import FATAL_TRANSLATOR_ERRORS
from csv_translator.translators.retry import RateAwareTranslator

logger = logging.getLogger(__name__)


@dataclass
class _RowResult:
    row: Row
    failed: bool = False
    degraded_cells: int = 0


class RowTranslationExecutor:
    """Translate one batch of rows according to a column mapping."""

    def __init__(
        self,
        translator: RateAwareTranslator,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        """Initialize RowTranslationExecutor.

        Args:
            translator: Retrying translator used for every cell.
            concurrency: Rows translated at the same time (1 to 5).
        """
        self._translator = translator
        self._concurrency = min(max(concurrency, 1), MAX_CONCURRENCY)

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def execute_batch(self, batch: Batch, config: TranslationConfig) -> BatchResult:
        """Translate all rows of a batch.

        Args:
            batch: Rows to translate.
            config: Source language and column mappings.

        Returns:
            BatchResult with one output row per input row, in input order.

        Raises:
            ConfigurationError, QuotaExceededError, BadRequestError: Run-fatal
                translator errors are not absorbed.
        """
        mappings = config.active_mappings
        if not mappings:
            return BatchResult(rows=[list(row) for row in batch.rows])

        if self._concurrency == 1:
            results = [
                await self._process_row(row, batch.start_row_index + offset, config, mappings)
                for offset, row in enumerate(batch.rows)
            ]
        else:
            results = await self._process_concurrently(batch, config, mappings)

        failed_rows = sum(1 for r in results if r.failed)
        degraded = sum(r.degraded_cells for r in results)
        if failed_rows:
            logger.warning(
                "%d rows failed in batch %d, using original text", failed_rows, batch.index + 1
            )
        return BatchResult(
            rows=[r.row for r in results],
            failed_rows=failed_rows,
            degraded_cells=degraded,
        )

    async def _process_concurrently(
        self,
        batch: Batch,
        config: TranslationConfig,
        mappings: dict[int, ColumnMapping],
    ) -> list[_RowResult]:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def limited(row: Row, row_index: int) -> _RowResult:
            async with semaphore:
                return await self._process_row(row, row_index, config, mappings)

        tasks = [
            asyncio.ensure_future(limited(row, batch.start_row_index + offset))
            for offset, row in enumerate(batch.rows)
        ]
        try:
            # gather keeps input order regardless of completion order
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _process_row(
        self,
        row: Row,
        row_index: int,
        config: TranslationConfig,
        mappings: dict[int, ColumnMapping],
    ) -> _RowResult:
        try:
            translated: Row = []
            degraded = 0
            for col_index, cell in enumerate(row):
                mapping = mappings.get(col_index)
                if mapping is None or not cell or not cell.strip():
                    translated.append(cell)
                    continue

                logger.debug("Translating row %d, col %d", row_index, col_index)
                outcome = await self._translator.translate_cell(
                    cell,
                    config.source_language,
                    mapping.target_language or "",
                )
                if outcome.degraded:
                    degraded += 1
                translated.append(outcome.text)

            return _RowResult(row=translated, degraded_cells=degraded)
        except FATAL_TRANSLATOR_ERRORS:
            raise
        except Exception:
            logger.exception("Error processing row %d, keeping original row", row_index)
            return _RowResult(row=list(row), failed=True)
