# SPDX-License-Identifier: Apache-2.0
"""Translation pipeline implementation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Sequence

from csv_translator.constants import (
    BATCH_TIMEOUT,
    DEFAULT_CONCURRENCY,
    INTER_BATCH_DELAY,
    INTER_BATCH_DELAY_STEP,
    MAX_BATCH_SIZE,
    MAX_INTER_BATCH_DELAY,
    MIN_BATCH_SIZE,
)
from csv_translator.core.batching import clamp_batch_size, partition
from csv_translator.core.models import Batch, BatchResult, Row, TranslationConfig
from csv_translator.pipeline.errors import (
    BatchTimeoutError,
    MalformedInputError,
    PipelineError,
)
from csv_translator.pipeline.executor import RowTranslationExecutor
from csv_translator.pipeline.progress import (
    CompleteEvent,
    ErrorEvent,
    ProgressCallback,
    ProgressEvent,
    ProgressUpdate,
)
from csv_translator.translators.base import FATAL_TRANSLATOR_ERRORS, TranslatorBackend
from csv_translator.translators.retry import RateAwareTranslator, RetryPolicy, Sleep

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Translation pipeline configuration.

    Durations are in seconds.
    """

    # Rows per batch; None uses TranslationConfig.batch_size
    batch_size: int | None = None
    min_batch_size: int = MIN_BATCH_SIZE
    max_batch_size: int = MAX_BATCH_SIZE

    # Optional bound on the characters of one batch
    max_batch_chars: int | None = None

    # Per-batch deadline; None disables it
    batch_timeout: float | None = BATCH_TIMEOUT

    # Cell-level retry budget; None keeps the translator's RetryPolicy
    max_retries_per_cell: int | None = None

    # Progressive pacing before batches 2..n
    inter_batch_delay: float = INTER_BATCH_DELAY
    inter_batch_delay_step: float = INTER_BATCH_DELAY_STEP
    max_inter_batch_delay: float = MAX_INTER_BATCH_DELAY

    # Rows translated at the same time inside one batch
    concurrency: int = DEFAULT_CONCURRENCY

    # Fail the run when more than this share of rows kept original text
    max_failure_rate: float | None = None

    def pacing_delay(self, batch_number: int) -> float:
        """Delay before the 1-based ``batch_number``; 0 for the first batch."""
        if batch_number <= 1 or self.inter_batch_delay <= 0:
            return 0.0
        delay = self.inter_batch_delay + batch_number * self.inter_batch_delay_step
        return min(delay, self.max_inter_batch_delay)


@dataclass
class TranslationResult:
    """Translation pipeline result."""

    headers: list[str]
    rows: list[Row]
    stats: dict[str, Any] | None = None


class TranslationPipeline:
    """Batch orchestrator for CSV translation.

    Rows are partitioned into batches which are translated strictly in
    order. Failed rows and batches keep their original text; only
    configuration, authentication and quota errors end a run early.
    """

    def __init__(
        self,
        translator: TranslatorBackend | RateAwareTranslator,
        config: PipelineConfig | None = None,
        progress_callback: ProgressCallback | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize TranslationPipeline.

        Args:
            translator: Backend, or an already configured RateAwareTranslator.
            config: Pipeline configuration.
            progress_callback: Receives every event emitted by a run. A
                callback that raises is logged and does not stop the run.
            sleep: Coroutine used for inter-batch pacing.
        """
        self._config = config or PipelineConfig()
        self._translator = self._build_translator(translator, self._config)
        self._executor = RowTranslationExecutor(
            self._translator, concurrency=self._config.concurrency
        )
        self._progress_callback = progress_callback
        self._sleep = sleep

    @staticmethod
    def _build_translator(
        translator: TranslatorBackend | RateAwareTranslator,
        config: PipelineConfig,
    ) -> RateAwareTranslator:
        if isinstance(translator, RateAwareTranslator):
            wrapped = translator
        else:
            wrapped = RateAwareTranslator(translator, RetryPolicy())
        if config.max_retries_per_cell is not None:
            wrapped = wrapped.with_policy(
                wrapped.policy.with_max_retries(config.max_retries_per_cell)
            )
        return wrapped

    async def translate(
        self,
        headers: Sequence[str],
        rows: Sequence[Row],
        translation_config: TranslationConfig,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> TranslationResult:
        """Run a translation to completion.

        Raises:
            PipelineError: If the run ends with an error event.
        """
        async for event in self.stream(
            headers, rows, translation_config, cancel_event=cancel_event
        ):
            if isinstance(event, ErrorEvent):
                raise PipelineError(event.message, stage="translate")
            if isinstance(event, CompleteEvent):
                stats = {
                    "total_rows": event.total_rows,
                    "processed_rows": event.processed_rows,
                    "failed_rows": event.failed_rows,
                    "failed_batches": list(event.failed_batches),
                    "degraded_cells": event.degraded_cells,
                }
                return TranslationResult(headers=event.headers, rows=event.rows, stats=stats)
        raise PipelineError("Run ended without a terminal event", stage="translate")

    async def stream(
        self,
        headers: Sequence[str],
        rows: Sequence[Row],
        translation_config: TranslationConfig,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[ProgressEvent]:
        """Translate a table, yielding progress events.

        The last event is always a CompleteEvent or an ErrorEvent.

        Args:
            headers: Column headers.
            rows: Rows, each with ``len(headers)`` cells.
            translation_config: Source language, column mappings, batch size.
            cancel_event: When set, no further batch is started.
        """
        try:
            self._validate(headers, rows, translation_config)
        except PipelineError as exc:
            logger.error("Invalid translation request: %s", exc)
            yield self._notify(ErrorEvent(exc.message))
            return

        total_rows = len(rows)
        batch_size = clamp_batch_size(
            self._config.batch_size or translation_config.batch_size,
            self._config.min_batch_size,
            self._config.max_batch_size,
        )
        batches = partition(rows, batch_size, max_chars=self._config.max_batch_chars)
        total_batches = len(batches)

        logger.info(
            "Translating %d rows in %d batches of up to %d rows with %s",
            total_rows,
            total_batches,
            batch_size,
            self._translator.name,
        )
        yield self._notify(
            ProgressUpdate(
                f"Parsed CSV: {total_rows} rows, {len(headers)} columns",
                total_rows=total_rows,
                processed_rows=0,
                total_batches=total_batches,
            )
        )

        translated_rows: list[Row] = []
        processed_rows = 0
        failed_rows = 0
        failed_batch_rows = 0
        degraded_cells = 0
        failed_batches: list[int] = []

        for batch in batches:
            number = batch.index + 1

            delay = self._config.pacing_delay(number)
            if delay > 0:
                logger.debug("Applying pacing delay of %.1fs before batch %d", delay, number)
                await self._sleep(delay)

            if cancel_event is not None and cancel_event.is_set():
                logger.info("Translation cancelled before batch %d of %d", number, total_batches)
                yield self._notify(
                    ErrorEvent(
                        f"Translation cancelled after {processed_rows} of {total_rows} rows"
                    )
                )
                return

            logger.debug(
                "Starting batch %d/%d (rows %d-%d)",
                number,
                total_batches,
                batch.start_row_index,
                batch.end_row_index - 1,
            )
            # current_batch is only set once the batch has finished
            yield self._notify(
                ProgressUpdate(
                    f"Processing batch {number} of {total_batches}",
                    total_rows=total_rows,
                    processed_rows=processed_rows,
                    total_batches=total_batches,
                )
            )
            try:
                result = await self._execute(batch, translation_config)
            except FATAL_TRANSLATOR_ERRORS as exc:
                logger.error("Translation aborted in batch %d: %s", number, exc)
                yield self._notify(ErrorEvent(str(exc)))
                return
            except Exception as exc:
                logger.warning("Batch %d failed, using original text: %s", number, exc)
                translated_rows.extend(list(row) for row in batch.rows)
                processed_rows += len(batch)
                failed_batch_rows += len(batch)
                failed_batches.append(number)
                yield self._notify(
                    ProgressUpdate(
                        f"Batch {number} failed, using original text ({_reason(exc)})",
                        total_rows=total_rows,
                        processed_rows=processed_rows,
                        current_batch=number,
                        total_batches=total_batches,
                    )
                )
                continue

            translated_rows.extend(result.rows)
            processed_rows += len(batch)
            failed_rows += result.failed_rows
            degraded_cells += result.degraded_cells
            yield self._notify(
                ProgressUpdate(
                    _batch_message(number, total_batches, len(batch), result),
                    total_rows=total_rows,
                    processed_rows=processed_rows,
                    current_batch=number,
                    total_batches=total_batches,
                )
            )

        if failed_batches:
            yield self._notify(
                ProgressUpdate(
                    f"{len(failed_batches)} batches failed: "
                    f"{', '.join(str(n) for n in failed_batches)}. "
                    "Original text used for failed batches."
                )
            )

        untranslated = failed_rows + failed_batch_rows
        max_rate = self._config.max_failure_rate
        if max_rate is not None and total_rows and untranslated / total_rows > max_rate:
            logger.error(
                "%d of %d rows kept original text, above the %.0f%% limit",
                untranslated,
                total_rows,
                max_rate * 100,
            )
            yield self._notify(
                ErrorEvent(
                    f"Too many failures: {untranslated} of {total_rows} rows could not be "
                    f"translated (limit {max_rate:.0%})"
                )
            )
            return

        yield self._notify(
            ProgressUpdate(
                "Generating final CSV output...",
                total_rows=total_rows,
                processed_rows=processed_rows,
            )
        )
        logger.info(
            "Translation finished: %d rows, %d failed rows, %d failed batches, %d untranslated cells",
            processed_rows,
            failed_rows,
            len(failed_batches),
            degraded_cells,
        )
        yield self._notify(
            CompleteEvent(
                total_rows=total_rows,
                processed_rows=processed_rows,
                headers=list(headers),
                rows=translated_rows,
                failed_rows=failed_rows,
                failed_batches=tuple(failed_batches),
                degraded_cells=degraded_cells,
            )
        )

    def _validate(
        self,
        headers: Sequence[str],
        rows: Sequence[Row],
        translation_config: TranslationConfig,
    ) -> None:
        translation_config.validate(len(headers))
        for index, row in enumerate(rows):
            if len(row) != len(headers):
                raise MalformedInputError(
                    f"Row {index + 1} has {len(row)} cells, expected {len(headers)}"
                )

    async def _execute(self, batch: Batch, translation_config: TranslationConfig) -> BatchResult:
        timeout = self._config.batch_timeout
        if timeout is None:
            return await self._executor.execute_batch(batch, translation_config)
        try:
            return await asyncio.wait_for(
                self._executor.execute_batch(batch, translation_config), timeout
            )
        except asyncio.TimeoutError as exc:
            raise BatchTimeoutError(
                f"Batch {batch.index + 1} timeout after {timeout}s", cause=exc
            ) from exc

    def _notify(self, event: ProgressEvent) -> ProgressEvent:
        if self._progress_callback is not None:
            try:
                self._progress_callback(event)
            except Exception:
                logger.exception("Progress callback failed on %s event", event.type)
        return event


def _reason(exc: Exception) -> str:
    if isinstance(exc, PipelineError):
        return exc.message
    return str(exc) or type(exc).__name__


def _batch_message(number: int, total: int, size: int, result: BatchResult) -> str:
    message = f"Completed batch {number} of {total} ({size} rows)"
    if result.failed_rows:
        message += f"; {result.failed_rows} rows failed in this batch, using original text"
    if result.degraded_cells:
        message += f"; {result.degraded_cells} cells could not be translated, original text kept"
    return message


async def run_translation(
    headers: Sequence[str],
    rows: Sequence[Row],
    translation_config: TranslationConfig,
    translator: TranslatorBackend | RateAwareTranslator,
    *,
    config: PipelineConfig | None = None,
    cancel_event: asyncio.Event | None = None,
    progress_callback: ProgressCallback | None = None,
) -> AsyncIterator[ProgressEvent]:
    """Translate a table and yield its progress events.

    Shortcut for ``TranslationPipeline(translator, config).stream(...)``.
    """
    pipeline = TranslationPipeline(translator, config, progress_callback)
    async for event in pipeline.stream(
        headers, rows, translation_config, cancel_event=cancel_event
    ):
        yield event
