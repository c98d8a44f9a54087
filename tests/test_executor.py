# SPDX-License-Identifier: Apache-2.0
"""Tests for RowTranslationExecutor."""

import asyncio

import pytest

from csv_translator.core.models import Batch, ColumnMapping, TranslationConfig
from csv_translator.pipeline.executor import RowTranslationExecutor
from csv_translator.translators import AuthenticationError, NetworkError


def _config(*mappings: ColumnMapping, source: str = "en") -> TranslationConfig:
    return TranslationConfig(source_language=source, column_mappings=mappings)


class TestRowTranslationExecutor:
    """Tests for RowTranslationExecutor."""

    def test_concurrency_clamped(self, stub_class, fast_wrap) -> None:
        translator = fast_wrap(stub_class())

        assert RowTranslationExecutor(translator, concurrency=0).concurrency == 1
        assert RowTranslationExecutor(translator, concurrency=50).concurrency == 5

    @pytest.mark.asyncio
    async def test_translates_mapped_column_only(self, stub_class, fast_wrap) -> None:
        """Unmapped columns are copied verbatim."""
        stub = stub_class()
        executor = RowTranslationExecutor(fast_wrap(stub))
        batch = Batch(0, 0, [["hello", "1"], ["world", "2"]])

        result = await executor.execute_batch(batch, _config(ColumnMapping(0, "text", True, "es")))

        assert result.rows == [["HELLO", "1"], ["WORLD", "2"]]
        assert result.failed_rows == 0
        assert stub.calls == [("hello", "en", "es"), ("world", "en", "es")]

    @pytest.mark.asyncio
    async def test_per_column_target_language(self, stub_class, fast_wrap) -> None:
        stub = stub_class(lambda text: text[::-1])
        executor = RowTranslationExecutor(fast_wrap(stub))
        batch = Batch(0, 0, [["ab", "cd"]])
        config = _config(ColumnMapping(0, "a", True, "es"), ColumnMapping(1, "b", True, "ta"))

        result = await executor.execute_batch(batch, config)

        assert result.rows == [["ba", "dc"]]
        assert [call[2] for call in stub.calls] == ["es", "ta"]

    @pytest.mark.asyncio
    async def test_inactive_mappings_pass_through(self, stub_class, fast_wrap) -> None:
        """Without an active mapping every row is copied and nothing is sent."""
        stub = stub_class()
        executor = RowTranslationExecutor(fast_wrap(stub))
        rows = [["a", "b"]]

        result = await executor.execute_batch(
            Batch(0, 0, rows), _config(ColumnMapping(0, "a", False, "es"))
        )

        assert result.rows == rows
        assert result.rows[0] is not rows[0]
        assert stub.calls == []

    @pytest.mark.asyncio
    async def test_blank_cells_not_sent(self, stub_class, fast_wrap) -> None:
        stub = stub_class()
        executor = RowTranslationExecutor(fast_wrap(stub))

        result = await executor.execute_batch(
            Batch(0, 0, [["", "x"], ["   ", "y"]]), _config(ColumnMapping(0, "a", True, "es"))
        )

        assert result.rows == [["", "x"], ["   ", "y"]]
        assert stub.calls == []

    @pytest.mark.asyncio
    async def test_degraded_cells_counted(self, stub_class, fast_wrap) -> None:
        """A cell whose retries run out keeps its text and is counted."""

        def translate(text: str) -> str:
            if text == "flaky":
                raise NetworkError("connection reset")
            return text.upper()

        executor = RowTranslationExecutor(fast_wrap(stub_class(translate)))
        batch = Batch(0, 0, [["ok"], ["flaky"], ["fine"]])

        result = await executor.execute_batch(batch, _config(ColumnMapping(0, "a", True, "es")))

        assert result.rows == [["OK"], ["flaky"], ["FINE"]]
        assert result.degraded_cells == 1
        assert result.failed_rows == 0

    @pytest.mark.asyncio
    async def test_unexpected_row_error_keeps_original_row(self, stub_class, fast_wrap) -> None:
        """A row raising outside the translator hierarchy is isolated."""

        def translate(text: str) -> str:
            if text == "boom":
                raise RuntimeError("unexpected")
            return text.upper()

        executor = RowTranslationExecutor(fast_wrap(stub_class(translate)))
        batch = Batch(0, 10, [["a", "keep"], ["boom", "row"], ["c", "x"]])
        config = _config(ColumnMapping(0, "a", True, "es"), ColumnMapping(1, "b", True, "es"))

        result = await executor.execute_batch(batch, config)

        assert result.rows == [["A", "KEEP"], ["boom", "row"], ["C", "X"]]
        assert result.failed_rows == 1

    @pytest.mark.asyncio
    async def test_fatal_error_propagates(self, stub_class, fast_wrap) -> None:
        def translate(text: str) -> str:
            raise AuthenticationError()

        executor = RowTranslationExecutor(fast_wrap(stub_class(translate)))

        with pytest.raises(AuthenticationError):
            await executor.execute_batch(
                Batch(0, 0, [["a"]]), _config(ColumnMapping(0, "a", True, "es"))
            )

    @pytest.mark.asyncio
    async def test_concurrent_rows_keep_input_order(self, fast_wrap) -> None:
        """Rows finishing out of order are still returned in input order."""

        class VariableDelay:
            name = "variable"
            max_text_length = 100

            def __init__(self):
                self.active = 0
                self.peak = 0

            async def translate(self, text, source_lang, target_lang):
                self.active += 1
                self.peak = max(self.peak, self.active)
                await asyncio.sleep(0.001 * (10 - int(text)))
                self.active -= 1
                return f"t{text}"

        backend = VariableDelay()
        executor = RowTranslationExecutor(fast_wrap(backend), concurrency=3)
        rows = [[str(i)] for i in range(8)]

        result = await executor.execute_batch(
            Batch(0, 0, rows), _config(ColumnMapping(0, "n", True, "es"))
        )

        assert result.rows == [[f"t{i}"] for i in range(8)]
        assert 1 < backend.peak <= 3

    @pytest.mark.asyncio
    async def test_concurrent_fatal_error_cancels_siblings(self, fast_wrap) -> None:
        class AuthFailsFast:
            name = "auth"
            max_text_length = 100

            def __init__(self):
                self.finished = 0

            async def translate(self, text, source_lang, target_lang):
                if text == "bad":
                    raise AuthenticationError()
                await asyncio.sleep(1)
                self.finished += 1
                return text

        backend = AuthFailsFast()
        executor = RowTranslationExecutor(fast_wrap(backend), concurrency=3)
        rows = [["slow"], ["bad"], ["slow"]]

        with pytest.raises(AuthenticationError):
            await executor.execute_batch(
                Batch(0, 0, rows), _config(ColumnMapping(0, "a", True, "es"))
            )
        assert backend.finished == 0
