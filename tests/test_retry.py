# SPDX-License-Identifier: Apache-2.0
"""Tests for the retrying translator wrapper."""

import asyncio

import pytest

from csv_translator.translators import (
    AuthenticationError,
    BadRequestError,
    NetworkError,
    QuotaExceededError,
    RateAwareTranslator,
    RateLimitError,
    RetryPolicy,
    ServiceError,
)


class FlakyBackend:
    """Backend that raises the queued errors before succeeding."""

    name = "flaky"
    max_text_length = 100

    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    async def translate(self, text, source_lang, target_lang):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return f"{target_lang}:{text}"


class SleepRecorder:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


POLICY = RetryPolicy(
    max_retries=2,
    initial_delay=2.0,
    max_delay=60.0,
    rate_limit_delay=2.0,
    request_timeout=None,
)


class TestRetryPolicy:
    """Tests for RetryPolicy delay calculations."""

    def test_backoff_doubles(self) -> None:
        assert [POLICY.backoff_delay(a) for a in range(4)] == [2.0, 4.0, 8.0, 16.0]

    def test_backoff_capped(self) -> None:
        policy = RetryPolicy(initial_delay=10.0, max_delay=25.0)

        assert policy.backoff_delay(5) == 25.0

    def test_rate_limit_wait_uses_retry_after(self) -> None:
        assert POLICY.rate_limit_wait(0, 7.0) == 7.0

    def test_rate_limit_wait_caps_retry_after(self) -> None:
        assert POLICY.rate_limit_wait(0, 600.0) == 60.0

    def test_rate_limit_wait_without_retry_after(self) -> None:
        assert POLICY.rate_limit_wait(0, None) == 2.0
        assert POLICY.rate_limit_wait(2, None) == 6.0

    def test_with_max_retries(self) -> None:
        policy = POLICY.with_max_retries(5)

        assert policy.max_retries == 5
        assert policy.initial_delay == POLICY.initial_delay
        assert POLICY.with_max_retries(-1).max_retries == 0


class TestRateAwareTranslator:
    """Tests for RateAwareTranslator."""

    @pytest.mark.asyncio
    async def test_success_first_try(self) -> None:
        backend = FlakyBackend()
        translator = RateAwareTranslator(backend, POLICY)

        outcome = await translator.translate_cell("hello", "en", "es")

        assert outcome.text == "es:hello"
        assert outcome.translated
        assert not outcome.degraded
        assert backend.calls == 1

    @pytest.mark.asyncio
    async def test_blank_text_never_calls_backend(self) -> None:
        """Test empty and whitespace-only text is returned as is."""
        backend = FlakyBackend()
        translator = RateAwareTranslator(backend, POLICY)

        assert await translator.translate("", "en", "es") == ""
        assert await translator.translate("   ", "en", "es") == "   "
        assert backend.calls == 0

    @pytest.mark.asyncio
    async def test_retries_transient_errors_with_backoff(self) -> None:
        """Test network and 5xx errors are retried with growing delays."""
        backend = FlakyBackend(NetworkError("reset"), ServiceError("boom", status=503))
        sleep = SleepRecorder()
        translator = RateAwareTranslator(backend, POLICY, sleep=sleep)

        outcome = await translator.translate_cell("hello", "en", "es")

        assert outcome.text == "es:hello"
        assert backend.calls == 3
        assert sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_keep_original(self) -> None:
        """Test the original text comes back once every attempt failed."""
        backend = FlakyBackend(*(NetworkError("down") for _ in range(3)))
        sleep = SleepRecorder()
        translator = RateAwareTranslator(backend, POLICY, sleep=sleep)

        outcome = await translator.translate_cell("hello", "en", "es")

        assert outcome.text == "hello"
        assert outcome.degraded
        assert "down" in outcome.error
        assert backend.calls == 3
        # no wait after the final attempt
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_rate_limit_honours_retry_after(self) -> None:
        backend = FlakyBackend(RateLimitError(retry_after=7.0))
        sleep = SleepRecorder()
        translator = RateAwareTranslator(backend, POLICY, sleep=sleep)

        assert await translator.translate("hi", "en", "fr") == "fr:hi"
        assert sleep.delays == [7.0]

    @pytest.mark.asyncio
    async def test_rate_limit_without_retry_after(self) -> None:
        backend = FlakyBackend(RateLimitError(), RateLimitError())
        sleep = SleepRecorder()
        translator = RateAwareTranslator(backend, POLICY, sleep=sleep)

        assert await translator.translate("hi", "en", "fr") == "fr:hi"
        assert sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [AuthenticationError(), QuotaExceededError(), BadRequestError("bad payload")],
    )
    async def test_fatal_errors_propagate_without_retry(self, error) -> None:
        backend = FlakyBackend(error)
        sleep = SleepRecorder()
        translator = RateAwareTranslator(backend, POLICY, sleep=sleep)

        with pytest.raises(type(error)):
            await translator.translate_cell("hello", "en", "es")
        assert backend.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_unexpected_exception_propagates(self) -> None:
        """Test errors outside the translator hierarchy are not absorbed."""
        backend = FlakyBackend(KeyError("oops"))
        translator = RateAwareTranslator(backend, POLICY)

        with pytest.raises(KeyError):
            await translator.translate_cell("hello", "en", "es")

    @pytest.mark.asyncio
    async def test_too_long_text_not_sent(self) -> None:
        backend = FlakyBackend()
        translator = RateAwareTranslator(backend, POLICY)

        outcome = await translator.translate_cell("x" * 101, "en", "es")

        assert outcome.text == "x" * 101
        assert outcome.error == "text too long"
        assert backend.calls == 0

    @pytest.mark.asyncio
    async def test_explicit_length_limit_overrides_backend(self) -> None:
        backend = FlakyBackend()
        translator = RateAwareTranslator(backend, POLICY, max_text_length=3)

        outcome = await translator.translate_cell("abcd", "en", "es")

        assert outcome.degraded
        assert backend.calls == 0

    @pytest.mark.asyncio
    async def test_request_timeout_degrades(self) -> None:
        """Test a call exceeding the per-request deadline keeps the original."""

        class SlowBackend:
            name = "slow"
            max_text_length = 100

            async def translate(self, text, source_lang, target_lang):
                await asyncio.sleep(10)
                return text.upper()

        policy = RetryPolicy(max_retries=0, request_timeout=0.01)
        translator = RateAwareTranslator(SlowBackend(), policy)

        outcome = await translator.translate_cell("hello", "en", "es")

        assert outcome.text == "hello"
        assert "timed out" in outcome.error

    @pytest.mark.asyncio
    async def test_none_result_is_retried(self) -> None:
        class NoneThenText:
            name = "none"
            max_text_length = 100

            def __init__(self):
                self.calls = 0

            async def translate(self, text, source_lang, target_lang):
                self.calls += 1
                return None if self.calls == 1 else "ok"

        backend = NoneThenText()
        translator = RateAwareTranslator(backend, POLICY, sleep=SleepRecorder())

        assert await translator.translate("hello", "en", "es") == "ok"
        assert backend.calls == 2

    def test_with_policy_keeps_backend(self) -> None:
        backend = FlakyBackend()
        translator = RateAwareTranslator(backend, POLICY)

        other = translator.with_policy(POLICY.with_max_retries(0))

        assert other.backend is backend
        assert other.policy.max_retries == 0
        assert other.name == "flaky"
