# SPDX-License-Identifier: Apache-2.0
"""Retrying, rate-aware wrapper around a translation backend."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable

from csv_translator.constants import (
    INITIAL_RETRY_DELAY,
    MAX_RETRIES_PER_CELL,
    MAX_RETRY_DELAY,
    MAX_TEXT_LENGTH,
    RATE_LIMIT_DELAY,
    REQUEST_TIMEOUT,
)
from csv_translator.core.models import CellOutcome
from csv_translator.translators.base import (
    FATAL_TRANSLATOR_ERRORS,
    RateLimitError,
    RequestTimeoutError,
    TranslationError,
    TranslatorBackend,
)

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def _preview(text: str, limit: int = 50) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


@dataclass(frozen=True)
class RetryPolicy:
    """Cell-level retry settings.

    Attributes:
        max_retries: Retries after the first attempt.
        initial_delay: Base delay of the exponential backoff, in seconds.
        max_delay: Upper bound of any single wait, in seconds.
        rate_limit_delay: Per-attempt wait after a 429 without Retry-After.
        request_timeout: Deadline of one translation call, in seconds.
    """

    max_retries: int = MAX_RETRIES_PER_CELL
    initial_delay: float = INITIAL_RETRY_DELAY
    max_delay: float = MAX_RETRY_DELAY
    rate_limit_delay: float = RATE_LIMIT_DELAY
    request_timeout: float | None = REQUEST_TIMEOUT

    def with_max_retries(self, max_retries: int) -> RetryPolicy:
        """Return a copy with a different retry budget."""
        return replace(self, max_retries=max(0, max_retries))

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1`` (attempt is 0-based)."""
        return min(self.initial_delay * (2**attempt), self.max_delay)

    def rate_limit_wait(self, attempt: int, retry_after: float | None) -> float:
        """Delay after a rate-limit response."""
        if retry_after is not None:
            return min(retry_after, self.max_delay)
        return min(self.rate_limit_delay * (attempt + 1), self.max_delay)


class RateAwareTranslator:
    """Translate single cells with timeout, retry and degrade-to-original.

    Transient failures (network, timeout, 5xx, 429) are retried. When the
    retry budget runs out the original text is returned instead of raising.
    Authentication, quota and bad-request errors propagate immediately
    because they affect the whole run.

    The wrapper keeps no state between calls, so one instance may be used
    by several concurrent row workers.
    """

    def __init__(
        self,
        backend: TranslatorBackend,
        policy: RetryPolicy | None = None,
        *,
        max_text_length: int | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize RateAwareTranslator.

        Args:
            backend: Translation backend to wrap.
            policy: Retry policy (default: RetryPolicy()).
            max_text_length: Longest text submitted to the backend
                (default: the backend's own limit).
            sleep: Coroutine used for waiting between attempts.
        """
        self._backend = backend
        self._policy = policy or RetryPolicy()
        if max_text_length is None:
            max_text_length = getattr(backend, "max_text_length", MAX_TEXT_LENGTH)
        self._max_text_length = max_text_length
        self._sleep = sleep

    @property
    def name(self) -> str:
        """Name of the wrapped backend."""
        return self._backend.name

    @property
    def backend(self) -> TranslatorBackend:
        """The wrapped backend."""
        return self._backend

    @property
    def policy(self) -> RetryPolicy:
        """Active retry policy."""
        return self._policy

    def with_policy(self, policy: RetryPolicy) -> RateAwareTranslator:
        """Return a wrapper around the same backend with another policy."""
        return RateAwareTranslator(
            self._backend,
            policy,
            max_text_length=self._max_text_length,
            sleep=self._sleep,
        )

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text, returning the original text on exhausted retries."""
        outcome = await self.translate_cell(text, source_lang, target_lang)
        return outcome.text

    async def translate_cell(self, text: str, source_lang: str, target_lang: str) -> CellOutcome:
        """Translate text and report whether the translation succeeded.

        Raises:
            ConfigurationError: On authentication or setup failure.
            QuotaExceededError: When the account quota is exhausted.
            BadRequestError: When the service rejects the payload.
        """
        if not text or not text.strip():
            return CellOutcome(text=text)

        if len(text) > self._max_text_length:
            logger.warning(
                "Text of %d characters exceeds the %d character limit, keeping original: %r",
                len(text),
                self._max_text_length,
                _preview(text),
            )
            return CellOutcome(text=text, error="text too long")

        attempts = self._policy.max_retries + 1
        last_error: TranslationError | None = None

        for attempt in range(attempts):
            try:
                translated = await self._call(text, source_lang, target_lang)
                return CellOutcome(text=translated, translated=True)
            except FATAL_TRANSLATOR_ERRORS:
                raise
            except TranslationError as exc:
                last_error = exc
                logger.debug(
                    "Translation attempt %d/%d failed: %s", attempt + 1, attempts, exc
                )
                if attempt + 1 >= attempts:
                    break
                if isinstance(exc, RateLimitError):
                    delay = self._policy.rate_limit_wait(attempt, exc.retry_after)
                    logger.info("Rate limit detected, waiting %.1fs before retry %d", delay, attempt + 2)
                else:
                    delay = self._policy.backoff_delay(attempt)
                await self._sleep(delay)

        logger.warning(
            "All %d translation attempts failed, keeping original text %r: %s",
            attempts,
            _preview(text),
            last_error,
        )
        return CellOutcome(text=text, error=str(last_error) if last_error else "translation failed")

    async def _call(self, text: str, source_lang: str, target_lang: str) -> str:
        timeout = self._policy.request_timeout
        if timeout is None:
            result = await self._backend.translate(text, source_lang, target_lang)
        else:
            try:
                result = await asyncio.wait_for(
                    self._backend.translate(text, source_lang, target_lang),
                    timeout,
                )
            except asyncio.TimeoutError as e:
                raise RequestTimeoutError(f"Translation request timed out after {timeout}s") from e
        if result is None:
            raise TranslationError("Translator returned no text")
        return result
