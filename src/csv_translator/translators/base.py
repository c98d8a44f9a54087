# SPDX-License-Identifier: Apache-2.0
"""Base classes and protocols for translation backends."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class TranslatorError(Exception):
    """Base exception for translator module."""

    pass


class TranslationError(TranslatorError):
    """Error during translation (API call failure, server error, etc.).

    This error type is potentially retryable.
    """

    pass


class RateLimitError(TranslationError):
    """The service rejected the request with HTTP 429.

    Attributes:
        retry_after: Delay in seconds requested by the server, if any.
    """

    def __init__(self, message: str = "Rate limit exceeded", retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class NetworkError(TranslationError):
    """Connection-level failure before a response was received."""

    pass


class RequestTimeoutError(TranslationError):
    """The request did not complete within the per-call timeout."""

    pass


class ServiceError(TranslationError):
    """The service answered with a 5xx status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ConfigurationError(TranslatorError):
    """Configuration error (missing API key, invalid parameters, etc.).

    This error type is NOT retryable - fix the configuration first.
    """

    pass


class AuthenticationError(ConfigurationError):
    """Invalid API key or region."""

    def __init__(self, message: str = "Authentication failed - invalid API key or region") -> None:
        super().__init__(message)


class QuotaExceededError(TranslatorError):
    """The account's translation quota is used up. NOT retryable."""

    def __init__(self, message: str = "Translation quota exceeded") -> None:
        super().__init__(message)


class BadRequestError(TranslatorError):
    """The service rejected the request payload. NOT retryable."""

    pass


# Errors that end a whole run instead of degrading a single cell.
FATAL_TRANSLATOR_ERRORS: tuple[type[TranslatorError], ...] = (
    ConfigurationError,
    QuotaExceededError,
    BadRequestError,
)


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header value given in seconds.

    HTTP-date values are ignored; the caller falls back to its own delay.
    """
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return max(seconds, 0.0)


@runtime_checkable
class TranslatorBackend(Protocol):
    """Protocol definition for translation backends.

    All translator implementations must conform to this protocol.
    """

    @property
    def name(self) -> str:
        """Backend name ("azure", "deepl", "google")."""
        ...

    @property
    def max_text_length(self) -> int:
        """Maximum number of characters accepted in one call."""
        ...

    async def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
    ) -> str:
        """Translate a single text.

        Args:
            text: Text to translate.
            source_lang: Source language code ("en", "hi", "auto").
            target_lang: Target language code ("es", "ta").

        Returns:
            Translated text.

        Raises:
            TranslationError: On retryable translation failure.
            ConfigurationError: On authentication or setup failure.
            QuotaExceededError: When the account quota is exhausted.
            BadRequestError: When the service rejects the payload.
        """
        ...
