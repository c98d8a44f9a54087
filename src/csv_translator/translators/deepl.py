# SPDX-License-Identifier: Apache-2.0
"""DeepL translation backend."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from csv_translator.translators.base import (
    AuthenticationError,
    BadRequestError,
    ConfigurationError,
    NetworkError,
    QuotaExceededError,
    RateLimitError,
    RequestTimeoutError,
    ServiceError,
    TranslationError,
    parse_retry_after,
)

if TYPE_CHECKING:
    import aiohttp


class DeepLTranslator:
    """DeepL translation backend.

    This backend uses DeepL API for high-quality translation.
    Requires an API key (free or pro).

    Attributes:
        name: Backend identifier ("deepl").
    """

    DEFAULT_API_URL = "https://api-free.deepl.com/v2/translate"

    # DeepL answers 456 when the character quota of the plan is used up
    QUOTA_EXCEEDED_STATUS = 456

    def __init__(
        self,
        api_key: str,
        api_url: str | None = None,
    ) -> None:
        """Initialize DeepLTranslator.

        Args:
            api_key: DeepL API key.
            api_url: API URL (default: free API endpoint).

        Raises:
            ConfigurationError: If API key is not provided.
            ImportError: If aiohttp is not installed.
        """
        if not api_key:
            raise ConfigurationError("DeepL API key is required")

        try:
            import aiohttp as _aiohttp

            self._aiohttp = _aiohttp
        except ImportError:
            raise ImportError(
                "aiohttp is required for DeepL backend. "
                "Install with: pip install csv-translator"
            ) from None

        self._api_key = api_key
        self._api_url = api_url or self.DEFAULT_API_URL
        self._session: aiohttp.ClientSession | None = None

    @property
    def name(self) -> str:
        """Return backend name."""
        return "deepl"

    @property
    def max_text_length(self) -> int:
        """Maximum text length for DeepL.

        DeepL has a 128KB request limit. With UTF-8 encoding,
        this allows approximately 50,000 characters safely.
        """
        return 50000

    async def __aenter__(self) -> DeepLTranslator:
        """Enter async context manager."""
        self._session = self._aiohttp.ClientSession()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context manager."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = self._aiohttp.ClientSession()
        return self._session

    async def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
    ) -> str:
        """Translate a single text using DeepL.

        Args:
            text: Text to translate.
            source_lang: Source language code ("en", "ja", "auto").
            target_lang: Target language code ("en", "ja").

        Returns:
            Translated text.

        Raises:
            TranslationError: On retryable failure.
            AuthenticationError: On HTTP 403.
            QuotaExceededError: On HTTP 456.
            BadRequestError: On HTTP 400.
        """
        # Early return for empty or whitespace-only text
        if not text or not text.strip():
            return text

        session = await self._ensure_session()

        params: list[tuple[str, str]] = [
            ("text", text),
            ("auth_key", self._api_key),
            ("target_lang", target_lang.upper()),
        ]

        # DeepL doesn't support "auto" - omit source_lang for auto-detection
        if source_lang.lower() != "auto":
            params.append(("source_lang", source_lang.upper()))

        try:
            async with session.post(self._api_url, data=params) as response:
                if response.status == 200:
                    data = await response.json()
                    translations = [t["text"] for t in data.get("translations", [])]
                    if len(translations) != 1:
                        raise TranslationError(
                            f"DeepL returned {len(translations)} translations for 1 text"
                        )
                    return str(translations[0])
                elif response.status == 403:
                    raise AuthenticationError("Invalid DeepL API key")
                elif response.status == self.QUOTA_EXCEEDED_STATUS:
                    raise QuotaExceededError("DeepL character quota exceeded")
                elif response.status == 429:
                    raise RateLimitError(
                        "DeepL rate limit exceeded, please retry later",
                        retry_after=parse_retry_after(response.headers.get("Retry-After")),
                    )
                elif response.status == 400:
                    error_text = await response.text()
                    raise BadRequestError(f"DeepL rejected the request: {error_text}")
                elif response.status >= 500:
                    raise ServiceError(
                        f"DeepL server error (status {response.status})",
                        status=response.status,
                    )
                else:
                    error_text = await response.text()
                    raise TranslationError(
                        f"DeepL API error (status {response.status}): {error_text}"
                    )
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError("DeepL request timed out") from e
        except self._aiohttp.ClientError as e:
            raise NetworkError(f"DeepL request failed: {e}") from e

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
