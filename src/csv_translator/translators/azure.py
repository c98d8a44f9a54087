# SPDX-License-Identifier: Apache-2.0
"""Azure Translator backend."""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING, Any

from csv_translator.constants import MAX_TEXT_LENGTH
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


class AzureTranslator:
    """Azure Translator (Cognitive Services) backend.

    Sends one text per request to the v3.0 ``/translate`` endpoint and
    maps HTTP failures onto the typed translator errors. Retrying is not
    done here; wrap the backend in ``RateAwareTranslator`` for that.

    Attributes:
        name: Backend identifier ("azure").
    """

    DEFAULT_ENDPOINT = "https://api.cognitive.microsofttranslator.com"
    API_VERSION = "3.0"

    def __init__(
        self,
        api_key: str,
        region: str,
        endpoint: str | None = None,
        *,
        timeout: float = 45.0,
    ) -> None:
        """Initialize AzureTranslator.

        Args:
            api_key: Azure Translator subscription key.
            region: Azure resource region (e.g. "centralindia").
            endpoint: API endpoint (default: global endpoint).
            timeout: Total timeout for one HTTP request in seconds.

        Raises:
            ConfigurationError: If key or region is not provided.
            ImportError: If aiohttp is not installed.
        """
        if not api_key or not region:
            raise ConfigurationError("Azure Translator API key and region are required")

        try:
            import aiohttp as _aiohttp

            self._aiohttp = _aiohttp
        except ImportError:
            raise ImportError(
                "aiohttp is required for Azure backend. "
                "Install with: pip install csv-translator"
            ) from None

        self._api_key = api_key
        self._region = region
        self._endpoint = (endpoint or self.DEFAULT_ENDPOINT).rstrip("/")
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    @property
    def name(self) -> str:
        """Return backend name."""
        return "azure"

    @property
    def max_text_length(self) -> int:
        """Azure accepts at most 50,000 characters per request."""
        return MAX_TEXT_LENGTH

    async def __aenter__(self) -> AzureTranslator:
        """Enter async context manager."""
        await self._ensure_session()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context manager."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = self._aiohttp.ClientSession(
                timeout=self._aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session

    def _build_params(self, source_lang: str, target_lang: str) -> dict[str, str]:
        params = {"api-version": self.API_VERSION, "to": target_lang}
        # Azure auto-detects the source language when "from" is omitted
        if source_lang and source_lang.lower() != "auto":
            params["from"] = source_lang
        return params

    def _build_headers(self) -> dict[str, str]:
        return {
            "Ocp-Apim-Subscription-Key": self._api_key,
            "Ocp-Apim-Subscription-Region": self._region,
            "Content-Type": "application/json",
            "X-ClientTraceId": str(uuid.uuid4()),
        }

    async def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
    ) -> str:
        """Translate a single text using Azure Translator.

        Args:
            text: Text to translate.
            source_lang: Source language code, or "auto" for detection.
            target_lang: Target language code.

        Returns:
            Translated text.

        Raises:
            TranslationError: On retryable failure (network, timeout, 429, 5xx).
            AuthenticationError: On HTTP 401.
            QuotaExceededError: On HTTP 403.
            BadRequestError: On HTTP 400 or oversized text.
        """
        # Early return for empty or whitespace-only text
        if not text or not text.strip():
            return text

        if not target_lang:
            raise BadRequestError("Target language is required")

        if len(text) > self.max_text_length:
            raise BadRequestError(
                f"Text exceeds character limit of {self.max_text_length}"
            )

        session = await self._ensure_session()
        url = f"{self._endpoint}/translate"

        try:
            async with session.post(
                url,
                params=self._build_params(source_lang, target_lang),
                headers=self._build_headers(),
                json=[{"Text": text}],
            ) as response:
                if response.status == 200:
                    try:
                        data = await response.json()
                    except (ValueError, self._aiohttp.ContentTypeError) as e:
                        raise TranslationError("Invalid response from translation API") from e
                    return self._extract_translation(data)
                await self._raise_for_status(response)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError("Azure Translator request timed out") from e
        except self._aiohttp.ClientError as e:
            raise NetworkError(f"Azure Translator request failed: {e}") from e

        # _raise_for_status always raises
        raise TranslationError("Unexpected Azure Translator response")

    @staticmethod
    def _extract_translation(data: Any) -> str:
        try:
            return str(data[0]["translations"][0]["text"])
        except (IndexError, KeyError, TypeError) as e:
            raise TranslationError("Invalid response from translation API") from e

    async def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        status = response.status
        if status == 401:
            raise AuthenticationError()
        if status == 403:
            raise QuotaExceededError()
        if status == 429:
            raise RateLimitError(retry_after=parse_retry_after(response.headers.get("Retry-After")))

        detail = await self._error_detail(response)
        if status == 400:
            raise BadRequestError(f"Bad request: {detail}")
        if status >= 500:
            raise ServiceError(f"Azure Translator server error (status {status}): {detail}", status=status)
        raise TranslationError(f"Azure Translator API error (status {status}): {detail}")

    async def _error_detail(self, response: aiohttp.ClientResponse) -> str:
        if "application/json" not in response.headers.get("Content-Type", ""):
            return await response.text()
        try:
            payload = await response.json()
        except (ValueError, self._aiohttp.ContentTypeError):
            # gateways sometimes label HTML error pages as JSON
            return await response.text()
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if payload.get("message"):
                return str(payload["message"])
        return str(payload)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
