# SPDX-License-Identifier: Apache-2.0
"""Google Translate backend using deep-translator."""

import asyncio

from deep_translator import GoogleTranslator as DeepGoogleTranslator  # type: ignore[import-untyped]
from deep_translator.exceptions import (  # type: ignore[import-untyped]
    LanguageNotSupportedException,
    NotValidLength,
    NotValidPayload,
    RequestError,
    TooManyRequests,
)

from csv_translator.translators.base import (
    BadRequestError,
    NetworkError,
    RateLimitError,
    TranslationError,
)


class GoogleTranslator:
    """Google Translate backend.

    This backend uses Google Translate via deep-translator library.
    No API key is required (uses free web API).

    Attributes:
        name: Backend identifier ("google").
    """

    def __init__(self, max_concurrent: int = 5) -> None:
        """Initialize GoogleTranslator.

        Args:
            max_concurrent: Maximum concurrent translation requests.
        """
        self._semaphore = asyncio.Semaphore(max_concurrent)

    @property
    def name(self) -> str:
        """Return backend name."""
        return "google"

    @property
    def max_text_length(self) -> int:
        """Maximum text length for Google Translate.

        Google Translate web API has a 5,000 character limit.
        """
        return 5000

    async def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
    ) -> str:
        """Translate a single text using Google Translate.

        Args:
            text: Text to translate.
            source_lang: Source language code ("en", "hi", "auto").
            target_lang: Target language code ("es", "ta").

        Returns:
            Translated text.

        Raises:
            TranslationError: On translation failure.
            BadRequestError: On unsupported language or invalid payload.
        """
        # Early return for empty or whitespace-only text
        if not text or not text.strip():
            return text

        # the slot is held until the worker thread returns, even after the
        # caller stops waiting
        await self._semaphore.acquire()
        worker = asyncio.create_task(
            asyncio.to_thread(self._translate_sync, text, source_lang, target_lang)
        )
        worker.add_done_callback(self._release_slot)
        return await asyncio.shield(worker)

    def _release_slot(self, worker: "asyncio.Task[str]") -> None:
        self._semaphore.release()
        if not worker.cancelled():
            # marks the outcome retrieved when the caller has gone away
            worker.exception()

    def _translate_sync(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
    ) -> str:
        try:
            translator = DeepGoogleTranslator(source=source_lang, target=target_lang)
            result = translator.translate(text)
        except TooManyRequests as e:
            raise RateLimitError(f"Google Translate rate limit exceeded: {e}") from e
        except RequestError as e:
            raise NetworkError(f"Google Translate request failed: {e}") from e
        except (LanguageNotSupportedException, NotValidPayload, NotValidLength) as e:
            raise BadRequestError(f"Google Translate rejected the request: {e}") from e
        except Exception as e:
            raise TranslationError(f"Google Translate failed: {e}") from e
        return result if result is not None else text
