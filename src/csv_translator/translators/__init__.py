# SPDX-License-Identifier: Apache-2.0
"""Translation backend modules.

This module provides translation backends for Azure Translator, DeepL and
Google Translate, plus the retrying wrapper used by the pipeline.

Google Translate is always available (no API key required).
Azure and DeepL require API keys.

Usage:
    # Azure Translator
    from csv_translator.translators import create_translator
    translator = create_translator("azure", api_key="...", region="centralindia")
    result = await translator.translate("Hello", "en", "hi")

    # Retries, timeouts and degrade-to-original
    from csv_translator.translators import RateAwareTranslator
    safe = RateAwareTranslator(translator)
    result = await safe.translate("Hello", "en", "hi")
"""

from __future__ import annotations

from typing import Any

from csv_translator.translators.base import (
    FATAL_TRANSLATOR_ERRORS,
    AuthenticationError,
    BadRequestError,
    ConfigurationError,
    NetworkError,
    QuotaExceededError,
    RateLimitError,
    RequestTimeoutError,
    ServiceError,
    TranslationError,
    TranslatorBackend,
    TranslatorError,
)
from csv_translator.translators.retry import RateAwareTranslator, RetryPolicy

__all__ = [
    # Protocol and exceptions
    "TranslatorBackend",
    "TranslatorError",
    "TranslationError",
    "RateLimitError",
    "NetworkError",
    "RequestTimeoutError",
    "ServiceError",
    "ConfigurationError",
    "AuthenticationError",
    "QuotaExceededError",
    "BadRequestError",
    "FATAL_TRANSLATOR_ERRORS",
    # Retrying wrapper
    "RateAwareTranslator",
    "RetryPolicy",
    # Factory
    "BACKENDS",
    "create_translator",
]

BACKENDS = ("azure", "deepl", "google")


def create_translator(backend: str, **kwargs: Any) -> TranslatorBackend:
    """Create a translation backend by name.

    Backends are imported lazily so that an unused backend's
    dependency is never loaded.

    Args:
        backend: One of "azure", "deepl", "google".
        **kwargs: Backend constructor arguments.

    Returns:
        Translator instance.

    Raises:
        ConfigurationError: If the backend name is unknown or its
            configuration is incomplete.
    """
    if backend == "azure":
        from csv_translator.translators.azure import AzureTranslator

        return AzureTranslator(**kwargs)
    if backend == "deepl":
        from csv_translator.translators.deepl import DeepLTranslator

        return DeepLTranslator(**kwargs)
    if backend == "google":
        from csv_translator.translators.google import GoogleTranslator

        return GoogleTranslator(**kwargs)
    raise ConfigurationError(
        f"Unknown translation backend: {backend!r} (choose from {', '.join(BACKENDS)})"
    )
