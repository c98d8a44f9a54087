# SPDX-License-Identifier: Apache-2.0
"""Translation pipeline package."""

from .errors import BatchTimeoutError, InvalidConfigurationError, MalformedInputError, PipelineError
from .executor import RowTranslationExecutor
from .progress import (
    CompleteEvent,
    ErrorEvent,
    ProgressCallback,
    ProgressEvent,
    ProgressUpdate,
    format_sse,
)
from .translation_pipeline import (
    PipelineConfig,
    TranslationPipeline,
    TranslationResult,
    run_translation,
)

__all__ = [
    "BatchTimeoutError",
    "CompleteEvent",
    "ErrorEvent",
    "InvalidConfigurationError",
    "MalformedInputError",
    "PipelineConfig",
    "PipelineError",
    "ProgressCallback",
    "ProgressEvent",
    "ProgressUpdate",
    "RowTranslationExecutor",
    "TranslationPipeline",
    "TranslationResult",
    "format_sse",
    "run_translation",
]
