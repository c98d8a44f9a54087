# SPDX-License-Identifier: Apache-2.0
"""Pipeline error definitions."""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for pipeline errors."""

    default_stage = "pipeline"

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage or self.default_stage
        self.cause = cause

    def __str__(self) -> str:
        text = f"[{self.stage}] {self.message}"
        if self.cause is not None:
            text += f" (caused by: {self.cause})"
        return text


class InvalidConfigurationError(PipelineError):
    """Translation configuration does not fit the table."""

    default_stage = "validate"


class MalformedInputError(PipelineError):
    """Row matrix does not match the header shape."""

    default_stage = "validate"


class BatchTimeoutError(PipelineError):
    """A batch did not finish within its deadline."""

    default_stage = "execute"
