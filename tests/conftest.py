# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: deterministic translators and pipeline settings."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Callable

import pytest

from csv_translator.pipeline import PipelineConfig
from csv_translator.translators import RateAwareTranslator, RetryPolicy


class StubTranslator:
    """In-memory translator: applies ``fn`` to each text and records calls."""

    name = "stub"
    max_text_length = 50000

    def __init__(self, fn: Callable[[str], str] = str.upper, delay: float = 0.0) -> None:
        self.fn = fn
        self.delay = delay
        self.calls: list[tuple[str, str, str]] = []

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        self.calls.append((text, source_lang, target_lang))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.fn(text)


# No waiting between attempts and no per-call deadline
FAST_POLICY = RetryPolicy(
    max_retries=2,
    initial_delay=0.0,
    max_delay=0.0,
    rate_limit_delay=0.0,
    request_timeout=None,
)


@pytest.fixture
def stub_class() -> type[StubTranslator]:
    return StubTranslator


@pytest.fixture
def fast_wrap() -> Callable[..., RateAwareTranslator]:
    """Wrap a backend in a RateAwareTranslator that never sleeps."""

    def wrap(backend: StubTranslator, **policy_overrides: object) -> RateAwareTranslator:
        return RateAwareTranslator(backend, replace(FAST_POLICY, **policy_overrides))

    return wrap


@pytest.fixture
def fast_config() -> Callable[..., PipelineConfig]:
    """PipelineConfig without pacing delays or batch deadlines."""

    def make(**overrides: object) -> PipelineConfig:
        settings: dict[str, object] = {"inter_batch_delay": 0.0, "batch_timeout": None}
        settings.update(overrides)
        return PipelineConfig(**settings)  # type: ignore[arg-type]

    return make
