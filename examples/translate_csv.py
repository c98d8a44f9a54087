#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""CSV translation sample script.

Shows the basic library usage of csv-translator. Change the settings
below to try different backends and options.

Usage:
    cd examples
    python translate_csv.py

Environment variables (loaded from .env automatically):
    AZURE_TRANSLATOR_KEY / AZURE_TRANSLATOR_REGION: required for Azure
    DEEPL_API_KEY: required for DeepL
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from csv_translator.core.csv_codec import parse_rows, read_csv_file, serialize_rows
from csv_translator.core.models import ColumnMapping, TranslationConfig
from csv_translator.pipeline import CompleteEvent, ErrorEvent, PipelineConfig, TranslationPipeline
from csv_translator.translators import ConfigurationError, TranslatorBackend, create_translator

PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")


# =============================================================================
# Settings
# =============================================================================

# Translation service: "google" | "azure" | "deepl"
# - google: no API key (free, rate limited)
# - azure: AZURE_TRANSLATOR_KEY and AZURE_TRANSLATOR_REGION
# - deepl: DEEPL_API_KEY
TRANSLATOR = "google"

SOURCE_LANG = "en"

# Column name -> target language
COLUMNS = {
    "name": "hi",
    "description": "ta",
}

BATCH_SIZE = 2

INPUT_CSV = Path(__file__).parent / "sample_products.csv"
OUTPUT_DIR = Path(__file__).parent / "outputs"

# =============================================================================
# Main
# =============================================================================


def get_translator(backend: str) -> TranslatorBackend:
    """Create the selected translation backend from the environment."""
    if backend == "azure":
        return create_translator(
            "azure",
            api_key=os.environ.get("AZURE_TRANSLATOR_KEY", ""),
            region=os.environ.get("AZURE_TRANSLATOR_REGION", ""),
        )
    if backend == "deepl":
        return create_translator("deepl", api_key=os.environ.get("DEEPL_API_KEY", ""))
    return create_translator(backend)


async def main() -> None:
    if not INPUT_CSV.exists():
        print(f"Error: Input CSV not found: {INPUT_CSV}")
        sys.exit(1)

    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    output_csv = OUTPUT_DIR / f"{INPUT_CSV.stem}_{TRANSLATOR}.csv"

    headers, rows = parse_rows(read_csv_file(INPUT_CSV))
    mappings = tuple(
        ColumnMapping(
            column_index=headers.index(name),
            column_name=name,
            should_translate=True,
            target_language=lang,
        )
        for name, lang in COLUMNS.items()
    )
    translation_config = TranslationConfig(SOURCE_LANG, mappings, batch_size=BATCH_SIZE)

    print("=" * 60)
    print("CSV Translation Example")
    print("=" * 60)
    print(f"Input:       {INPUT_CSV}")
    print(f"Output:      {output_csv}")
    print(f"Translator:  {TRANSLATOR}")
    for mapping in mappings:
        print(f"Column:      {mapping.column_name} ({SOURCE_LANG} -> {mapping.target_language})")
    print("=" * 60)

    try:
        translator = get_translator(TRANSLATOR)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    pipeline = TranslationPipeline(translator, PipelineConfig(inter_batch_delay=0.5))

    result: CompleteEvent | None = None
    async for event in pipeline.stream(headers, rows, translation_config):
        if isinstance(event, ErrorEvent):
            print(f"Error: {event.message}")
            sys.exit(1)
        if isinstance(event, CompleteEvent):
            result = event
        else:
            print(event.message)

    close = getattr(translator, "close", None)
    if close is not None:
        await close()

    if result is None:
        sys.exit(1)

    output_csv.write_text(serialize_rows(result.headers, result.rows), encoding="utf-8")

    print("\n" + "=" * 60)
    print("Translation Complete!")
    print("=" * 60)
    print(f"Rows:              {result.processed_rows}")
    print(f"Untranslated cells: {result.degraded_cells}")
    print(f"Output file:       {output_csv}")


if __name__ == "__main__":
    asyncio.run(main())
