# SPDX-License-Identifier: Apache-2.0
"""
CSV Translator - CLI Tool

Translates selected columns of a CSV file while keeping every row and
column in place. Cells that cannot be translated keep their original text.

Usage:
    translate-csv <input.csv> -c <column> [options]

Examples:
    translate-csv products.csv -c description -t hi
    translate-csv products.csv -c name=ta -c description=te -s en
    translate-csv products.csv -c 2 --backend google -o ./out.csv
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path
from typing import NoReturn, Sequence

from dotenv import load_dotenv

from csv_translator.constants import (
    BATCH_TIMEOUT,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CONCURRENCY,
    INTER_BATCH_DELAY,
    MAX_CONCURRENCY,
    MAX_RETRIES_PER_CELL,
)
from csv_translator.core.csv_codec import ParseError, parse_rows, read_csv_file, serialize_rows
from csv_translator.core.models import ColumnMapping, TranslationConfig
from csv_translator.pipeline.progress import (
    CompleteEvent,
    ErrorEvent,
    ProgressEvent,
    format_sse,
)
from csv_translator.pipeline.translation_pipeline import PipelineConfig, TranslationPipeline
from csv_translator.translators import BACKENDS, ConfigurationError, create_translator
from csv_translator.translators.base import TranslatorBackend

logger = logging.getLogger(__name__)

# Default output directory
DEFAULT_OUTPUT_DIR = "./output/"

# Files above this size get a duration warning
LARGE_FILE_SIZE = 10 * 1024 * 1024
VERY_LARGE_FILE_SIZE = 50 * 1024 * 1024


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument Namespace.
    """
    parser = argparse.ArgumentParser(
        prog="translate-csv",
        description="CSV Translation Tool - Translates selected CSV columns",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data.csv -c description -t hi          # Azure Translator (default)
  %(prog)s data.csv -c name=ta -c notes=te        # Per-column target language
  %(prog)s data.csv -c 1 --backend google         # Column by index, Google
  %(prog)s data.csv -c title --batch-size 50      # Larger batches
  %(prog)s data.csv -c title --sse                # Print server-sent events

Environment Variables:
  AZURE_TRANSLATOR_KEY       Azure key (required for --backend azure)
  AZURE_TRANSLATOR_REGION    Azure region (required for --backend azure)
  AZURE_TRANSLATOR_ENDPOINT  Azure endpoint (optional)
  DEEPL_API_KEY              DeepL API key (required for --backend deepl)
  DEEPL_API_URL              DeepL API URL (optional, for Pro users)
""",
    )

    parser.add_argument(
        "input",
        type=Path,
        help="Path to CSV file to translate",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help=f"Output file path (default: {DEFAULT_OUTPUT_DIR}<input>_translated.csv)",
    )
    parser.add_argument(
        "-c",
        "--column",
        dest="columns",
        action="append",
        required=True,
        metavar="COLUMN[=LANG]",
        help="Column to translate, by header name or zero-based index (repeatable)",
    )

    # Language options
    parser.add_argument(
        "-s",
        "--source",
        default="auto",
        help="Source language code (default: auto)",
    )
    parser.add_argument(
        "-t",
        "--target",
        default="hi",
        help="Target language for columns without '=LANG' (default: hi)",
    )

    # Translation backend
    parser.add_argument(
        "-b",
        "--backend",
        default="azure",
        choices=list(BACKENDS),
        help="Translation backend (default: azure)",
    )

    azure_group = parser.add_argument_group("Azure options")
    azure_group.add_argument("--azure-key", help="Azure key (or set AZURE_TRANSLATOR_KEY)")
    azure_group.add_argument("--azure-region", help="Azure region (or set AZURE_TRANSLATOR_REGION)")
    azure_group.add_argument("--azure-endpoint", help="Azure endpoint (or set AZURE_TRANSLATOR_ENDPOINT)")

    deepl_group = parser.add_argument_group("DeepL options")
    deepl_group.add_argument("--api-key", help="DeepL API key (or set DEEPL_API_KEY)")
    deepl_group.add_argument("--api-url", help="DeepL API URL (optional, for Pro users)")

    # Batching options
    batch_group = parser.add_argument_group("Batching options")
    batch_group.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Rows per batch (default: {DEFAULT_BATCH_SIZE})",
    )
    batch_group.add_argument(
        "--batch-timeout",
        type=float,
        default=BATCH_TIMEOUT,
        help=f"Seconds before a batch falls back to original text, 0 disables (default: {BATCH_TIMEOUT:g})",
    )
    batch_group.add_argument(
        "--max-retries",
        type=int,
        default=MAX_RETRIES_PER_CELL,
        help=f"Retries per cell (default: {MAX_RETRIES_PER_CELL})",
    )
    batch_group.add_argument(
        "--delay",
        type=float,
        default=INTER_BATCH_DELAY,
        help=f"Base pause between batches in seconds, 0 disables (default: {INTER_BATCH_DELAY:g})",
    )
    batch_group.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        choices=range(1, MAX_CONCURRENCY + 1),
        metavar=f"{{1..{MAX_CONCURRENCY}}}",
        help=f"Rows translated in parallel inside a batch (default: {DEFAULT_CONCURRENCY})",
    )
    batch_group.add_argument(
        "--max-failure-rate",
        type=float,
        help="Fail when more than this share of rows (0-1) keeps original text",
    )

    # Output options
    parser.add_argument(
        "--sse",
        action="store_true",
        help="Print progress as server-sent events instead of plain text",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    return parser.parse_args(argv)


def build_column_mappings(
    specs: Sequence[str], headers: Sequence[str], default_target: str
) -> list[ColumnMapping]:
    """Turn ``COLUMN[=LANG]`` arguments into column mappings.

    A column is matched by exact header name first, then by index.

    Raises:
        ValueError: If a column does not exist or is given twice.
    """
    mappings: dict[int, ColumnMapping] = {}
    for spec in specs:
        name, _, lang = spec.partition("=")
        name = name.strip()
        if name in headers:
            index = list(headers).index(name)
        elif name.isdigit() and int(name) < len(headers):
            index = int(name)
        else:
            raise ValueError(f"Unknown column: {name!r} (columns: {', '.join(headers)})")
        if index in mappings:
            raise ValueError(f"Column given more than once: {headers[index]!r}")
        mappings[index] = ColumnMapping(
            column_index=index,
            column_name=headers[index],
            should_translate=True,
            target_language=lang.strip() or default_target,
        )
    return [mappings[i] for i in sorted(mappings)]


def create_translator_from_args(args: argparse.Namespace) -> TranslatorBackend:
    """Create translator based on backend selection.

    Raises:
        ConfigurationError: If a required API key is missing.
    """
    if args.backend == "azure":
        api_key = args.azure_key or os.environ.get("AZURE_TRANSLATOR_KEY", "")
        region = args.azure_region or os.environ.get("AZURE_TRANSLATOR_REGION", "")
        if not api_key or not region:
            raise ConfigurationError(
                "Azure key and region are required for --backend azure.\n"
                "  Set --azure-key/--azure-region or AZURE_TRANSLATOR_KEY/AZURE_TRANSLATOR_REGION.\n"
                "  Or use --backend google for API-key-free translation."
            )
        endpoint = args.azure_endpoint or os.environ.get("AZURE_TRANSLATOR_ENDPOINT")
        return create_translator("azure", api_key=api_key, region=region, endpoint=endpoint)

    if args.backend == "deepl":
        api_key = args.api_key or os.environ.get("DEEPL_API_KEY", "")
        if not api_key:
            raise ConfigurationError(
                "DeepL API key is required for --backend deepl.\n"
                "  Set --api-key option or DEEPL_API_KEY environment variable.\n"
                "  Or use --backend google for API-key-free translation."
            )
        api_url = args.api_url or os.environ.get("DEEPL_API_URL")
        return create_translator("deepl", api_key=api_key, api_url=api_url)

    return create_translator("google")


def build_pipeline_config(args: argparse.Namespace) -> PipelineConfig:
    """Pipeline settings from command line arguments."""
    return PipelineConfig(
        batch_size=args.batch_size,
        batch_timeout=args.batch_timeout or None,
        max_retries_per_cell=args.max_retries,
        inter_batch_delay=args.delay,
        concurrency=args.concurrency,
        max_failure_rate=args.max_failure_rate,
    )


def print_event(event: ProgressEvent, *, sse: bool = False) -> None:
    """Print one progress event."""
    if sse:
        sys.stdout.write(format_sse(event))
        sys.stdout.flush()
        return
    if isinstance(event, ErrorEvent):
        print(f"Error: {event.message}", file=sys.stderr)
    elif isinstance(event, CompleteEvent):
        print(f"{event.message} ({event.processed_rows}/{event.total_rows} rows)")
    elif event.processed_rows is not None and event.total_rows:
        percent = event.processed_rows * 100 // event.total_rows
        print(f"[{percent:3d}%] {event.message}")
    else:
        print(event.message)


async def run(args: argparse.Namespace) -> int:
    """Execute translation pipeline.

    Returns:
        Exit code (0: success, 1: failure).
    """
    input_path: Path = args.input

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    output_path: Path = args.output or Path(DEFAULT_OUTPUT_DIR) / f"{input_path.stem}_translated.csv"

    try:
        size = input_path.stat().st_size
        if size > VERY_LARGE_FILE_SIZE:
            logger.warning("Very large file detected! This may take 30+ minutes to process...")
        elif size > LARGE_FILE_SIZE:
            logger.warning("Large file detected, processing might take 10-20 minutes...")
        headers, rows = parse_rows(read_csv_file(input_path))
        mappings = build_column_mappings(args.columns, headers, args.target)
        translator = create_translator_from_args(args)
    except (ParseError, ValueError, ConfigurationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    translation_config = TranslationConfig(
        source_language=args.source,
        column_mappings=tuple(mappings),
        batch_size=args.batch_size,
    )

    if not args.sse:
        print(f"Input: {input_path}")
        print(f"Output: {output_path}")
        print(f"Backend: {args.backend}")
        for mapping in mappings:
            print(f"Column: {mapping.column_name} -> {mapping.target_language}")
        print()

    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    handles_sigint = True
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    except (NotImplementedError, RuntimeError):
        # Signal handlers are unavailable on some platforms (e.g. Windows)
        logger.debug("SIGINT handler not installed")
        handles_sigint = False

    pipeline = TranslationPipeline(translator, build_pipeline_config(args))
    result: CompleteEvent | None = None
    try:
        async for event in pipeline.stream(headers, rows, translation_config, cancel_event=cancel_event):
            print_event(event, sse=args.sse)
            if isinstance(event, CompleteEvent):
                result = event
    finally:
        close = getattr(translator, "close", None)
        if close is not None:
            await close()
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)

    if result is None:
        return 1

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(serialize_rows(result.headers, result.rows), encoding="utf-8")

    if not args.sse:
        print()
        print(f"Complete: {output_path}")
        print(f"  Rows: {result.processed_rows}")
        print(f"  Failed rows: {result.failed_rows}")
        print(f"  Failed batches: {len(result.failed_batches)}")
        print(f"  Untranslated cells: {result.degraded_cells}")
    return 0


def main() -> NoReturn:
    """Main entry point."""
    load_dotenv()
    args = parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    exit_code = asyncio.run(run(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
