"""Command line interface for lodestring."""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from typing import Any, Dict, Iterable, List, Optional

from .configuration import LodestringConfig, build_options, get_settings, split_names
from .errors import (
    AbortRequested,
    ConfigurationError,
    ErrorThresholdExceeded,
    LodestringError,
)
from .structures import Column, LocalizationOptions
from .translations import dump_units, load_translations
from .translator import (
    ExtractionSummary,
    LocalizationRunner,
    LocalizationSummary,
    validate_paths,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "files",
        nargs="+",
        help="Source files to process (.js, .json, .csv, .tsv).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop at the first error instead of skipping the offending string.",
    )
    parser.add_argument(
        "--max-errors",
        type=int,
        help="Stop once this many errors have been recorded (default: no limit).",
    )
    parser.add_argument(
        "--column-separator",
        help="Column separator of delimited files (default: ',' or tab for .tsv).",
    )
    parser.add_argument(
        "--no-header",
        action="store_true",
        help="Delimited files have no header row; columns are named by position.",
    )
    parser.add_argument(
        "--columns",
        help="Comma-separated column names of delimited files, replacing the header row.",
    )
    parser.add_argument(
        "--localizable",
        help="Comma-separated names of the delimited columns to translate (default: all).",
    )
    parser.add_argument(
        "--key",
        help="Column that identifies a delimited record (default: the first column).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lodestring",
        description=(
            "Extract translatable strings from chat-markup and delimited files, "
            "and write localized copies from translations."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract strings into a JSON units file.")
    _add_common_arguments(extract)
    extract.add_argument(
        "-o",
        "--output",
        required=True,
        help="Path of the JSON units file to write.",
    )
    extract.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Allow overwriting the output file if it already exists.",
    )

    localize = subparsers.add_parser("localize", help="Write localized files.")
    _add_common_arguments(localize)
    localize.add_argument(
        "-x",
        "--translations",
        help="JSON units file holding the translations.",
    )
    localize.add_argument(
        "-l",
        "--locale",
        dest="locales",
        action="append",
        required=True,
        help="Target locale; repeat for several locales.",
    )
    localize.add_argument(
        "-d",
        "--target-dir",
        help="Directory for the localized files (default: next to each source).",
    )
    localize.add_argument(
        "--commonjs",
        action="store_true",
        help="Write chat-markup modules as 'module.exports.messages = ...'.",
    )
    localize.add_argument(
        "--fully-translated",
        action="store_true",
        help="Keep the source text of any message that has no translation.",
    )
    localize.add_argument(
        "-n",
        "--new-units",
        help="Also write the strings that had no translation to this JSON file.",
    )
    return parser


def setup_logging(verbose: bool, level_name: str = "WARNING") -> None:
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )


def _column_separator(value: Optional[str]) -> Optional[str]:
    if value == "\\t":
        return "\t"
    return value


def _csv_options(args: argparse.Namespace, settings: LodestringConfig) -> Dict[str, Any]:
    names = split_names(args.columns if args.columns is not None else settings.LODESTRING_CSV_COLUMNS)
    localizable = split_names(
        args.localizable if args.localizable is not None else settings.LODESTRING_CSV_LOCALIZABLE
    )
    return {
        "column_separator": _column_separator(args.column_separator)
        or settings.LODESTRING_CSV_COLUMN_SEPARATOR,
        "row_separator": settings.LODESTRING_CSV_ROW_SEPARATOR,
        "header": False if args.no_header else settings.LODESTRING_CSV_HEADER,
        "columns": [Column(name) for name in names] if names else None,
        "localizable": localizable,
        "key": args.key or settings.LODESTRING_CSV_KEY,
    }


def _resolve(files: Iterable[str]) -> List[pathlib.Path]:
    return [pathlib.Path(name).expanduser().resolve() for name in files]


def execute_extract(
    args: argparse.Namespace,
    settings: LodestringConfig,
) -> tuple[int, ExtractionSummary | None, str | None]:
    """Run an extraction and return the exit code, summary, and message."""

    input_paths = _resolve(args.files)
    output_path = pathlib.Path(args.output).expanduser().resolve()
    try:
        validate_paths(input_paths, output_path, force_overwrite=args.force)
    except FileNotFoundError as exc:
        return 1, None, str(exc)
    except LodestringError as exc:
        return 1, None, str(exc)

    runner = LocalizationRunner(
        options=build_options(settings),
        fail_fast=args.fail_fast,
        max_errors=args.max_errors,
        csv_options=_csv_options(args, settings),
    )
    try:
        summary, _units = runner.extract(input_paths, output_path)
    except (AbortRequested, ErrorThresholdExceeded) as exc:
        return 2, None, str(exc)
    except LodestringError as exc:
        return 1, None, str(exc)
    return 0, summary, None


def execute_localize(
    args: argparse.Namespace,
    settings: LodestringConfig,
) -> tuple[int, LocalizationSummary | None, str | None]:
    """Run a localization and return the exit code, summary, and message."""

    input_paths = _resolve(args.files)
    try:
        validate_paths(input_paths)
    except FileNotFoundError as exc:
        return 1, None, str(exc)
    except LodestringError as exc:
        return 1, None, str(exc)

    options: LocalizationOptions = build_options(settings)
    if args.commonjs:
        options.output_style = "commonjs"
    if args.fully_translated:
        options.fully_translated = True

    translations = None
    if args.translations:
        try:
            translations = load_translations(
                pathlib.Path(args.translations).expanduser(),
                options.source_locale,
            )
        except LodestringError as exc:
            return 1, None, str(exc)

    target_dir = pathlib.Path(args.target_dir).expanduser().resolve() if args.target_dir else None
    runner = LocalizationRunner(
        options=options,
        fail_fast=args.fail_fast,
        max_errors=args.max_errors,
        csv_options=_csv_options(args, settings),
    )
    try:
        summary = runner.localize(input_paths, translations, args.locales, target_dir)
    except (AbortRequested, ErrorThresholdExceeded) as exc:
        return 2, None, str(exc)
    except LodestringError as exc:
        return 1, None, str(exc)

    if args.new_units:
        dump_units(summary.new_units, pathlib.Path(args.new_units).expanduser())
    return 0, summary, None


def print_extraction_summary(summary: ExtractionSummary) -> None:
    print("\nExtraction complete.")
    print(f"  Files:        {summary.total_files}")
    print(f"  Units:        {summary.total_units}")
    print(f"  Units file:   {summary.output_path}")
    print(f"  Elapsed time: {summary.elapsed_seconds:.2f} seconds")
    if summary.total_errors:
        print("  Notes:")
        for message in summary.error_messages:
            print(f"    - {message}")


def print_localization_summary(summary: LocalizationSummary) -> None:
    print("\nLocalization complete.")
    print(f"  Files:         {len(summary.input_paths)}")
    print(f"  Locales:       {', '.join(summary.locales)}")
    print(f"  Written:       {len(summary.written_paths)}")
    for path in summary.written_paths:
        print(f"    {path}")
    print(f"  Untranslated:  {len(summary.new_units)}")
    print(f"  Elapsed time:  {summary.elapsed_seconds:.2f} seconds")
    if summary.total_errors:
        print("  Notes:")
        for message in summary.error_messages:
            print(f"    - {message}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(exc)
        return 1

    setup_logging(args.verbose, settings.LODESTRING_LOG_LEVEL)
    if args.max_errors is not None and args.max_errors < 1:
        parser.error("--max-errors must be at least 1")
    logger.debug("Settings loaded: %s", settings)
    if args.column_separator is not None and len(_column_separator(args.column_separator)) != 1:
        parser.error("--column-separator must be a single character")

    if args.command == "extract":
        exit_code, extraction, message = execute_extract(args, settings)
        if message:
            print(message)
        if extraction:
            print_extraction_summary(extraction)
        return exit_code

    exit_code, localization, message = execute_localize(args, settings)
    if message:
        print(message)
    if localization:
        print_localization_summary(localization)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
