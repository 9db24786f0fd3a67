"""High-level orchestration of extraction and localization runs."""

from __future__ import annotations

import logging
import pathlib
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .documents import BaseSourceFile, detect_handler
from .errors import ErrorCategory, LodestringError, OverwriteRefusedError
from .policy import ErrorPolicy
from .structures import LocalizationOptions, TranslationUnit
from .translations import TranslationSet, dump_units

logger = logging.getLogger(__name__)


@dataclass
class ExtractionSummary:
    """Report returned after extracting strings from a set of files."""

    input_paths: List[pathlib.Path]
    output_path: Optional[pathlib.Path]
    total_files: int
    total_units: int
    units_per_file: Dict[str, int]
    total_errors: int
    elapsed_seconds: float
    error_messages: List[str] = field(default_factory=list)


@dataclass
class LocalizationSummary:
    """Report returned after writing localized files."""

    input_paths: List[pathlib.Path]
    locales: List[str]
    written_paths: List[pathlib.Path]
    new_units: List[TranslationUnit]
    total_errors: int
    elapsed_seconds: float
    error_messages: List[str] = field(default_factory=list)


class LocalizationRunner:
    """Runs adapters over a list of source files under one error policy."""

    def __init__(
        self,
        *,
        options: Optional[LocalizationOptions] = None,
        fail_fast: bool = False,
        max_errors: Optional[int] = None,
        csv_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.options = options or LocalizationOptions()
        self.error_policy = ErrorPolicy(fail_fast=fail_fast, max_errors=max_errors)
        self.csv_options = {
            name: value for name, value in (csv_options or {}).items() if value is not None
        }

    def _open(self, path: pathlib.Path) -> Tuple[str, BaseSourceFile]:
        return detect_handler(path, self.options, self.error_policy, **self.csv_options)

    def _extract_all(self, paths: Sequence[pathlib.Path]) -> List[Tuple[pathlib.Path, BaseSourceFile]]:
        handlers: List[Tuple[pathlib.Path, BaseSourceFile]] = []
        for path in paths:
            document_type, handler = self._open(path)
            handler.extract()
            logger.info(
                "%s: %d strings extracted (%s)",
                path,
                len(handler.translation_set),
                document_type,
            )
            handlers.append((path, handler))
        return handlers

    def extract(
        self,
        paths: Sequence[pathlib.Path],
        output_path: Optional[pathlib.Path] = None,
    ) -> Tuple[ExtractionSummary, TranslationSet]:
        """Extract every file into one set and optionally write it out."""

        start_time = time.time()
        merged = TranslationSet(self.options.source_locale)
        per_file: Dict[str, int] = {}

        for path, handler in self._extract_all(paths):
            per_file[str(path)] = len(handler.translation_set)
            merged.add_all(handler.translation_set.get_all())

        if output_path is not None:
            dump_units(merged.get_all(), output_path)
            logger.info("Wrote %d units to %s", len(merged), output_path)

        summary = ExtractionSummary(
            input_paths=list(paths),
            output_path=output_path,
            total_files=len(paths),
            total_units=len(merged),
            units_per_file=per_file,
            total_errors=len(self.error_policy.records),
            elapsed_seconds=time.time() - start_time,
            error_messages=self.error_policy.messages(),
        )
        return summary, merged

    def localize(
        self,
        paths: Sequence[pathlib.Path],
        translations: Optional[TranslationSet],
        locales: Sequence[str],
        target_dir: Optional[pathlib.Path] = None,
    ) -> LocalizationSummary:
        """Write one localized file per source file and non-source locale."""

        start_time = time.time()
        written: List[pathlib.Path] = []
        new_units = TranslationSet(self.options.source_locale)

        for path, handler in self._extract_all(paths):
            try:
                written.extend(handler.localize(translations, locales, target_dir))
            except OSError as exc:
                self.error_policy.handle_error(
                    ErrorCategory.FILE_IO,
                    f"Could not write localized files for {path}",
                    str(exc),
                )
                continue
            new_units.add_all(handler.new_resources.get_all())

        return LocalizationSummary(
            input_paths=list(paths),
            locales=list(locales),
            written_paths=written,
            new_units=new_units.get_all(),
            total_errors=len(self.error_policy.records),
            elapsed_seconds=time.time() - start_time,
            error_messages=self.error_policy.messages(),
        )


def validate_paths(
    input_paths: Sequence[pathlib.Path],
    output_path: Optional[pathlib.Path] = None,
    force_overwrite: bool = False,
) -> None:
    """Validate input/output path combinations and overwrite policy."""

    if not input_paths:
        raise LodestringError("No input files given.")

    for input_path in input_paths:
        if not input_path.exists():
            raise FileNotFoundError(f"Input file not found: {input_path}")
        if not input_path.is_file():
            raise LodestringError(f"Input path must be a file: {input_path}")
        if output_path is not None and input_path.resolve() == output_path.resolve():
            raise OverwriteRefusedError(
                f"The output path matches the input file {input_path}. Refusing to overwrite it."
            )

    if output_path is not None and output_path.exists() and not force_overwrite:
        raise OverwriteRefusedError(
            f"The output file {output_path} already exists. Rename it or use the overwrite flag."
        )
