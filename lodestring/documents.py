"""Source-file adapters: extraction and localized re-serialization."""

from __future__ import annotations

import json
import logging
import pathlib
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import json5

from .delimited import DEFAULT_ROW_SEPARATOR, DelimitedTable, make_key
from .errors import (
    ErrorCategory,
    MarkupSyntaxError,
    OverwriteRefusedError,
    UnsupportedFileTypeError,
)
from .markup import parse_markup, unescape_js
from .policy import ErrorPolicy
from .reconciler import placeholder_mismatches, reconcile
from .segmenter import Segmenter
from .serializer import serialize
from .structures import (
    Column,
    Fragment,
    LocalizationOptions,
    Segment,
    TranslationUnit,
    hash_key,
)
from .translations import TranslationSet

logger = logging.getLogger(__name__)

MRKDWN_DATATYPE = "mrkdwn"
CSV_DATATYPE = "x-csv"

_LOCALE_SPLIT = re.compile(r"[-_]")


def _split_locale(locale: str) -> Tuple[str, str]:
    language, region = "", ""
    for position, part in enumerate(_LOCALE_SPLIT.split(locale)):
        if position == 0:
            language = part
        elif (len(part) == 2 and part.isalpha()) or (len(part) == 3 and part.isdigit()):
            region = part
    return language, region


def format_path(
    template: str,
    source_path: pathlib.Path,
    locale: str,
    directory: Optional[pathlib.Path] = None,
) -> pathlib.Path:
    """Fill a path template such as ``[dir]/[basename]_[locale].js``.

    ``directory`` replaces the source directory for ``[dir]``.
    """

    language, region = _split_locale(locale)
    directory = source_path.parent if directory is None else directory
    replacements = {
        "[dir]": directory.as_posix(),
        "[basename]": source_path.stem,
        "[filename]": source_path.name,
        "[extension]": source_path.suffix.lstrip("."),
        "[locale]": locale,
        "[language]": language,
        "[region]": region,
    }
    result = template
    for token, value in replacements.items():
        result = result.replace(token, value)
    return pathlib.Path(result)


class BaseSourceFile(ABC):
    """Common base class for source-file adapters."""

    datatype = ""
    default_template = "[dir]/[basename]_[locale].[extension]"

    def __init__(
        self,
        source_path: pathlib.Path,
        options: Optional[LocalizationOptions] = None,
        policy: Optional[ErrorPolicy] = None,
        *,
        template: Optional[str] = None,
    ) -> None:
        self.source_path = source_path
        self.options = options or LocalizationOptions()
        self.policy = policy or ErrorPolicy()
        self.template = template or self.default_template
        self.translation_set = TranslationSet(self.options.source_locale)
        self.new_resources = TranslationSet(self.options.source_locale)
        self._resource_index = 0

    def extract(self) -> TranslationSet:
        """Read the source file and collect its translatable strings."""

        logger.debug("Extracting strings from %s", self.source_path)
        try:
            data = self.source_path.read_text(encoding="utf-8")
        except OSError as exc:
            self.policy.handle_error(
                ErrorCategory.FILE_IO,
                f"Could not read file: {self.source_path}",
                str(exc),
            )
            data = ""
        self._resource_index = 0
        self.parse(data)
        return self.translation_set

    @abstractmethod
    def parse(self, data: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def localize_text(self, translations: Optional[TranslationSet], locale: str) -> str:
        raise NotImplementedError

    def get_localized_path(self, locale: str, directory: Optional[pathlib.Path] = None) -> pathlib.Path:
        return format_path(self.template, self.source_path, locale, directory)

    def localize(
        self,
        translations: Optional[TranslationSet],
        locales: Sequence[str],
        target_dir: Optional[pathlib.Path] = None,
    ) -> List[pathlib.Path]:
        """Write one localized file per non-source locale."""

        written: List[pathlib.Path] = []
        for locale in locales:
            if self.options.is_source_locale(locale):
                continue
            output_path = self.get_localized_path(locale, target_dir)
            if output_path.resolve() == self.source_path.resolve():
                raise OverwriteRefusedError(
                    f"The localized path for {locale} is the source file {self.source_path}. "
                    "Refusing to overwrite it."
                )
            logger.debug("Writing file %s", output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(self.localize_text(translations, locale), encoding="utf-8")
            written.append(output_path)
        return written

    def _add_unit(self, key: str, source: str, comment: Optional[str] = None) -> TranslationUnit:
        unit = TranslationUnit(
            key=key,
            source=source,
            source_locale=self.options.source_locale,
            datatype=self.datatype,
            project=self.options.project_id,
            comment=comment,
            path_name=str(self.source_path),
            index=self._resource_index,
        )
        self._resource_index += 1
        self.translation_set.add(unit)
        return unit

    def _translate(
        self,
        key: str,
        source: str,
        locale: str,
        translations: Optional[TranslationSet],
    ) -> Tuple[str, bool]:
        """Look up ``source`` for ``locale``.

        Returns the text to use and whether the string is missing a real
        translation (and was recorded in :attr:`new_resources`).
        """

        options = self.options
        if locale == options.pseudo_locale and options.nopseudo:
            return source, False

        if translations is not None:
            unit = translations.get(hash_key(options.project_id, locale, key, self.datatype))
            if unit is not None and unit.target is not None:
                return unit.target, False

        bundle = options.pseudos.get(locale)
        if bundle is not None:
            pseudo_source = source
            if bundle.source_locale and bundle.source_locale != options.source_locale and translations:
                derived = translations.get(
                    hash_key(options.project_id, bundle.source_locale, key, self.datatype)
                )
                if derived is not None and derived.target:
                    pseudo_source = derived.target
            return bundle.get_string(pseudo_source), False

        logger.debug("New string found: %s", source)
        self.new_resources.add(
            TranslationUnit(
                key=key,
                source=source,
                source_locale=options.source_locale,
                datatype=self.datatype,
                project=options.project_id,
                target=source,
                target_locale=locale,
                path_name=str(self.source_path),
                state="new",
                index=len(self.new_resources),
            )
        )
        if options.missing_pseudo is not None and not options.nopseudo:
            return options.missing_pseudo.get_string(source), True
        return source, True


@dataclass
class MrkdwnEntry:
    """One message of a chat-markup file, parsed once and shared by all locales."""

    value: Any
    comment: Optional[str] = None
    tree: Optional[Fragment] = None
    segment: Optional[Segment] = None


class MrkdwnSourceFile(BaseSourceFile):
    """Shared extraction and localization of chat-markup messages."""

    datatype = MRKDWN_DATATYPE

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.contents: Dict[str, MrkdwnEntry] = {}
        self.segmenter = Segmenter()

    def parse_message(self, key: str, value: str, comment: Optional[str] = None) -> MrkdwnEntry:
        entry = MrkdwnEntry(value=value, comment=comment)
        try:
            entry.tree = parse_markup(value)
        except MarkupSyntaxError as exc:
            self.policy.handle_error(
                ErrorCategory.GRAMMAR,
                f"Could not parse message {key!r} in {self.source_path}",
                str(exc),
            )
            return entry

        entry.segment = self.segmenter.segment(key, entry.tree)
        if entry.segment is not None:
            logger.debug("Segment for %s: %r", key, entry.segment.source)
            self._add_unit(key, entry.segment.source, comment)
        self.policy.record_success()
        return entry

    def localize_message(
        self,
        key: str,
        entry: MrkdwnEntry,
        translations: Optional[TranslationSet],
        locale: str,
    ) -> Any:
        if not isinstance(entry.value, str) or entry.tree is None:
            return entry.value
        segment = entry.segment
        if segment is None:
            return serialize(entry.tree)

        translation, missing = self._translate(key, segment.source, locale, translations)
        if missing and self.options.fully_translated:
            return entry.value

        unknown, absent = placeholder_mismatches(translation, segment)
        if unknown:
            self.policy.handle_error(
                ErrorCategory.PLACEHOLDER_MISMATCH,
                f"Translation of {key!r} to {locale} has placeholders the source does not have: "
                + ", ".join(f"c{index}" for index in unknown),
                f"source {segment.source!r}, translation {translation!r}",
            )
        if absent:
            logger.warning(
                "Translation of %r to %s leaves out placeholders %s",
                key,
                locale,
                ", ".join(f"c{index}" for index in absent),
            )
        return segment.prefix + serialize(reconcile(translation, segment.mapping))

    def localize_contents(self, translations: Optional[TranslationSet], locale: str) -> Dict[str, Any]:
        logger.debug("Localizing strings of %s for locale %s", self.source_path, locale)
        return {
            key: self.localize_message(key, entry, translations, locale)
            for key, entry in self.contents.items()
        }


COMMENT_PATTERN = re.compile(r"^\s*//(?P<comment>.*)$")
ENTRY_PATTERN = re.compile(
    r"""^\s*
    (?:'(?P<sq_key>[^']*)'|"(?P<dq_key>[^"]*)"|(?P<bare_key>[A-Za-z_$][\w$]*))
    \s*:\s*
    (?:'(?P<sq_value>(?:[^'\\]|\\.)*)'|"(?P<dq_value>(?:[^"\\]|\\.)*)")
    \s*,?\s*$""",
    re.VERBOSE,
)


class MrkdwnJsFile(MrkdwnSourceFile):
    """A JavaScript module exporting a flat object of chat-markup messages.

    Only lines of the form ``"key": "value",`` are read. A ``//`` comment
    line is attached to the entry that follows it.
    """

    default_template = "[dir]/[basename]_[locale].js"

    def parse(self, data: str) -> None:
        self.contents = {}
        comment: Optional[str] = None
        for line in data.split("\n"):
            match = COMMENT_PATTERN.match(line)
            if match:
                comment = match.group("comment").strip()
                continue

            match = ENTRY_PATTERN.match(line)
            if not match:
                continue
            key = match.group("sq_key") or match.group("dq_key") or match.group("bare_key") or ""
            raw = match.group("sq_value")
            if raw is None:
                raw = match.group("dq_value") or ""
            self.contents[key] = self.parse_message(key, unescape_js(raw), comment)
            comment = None

    def localize_text(self, translations: Optional[TranslationSet], locale: str) -> str:
        if self.options.output_style == "commonjs":
            output = "module.exports.messages = "
        else:
            output = "export default messages = "
        localized = self.localize_contents(translations, locale)
        return output + json.dumps(localized, indent=4, ensure_ascii=False) + ";\n"


class MrkdwnJsonFile(MrkdwnSourceFile):
    """A JSON object of chat-markup messages. Non-string values pass through.

    The source is read as JSON5, so comments and trailing commas are allowed.
    The localized output is plain JSON."""

    default_template = "[dir]/[basename]_[locale].json"

    def parse(self, data: str) -> None:
        self.contents = {}
        if not data.strip():
            return
        try:
            payload = json5.loads(data)
        except ValueError as exc:
            self.policy.handle_error(
                ErrorCategory.FORMAT,
                f"Failed to parse file {self.source_path}",
                str(exc),
            )
            return
        if not isinstance(payload, dict):
            self.policy.handle_error(
                ErrorCategory.FORMAT,
                f"Expected a JSON object of messages in {self.source_path}",
            )
            return

        for key, value in payload.items():
            if isinstance(value, str):
                self.contents[key] = self.parse_message(key, value)
            else:
                self.contents[key] = MrkdwnEntry(value=value)

    def localize_text(self, translations: Optional[TranslationSet], locale: str) -> str:
        return json.dumps(self.localize_contents(translations, locale), indent=4, ensure_ascii=False)


class CsvFile(BaseSourceFile):
    """A delimited text table. Every localizable field is its own string."""

    datatype = CSV_DATATYPE

    def __init__(
        self,
        source_path: pathlib.Path,
        options: Optional[LocalizationOptions] = None,
        policy: Optional[ErrorPolicy] = None,
        *,
        template: Optional[str] = None,
        column_separator: str = ",",
        row_separator: str = DEFAULT_ROW_SEPARATOR,
        output_row_separator: str = "\n",
        header: bool = True,
        columns: Optional[Sequence[Column]] = None,
        localizable: Optional[Iterable[str]] = None,
        key: Optional[str] = None,
    ) -> None:
        super().__init__(source_path, options, policy, template=template)
        self.column_separator = column_separator
        self.row_separator = row_separator
        self.output_row_separator = output_row_separator
        self.header = header
        self.configured_columns = list(columns or [])
        self.localizable = None if localizable is None else list(localizable)
        self.table = DelimitedTable(columns=list(self.configured_columns), key=key, header=header)

    def parse(self, data: str) -> None:
        logger.debug("Parsing file %s", self.source_path)

        def report(row: int, line: str) -> None:
            self.policy.handle_error(
                ErrorCategory.MALFORMED_ROW,
                f"{self.source_path}: row {row} has an unterminated quote",
                line,
            )

        self.table = DelimitedTable.parse(
            data,
            column_separator=self.column_separator,
            row_separator=self.row_separator,
            header=self.header,
            columns=self.configured_columns,
            localizable=self.localizable,
            key=self.table.key,
            on_malformed=report,
        )
        for value in self.table.localizable_values():
            self._add_unit(make_key(value), value)
        self.policy.record_success()

    def localize_text(self, translations: Optional[TranslationSet], locale: str) -> str:
        def translate(_column: str, value: str) -> str:
            translated, _missing = self._translate(make_key(value), value, locale, translations)
            return translated

        return self.table.render(
            column_separator=self.column_separator,
            row_separator=self.output_row_separator,
            transform=translate,
        )

    def merge(self, other: "CsvFile") -> None:
        self.table.merge(other.table)

    def render_source(self) -> str:
        return self.table.render(
            column_separator=self.column_separator,
            row_separator=self.output_row_separator,
        )

    def write(self, destination: pathlib.Path) -> None:
        """Write the (possibly merged) source table."""

        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(self.render_source(), encoding="utf-8")


HANDLERS = {
    ".js": ("mrkdwn-js", MrkdwnJsFile),
    ".json": ("mrkdwn-json", MrkdwnJsonFile),
    ".jsn": ("mrkdwn-json", MrkdwnJsonFile),
    ".csv": ("csv", CsvFile),
    ".tsv": ("csv", CsvFile),
}


def supported_extensions() -> Iterable[str]:
    return sorted(HANDLERS)


def detect_handler(
    path: pathlib.Path,
    options: Optional[LocalizationOptions] = None,
    policy: Optional[ErrorPolicy] = None,
    **csv_options: Any,
) -> Tuple[str, BaseSourceFile]:
    """Pick the adapter for ``path`` by its extension."""

    suffix = path.suffix.lower()
    if suffix not in HANDLERS:
        raise UnsupportedFileTypeError(
            f"Unsupported file type '{path.suffix}'. Supported: {', '.join(supported_extensions())}."
        )
    document_type, handler_class = HANDLERS[suffix]
    if handler_class is CsvFile:
        if suffix == ".tsv":
            csv_options.setdefault("column_separator", "\t")
        return document_type, CsvFile(path, options, policy, **csv_options)
    return document_type, handler_class(path, options, policy)
