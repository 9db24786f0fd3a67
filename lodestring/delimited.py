"""Parsing, merging and rendering of delimited text tables."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Collection, Dict, Iterable, List, NamedTuple, Optional, Sequence

from .structures import Column

logger = logging.getLogger(__name__)

DEFAULT_ROW_SEPARATOR = r"[\n\r\f]+"
WHITESPACE_CHARS = " \t\f\n\r\v"
_KEY_WHITESPACE = re.compile(r"\s+")

Record = Dict[str, str]


class RowTokens(NamedTuple):
    fields: List[str]
    unterminated: bool


def make_key(text: str) -> str:
    """Source text doubles as the key, with whitespace runs collapsed."""

    return _KEY_WHITESPACE.sub(" ", text).strip()


def tokenize_row(line: str, separator: str = ",") -> RowTokens:
    """Split one row into trimmed field values.

    A backslash before the separator yields a literal separator; before any
    other character the backslash is kept. Inside double quotes the
    separator has no meaning and ``""`` stands for one quote. A quote that
    is never closed swallows the rest of the line.
    """

    trim = "".join(char for char in WHITESPACE_CHARS if char != separator)
    fields: List[str] = []
    buffer: List[str] = []
    in_quotes = False
    unterminated = False
    index = 0
    length = len(line)

    while index < length:
        char = line[index]
        if in_quotes:
            if char == '"':
                if index + 1 < length and line[index + 1] == '"':
                    buffer.append('"')
                    index += 2
                    continue
                in_quotes = False
            else:
                buffer.append(char)
            index += 1
            continue

        if char == "\\" and index + 1 < length:
            following = line[index + 1]
            buffer.append(separator if following == separator else char + following)
            index += 2
            continue

        if char == separator:
            fields.append("".join(buffer).strip(trim))
            buffer = []
        elif char == '"' and not "".join(buffer).strip(trim):
            buffer = []
            in_quotes = True
        else:
            buffer.append(char)
        index += 1

    if in_quotes:
        unterminated = True
    fields.append("".join(buffer).strip(trim))
    return RowTokens(fields, unterminated)


def quote_field(value: str, separator: str = ",") -> str:
    if (
        separator in value
        or value.strip() != value
        or "\n" in value
        or '"' in value
    ):
        return '"' + value.replace('"', '""') + '"'
    return value


@dataclass
class DelimitedTable:
    """Ordered columns plus ordered records of a delimited text file."""

    columns: List[Column] = field(default_factory=list)
    records: List[Record] = field(default_factory=list)
    key: Optional[str] = None
    header: bool = True

    @property
    def names(self) -> List[str]:
        return [column.name for column in self.columns]

    @property
    def localizable(self) -> List[str]:
        return [column.name for column in self.columns if column.localizable]

    @property
    def key_column(self) -> Optional[str]:
        if self.key:
            return self.key
        return self.columns[0].name if self.columns else None

    @classmethod
    def parse(
        cls,
        text: str,
        *,
        column_separator: str = ",",
        row_separator: str = DEFAULT_ROW_SEPARATOR,
        header: bool = True,
        columns: Optional[Sequence[Column]] = None,
        localizable: Optional[Collection[str]] = None,
        key: Optional[str] = None,
        on_malformed: Optional[Callable[[int, str], None]] = None,
    ) -> "DelimitedTable":
        """Parse ``text`` into a table.

        ``on_malformed`` is called with the 1-based row number and the row
        text for every row whose quoting is unterminated. The row is still
        used as far as it goes.

        ``localizable`` names the columns whose values are translated; the
        others are kept as they are. By default every column is localizable.
        """

        table = cls(columns=list(columns or []), key=key, header=header)
        if not text:
            return table

        lines = [line for line in re.split(row_separator, text) if line and line.strip()]
        if not lines:
            return table

        if header:
            header_tokens = tokenize_row(lines[0], column_separator)
            if not table.columns:
                table.columns = [Column(name) for name in header_tokens.fields]
            lines = lines[1:]
        elif not table.columns:
            width = max(len(tokenize_row(line, column_separator).fields) for line in lines)
            table.columns = [Column(str(position)) for position in range(width)]

        if localizable is not None:
            wanted = set(localizable)
            table.columns = [Column(column.name, column.name in wanted) for column in table.columns]

        names = table.names
        first_row = 2 if header else 1
        for number, line in enumerate(lines, start=first_row):
            tokens = tokenize_row(line, column_separator)
            if tokens.unterminated:
                logger.debug("Row %d has an unterminated quote: %r", number, line)
                if on_malformed is not None:
                    on_malformed(number, line)
            table.records.append(
                {
                    name: tokens.fields[position] if position < len(tokens.fields) else ""
                    for position, name in enumerate(names)
                }
            )
        return table

    def merge(self, other: "DelimitedTable") -> None:
        """Fold ``other`` into this table.

        Unknown columns are appended. Records are matched on the key column;
        non-empty values of ``other`` overwrite, empty ones never do, and
        records without a match are appended.
        """

        known = set(self.names)
        for column in other.columns:
            if column.name not in known:
                self.columns.append(column)
                known.add(column.name)

        own_key = self.key_column
        by_key: Dict[str, Record] = {}
        for record in self.records:
            value = record.get(own_key) if own_key else None
            if value:
                by_key[value] = record

        other_key = other.key_column
        for other_record in other.records:
            value = other_record.get(other_key) if other_key else None
            existing = by_key.get(value) if value else None
            if existing is None:
                record = dict(other_record)
                self.records.append(record)
                if value:
                    by_key[value] = record
                continue
            for name in other.names:
                if name != other_key and other_record.get(name):
                    existing[name] = other_record[name]

    def render(
        self,
        *,
        column_separator: str = ",",
        row_separator: str = "\n",
        transform: Optional[Callable[[str, str], str]] = None,
    ) -> str:
        """Write the table back out as text.

        ``transform`` receives the column name and the field value of every
        localizable field and returns the text to emit instead.
        """

        localizable = set(self.localizable)
        names = self.names
        lines: List[str] = []
        if self.header:
            lines.append(column_separator.join(quote_field(name, column_separator) for name in names))

        for record in self.records:
            values: List[str] = []
            for name in names:
                value = record.get(name) or ""
                if transform is not None and value and name in localizable:
                    value = transform(name, value)
                values.append(quote_field(value, column_separator))
            lines.append(column_separator.join(values))
        return row_separator.join(lines)

    def localizable_values(self) -> Iterable[str]:
        """Yield every non-empty localizable field in file order."""

        localizable = set(self.localizable)
        for record in self.records:
            for name in self.names:
                value = record.get(name)
                if value and name in localizable:
                    yield value
