"""Core data structures for lodestring."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Tuple, Union

if TYPE_CHECKING:
    from .pseudo import PseudoBundle


class NodeTag(Enum):
    """Kinds of markup spans the parser recognises."""

    BOLD = "bold"
    ITALIC = "italic"
    STRIKE = "strike"
    QUOTE = "quote"
    URL = "url"
    USER = "user"
    CHANNEL = "channel"
    COMMAND = "command"
    CODE = "code"
    PRETEXT = "pretext"
    EMOJI = "emoji"


# Nodes are frozen so that a tree parsed once can be shared, never mutated,
# by the reconciliation of every target locale.


@dataclass(frozen=True)
class Text:
    """A run of literal text."""

    value: str


@dataclass(frozen=True)
class Container:
    """Emphasis or quote span whose children mix freely with prose."""

    tag: NodeTag
    children: Tuple["MarkupNode", ...] = ()


@dataclass(frozen=True)
class Reference:
    """Link, mention, channel or command.

    ``target`` is the URL, user id, channel id or command name. ``label`` is
    ``None`` when the source had no ``|label`` part at all.
    """

    tag: NodeTag
    target: str
    args: Tuple[str, ...] = ()
    label: Optional[Tuple["MarkupNode", ...]] = None


@dataclass(frozen=True)
class Opaque:
    """Code, pre-formatted text or emoji, kept verbatim including delimiters."""

    tag: NodeTag
    raw: str


@dataclass(frozen=True)
class Fragment:
    """Root of a parsed string, or any node without markup of its own."""

    children: Tuple["MarkupNode", ...] = ()


MarkupNode = Union[Text, Container, Reference, Opaque, Fragment]


@dataclass(frozen=True)
class Placeholder:
    """One entry of a placeholder mapping, numbered in pre-order."""

    index: int
    node: MarkupNode
    self_closing: bool

    @property
    def tag(self) -> Optional[NodeTag]:
        return getattr(self.node, "tag", None)

    @property
    def args(self) -> Tuple[str, ...]:
        return getattr(self.node, "args", ())


@dataclass(frozen=True)
class Segment:
    """The translatable string extracted from one markup value."""

    key: str
    source: str
    mapping: Tuple[Placeholder, ...]
    prefix: str = ""


def hash_key(project: str, locale: str, key: str, datatype: str) -> str:
    """Return the store key of a unit for one locale."""

    return "_".join(("rs", project, locale, key, datatype))


@dataclass
class TranslationUnit:
    """A single extracted string, optionally carrying its translation."""

    key: str
    source: str
    source_locale: str
    datatype: str
    project: str = "project"
    target: Optional[str] = None
    target_locale: Optional[str] = None
    comment: Optional[str] = None
    path_name: Optional[str] = None
    state: str = "new"
    index: int = 0

    def hash_key_for_translation(self, locale: str) -> str:
        return hash_key(self.project, locale, self.key, self.datatype)

    def hash_key(self) -> str:
        return hash_key(
            self.project,
            self.target_locale or self.source_locale,
            self.key,
            self.datatype,
        )


@dataclass(frozen=True)
class Column:
    """Descriptor of one delimited-table column."""

    name: str
    localizable: bool = True


@dataclass
class LocalizationOptions:
    """Host-project settings consulted while extracting and localizing."""

    project_id: str = "project"
    source_locale: str = "en-US"
    pseudo_locale: str = "zxx-XX"
    nopseudo: bool = False
    fully_translated: bool = False
    output_style: str = "module"
    pseudos: Dict[str, "PseudoBundle"] = field(default_factory=dict)
    missing_pseudo: Optional["PseudoBundle"] = None

    def is_source_locale(self, locale: str) -> bool:
        return locale == self.source_locale
