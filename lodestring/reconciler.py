"""Map translated placeholder strings back onto markup trees."""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from .structures import (
    Container,
    Fragment,
    MarkupNode,
    Placeholder,
    Reference,
    Segment,
    Text,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_TAG_PATTERN = re.compile(r"<(?P<close>/?)c(?P<index>\d+)(?P<slash>/?)>")


@dataclass(frozen=True)
class PlaceholderToken:
    """A placeholder found at the top level of a translated string.

    ``inner_text`` is the raw text between a paired opening and closing tag.
    ``stray`` marks a closing tag without an opening one, or an opening tag
    that is never closed.
    """

    index: int
    self_closing: bool
    inner_text: str = ""
    stray: bool = False


Token = Union[str, PlaceholderToken]


def _find_closing_tag(text: str, index: int, start: int) -> Optional[Tuple[int, int]]:
    depth = 1
    for match in PLACEHOLDER_TAG_PATTERN.finditer(text, start):
        if int(match.group("index")) != index or match.group("slash"):
            continue
        if match.group("close"):
            depth -= 1
            if depth == 0:
                return match.start(), match.end()
        else:
            depth += 1
    return None


def parse_placeholders(text: str) -> List[Token]:
    """Split ``text`` into literal runs and top-level placeholder tokens."""

    tokens: List[Token] = []
    cursor = 0

    while True:
        match = PLACEHOLDER_TAG_PATTERN.search(text, cursor)
        if match is None:
            break
        if match.start() > cursor:
            tokens.append(text[cursor:match.start()])

        index = int(match.group("index"))
        closing = bool(match.group("close"))
        slash = bool(match.group("slash"))

        if slash and not closing:
            tokens.append(PlaceholderToken(index, self_closing=True))
            cursor = match.end()
            continue

        if closing:
            tokens.append(PlaceholderToken(index, self_closing=False, stray=True))
            cursor = match.end()
            continue

        closing_tag = _find_closing_tag(text, index, match.end())
        if closing_tag is None:
            tokens.append(PlaceholderToken(index, self_closing=False, stray=True))
            cursor = match.end()
            continue

        close_start, close_end = closing_tag
        tokens.append(
            PlaceholderToken(index, self_closing=False, inner_text=text[match.end():close_start])
        )
        cursor = close_end

    if cursor < len(text):
        tokens.append(text[cursor:])
    return tokens


def placeholder_indices(text: str) -> Set[int]:
    return {int(match.group("index")) for match in PLACEHOLDER_TAG_PATTERN.finditer(text)}


def placeholder_mismatches(translated: str, segment: Segment) -> Tuple[List[int], List[int]]:
    """Compare the placeholders of a translation with its source segment.

    Returns the indices used by the translation that the source mapping
    does not know, and the indices of the source string that the
    translation leaves out.
    """

    known = {placeholder.index for placeholder in segment.mapping}
    used = placeholder_indices(translated)
    unknown = sorted(used - known)
    missing = sorted(placeholder_indices(segment.source) - used)
    return unknown, missing


def _append(nodes: List[MarkupNode], node: MarkupNode) -> None:
    if isinstance(node, Text):
        if not node.value:
            return
        if nodes and isinstance(nodes[-1], Text):
            nodes[-1] = Text(nodes[-1].value + node.value)
            return
    nodes.append(node)


def _substitute(node: MarkupNode, children: Tuple[MarkupNode, ...]) -> MarkupNode:
    if isinstance(node, Container):
        return Container(node.tag, children)
    if isinstance(node, Reference):
        return dataclasses.replace(node, label=children)
    return node


def _rebuild(text: str, placeholders: Dict[int, Placeholder]) -> Tuple[MarkupNode, ...]:
    nodes: List[MarkupNode] = []

    for token in parse_placeholders(text):
        if isinstance(token, str):
            _append(nodes, Text(token))
            continue

        if token.stray:
            logger.warning("Dropping unbalanced placeholder tag c%d in translation %r", token.index, text)
            continue

        placeholder = placeholders.get(token.index)
        if placeholder is None:
            logger.warning(
                "Translation refers to placeholder c%d which the source does not have; dropping it",
                token.index,
            )
            continue

        if token.self_closing or placeholder.self_closing:
            nodes.append(placeholder.node)
            continue

        children = _rebuild(token.inner_text, placeholders)
        if children:
            nodes.append(_substitute(placeholder.node, children))
        elif isinstance(placeholder.node, Container):
            logger.debug("Dropping empty c%d from translation %r", token.index, text)
        else:
            nodes.append(placeholder.node)

    return tuple(nodes)


def reconcile(translated: str, mapping: Sequence[Placeholder]) -> Fragment:
    """Build a new tree from a translated string and the source mapping.

    The order and nesting of the placeholders in ``translated`` win over the
    source's. Source nodes are reused, never modified, so one mapping can be
    reconciled against any number of locales.
    """

    placeholders = {placeholder.index: placeholder for placeholder in mapping}
    return Fragment(_rebuild(translated, placeholders))
