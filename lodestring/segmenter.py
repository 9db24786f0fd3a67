"""Walk policy turning parsed markup into translatable segments."""

from __future__ import annotations

import logging
from typing import List, Optional

from .accumulator import MessageAccumulator, is_blank
from .structures import (
    Container,
    Fragment,
    MarkupNode,
    Opaque,
    Reference,
    Segment,
    Text,
)

logger = logging.getLogger(__name__)


def contains_letters(text: str) -> bool:
    """Detect whether the text has anything worth translating."""

    return any(char.isalpha() for char in text)


class Segmenter:
    """Flattens markup trees into :class:`Segment` objects.

    Containers and references become numbered placeholders, opaque spans
    become self-closing placeholders and fragments are walked in place.
    Whitespace that precedes all content is kept out of the segment source
    and stored as its ``prefix``.
    """

    def segment(self, key: str, tree: MarkupNode) -> Optional[Segment]:
        accumulator = MessageAccumulator()
        prefix: List[str] = []
        self._walk(tree, accumulator, prefix)

        if accumulator.text_length == 0 or not contains_letters(accumulator.text):
            logger.debug("Nothing to translate in %s", key)
            return None

        return Segment(
            key=key,
            source=accumulator.get_minimal_string(),
            mapping=accumulator.get_mapping(),
            prefix="".join(prefix),
        )

    def _walk(self, node: MarkupNode, accumulator: MessageAccumulator, prefix: List[str]) -> None:
        if isinstance(node, Text):
            if accumulator.has_content or not is_blank(node.value):
                accumulator.add_text(node.value)
            else:
                prefix.append(node.value)
        elif isinstance(node, Container):
            if not node.children:
                return
            accumulator.push(node)
            for child in node.children:
                self._walk(child, accumulator, prefix)
            accumulator.pop()
        elif isinstance(node, Reference):
            accumulator.push(node)
            for child in node.label or ():
                self._walk(child, accumulator, prefix)
            accumulator.pop()
        elif isinstance(node, Opaque):
            accumulator.push(node)
            accumulator.pop()
        elif isinstance(node, Fragment):
            accumulator.push(node, breaking=False)
            for child in node.children:
                self._walk(child, accumulator, prefix)
            accumulator.pop()
        else:
            raise TypeError(f"Unexpected markup node: {node!r}")
