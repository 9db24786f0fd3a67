"""Flattening of markup trees into placeholder-annotated strings."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple, Union

from .structures import MarkupNode, Placeholder

logger = logging.getLogger(__name__)

# Python's \s misses the zero-width spaces and the word joiner.
WHITESPACE_PATTERN = re.compile(r"[\s\u200b-\u200d\u2060]+")


def strip_whitespace(text: str) -> str:
    return WHITESPACE_PATTERN.sub("", text)


def is_blank(text: str) -> bool:
    return not strip_whitespace(text)


class _Scope:
    __slots__ = ("index", "node", "parent", "parts", "has_text")

    def __init__(self, index: int, node: Optional[MarkupNode], parent: Optional["_Scope"]) -> None:
        self.index = index
        self.node = node
        self.parent = parent
        self.parts: List[Union[str, "_Scope"]] = []
        self.has_text = False


class MessageAccumulator:
    """Builds the flat translatable string of one markup value.

    Scopes opened with ``breaking=True`` are numbered in the order they are
    opened, starting at 0, and appear in the string as ``<cN>...</cN>``. A
    scope that never received text while open is rendered as ``<cN/>``
    instead. Scopes opened with ``breaking=False`` are transparent: their
    text lands in the enclosing scope and they take no number.
    """

    def __init__(self) -> None:
        self._root = _Scope(-1, None, None)
        self._current = self._root
        self._stack: List[Tuple[Optional[MarkupNode], Optional[_Scope]]] = []
        self._scopes: List[_Scope] = []
        self._text: List[str] = []

    def push(self, node: MarkupNode, breaking: bool = True) -> None:
        if not breaking:
            self._stack.append((node, None))
            return

        scope = _Scope(len(self._scopes), node, self._current)
        self._current.parts.append(scope)
        self._scopes.append(scope)
        self._stack.append((node, scope))
        self._current = scope

    def add_text(self, text: str) -> None:
        if not text:
            return
        self._current.parts.append(text)
        self._text.append(text)

        scope: Optional[_Scope] = self._current
        while scope is not None and not scope.has_text:
            scope.has_text = True
            scope = scope.parent

    def pop(self) -> Optional[MarkupNode]:
        """Close the innermost open scope and return the node that opened it."""

        if not self._stack:
            logger.warning("Unbalanced placeholder scopes: pop() called on the root")
            return None

        node, scope = self._stack.pop()
        if scope is not None:
            self._current = scope.parent or self._root
        return node

    @property
    def text(self) -> str:
        """Literal text added so far, without any placeholders."""

        return "".join(self._text)

    @property
    def text_length(self) -> int:
        return len(strip_whitespace(self.text))

    @property
    def has_content(self) -> bool:
        return bool(self._scopes) or self.text_length > 0

    def get_minimal_string(self) -> str:
        return self._render(self._root)

    def get_mapping(self) -> Tuple[Placeholder, ...]:
        return tuple(
            Placeholder(index=scope.index, node=scope.node, self_closing=not scope.has_text)
            for scope in self._scopes
        )

    def _render(self, scope: _Scope) -> str:
        pieces: List[str] = []
        for part in scope.parts:
            if isinstance(part, str):
                pieces.append(part)
            elif part.has_text:
                pieces.append(f"<c{part.index}>{self._render(part)}</c{part.index}>")
            else:
                pieces.append(f"<c{part.index}/>")
        return "".join(pieces)
