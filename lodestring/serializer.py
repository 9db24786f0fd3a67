"""Emit markup trees back in chat markup syntax."""

from __future__ import annotations

from typing import Iterable

from .structures import (
    Container,
    Fragment,
    MarkupNode,
    NodeTag,
    Opaque,
    Reference,
    Text,
)

EMPHASIS_DELIMITERS = {
    NodeTag.BOLD: "*",
    NodeTag.ITALIC: "_",
    NodeTag.STRIKE: "~",
}

REFERENCE_SIGILS = {
    NodeTag.URL: "",
    NodeTag.USER: "@",
    NodeTag.CHANNEL: "#",
    NodeTag.COMMAND: "!",
}


def serialize_all(nodes: Iterable[MarkupNode]) -> str:
    return "".join(serialize(node) for node in nodes)


def serialize(node: MarkupNode) -> str:
    """Return the markup text of ``node`` and everything below it."""

    if isinstance(node, Text):
        return node.value

    if isinstance(node, Container):
        body = serialize_all(node.children)
        if node.tag is NodeTag.QUOTE:
            return f">{body}\n"
        delimiter = EMPHASIS_DELIMITERS[node.tag]
        return f"{delimiter}{body}{delimiter}"

    if isinstance(node, Reference):
        inner = REFERENCE_SIGILS[node.tag] + node.target
        if node.args:
            inner += "^" + "^".join(node.args)
        if node.label is not None:
            inner += "|" + serialize_all(node.label)
        return f"<{inner}>"

    if isinstance(node, Opaque):
        return node.raw

    if isinstance(node, Fragment):
        return serialize_all(node.children)

    raise TypeError(f"Unexpected markup node: {node!r}")
