"""Tokenizer for chat-style inline markup, built on pyparsing.

The grammar recognises the spans below and returns an immutable tree of
:mod:`lodestring.structures` nodes::

    ```pre```  `code`  :emoji:  <url|label>  <@user>  <#channel>
    <!command^arg|label>  *bold*  _italic_  ~strike~  > quote

Emphasis delimiters only count when they do not touch a letter or digit on
the outside and do not touch whitespace on the inside, so ``snake_case_name``
and ``2*3*4`` stay plain text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from pyparsing import MatchFirst, ParseException, ParserElement, Regex, ZeroOrMore

from .errors import MarkupSyntaxError
from .structures import (
    Container,
    Fragment,
    MarkupNode,
    NodeTag,
    Opaque,
    Reference,
    Text,
)

PRETEXT_PATTERN = r"```(?P<text>.*?)```"
CODE_PATTERN = r"`(?P<text>[^`]+)`"
REFERENCE_PATTERN = r"<(?P<body>[^\s<>][^<>\n]*)>"
EMOJI_PATTERN = r"(?<![^\W_]):(?P<name>[a-z0-9_+'\-]+)(?:::(?P<variation>[a-z0-9_\-]+))?:"
QUOTE_PATTERN = r"^>(?P<body>[^\n]*)\n?"
TEXT_PATTERN = r"[^*_~`<:\n]+"
ANY_CHAR_PATTERN = r"."


def _emphasis_pattern(delimiter: str) -> str:
    d = re.escape(delimiter)
    return (
        rf"(?<![^\W_]){d}"
        rf"(?P<body>[^\s{d}](?:[^{d}\n]*[^\s{d}])?)"
        rf"{d}(?![^\W_])"
    )


EMPHASIS_TAGS = {
    "bold": NodeTag.BOLD,
    "italic": NodeTag.ITALIC,
    "strike": NodeTag.STRIKE,
}


@dataclass(frozen=True)
class _Lexeme:
    kind: str
    match: "re.Match[str]"


def _rule(kind: str, pattern: str, flags: int = 0) -> ParserElement:
    def action(_string, _loc, tokens):
        return _Lexeme(kind, tokens[0])

    return Regex(pattern, flags=flags, as_match=True).set_parse_action(action)


def _build_grammar(*, block: bool) -> ParserElement:
    rules = [
        _rule("pretext", PRETEXT_PATTERN, re.DOTALL),
        _rule("code", CODE_PATTERN),
        _rule("reference", REFERENCE_PATTERN),
        _rule("emoji", EMOJI_PATTERN),
        _rule("bold", _emphasis_pattern("*")),
        _rule("italic", _emphasis_pattern("_")),
        _rule("strike", _emphasis_pattern("~")),
    ]
    if block:
        rules.append(_rule("quote", QUOTE_PATTERN, re.MULTILINE))
    rules.append(_rule("text", TEXT_PATTERN))
    rules.append(_rule("text", ANY_CHAR_PATTERN, re.DOTALL))

    grammar = ZeroOrMore(MatchFirst(rules)).leave_whitespace()
    grammar.parse_with_tabs()
    return grammar


BLOCK_GRAMMAR = _build_grammar(block=True)
INLINE_GRAMMAR = _build_grammar(block=False)


def _lex(text: str, grammar: ParserElement) -> List[_Lexeme]:
    try:
        result = grammar.parse_string(text, parse_all=True)
    except ParseException as exc:
        raise MarkupSyntaxError(f"Could not tokenize markup {text!r}: {exc}") from exc
    return list(result)


def _build_reference(body: str) -> Reference:
    target, separator, label_text = body.partition("|")
    label = parse_inline(label_text) if separator else None

    if target.startswith("@"):
        return Reference(NodeTag.USER, target[1:], label=label)
    if target.startswith("#"):
        return Reference(NodeTag.CHANNEL, target[1:], label=label)
    if target.startswith("!"):
        name, *args = target[1:].split("^")
        return Reference(NodeTag.COMMAND, name, tuple(args), label)
    return Reference(NodeTag.URL, target, label=label)


def _build_nodes(lexemes: Sequence[_Lexeme]) -> Tuple[MarkupNode, ...]:
    nodes: List[MarkupNode] = []
    pending: List[str] = []

    for lexeme in lexemes:
        match = lexeme.match
        if lexeme.kind == "text":
            pending.append(match.group(0))
            continue

        if pending:
            nodes.append(Text("".join(pending)))
            pending = []

        if lexeme.kind in EMPHASIS_TAGS:
            nodes.append(Container(EMPHASIS_TAGS[lexeme.kind], parse_inline(match.group("body"))))
        elif lexeme.kind == "quote":
            nodes.append(Container(NodeTag.QUOTE, parse_inline(match.group("body"))))
        elif lexeme.kind == "reference":
            nodes.append(_build_reference(match.group("body")))
        elif lexeme.kind == "pretext":
            nodes.append(Opaque(NodeTag.PRETEXT, match.group(0)))
        elif lexeme.kind == "code":
            nodes.append(Opaque(NodeTag.CODE, match.group(0)))
        elif lexeme.kind == "emoji":
            nodes.append(Opaque(NodeTag.EMOJI, match.group(0)))

    if pending:
        nodes.append(Text("".join(pending)))
    return tuple(nodes)


def parse_inline(text: str) -> Tuple[MarkupNode, ...]:
    """Parse the body of a span or label. Block quotes are not recognised."""

    if not text:
        return ()
    return _build_nodes(_lex(text, INLINE_GRAMMAR))


def parse_markup(text: str) -> Fragment:
    """Parse a whole markup string into a tree rooted at a :class:`Fragment`."""

    if not text:
        return Fragment()
    return Fragment(_build_nodes(_lex(text, BLOCK_GRAMMAR)))


def unescape_js(text: str) -> str:
    """Undo the backslash escapes of a JavaScript string literal body."""

    return (
        text.replace("\\n", "\n")
        .replace("\\t", "\t")
        .replace("\\'", "'")
        .replace('\\"', '"')
    )
