"""Pseudo-localization of source strings."""

from __future__ import annotations

import re
from typing import List, Optional

ACCENTED = dict(
    zip(
        "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ",
        "àƀçđëƒğĥíĵķľɱñöþʠŕšţüvŵxÿžÀßÇĐËƑĞĤÍĴĶĽṀÑÖÞǪŔŠŢÜṼŴXŸŽ",
    )
)

# Placeholders, {named} parameters and printf-style markers survive as-is.
PROTECTED_PATTERN = re.compile(
    r"</?c\d+/?>"
    r"|\{[^{}]*\}"
    r"|%(?:\d+\$)?[-+ 0#]*\d*(?:\.\d+)?[sdifxXeEgGcuo%@]"
)


class PseudoBundle:
    """Produces recognisably fake translations for testing layouts."""

    def __init__(self, locale: str = "zxx-XX", source_locale: Optional[str] = None) -> None:
        self.locale = locale
        self.source_locale = source_locale

    def get_string(self, source: str) -> str:
        pieces: List[str] = []
        cursor = 0
        for match in PROTECTED_PATTERN.finditer(source):
            pieces.append(self._accent(source[cursor:match.start()]))
            pieces.append(match.group(0))
            cursor = match.end()
        pieces.append(self._accent(source[cursor:]))
        return "[" + "".join(pieces) + "]"

    @staticmethod
    def _accent(text: str) -> str:
        return "".join(ACCENTED.get(char, char) for char in text)
