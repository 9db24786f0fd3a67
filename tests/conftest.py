from __future__ import annotations

import pathlib
from types import SimpleNamespace
from typing import Callable

import pytest

from lodestring.policy import ErrorPolicy
from lodestring.segmenter import Segmenter
from lodestring.structures import LocalizationOptions, TranslationUnit

MESSAGES_JS = """export default messages = {
    // greeting shown on login
    "greeting": "This is a *test* of parsing.",
    "link": "Visit <http://x.com|our site> today",
    "emoji": ":smile:",
    'multi': 'Line one\\nLine two'
};
"""


@pytest.fixture
def options() -> LocalizationOptions:
    return LocalizationOptions(project_id="webapp", source_locale="en-US")


@pytest.fixture
def policy() -> ErrorPolicy:
    return ErrorPolicy()


@pytest.fixture
def segmenter() -> Segmenter:
    return Segmenter()


@pytest.fixture
def write_file(tmp_path: pathlib.Path) -> Callable[[str, str], pathlib.Path]:
    def _write(name: str, content: str) -> pathlib.Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def messages_js(write_file) -> pathlib.Path:
    return write_file("src/messages.js", MESSAGES_JS)


def _make_translation(key: str, source: str, target: str, *, datatype: str = "mrkdwn", locale: str = "fr-FR") -> TranslationUnit:
    return TranslationUnit(
        key=key,
        source=source,
        source_locale="en-US",
        datatype=datatype,
        project="webapp",
        target=target,
        target_locale=locale,
    )


@pytest.fixture
def make_translation():
    return _make_translation


@pytest.fixture
def settings() -> SimpleNamespace:
    return SimpleNamespace(
        LODESTRING_PROJECT_ID="webapp",
        LODESTRING_SOURCE_LOCALE="en-US",
        LODESTRING_PSEUDO_LOCALE="zxx-XX",
        LODESTRING_NOPSEUDO=False,
        LODESTRING_FULLY_TRANSLATED=False,
        LODESTRING_OUTPUT_STYLE="module",
        LODESTRING_CSV_COLUMN_SEPARATOR=None,
        LODESTRING_CSV_ROW_SEPARATOR=None,
        LODESTRING_CSV_HEADER=True,
        LODESTRING_CSV_COLUMNS=None,
        LODESTRING_CSV_LOCALIZABLE=None,
        LODESTRING_CSV_KEY=None,
        LODESTRING_LOG_LEVEL="WARNING",
    )
