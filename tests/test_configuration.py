from __future__ import annotations

import pytest

from lodestring.configuration import _validate_settings, build_options, split_names
from lodestring.errors import ConfigurationError


def test_build_options_registers_pseudo_locale(settings):
    settings.LODESTRING_PSEUDO_LOCALE = "qps-PLOC"
    settings.LODESTRING_OUTPUT_STYLE = "commonjs"

    options = build_options(settings)

    assert options.project_id == "webapp"
    assert options.output_style == "commonjs"
    assert list(options.pseudos) == ["qps-PLOC"]
    assert options.pseudos["qps-PLOC"].get_string("ab") == "[àƀ]"
    assert options.missing_pseudo is None


def test_default_settings_are_valid(settings):
    _validate_settings(settings)


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("LODESTRING_CSV_COLUMN_SEPARATOR", ";;", "single character"),
        ("LODESTRING_CSV_ROW_SEPARATOR", "(", "regular expression"),
        ("LODESTRING_LOG_LEVEL", "LOUD", "logging level"),
    ],
)
def test_invalid_settings_are_reported(settings, name, value, message):
    setattr(settings, name, value)

    with pytest.raises(ConfigurationError, match=message):
        _validate_settings(settings)


def test_key_must_be_a_configured_column(settings):
    settings.LODESTRING_CSV_COLUMNS = "id, label"
    settings.LODESTRING_CSV_KEY = "code"

    with pytest.raises(ConfigurationError, match="LODESTRING_CSV_KEY"):
        _validate_settings(settings)


def test_split_names():
    assert split_names(" id, label ,,notes") == ["id", "label", "notes"]
    assert split_names(None) is None
