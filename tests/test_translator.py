from __future__ import annotations

import json

import pytest

from lodestring.errors import (
    AbortRequested,
    ErrorCategory,
    LodestringError,
    OverwriteRefusedError,
)
from lodestring.pseudo import PseudoBundle
from lodestring.translations import TranslationSet, load_translations
from lodestring.translator import LocalizationRunner, validate_paths


def test_extract_merges_all_files(messages_js, write_file, tmp_path, options):
    table = write_file("src/labels.csv", "label,tip\nSave,Store it\n")
    runner = LocalizationRunner(options=options)
    output = tmp_path / "units" / "en.json"

    summary, units = runner.extract([messages_js, table], output)

    assert summary.total_files == 2
    assert summary.total_units == 5
    assert summary.units_per_file == {str(messages_js): 3, str(table): 2}
    assert summary.total_errors == 0
    assert [unit.key for unit in load_translations(output).get_all()] == [
        unit.key for unit in units.get_all()
    ]


def test_extract_without_output_writes_nothing(messages_js, tmp_path, options):
    summary, units = LocalizationRunner(options=options).extract([messages_js])

    assert summary.output_path is None
    assert len(units) == 3
    assert list(tmp_path.glob("*.json")) == []


def test_extract_records_errors_and_continues(messages_js, write_file, options):
    broken = write_file("src/broken.json", "[1, 2")
    runner = LocalizationRunner(options=options)

    summary, _units = runner.extract([broken, messages_js])

    assert summary.total_units == 3
    assert summary.total_errors == 1
    assert len(runner.error_policy.messages(ErrorCategory.FORMAT)) == 1


def test_extract_fail_fast_aborts(messages_js, write_file, options):
    broken = write_file("src/broken.json", "[1, 2")

    with pytest.raises(AbortRequested):
        LocalizationRunner(options=options, fail_fast=True).extract([broken, messages_js])


def test_localize_collects_new_units(messages_js, tmp_path, options, make_translation):
    translations = TranslationSet()
    translations.add(
        make_translation(
            "greeting",
            "This is a <c0>test</c0> of parsing.",
            "Ceci est un <c0>essai</c0> de l'analyse.",
        )
    )
    runner = LocalizationRunner(options=options)

    summary = runner.localize([messages_js], translations, ["fr-FR", "de-DE"], tmp_path / "out")

    assert summary.written_paths == [
        tmp_path / "out" / "messages_fr-FR.js",
        tmp_path / "out" / "messages_de-DE.js",
    ]
    assert sorted((unit.target_locale, unit.key) for unit in summary.new_units) == [
        ("de-DE", "greeting"),
        ("de-DE", "link"),
        ("de-DE", "multi"),
        ("fr-FR", "link"),
        ("fr-FR", "multi"),
    ]


def test_localize_csv_with_configured_separator(write_file, tmp_path, options, make_translation):
    table = write_file("src/labels.csv", "label;tip\nSave;Store it\n")
    translations = TranslationSet()
    translations.add(make_translation("Save", "Save", "Enregistrer", datatype="x-csv"))
    translations.add(make_translation("Store it", "Store it", "Garde-le", datatype="x-csv"))
    runner = LocalizationRunner(
        options=options,
        csv_options={"column_separator": ";", "row_separator": None},
    )

    summary = runner.localize([table], translations, ["fr-FR"])

    assert summary.new_units == []
    assert (tmp_path / "src" / "labels_fr-FR.csv").read_text(encoding="utf-8") == (
        "label;tip\nEnregistrer;Garde-le"
    )


def test_localize_to_pseudo_locale(messages_js, tmp_path, options):
    options.pseudos = {"zxx-XX": PseudoBundle("zxx-XX")}
    summary = LocalizationRunner(options=options).localize([messages_js], None, ["zxx-XX"], tmp_path)

    content = summary.written_paths[0].read_text(encoding="utf-8")
    localized = json.loads(content.split(" = ", 1)[1].rstrip(";\n"))
    assert localized["link"] == "[Ṽíšíţ <http://x.com|öüŕ šíţë> ţöđàÿ]"
    assert summary.new_units == []


def test_validate_paths_rejects_missing_input(tmp_path):
    with pytest.raises(FileNotFoundError):
        validate_paths([tmp_path / "absent.js"])


def test_validate_paths_rejects_directories(tmp_path):
    with pytest.raises(LodestringError):
        validate_paths([tmp_path])


def test_validate_paths_requires_input():
    with pytest.raises(LodestringError):
        validate_paths([])


def test_validate_paths_refuses_existing_output(messages_js, write_file):
    existing = write_file("units.json", "[]")

    with pytest.raises(OverwriteRefusedError):
        validate_paths([messages_js], existing)

    validate_paths([messages_js], existing, force_overwrite=True)


def test_validate_paths_refuses_input_as_output(messages_js):
    with pytest.raises(OverwriteRefusedError):
        validate_paths([messages_js], messages_js, force_overwrite=True)
