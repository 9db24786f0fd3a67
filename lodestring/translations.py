"""In-memory translation set and its JSON exchange format."""

from __future__ import annotations

import dataclasses
import json
import logging
import pathlib
from typing import Dict, Iterable, Iterator, List, Optional

from .errors import LodestringError
from .structures import TranslationUnit, hash_key

logger = logging.getLogger(__name__)

__all__ = [
    "TranslationSet",
    "dump_units",
    "hash_key",
    "load_translations",
]

_UNIT_FIELDS = {field.name for field in dataclasses.fields(TranslationUnit)}


class TranslationSet:
    """Units keyed by ``(project, locale, key, datatype)`` in insertion order."""

    def __init__(self, source_locale: str = "en-US") -> None:
        self.source_locale = source_locale
        self._units: Dict[str, TranslationUnit] = {}

    def add(self, unit: TranslationUnit) -> None:
        key = unit.hash_key()
        if key in self._units:
            logger.debug("Replacing unit %s", key)
        self._units[key] = unit

    def add_all(self, units: Iterable[TranslationUnit]) -> None:
        for unit in units:
            self.add(unit)

    def get(self, key: str) -> Optional[TranslationUnit]:
        return self._units.get(key)

    def get_by_key(self, key: str, datatype: Optional[str] = None) -> List[TranslationUnit]:
        return [
            unit
            for unit in self._units.values()
            if unit.key == key and (datatype is None or unit.datatype == datatype)
        ]

    def get_by_source(self, source: str) -> List[TranslationUnit]:
        return [unit for unit in self._units.values() if unit.source == source]

    def get_all(self) -> List[TranslationUnit]:
        return list(self._units.values())

    def __iter__(self) -> Iterator[TranslationUnit]:
        return iter(list(self._units.values()))

    def __len__(self) -> int:
        return len(self._units)


def unit_from_dict(data: Dict[str, object]) -> TranslationUnit:
    missing = [name for name in ("key", "source", "source_locale", "datatype") if name not in data]
    if missing:
        raise LodestringError(f"Translation unit is missing fields: {', '.join(missing)}")
    return TranslationUnit(**{name: value for name, value in data.items() if name in _UNIT_FIELDS})


def load_translations(path: pathlib.Path, source_locale: str = "en-US") -> TranslationSet:
    """Read a JSON list of units written by :func:`dump_units`."""

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise LodestringError(f"Could not read translations from {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise LodestringError(f"Translations file {path} is not valid JSON: {exc}") from exc

    if not isinstance(payload, list):
        raise LodestringError(f"Translations file {path} must contain a JSON list of units.")

    translations = TranslationSet(source_locale)
    for position, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise LodestringError(f"Entry {position} of {path} is not an object.")
        translations.add(unit_from_dict(entry))
    logger.debug("Loaded %d units from %s", len(translations), path)
    return translations


def dump_units(units: Iterable[TranslationUnit], path: pathlib.Path) -> int:
    """Write units as a JSON list and return how many were written."""

    payload = [dataclasses.asdict(unit) for unit in units]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return len(payload)
