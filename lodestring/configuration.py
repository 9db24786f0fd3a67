"""Prepper-backed configuration loader for lodestring."""

from __future__ import annotations

import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping, Sequence

from dotenv import dotenv_values
from prepper import (
    Field,
    IoError,
    SchemaError,
    SchemaModel,
    ValidationError,
    model_validator,
)
from prepper.config import ConfigInstance
from prepper.loaders import _parse_file, _path_to_source, discover_file_paths
from prepper.merge import merge_layer
from prepper.provenance import ProvenanceRecorder

from .errors import ConfigurationError
from .pseudo import PseudoBundle
from .structures import LocalizationOptions

APP_NAME = "Lodestring"

OUTPUT_STYLE_SYNONYMS = {
    "esm": "module",
    "es6": "module",
    "es_module": "module",
    "cjs": "commonjs",
    "common_js": "commonjs",
    "node": "commonjs",
}


class LodestringConfig(SchemaModel):
    """Schema describing all supported configuration options."""

    LODESTRING_PROJECT_ID: str = Field(
        default="project",
        description="Project identifier that is part of every translation key.",
    )
    LODESTRING_SOURCE_LOCALE: str = Field(default="en-US")
    LODESTRING_PSEUDO_LOCALE: str = Field(default="zxx-XX")
    LODESTRING_NOPSEUDO: bool = Field(
        default=False,
        description="Never pseudo-localize, not even strings missing a translation.",
    )
    LODESTRING_FULLY_TRANSLATED: bool = Field(
        default=False,
        description="Emit the source text of any message that lacks a translation.",
    )
    LODESTRING_OUTPUT_STYLE: Literal["module", "commonjs"] = Field(default="module")
    LODESTRING_CSV_COLUMN_SEPARATOR: str | None = Field(default=None)
    LODESTRING_CSV_ROW_SEPARATOR: str | None = Field(default=None)
    LODESTRING_CSV_HEADER: bool = Field(default=True)
    LODESTRING_CSV_COLUMNS: str | None = Field(
        default=None,
        description="Comma-separated column names that replace the header row.",
    )
    LODESTRING_CSV_LOCALIZABLE: str | None = Field(
        default=None,
        description="Comma-separated names of the columns to translate (default: all).",
    )
    LODESTRING_CSV_KEY: str | None = Field(
        default=None,
        description="Column that identifies a record when tables are merged.",
    )
    LODESTRING_LOG_LEVEL: str = Field(default="WARNING")

    @model_validator(mode="before")
    def _normalise_output_style(data: Any) -> Any:
        if isinstance(data, dict):
            raw_value = data.get("LODESTRING_OUTPUT_STYLE")
            if isinstance(raw_value, str):
                normalized = raw_value.strip().lower().replace("-", "_")
                normalized = OUTPUT_STYLE_SYNONYMS.get(normalized, normalized)
                if normalized not in {"module", "commonjs"}:
                    normalized = "module"
                data["LODESTRING_OUTPUT_STYLE"] = normalized
        return data


@lru_cache(maxsize=1)
def _load_config_instance(app_dir: Path | None = None) -> ConfigInstance:
    """Load configuration layers once and cache the immutable instance."""

    base_dir = app_dir or Path.cwd()
    try:
        provenance = ProvenanceRecorder()
        combined = _load_discovered_yaml(app_dir=base_dir, provenance=provenance)
        _merge_env_sources(
            combined,
            provenance=provenance,
            app_dir=base_dir,
            schema=LodestringConfig,
        )

        model = LodestringConfig.validate(combined, provenance=provenance)
        _validate_settings(model)

        return ConfigInstance(
            model=model,
            provenance=provenance,
            env_prefix=None,
            schema_cls=LodestringConfig,
        )
    except IoError as exc:
        raise ConfigurationError(f"Configuration files could not be read: {exc}") from exc
    except SchemaError as exc:
        raise ConfigurationError(f"Configuration schema error: {exc}") from exc
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_errors(exc.to_dict())) from exc


def _load_discovered_yaml(
    *,
    app_dir: Path,
    provenance: ProvenanceRecorder,
) -> dict[str, Any]:
    """Load YAML configuration files using Prepper's discovery rules."""

    result: dict[str, Any] = {}
    discovered = discover_file_paths(
        APP_NAME,
        "yaml",
        app_dir=app_dir,
        extra_paths=None,
    )
    for path, label in discovered:
        parsed = _parse_file(path, "yaml")
        if not isinstance(parsed, Mapping):
            raise IoError(f"Invalid configuration file {path}: expected a mapping at the root.")
        source = _path_to_source(label, "yaml", path)
        merge_layer(result, parsed, provenance=provenance, source=source, layer="file")
    return result


def _merge_env_sources(
    target: dict[str, Any],
    *,
    provenance: ProvenanceRecorder,
    app_dir: Path,
    schema: type[SchemaModel],
) -> None:
    """Merge .env and process environment variables into the target mapping."""

    allowed = set(schema.__field_infos__.keys())

    def merge_values(values: Mapping[str, str], *, source_prefix: str) -> None:
        for key, value in sorted(values.items()):
            if key not in allowed:
                continue
            merge_layer(
                target,
                {key: value},
                provenance=provenance,
                source=f"env:{source_prefix}:{key}",
                layer="env",
            )

    dotenv_path = app_dir / ".env"
    if dotenv_path.exists():
        merge_values(
            {k: v for k, v in dotenv_values(dotenv_path).items() if v is not None},
            source_prefix=".env",
        )

    merge_values(
        {k: v for k, v in os.environ.items() if isinstance(v, str)},
        source_prefix="process",
    )


def split_names(value: str | None) -> list[str] | None:
    """Split a comma-separated list of column names."""

    if value is None:
        return None
    return [name.strip() for name in value.split(",") if name.strip()]


def _validate_settings(settings: LodestringConfig) -> None:
    errors: list[str] = []

    separator = settings.LODESTRING_CSV_COLUMN_SEPARATOR
    if separator is not None and len(separator) != 1:
        errors.append("LODESTRING_CSV_COLUMN_SEPARATOR must be a single character.")

    row_separator = settings.LODESTRING_CSV_ROW_SEPARATOR
    if row_separator is not None:
        try:
            re.compile(row_separator)
        except re.error as exc:
            errors.append(f"LODESTRING_CSV_ROW_SEPARATOR is not a valid regular expression: {exc}.")

    columns = split_names(settings.LODESTRING_CSV_COLUMNS)
    key = settings.LODESTRING_CSV_KEY
    if columns is not None and key and key not in columns:
        errors.append(f"LODESTRING_CSV_KEY '{key}' is not one of LODESTRING_CSV_COLUMNS.")

    if not isinstance(logging.getLevelName(settings.LODESTRING_LOG_LEVEL.upper()), int):
        errors.append(f"LODESTRING_LOG_LEVEL '{settings.LODESTRING_LOG_LEVEL}' is not a logging level.")

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise ConfigurationError("Configuration validation errors detected:\n" + bullet_list)


def _format_validation_errors(entries: Sequence[dict[str, Any]]) -> str:
    details: list[str] = []
    for entry in entries:
        path = entry.get("path") or []
        if isinstance(path, (list, tuple)):
            location = ".".join(str(part) for part in path if part not in {None, ""})
        else:
            location = str(path)
        message = str(entry.get("message") or entry.get("msg") or "Invalid value")
        source = entry.get("source")
        origin = f" (source: {source})" if source else ""
        prefix = f"{location}: " if location else ""
        details.append(f"- {prefix}{message}{origin}")
    return "Configuration validation errors detected:\n" + "\n".join(details)


def get_config(app_dir: Path | None = None) -> ConfigInstance:
    """Return the immutable configuration instance."""

    return _load_config_instance(app_dir=app_dir)


def get_settings(app_dir: Path | None = None) -> LodestringConfig:
    """Return the validated schema model for typed access."""

    return get_config(app_dir=app_dir).model()


def build_options(settings: LodestringConfig) -> LocalizationOptions:
    """Translate validated settings into the options the adapters read."""

    return LocalizationOptions(
        project_id=settings.LODESTRING_PROJECT_ID,
        source_locale=settings.LODESTRING_SOURCE_LOCALE,
        pseudo_locale=settings.LODESTRING_PSEUDO_LOCALE,
        nopseudo=settings.LODESTRING_NOPSEUDO,
        fully_translated=settings.LODESTRING_FULLY_TRANSLATED,
        output_style=settings.LODESTRING_OUTPUT_STYLE,
        pseudos={
            settings.LODESTRING_PSEUDO_LOCALE: PseudoBundle(settings.LODESTRING_PSEUDO_LOCALE),
        },
    )
