"""Carga de `config.yaml` (lista de BOMs + settings).

Los valores de `settings` que no aparecen en el YAML se toman de
`AppSettings` (variables de entorno `BOMMAP_*` / `.env`).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from core.config import AppSettings
from core.domain.bom_config import BomConfig
from core.domain.errors import ConfigError


def _defaults_from(settings: AppSettings) -> dict[str, Any]:
    return {
        "mavenRepository": settings.maven_repository,
        "snapshotDirectory": str(settings.snapshot_directory),
        "outputDirectory": str(settings.output_directory),
        "cacheEnabled": settings.cache_enabled,
    }


def load_bom_config(path: Path, settings: AppSettings | None = None) -> BomConfig:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path.resolve()}")
    if path.suffix not in (".yaml", ".yml"):
        raise ConfigError("Config file must be a YAML file")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")

    merged = _defaults_from(settings or AppSettings())
    raw_settings = data.get("settings") or {}
    if not isinstance(raw_settings, dict):
        raise ConfigError("`settings` must be a mapping")
    merged.update(raw_settings)

    try:
        return BomConfig.model_validate({**data, "settings": merged})
    except ValidationError as exc:
        raise ConfigError(f"Invalid config {path}: {exc}") from exc
