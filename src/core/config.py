"""Configuración del Core.

Centraliza variables de entorno (pydantic-settings) para que CLI y
adaptadores (HTTP, snapshots, exportación) lean la misma configuración.
El fichero YAML de BOMs (`config.yaml`) se carga aparte en
`adapters.config_loader` y puede sobrescribir estos valores.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "bommap"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "bommap"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "bommap"
    return Path.home() / ".config" / "bommap"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación."""

    model_config = SettingsConfigDict(
        env_prefix="BOMMAP_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_connect_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout de conexión por request (segundos).",
    )
    http_read_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout de lectura por request (segundos).",
    )
    http_max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Reintentos máximos ante fallos transitorios (timeouts, 5xx, 429).",
    )
    user_agent: str = Field(
        default="bommap/0.1 (+https://github.com/bommap/bommap)",
        min_length=1,
        description="User-Agent para peticiones al repositorio Maven.",
    )

    max_concurrency: int = Field(
        default=8,
        ge=1,
        le=128,
        description="Máximo de resoluciones (fetch+parse+store) simultáneas.",
    )

    maven_repository: str = Field(
        default="https://repo1.maven.org/maven2/",
        min_length=8,
        description="Repositorio Maven por defecto.",
    )
    snapshot_directory: Path = Field(
        default=Path("./snapshots"),
        description="Directorio donde se persisten los snapshots por versión.",
    )
    output_directory: Path = Field(
        default=Path("./docs/data"),
        description="Directorio de salida de los JSON para la capa de presentación.",
    )
    cache_enabled: bool = Field(
        default=True,
        description="Reutilizar snapshots existentes en lugar de volver a resolver.",
    )

    log_level: str = Field(
        default="INFO",
        description="Nivel de logging (DEBUG, INFO, WARNING, ERROR).",
    )
