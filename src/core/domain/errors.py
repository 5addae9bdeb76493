"""Taxonomía de errores del dominio.

Reglas:
- Los adaptadores traducen excepciones de librerías (httpx, ElementTree, yaml)
  a estas clases; el Core y la CLI solo conocen esta jerarquía.
- `NetworkError.retryable` indica si un reintento tiene sentido (timeouts,
  5xx, 429, errores de transporte).
"""

from __future__ import annotations


class BomMapError(Exception):
    """Base de todos los errores de bommap."""


class NetworkError(BomMapError):
    """Fallo de transporte, timeout o status HTTP no exitoso."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.retryable = retryable


class NotFoundError(BomMapError):
    """La coordenada no tiene descriptor (o metadata) publicado."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class ParseError(BomMapError):
    """XML/YAML/JSON mal formado o sin la forma esperada."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class VersionNotFoundError(BomMapError):
    """Comparación pedida contra una versión desconocida o sin snapshot."""

    def __init__(self, bom_key: str, version: str) -> None:
        super().__init__(f"Version {version} not found for {bom_key}")
        self.bom_key = bom_key
        self.version = version


class ConfigError(BomMapError):
    """Fichero de configuración ausente o inválido."""
