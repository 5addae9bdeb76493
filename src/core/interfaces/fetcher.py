"""Contratos de acceso al repositorio Maven.

`DescriptorFetcher` es lo único que el resolvedor de POMs necesita del mundo
exterior: bytes crudos para una coordenada exacta. Los fallos se expresan con
`NotFoundError` / `NetworkError` del dominio.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import ArtifactCoordinate


@runtime_checkable
class DescriptorFetcher(Protocol):
    """Callable asíncrono `coordinate -> bytes` del descriptor (POM)."""

    async def __call__(self, coordinate: ArtifactCoordinate) -> bytes:
        ...


@runtime_checkable
class MetadataSource(Protocol):
    """Fuente de `maven-metadata.xml` para un groupId/artifactId."""

    async def fetch_metadata(self, group_id: str, artifact_id: str) -> bytes:
        ...
