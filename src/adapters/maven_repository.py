"""Acceso HTTP a un repositorio Maven (layout estándar `maven2`).

URLs:
- metadata:   {base}/{groupPath}/{artifactId}/maven-metadata.xml
- descriptor: {base}/{groupPath}/{artifactId}/{version}/{artifactId}-{version}.pom

Una instancia está ligada a una URL base y a un `httpx.AsyncClient` que se
crea una vez y se comparte entre todas las peticiones.
"""

from __future__ import annotations

import logging

import httpx

from adapters.http_client import fetch_bytes
from core.domain.models import ArtifactCoordinate

logger = logging.getLogger(__name__)


def group_path(group_id: str) -> str:
    return group_id.replace(".", "/")


class MavenRepository:
    """Implementa `DescriptorFetcher` y `MetadataSource` sobre HTTP."""

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient,
        *,
        max_retries: int = 3,
        backoff_seconds: float = 1.25,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds

    def metadata_url(self, group_id: str, artifact_id: str) -> str:
        return f"{self.base_url}/{group_path(group_id)}/{artifact_id}/maven-metadata.xml"

    def pom_url(self, coordinate: ArtifactCoordinate) -> str:
        artifact_id = coordinate.artifact_id
        version = coordinate.version
        return (
            f"{self.base_url}/{group_path(coordinate.group_id)}/{artifact_id}/"
            f"{version}/{artifact_id}-{version}.pom"
        )

    async def _get(self, url: str) -> bytes:
        return await fetch_bytes(
            self._client,
            url,
            max_retries=self._max_retries,
            backoff_seconds=self._backoff_seconds,
        )

    async def fetch_metadata(self, group_id: str, artifact_id: str) -> bytes:
        url = self.metadata_url(group_id, artifact_id)
        logger.debug("Fetching metadata from %s", url)
        return await self._get(url)

    async def fetch_pom(self, coordinate: ArtifactCoordinate) -> bytes:
        url = self.pom_url(coordinate)
        logger.info("Downloading POM from %s", url)
        return await self._get(url)

    async def __call__(self, coordinate: ArtifactCoordinate) -> bytes:
        return await self.fetch_pom(coordinate)
