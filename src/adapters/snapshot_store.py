"""Persistencia de snapshots por versión (YAML en disco).

Layout:
    {directory}/{groupId}/{artifactId}-{version}.yaml

Formato:
    bomInfo: {groupId, artifactId, version, extractedAt}
    artifacts: [{groupId, artifactId, version}, ...]

Reglas:
- Con `force=False` y un snapshot existente, `get_or_resolve` no llama al
  resolvedor ni toca la red.
- Cada escritura es atómica por clave (fichero temporal + `os.replace`); un
  proceso abortado nunca deja un snapshot a medias.
- Dentro de un proceso, las resoluciones de la misma clave se serializan con
  un `asyncio.Lock` por clave; entre procesos gana el último en escribir.
- Un groupId, artifactId o versión que no sirva como nombre de fichero
  (separadores, `.`, `..`) se rechaza con `ParseError` antes de tocar disco.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Awaitable, Callable

import yaml
from pydantic import ValidationError

from core.domain.errors import ParseError
from core.domain.models import (
    ArtifactCoordinate,
    ManagedArtifactSet,
    VersionSnapshot,
    is_safe_path_segment,
)
from core.domain.versions import sort_versions

logger = logging.getLogger(__name__)

Resolver = Callable[[ArtifactCoordinate], Awaitable[ManagedArtifactSet]]


class SnapshotStore:
    """Caché durable `coordenada completa -> VersionSnapshot`."""

    suffix = ".yaml"

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)
        self._locks: dict[str, asyncio.Lock] = {}

    def _check_segments(self, *values: str) -> None:
        for value in values:
            if not is_safe_path_segment(value):
                raise ParseError(
                    f"Refusing to use {value!r} as part of a snapshot path",
                    source=str(self.directory),
                )

    def path_for(self, coordinate: ArtifactCoordinate) -> Path:
        self._check_segments(coordinate.group_id, coordinate.artifact_id, coordinate.version)
        return (
            self.directory
            / coordinate.group_id
            / f"{coordinate.artifact_id}-{coordinate.version}{self.suffix}"
        )

    def has_snapshot(self, coordinate: ArtifactCoordinate) -> bool:
        return self.path_for(coordinate).is_file()

    def load_snapshot(self, coordinate: ArtifactCoordinate) -> VersionSnapshot | None:
        path = self.path_for(coordinate)
        if not path.is_file():
            return None
        return self.read_file(path)

    def read_file(self, path: Path) -> VersionSnapshot:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
            return VersionSnapshot.model_validate(data)
        except (yaml.YAMLError, ValidationError) as exc:
            raise ParseError(f"Invalid snapshot file: {exc}", source=str(path)) from exc

    def save_snapshot(self, snapshot: VersionSnapshot) -> Path:
        path = self.path_for(snapshot.coordinate)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = snapshot.model_dump(mode="json", by_alias=True)
        text = yaml.safe_dump(payload, sort_keys=False, allow_unicode=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Snapshot saved: %s", path)
        return path

    def _lock_for(self, coordinate: ArtifactCoordinate) -> asyncio.Lock:
        key = coordinate.coordinates
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def get_or_resolve(
        self,
        coordinate: ArtifactCoordinate,
        resolver: Resolver,
        *,
        force: bool = False,
    ) -> ManagedArtifactSet:
        async with self._lock_for(coordinate):
            if not force:
                existing = await asyncio.to_thread(self.load_snapshot, coordinate)
                if existing is not None:
                    logger.debug("Using cached snapshot: %s", self.path_for(coordinate))
                    return existing.artifact_set()

            logger.info("Extracting BOM: %s", coordinate)
            artifacts = await resolver(coordinate)
            snapshot = VersionSnapshot.create(coordinate, artifacts)
            await asyncio.to_thread(self.save_snapshot, snapshot)
            return artifacts

    def list_versions(self, group_id: str, artifact_id: str) -> list[str]:
        """Versiones con snapshot almacenado, en orden ascendente."""

        self._check_segments(group_id, artifact_id)
        group_dir = self.directory / group_id
        if not group_dir.is_dir():
            return []

        versions: list[str] = []
        for path in group_dir.glob(f"{artifact_id}-*{self.suffix}"):
            try:
                snapshot = self.read_file(path)
            except ParseError as exc:
                logger.error("Error reading snapshot %s: %s", path.name, exc)
                continue
            # `foo-*` también casa con `foo-bar-*`: se filtra por bomInfo.
            if snapshot.bom_info.artifact_id == artifact_id:
                versions.append(snapshot.bom_info.version)
        return sort_versions(versions)
