"""Modelos del dominio (Pydantic v2).

Estos modelos describen *qué* es la información (coordenadas, snapshots,
resultados de comparación), no *cómo* se obtiene.

Convenciones:
- Atributos en snake_case; serialización en camelCase (`by_alias=True`), que
  es el formato de los snapshots persistidos y de los JSON emitidos.
- `ManagedArtifactSet` es un `dict` plano `groupId:artifactId -> ArtifactCoordinate`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, TypeAlias

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


def artifact_key(group_id: str, artifact_id: str) -> str:
    """Clave de identidad usada al comparar (la versión no forma parte)."""

    return f"{group_id}:{artifact_id}"


def is_safe_path_segment(value: str) -> bool:
    """`True` si `value` puede usarse tal cual como un único nombre de fichero.

    groupId, artifactId y versiones terminan en rutas de snapshots y de
    exportación; no pueden contener separadores ni ser `.`/`..`.
    """

    if not value or value in (".", ".."):
        return False
    return not any(ch in value for ch in ("/", "\\", "\x00"))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArtifactCoordinate(BaseModel):
    """Tripleta inmutable groupId:artifactId:version."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    group_id: str = Field(..., min_length=1, alias="groupId")
    artifact_id: str = Field(..., min_length=1, alias="artifactId")
    version: str = Field(..., min_length=1)

    @property
    def key(self) -> str:
        return artifact_key(self.group_id, self.artifact_id)

    @property
    def coordinates(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    def __str__(self) -> str:
        return self.coordinates


ManagedArtifactSet: TypeAlias = dict[str, ArtifactCoordinate]


def build_artifact_set(artifacts: Iterable[ArtifactCoordinate]) -> ManagedArtifactSet:
    """Indexa artefactos por clave; una clave repetida se queda con el último."""

    out: ManagedArtifactSet = {}
    for artifact in artifacts:
        out[artifact.key] = artifact
    return out


class BomInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    group_id: str = Field(..., min_length=1, alias="groupId")
    artifact_id: str = Field(..., min_length=1, alias="artifactId")
    version: str = Field(..., min_length=1)
    extracted_at: datetime = Field(default_factory=_utcnow, alias="extractedAt")


class VersionSnapshot(BaseModel):
    """Registro persistido de una versión de BOM ya resuelta.

    Se escribe una vez; un refresh forzado produce un registro nuevo que
    reemplaza al anterior bajo la misma clave.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    bom_info: BomInfo = Field(..., alias="bomInfo")
    artifacts: list[ArtifactCoordinate] = Field(default_factory=list)

    @classmethod
    def create(
        cls,
        coordinate: ArtifactCoordinate,
        artifacts: ManagedArtifactSet,
        *,
        extracted_at: datetime | None = None,
    ) -> "VersionSnapshot":
        info = BomInfo(
            group_id=coordinate.group_id,
            artifact_id=coordinate.artifact_id,
            version=coordinate.version,
            extracted_at=extracted_at or _utcnow(),
        )
        return cls(bom_info=info, artifacts=list(artifacts.values()))

    @property
    def coordinate(self) -> ArtifactCoordinate:
        return ArtifactCoordinate(
            group_id=self.bom_info.group_id,
            artifact_id=self.bom_info.artifact_id,
            version=self.bom_info.version,
        )

    def artifact_set(self) -> ManagedArtifactSet:
        return build_artifact_set(self.artifacts)


class ArtifactUpdate(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    group_id: str = Field(..., alias="groupId")
    artifact_id: str = Field(..., alias="artifactId")
    from_version: str = Field(..., alias="fromVersion")
    to_version: str = Field(..., alias="toVersion")

    @property
    def key(self) -> str:
        return artifact_key(self.group_id, self.artifact_id)


class ComparisonResult(BaseModel):
    """Resultado efímero de comparar dos versiones de un mismo BOM.

    Las cuatro listas son disjuntas y juntas cubren la unión de claves de
    ambos conjuntos; cada una viene ordenada por `groupId:artifactId`.
    """

    model_config = ConfigDict(populate_by_name=True)

    from_version: str = Field(..., alias="fromVersion")
    to_version: str = Field(..., alias="toVersion")
    added: list[ArtifactCoordinate] = Field(default_factory=list)
    removed: list[ArtifactCoordinate] = Field(default_factory=list)
    updated: list[ArtifactUpdate] = Field(default_factory=list)
    unchanged: list[ArtifactCoordinate] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.updated)


# Formatos emitidos para la capa de presentación.


class BomManifestEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(..., alias="groupId")
    artifact_id: str = Field(..., alias="artifactId")
    directory: str
    version_count: int = Field(..., ge=0, alias="versionCount")


class BomManifest(BaseModel):
    generated: datetime = Field(default_factory=_utcnow)
    boms: list[BomManifestEntry] = Field(default_factory=list)


class BomMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(..., alias="groupId")
    artifact_id: str = Field(..., alias="artifactId")
    versions: list[str] = Field(default_factory=list)


class VersionData(BaseModel):
    version: str
    artifacts: list[ArtifactCoordinate] = Field(default_factory=list)

    def artifact_set(self) -> ManagedArtifactSet:
        return build_artifact_set(self.artifacts)


class CombinedBom(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(..., alias="groupId")
    artifact_id: str = Field(..., alias="artifactId")
    directory: str
    versions: list[VersionData] = Field(default_factory=list)


class CombinedData(BaseModel):
    generated: datetime = Field(default_factory=_utcnow)
    boms: list[CombinedBom] = Field(default_factory=list)
