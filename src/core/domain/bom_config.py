"""Modelos del fichero de configuración YAML (`config.yaml`).

Formato:

    boms:
      - groupId: org.springframework.boot
        artifactId: spring-boot-dependencies
        repository: central        # opcional: nombre o URL
    settings:
      mavenRepository: https://repo1.maven.org/maven2/
      snapshotDirectory: ./snapshots
      cacheEnabled: true
      repositories:
        central: https://repo1.maven.org/maven2/
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from core.domain.models import artifact_key, is_safe_path_segment

DEFAULT_REPOSITORY = "https://repo1.maven.org/maven2/"


def _default_repositories() -> dict[str, str]:
    return {
        "central": DEFAULT_REPOSITORY,
        "google": "https://maven.google.com/",
    }


class BomDefinition(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    group_id: str = Field(..., min_length=1, alias="groupId")
    artifact_id: str = Field(..., min_length=1, alias="artifactId")
    repository: str | None = Field(
        default=None,
        description="Nombre de repositorio (clave de `settings.repositories`) o URL directa.",
    )

    @field_validator("group_id", "artifact_id")
    @classmethod
    def validate_path_safe(cls, v: str) -> str:
        if not is_safe_path_segment(v):
            raise ValueError(f"must not contain path separators or be . / ..: {v!r}")
        return v

    @property
    def key(self) -> str:
        return artifact_key(self.group_id, self.artifact_id)

    @property
    def directory(self) -> str:
        """Subdirectorio de salida para la capa de presentación."""

        return f"{self.group_id}.{self.artifact_id}"


class BomSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    maven_repository: str = Field(default=DEFAULT_REPOSITORY, alias="mavenRepository")
    snapshot_directory: Path = Field(default=Path("./snapshots"), alias="snapshotDirectory")
    output_directory: Path = Field(default=Path("./docs/data"), alias="outputDirectory")
    cache_enabled: bool = Field(default=True, alias="cacheEnabled")
    repositories: dict[str, str] = Field(default_factory=_default_repositories)

    def repository_for(self, bom: BomDefinition) -> str:
        """URL base del repositorio Maven para un BOM.

        Orden: repositorio con nombre -> URL literal -> `maven_repository`.
        """

        if bom.repository and bom.repository in self.repositories:
            return self.repositories[bom.repository]
        if bom.repository:
            return bom.repository
        return self.maven_repository


class BomConfig(BaseModel):
    boms: list[BomDefinition] = Field(default_factory=list)
    settings: BomSettings = Field(default_factory=BomSettings)

    def select(self, artifact_id: str | None) -> list[BomDefinition]:
        if artifact_id is None:
            return list(self.boms)
        return [bom for bom in self.boms if bom.artifact_id == artifact_id]
