"""Exportación JSON para la capa de presentación.

Ficheros (bajo `output_directory`):
- manifest.json                               {generated, boms: [...]}
- {groupId}.{artifactId}/metadata.json       {groupId, artifactId, versions}
- {groupId}.{artifactId}/{version}.json      {version, artifacts}
- boms.json                                  todo lo anterior en un único fichero

JSON UTF-8, `indent=2`, claves en camelCase.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Mapping, Sequence

from pydantic import BaseModel, ValidationError

from core.domain.bom_config import BomDefinition
from core.domain.errors import ParseError
from core.domain.models import (
    BomManifest,
    BomManifestEntry,
    BomMetadata,
    CombinedBom,
    CombinedData,
    ManagedArtifactSet,
    VersionData,
    is_safe_path_segment,
)
from core.domain.versions import sort_versions

logger = logging.getLogger(__name__)


def write_json(model: BaseModel, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = model.model_dump(mode="json", by_alias=True)
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2) + "\n",
        encoding="utf-8",
    )
    return output_path


def load_version_data(path: Path) -> VersionData:
    try:
        return VersionData.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise ParseError(f"Invalid version data: {exc}", source=str(path)) from exc


def _check_segment(value: str, parent: Path) -> None:
    if not is_safe_path_segment(value):
        raise ParseError(f"Refusing to write {value!r} as a file name", source=str(parent))


def version_data_from(version: str, artifacts: ManagedArtifactSet) -> VersionData:
    return VersionData(version=version, artifacts=sorted(artifacts.values(), key=lambda a: a.key))


class ManifestExporter:
    """Escribe los ficheros que consume la UI a partir de los snapshots resueltos."""

    def __init__(self, output_directory: Path | str) -> None:
        self.output_directory = Path(output_directory)

    def bom_directory(self, bom: BomDefinition) -> Path:
        _check_segment(bom.directory, self.output_directory)
        return self.output_directory / bom.directory

    def export_bom(
        self,
        bom: BomDefinition,
        sets: Mapping[str, ManagedArtifactSet],
    ) -> BomManifestEntry | None:
        """Exporta metadata + un fichero por versión. `None` si no hay versiones."""

        versions = sort_versions(sets)
        if not versions:
            logger.warning("No snapshots found for BOM: %s", bom.key)
            return None

        bom_dir = self.bom_directory(bom)
        for version in versions:
            _check_segment(version, bom_dir)
        for version in versions:
            write_json(version_data_from(version, sets[version]), bom_dir / f"{version}.json")

        metadata = BomMetadata(group_id=bom.group_id, artifact_id=bom.artifact_id, versions=versions)
        write_json(metadata, bom_dir / "metadata.json")
        logger.info("Generated %d version files for %s", len(versions), bom.directory)

        return BomManifestEntry(
            group_id=bom.group_id,
            artifact_id=bom.artifact_id,
            directory=bom.directory,
            version_count=len(versions),
        )

    def export_manifest(self, entries: Sequence[BomManifestEntry]) -> Path:
        path = write_json(BomManifest(boms=list(entries)), self.output_directory / "manifest.json")
        logger.info("JSON manifest generated: %s", path)
        return path

    def export_combined(
        self,
        boms: Sequence[tuple[BomDefinition, Mapping[str, ManagedArtifactSet]]],
    ) -> Path:
        combined = CombinedData(
            boms=[
                CombinedBom(
                    group_id=bom.group_id,
                    artifact_id=bom.artifact_id,
                    directory=bom.directory,
                    versions=[version_data_from(v, sets[v]) for v in sort_versions(sets)],
                )
                for bom, sets in boms
                if sets
            ]
        )
        return write_json(combined, self.output_directory / "boms.json")
