"""BOM extraction orchestration.

This module drives the batch flow the CLI exposes as ``generate``:

1. discover the release versions of every configured BOM;
2. push every (BOM, version) pair through the snapshot store, resolving the
   POM only on a cache miss;
3. emit the presentation files from whatever snapshots exist.

All network work shares one ``asyncio.Semaphore`` so the remote repository
never sees more than ``max_concurrency`` requests in flight from us. A
failing BOM (discovery) or a failing version (resolution) is recorded in
the report and the rest of the batch keeps going.

It also hosts `BomComparator`, the offline comparison query surface: it only
reads snapshots, so it works with zero network access.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

import httpx

from adapters.manifest_exporter import ManifestExporter
from adapters.maven_repository import MavenRepository
from adapters.snapshot_store import SnapshotStore
from core.domain.bom_config import BomDefinition, BomSettings
from core.domain.errors import BomMapError, VersionNotFoundError
from core.domain.models import (
    ArtifactCoordinate,
    BomManifestEntry,
    ComparisonResult,
    ManagedArtifactSet,
)
from core.services.diff_engine import compare_sets
from core.services.pom_resolver import resolve
from core.services.version_locator import discover_versions

logger = logging.getLogger(__name__)


@dataclass
class ExtractionRequest:
    """Parameters that control one extraction batch."""

    boms: Sequence[BomDefinition]
    force: bool = False
    max_concurrency: int = 8
    max_retries: int = 3
    backoff_seconds: float = 1.25


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress, warnings)."""

    warning: Callable[[str], None] | None = None
    versions_found: Callable[[BomDefinition, int], None] | None = None
    version_done: Callable[[BomDefinition, str, str], None] | None = None


@dataclass
class BomExtraction:
    """Outcome of one BOM inside a batch."""

    bom: BomDefinition
    repository_url: str
    versions: list[str] = field(default_factory=list)
    extracted: list[str] = field(default_factory=list)
    cached: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    discovery_error: str | None = None

    @property
    def discovery_failed(self) -> bool:
        return self.discovery_error is not None


@dataclass
class ExtractionReport:
    extractions: list[BomExtraction] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def failed_versions(self) -> int:
        return sum(len(e.failures) for e in self.extractions)


@dataclass
class GenerationResult:
    report: ExtractionReport
    manifest_path: Path
    combined_path: Path
    entries: list[BomManifestEntry] = field(default_factory=list)


def parse_bom_key(bom_key: str) -> tuple[str, str]:
    """Split ``groupId:artifactId``."""

    parts = bom_key.split(":")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"BOM key must look like groupId:artifactId, got {bom_key!r}")
    return parts[0], parts[1]


async def extract_all(
    *,
    settings: BomSettings,
    request: ExtractionRequest,
    client: httpx.AsyncClient,
    store: SnapshotStore,
    hooks: PipelineHooks | None = None,
) -> ExtractionReport:
    hooks = hooks or PipelineHooks()
    report = ExtractionReport()
    sem = asyncio.Semaphore(max(1, request.max_concurrency))
    repositories: dict[str, MavenRepository] = {}

    def warn(message: str) -> None:
        report.warnings.append(message)
        if hooks.warning:
            hooks.warning(message)

    def repository_for(bom: BomDefinition) -> MavenRepository:
        url = settings.repository_for(bom)
        if url not in repositories:
            repositories[url] = MavenRepository(
                url,
                client,
                max_retries=request.max_retries,
                backoff_seconds=request.backoff_seconds,
            )
        return repositories[url]

    async def discover(extraction: BomExtraction) -> None:
        bom = extraction.bom
        repository = repository_for(bom)
        async with sem:
            try:
                extraction.versions = await discover_versions(repository, bom.group_id, bom.artifact_id)
            except BomMapError as exc:
                extraction.discovery_error = str(exc)
                logger.error("Error fetching versions for %s: %s", bom.key, exc)
                warn(f"Version discovery failed for {bom.key}: {exc}")
                return
        if not extraction.versions:
            warn(f"No versions found for {bom.key}")
        if hooks.versions_found:
            hooks.versions_found(bom, len(extraction.versions))

    async def extract_one(extraction: BomExtraction, version: str) -> None:
        bom = extraction.bom
        repository = repository_for(bom)
        coordinate = ArtifactCoordinate(group_id=bom.group_id, artifact_id=bom.artifact_id, version=version)

        async def resolver(c: ArtifactCoordinate) -> ManagedArtifactSet:
            return await resolve(c, repository)

        async with sem:
            cached = False
            try:
                cached = not request.force and store.has_snapshot(coordinate)
                await store.get_or_resolve(coordinate, resolver, force=request.force)
            except Exception as exc:
                extraction.failures[version] = f"{type(exc).__name__}: {exc}"
                logger.error("Failed to extract %s: %s", coordinate, exc)
                warn(f"Failed to extract {coordinate}: {exc}")
                status = "failed"
            else:
                (extraction.cached if cached else extraction.extracted).append(version)
                status = "cached" if cached else "extracted"
        if hooks.version_done:
            hooks.version_done(bom, version, status)

    extractions = [
        BomExtraction(bom=bom, repository_url=settings.repository_for(bom)) for bom in request.boms
    ]
    report.extractions.extend(extractions)
    logger.info("Processing %d BOM(s)", len(extractions))

    await asyncio.gather(*(discover(e) for e in extractions))
    await asyncio.gather(*(extract_one(e, v) for e in extractions for v in e.versions))
    return report


def collect_snapshots(store: SnapshotStore, bom: BomDefinition) -> dict[str, ManagedArtifactSet]:
    """Every stored version of ``bom`` as ``version -> set`` (no network)."""

    sets: dict[str, ManagedArtifactSet] = {}
    for version in store.list_versions(bom.group_id, bom.artifact_id):
        coordinate = ArtifactCoordinate(group_id=bom.group_id, artifact_id=bom.artifact_id, version=version)
        snapshot = store.load_snapshot(coordinate)
        if snapshot is not None:
            sets[version] = snapshot.artifact_set()
    return sets


def emit_all(
    *,
    boms: Sequence[BomDefinition],
    store: SnapshotStore,
    exporter: ManifestExporter,
) -> tuple[list[BomManifestEntry], Path, Path]:
    logger.info("Generating JSON data in %s", exporter.output_directory)
    entries: list[BomManifestEntry] = []
    combined: list[tuple[BomDefinition, dict[str, ManagedArtifactSet]]] = []
    for bom in boms:
        sets = collect_snapshots(store, bom)
        entry = exporter.export_bom(bom, sets)
        if entry is not None:
            entries.append(entry)
            combined.append((bom, sets))
    manifest_path = exporter.export_manifest(entries)
    combined_path = exporter.export_combined(combined)
    return entries, manifest_path, combined_path


async def generate(
    *,
    settings: BomSettings,
    request: ExtractionRequest,
    client: httpx.AsyncClient,
    store: SnapshotStore,
    exporter: ManifestExporter,
    hooks: PipelineHooks | None = None,
) -> GenerationResult:
    report = await extract_all(
        settings=settings,
        request=request,
        client=client,
        store=store,
        hooks=hooks,
    )
    entries, manifest_path, combined_path = emit_all(boms=request.boms, store=store, exporter=exporter)
    return GenerationResult(
        report=report,
        manifest_path=manifest_path,
        combined_path=combined_path,
        entries=entries,
    )


class BomComparator:
    """Compare two already-snapshotted versions of one BOM."""

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store

    def known_versions(self, bom_key: str) -> list[str]:
        group_id, artifact_id = parse_bom_key(bom_key)
        return self._store.list_versions(group_id, artifact_id)

    def load_set(self, bom_key: str, version: str) -> ManagedArtifactSet:
        group_id, artifact_id = parse_bom_key(bom_key)
        coordinate = ArtifactCoordinate(group_id=group_id, artifact_id=artifact_id, version=version)
        snapshot = self._store.load_snapshot(coordinate)
        if snapshot is None:
            raise VersionNotFoundError(bom_key, version)
        return snapshot.artifact_set()

    def compare(self, bom_key: str, from_version: str, to_version: str) -> ComparisonResult:
        from_set = self.load_set(bom_key, from_version)
        to_set = self.load_set(bom_key, to_version)
        return compare_sets(from_set, to_set, from_version, to_version)
