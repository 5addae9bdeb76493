"""Tests for batch extraction, JSON emission and offline comparison."""

import json

import httpx
import pytest

from adapters.manifest_exporter import ManifestExporter
from adapters.snapshot_store import SnapshotStore
from conftest import BASE_URL, FakeMavenServer, make_pom
from core.domain.bom_config import BomDefinition, BomSettings
from core.domain.errors import VersionNotFoundError
from core.domain.models import ArtifactCoordinate, VersionSnapshot, build_artifact_set
from core.services.bom_pipeline import (
    BomComparator,
    ExtractionRequest,
    PipelineHooks,
    extract_all,
    generate,
    parse_bom_key,
)

DEMO = BomDefinition(group_id="com.example", artifact_id="demo-bom")
BROKEN = BomDefinition(group_id="com.example", artifact_id="broken-bom")


@pytest.fixture
def settings():
    return BomSettings(maven_repository=BASE_URL)


def request_for(*boms, force=False):
    return ExtractionRequest(boms=list(boms), force=force, max_concurrency=2, max_retries=0, backoff_seconds=0)


def publish_demo(server):
    server.add_metadata(DEMO.group_id, DEMO.artifact_id, ["1.0.0", "1.1.0", "1.2.0-SNAPSHOT"])
    server.add_pom(DEMO.group_id, DEMO.artifact_id, "1.0.0", make_pom(dependencies=[("g", "a", "1.0"), ("g", "b", "2.0")]))
    server.add_pom(DEMO.group_id, DEMO.artifact_id, "1.1.0", make_pom(dependencies=[("g", "a", "1.1"), ("g", "c", "1.0")]))


class TestExtractAll:
    @pytest.mark.asyncio
    async def test_extracts_every_release(self, tmp_path, maven_server, settings):
        publish_demo(maven_server)
        store = SnapshotStore(tmp_path)
        done = []
        hooks = PipelineHooks(version_done=lambda bom, version, status: done.append((version, status)))

        async with maven_server.client() as client:
            report = await extract_all(settings=settings, request=request_for(DEMO), client=client, store=store, hooks=hooks)

        (extraction,) = report.extractions
        assert extraction.versions == ["1.0.0", "1.1.0"]
        assert sorted(extraction.extracted) == ["1.0.0", "1.1.0"]
        assert report.failed_versions == 0
        assert sorted(done) == [("1.0.0", "extracted"), ("1.1.0", "extracted")]
        assert store.list_versions(DEMO.group_id, DEMO.artifact_id) == ["1.0.0", "1.1.0"]

    @pytest.mark.asyncio
    async def test_second_run_uses_cache(self, tmp_path, maven_server, settings):
        publish_demo(maven_server)
        store = SnapshotStore(tmp_path)

        async with maven_server.client() as client:
            await extract_all(settings=settings, request=request_for(DEMO), client=client, store=store)
            pom_calls = sum(n for url, n in maven_server.calls.items() if url.endswith(".pom"))
            report = await extract_all(settings=settings, request=request_for(DEMO), client=client, store=store)

        assert sorted(report.extractions[0].cached) == ["1.0.0", "1.1.0"]
        assert sum(n for url, n in maven_server.calls.items() if url.endswith(".pom")) == pom_calls

    @pytest.mark.asyncio
    async def test_force_refetches(self, tmp_path, maven_server, settings):
        publish_demo(maven_server)
        store = SnapshotStore(tmp_path)

        async with maven_server.client() as client:
            await extract_all(settings=settings, request=request_for(DEMO), client=client, store=store)
            report = await extract_all(settings=settings, request=request_for(DEMO, force=True), client=client, store=store)

        assert sorted(report.extractions[0].extracted) == ["1.0.0", "1.1.0"]
        assert maven_server.calls[maven_server.pom_url(DEMO.group_id, DEMO.artifact_id, "1.0.0")] == 2

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, tmp_path, maven_server, settings):
        publish_demo(maven_server)
        maven_server.fail(maven_server.pom_url(DEMO.group_id, DEMO.artifact_id, "1.1.0"), httpx.Response(500))
        store = SnapshotStore(tmp_path)
        warnings = []

        async with maven_server.client() as client:
            report = await extract_all(
                settings=settings,
                request=request_for(BROKEN, DEMO),
                client=client,
                store=store,
                hooks=PipelineHooks(warning=warnings.append),
            )

        broken, demo = report.extractions
        assert broken.discovery_failed
        assert broken.versions == []
        assert demo.extracted == ["1.0.0"]
        assert list(demo.failures) == ["1.1.0"]
        assert report.failed_versions == 1
        assert len(warnings) == 2
        assert not store.has_snapshot(ArtifactCoordinate(group_id="com.example", artifact_id="demo-bom", version="1.1.0"))

    @pytest.mark.asyncio
    async def test_redirect_loop_on_one_bom_does_not_abort_the_batch(self, tmp_path, maven_server, settings):
        loop = BomDefinition(group_id="com.example", artifact_id="loop-bom")
        loop_url = maven_server.metadata_url(loop.group_id, loop.artifact_id)
        maven_server.fail(loop_url, httpx.Response(302, headers={"Location": loop_url}))
        publish_demo(maven_server)
        store = SnapshotStore(tmp_path)

        async with maven_server.client(follow_redirects=True) as client:
            report = await extract_all(settings=settings, request=request_for(loop, DEMO), client=client, store=store)

        looped, demo = report.extractions
        assert looped.discovery_failed
        assert "TooManyRedirects" in looped.discovery_error
        assert sorted(demo.extracted) == ["1.0.0", "1.1.0"]

    @pytest.mark.asyncio
    async def test_in_flight_requests_never_exceed_max_concurrency(self, tmp_path, settings):
        server = FakeMavenServer(delay=0.01)
        versions = [f"1.{n}.0" for n in range(12)]
        server.add_metadata(DEMO.group_id, DEMO.artifact_id, versions)
        for version in versions:
            server.add_pom(DEMO.group_id, DEMO.artifact_id, version, make_pom(dependencies=[("g", "a", version)]))

        async with server.client() as client:
            report = await extract_all(settings=settings, request=request_for(DEMO), client=client, store=SnapshotStore(tmp_path))

        assert len(report.extractions[0].extracted) == 12
        assert server.peak_in_flight == 2

    @pytest.mark.asyncio
    async def test_named_repository(self, tmp_path, maven_server):
        bom = BomDefinition(group_id="com.example", artifact_id="demo-bom", repository="mirror")
        settings = BomSettings(maven_repository="https://elsewhere.test/", repositories={"mirror": BASE_URL})
        publish_demo(maven_server)

        async with maven_server.client() as client:
            report = await extract_all(settings=settings, request=request_for(bom), client=client, store=SnapshotStore(tmp_path))

        assert report.extractions[0].repository_url == BASE_URL
        assert len(report.extractions[0].extracted) == 2


class TestGenerate:
    @pytest.mark.asyncio
    async def test_writes_presentation_files(self, tmp_path, maven_server, settings):
        publish_demo(maven_server)
        store = SnapshotStore(tmp_path / "snapshots")
        exporter = ManifestExporter(tmp_path / "out")

        async with maven_server.client() as client:
            result = await generate(
                settings=settings,
                request=request_for(DEMO, BROKEN),
                client=client,
                store=store,
                exporter=exporter,
            )

        assert [e.directory for e in result.entries] == ["com.example.demo-bom"]
        manifest = json.loads(result.manifest_path.read_text(encoding="utf-8"))
        assert manifest["boms"][0]["versionCount"] == 2
        assert (tmp_path / "out" / "com.example.demo-bom" / "1.1.0.json").is_file()
        assert result.combined_path == tmp_path / "out" / "boms.json"


class TestBomComparator:
    def save(self, store, version, *triples):
        coordinate = ArtifactCoordinate(group_id=DEMO.group_id, artifact_id=DEMO.artifact_id, version=version)
        artifacts = build_artifact_set(ArtifactCoordinate(group_id=g, artifact_id=a, version=v) for g, a, v in triples)
        store.save_snapshot(VersionSnapshot.create(coordinate, artifacts))

    def test_compare_offline(self, tmp_path):
        store = SnapshotStore(tmp_path)
        self.save(store, "1.0.0", ("g", "a", "1.0"), ("g", "b", "2.0"))
        self.save(store, "1.1.0", ("g", "a", "1.1"), ("g", "c", "1.0"))
        comparator = BomComparator(store)

        result = comparator.compare(DEMO.key, "1.0.0", "1.1.0")

        assert [a.key for a in result.added] == ["g:c"]
        assert [a.key for a in result.removed] == ["g:b"]
        assert [(u.from_version, u.to_version) for u in result.updated] == [("1.0", "1.1")]
        assert comparator.known_versions(DEMO.key) == ["1.0.0", "1.1.0"]

    def test_unknown_version(self, tmp_path):
        store = SnapshotStore(tmp_path)
        self.save(store, "1.0.0", ("g", "a", "1.0"))

        with pytest.raises(VersionNotFoundError) as excinfo:
            BomComparator(store).compare(DEMO.key, "1.0.0", "9.9.9")
        assert excinfo.value.version == "9.9.9"
        assert excinfo.value.bom_key == DEMO.key

    def test_unknown_bom(self, tmp_path):
        with pytest.raises(VersionNotFoundError):
            BomComparator(SnapshotStore(tmp_path)).compare("org.none:none-bom", "1", "2")


@pytest.mark.parametrize("bad", ["nocolon", "a:b:c", ":a", "a:"])
def test_parse_bom_key_rejects_malformed(bad):
    with pytest.raises(ValueError):
        parse_bom_key(bad)
