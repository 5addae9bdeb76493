"""Shared fixtures: POM/metadata builders and a fake Maven repository."""

from __future__ import annotations

import asyncio
from collections import Counter
from typing import Iterable

import httpx
import pytest
import pytest_asyncio

from adapters.maven_repository import MavenRepository, group_path

BASE_URL = "https://repo.test/maven2"
POM_NS = "http://maven.apache.org/POM/4.0.0"


def make_pom(
    *,
    group_id: str | None = None,
    artifact_id: str | None = None,
    version: str | None = None,
    parent: tuple[str, str, str] | None = None,
    properties: dict[str, str] | None = None,
    dependencies: Iterable[tuple[str | None, str | None, str | None]] = (),
    namespace: bool = True,
) -> str:
    parts = [f'<project xmlns="{POM_NS}">' if namespace else "<project>"]
    parts.append("<modelVersion>4.0.0</modelVersion>")
    if parent:
        g, a, v = parent
        parts.append(f"<parent><groupId>{g}</groupId><artifactId>{a}</artifactId><version>{v}</version></parent>")
    if group_id:
        parts.append(f"<groupId>{group_id}</groupId>")
    if artifact_id:
        parts.append(f"<artifactId>{artifact_id}</artifactId>")
    if version:
        parts.append(f"<version>{version}</version>")
    if properties:
        parts.append("<properties>")
        parts.extend(f"<{k}>{v}</{k}>" for k, v in properties.items())
        parts.append("</properties>")
    deps = list(dependencies)
    if deps:
        parts.append("<dependencyManagement><dependencies>")
        for g, a, v in deps:
            parts.append("<dependency>")
            if g is not None:
                parts.append(f"<groupId>{g}</groupId>")
            if a is not None:
                parts.append(f"<artifactId>{a}</artifactId>")
            if v is not None:
                parts.append(f"<version>{v}</version>")
            parts.append("<scope>import</scope><type>pom</type>")
            parts.append("</dependency>")
        parts.append("</dependencies></dependencyManagement>")
    parts.append("</project>")
    return "".join(parts)


def make_metadata(group_id: str, artifact_id: str, versions: Iterable[str]) -> str:
    versions = list(versions)
    body = "".join(f"<version>{v}</version>" for v in versions)
    latest = versions[-1] if versions else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<metadata><groupId>{group_id}</groupId><artifactId>{artifact_id}</artifactId>"
        f"<versioning><latest>{latest}</latest><release>{latest}</release>"
        f"<versions>{body}</versions></versioning></metadata>"
    )


class FakeMavenServer:
    """In-memory Maven repository served through `httpx.MockTransport`.

    `delay` makes every request wait, so `peak_in_flight` reflects how many
    requests the client had open at the same time.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.routes: dict[str, httpx.Response | Exception] = {}
        self.calls: Counter[str] = Counter()
        self.delay = delay
        self.in_flight = 0
        self.peak_in_flight = 0
        self.transport = httpx.MockTransport(self._handle)

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return self._respond(request)
        finally:
            self.in_flight -= 1

    def _respond(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls[url] += 1
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        # Response objects are single-use; hand out a fresh one per request.
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    def pom_url(self, group_id: str, artifact_id: str, version: str) -> str:
        return f"{BASE_URL}/{group_path(group_id)}/{artifact_id}/{version}/{artifact_id}-{version}.pom"

    def metadata_url(self, group_id: str, artifact_id: str) -> str:
        return f"{BASE_URL}/{group_path(group_id)}/{artifact_id}/maven-metadata.xml"

    def add_pom(self, group_id: str, artifact_id: str, version: str, body: str) -> str:
        url = self.pom_url(group_id, artifact_id, version)
        self.routes[url] = httpx.Response(200, text=body)
        return url

    def add_metadata(self, group_id: str, artifact_id: str, versions: Iterable[str]) -> str:
        url = self.metadata_url(group_id, artifact_id)
        self.routes[url] = httpx.Response(200, text=make_metadata(group_id, artifact_id, versions))
        return url

    def fail(self, url: str, response: httpx.Response | Exception) -> None:
        self.routes[url] = response

    def client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, **kwargs)


@pytest.fixture
def maven_server() -> FakeMavenServer:
    return FakeMavenServer()


@pytest_asyncio.fixture
async def repository(maven_server: FakeMavenServer):
    async with maven_server.client() as client:
        yield MavenRepository(BASE_URL, client, max_retries=0, backoff_seconds=0)
