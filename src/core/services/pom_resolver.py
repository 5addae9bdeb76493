"""POM resolution: descriptor -> managed-artifact set.

Flow for one exact coordinate:

1. fetch + parse the descriptor (failure propagates to the caller);
2. if it names a complete parent, fetch + parse the parent too (failure is
   logged and resolution continues without it);
3. build the property environment: parent properties, overlaid by the
   child's, plus ``project.version`` / ``project.groupId`` /
   ``project.artifactId``;
4. substitute placeholders inside property values in a single pass;
5. substitute placeholders in each complete ``dependencyManagement`` entry
   and index the result by ``groupId:artifactId`` (later entries win).

Substitution is deliberately single-pass: a property whose value references
another property that itself still contains a placeholder keeps the inner
``${...}`` literal. Unknown placeholders are left untouched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from core.domain.errors import NetworkError, NotFoundError, ParseError
from core.domain.models import ArtifactCoordinate, ManagedArtifactSet
from core.interfaces.fetcher import DescriptorFetcher
from core.services.xml_support import child, child_text, parse_xml

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")

PropertyEnvironment = dict[str, str]


@dataclass(frozen=True)
class ParentReference:
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None

    def as_coordinate(self) -> ArtifactCoordinate | None:
        """Coordinate to fetch, only when all three fields are present."""

        if self.group_id and self.artifact_id and self.version:
            return ArtifactCoordinate(
                group_id=self.group_id,
                artifact_id=self.artifact_id,
                version=self.version,
            )
        return None


@dataclass(frozen=True)
class ManagedDependency:
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    scope: str | None = None
    type: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.group_id and self.artifact_id and self.version)


@dataclass(frozen=True)
class PomDocument:
    """Typed view of the parts of a POM this tool reads. Everything is optional."""

    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    parent: ParentReference | None = None
    properties: dict[str, str] = field(default_factory=dict)
    managed_dependencies: list[ManagedDependency] = field(default_factory=list)


def parse_pom(raw: bytes | str, *, source: str | None = None) -> PomDocument:
    root = parse_xml(raw, source=source)
    if root.tag != "project":
        raise ParseError(f"Expected <project> root, got <{root.tag}>", source=source)

    parent_el = child(root, "parent")
    parent = None
    if parent_el is not None:
        parent = ParentReference(
            group_id=child_text(parent_el, "groupId"),
            artifact_id=child_text(parent_el, "artifactId"),
            version=child_text(parent_el, "version"),
        )

    properties: dict[str, str] = {}
    props_el = child(root, "properties")
    if props_el is not None:
        for prop in props_el:
            properties[prop.tag] = (prop.text or "").strip()

    managed: list[ManagedDependency] = []
    deps_el = child(child(root, "dependencyManagement"), "dependencies")
    if deps_el is not None:
        for dep in deps_el.findall("dependency"):
            managed.append(
                ManagedDependency(
                    group_id=child_text(dep, "groupId"),
                    artifact_id=child_text(dep, "artifactId"),
                    version=child_text(dep, "version"),
                    scope=child_text(dep, "scope"),
                    type=child_text(dep, "type"),
                )
            )

    return PomDocument(
        group_id=child_text(root, "groupId"),
        artifact_id=child_text(root, "artifactId"),
        version=child_text(root, "version"),
        parent=parent,
        properties=properties,
        managed_dependencies=managed,
    )


def substitute(value: str, environment: PropertyEnvironment) -> str:
    """Replace every ``${name}`` found in ``value``, left to right, once."""

    return PLACEHOLDER.sub(lambda m: environment.get(m.group(1), m.group(0)), value)


def build_environment(pom: PomDocument, parent: PomDocument | None) -> PropertyEnvironment:
    raw: PropertyEnvironment = {}
    if parent is not None:
        raw.update(parent.properties)
    raw.update(pom.properties)

    raw["project.version"] = pom.version or (parent.version if parent else None) or ""
    raw["project.groupId"] = pom.group_id or (parent.group_id if parent else None) or ""
    # artifactId nunca se hereda del padre.
    raw["project.artifactId"] = pom.artifact_id or ""

    return {key: substitute(value, raw) for key, value in raw.items()}


def extract_managed_artifacts(
    pom: PomDocument,
    environment: PropertyEnvironment,
) -> ManagedArtifactSet:
    artifacts: ManagedArtifactSet = {}
    for dep in pom.managed_dependencies:
        if not dep.is_complete:
            continue
        group_id = substitute(dep.group_id or "", environment)
        artifact_id = substitute(dep.artifact_id or "", environment)
        version = substitute(dep.version or "", environment)
        if not (group_id and artifact_id and version):
            logger.warning(
                "Skipping managed dependency %s:%s:%s (resolved to an empty field)",
                dep.group_id,
                dep.artifact_id,
                dep.version,
            )
            continue
        coordinate = ArtifactCoordinate(group_id=group_id, artifact_id=artifact_id, version=version)
        artifacts[coordinate.key] = coordinate
    return artifacts


async def _load_parent(
    reference: ParentReference | None,
    fetch: DescriptorFetcher,
) -> PomDocument | None:
    coordinate = reference.as_coordinate() if reference else None
    if coordinate is None:
        return None

    logger.info("Found parent POM: %s", coordinate)
    try:
        raw = await fetch(coordinate)
        return parse_pom(raw, source=str(coordinate))
    except (NotFoundError, NetworkError, ParseError) as exc:
        logger.warning("Failed to load parent POM %s, continuing without it: %s", coordinate, exc)
        return None


async def resolve(coordinate: ArtifactCoordinate, fetch: DescriptorFetcher) -> ManagedArtifactSet:
    """Resolve the managed-artifact set declared by ``coordinate``'s POM."""

    raw = await fetch(coordinate)
    pom = parse_pom(raw, source=str(coordinate))
    parent = await _load_parent(pom.parent, fetch)

    environment = build_environment(pom, parent)
    artifacts = extract_managed_artifacts(pom, environment)
    logger.info("Parsed %d managed artifacts from %s", len(artifacts), coordinate)
    return artifacts
