"""Version discovery from repository release metadata.

`maven-metadata.xml` lists every published version of a coordinate. The
locator keeps release versions only (anything containing ``SNAPSHOT`` is
dropped, as is anything that could not be used as a file name), removes
duplicates and returns them oldest first.

Failures are not swallowed here: a transport problem surfaces as
`NetworkError`/`NotFoundError` and a malformed document as `ParseError`, so
the batch layer can tell "could not ask" apart from "nothing published".
"""

from __future__ import annotations

import logging

from core.domain.models import is_safe_path_segment
from core.domain.versions import is_snapshot, sort_versions
from core.interfaces.fetcher import MetadataSource
from core.services.xml_support import parse_xml

logger = logging.getLogger(__name__)


def parse_metadata_versions(raw: bytes | str, *, source: str | None = None) -> list[str]:
    """Every `<version>` text in document order (no filtering)."""

    root = parse_xml(raw, source=source)
    versions: list[str] = []
    for el in root.iter("version"):
        if el.text is None:
            continue
        text = el.text.strip()
        if text:
            versions.append(text)
    return versions


def select_release_versions(tokens: list[str]) -> list[str]:
    releases: list[str] = []
    for token in tokens:
        if is_snapshot(token):
            continue
        # La versión acaba siendo parte del nombre de fichero del snapshot.
        if not is_safe_path_segment(token):
            logger.warning("Ignoring version with path characters: %r", token)
            continue
        releases.append(token)
    return sort_versions(releases)


async def discover_versions(
    repository: MetadataSource,
    group_id: str,
    artifact_id: str,
) -> list[str]:
    """Ordered release versions of ``group_id:artifact_id``."""

    raw = await repository.fetch_metadata(group_id, artifact_id)
    tokens = parse_metadata_versions(raw, source=f"{group_id}:{artifact_id} maven-metadata.xml")
    versions = select_release_versions(tokens)
    logger.info(
        "Found %d release versions for %s:%s (%d tokens in metadata)",
        len(versions),
        group_id,
        artifact_id,
        len(tokens),
    )
    return versions
