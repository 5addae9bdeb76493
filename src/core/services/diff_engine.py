"""Diff engine for two resolved managed-artifact sets.

Identity is ``groupId:artifactId``; the version is the compared value. Every
key of either side lands in exactly one of added / removed / updated /
unchanged, and each list is sorted ordinally by key. The engine is a pure
function: it never fails given two sets.
"""

from __future__ import annotations

from core.domain.models import (
    ArtifactCoordinate,
    ArtifactUpdate,
    ComparisonResult,
    ManagedArtifactSet,
)


def compare_sets(
    from_set: ManagedArtifactSet,
    to_set: ManagedArtifactSet,
    from_label: str,
    to_label: str,
) -> ComparisonResult:
    from_keys = from_set.keys()
    to_keys = to_set.keys()

    added = [to_set[key] for key in sorted(to_keys - from_keys)]
    removed = [from_set[key] for key in sorted(from_keys - to_keys)]

    updated: list[ArtifactUpdate] = []
    unchanged: list[ArtifactCoordinate] = []
    for key in sorted(from_keys & to_keys):
        before = from_set[key]
        after = to_set[key]
        if before.version != after.version:
            updated.append(
                ArtifactUpdate(
                    group_id=after.group_id,
                    artifact_id=after.artifact_id,
                    from_version=before.version,
                    to_version=after.version,
                )
            )
        else:
            unchanged.append(after)

    return ComparisonResult(
        from_version=from_label,
        to_version=to_label,
        added=added,
        removed=removed,
        updated=updated,
        unchanged=unchanged,
    )


def filter_result(result: ComparisonResult, text: str | None) -> ComparisonResult:
    """Keep only entries whose ``groupId:artifactId`` contains ``text`` (case-insensitive)."""

    needle = (text or "").strip().lower()
    if not needle:
        return result

    def keep(key: str) -> bool:
        return needle in key.lower()

    return ComparisonResult(
        from_version=result.from_version,
        to_version=result.to_version,
        added=[a for a in result.added if keep(a.key)],
        removed=[a for a in result.removed if keep(a.key)],
        updated=[u for u in result.updated if keep(u.key)],
        unchanged=[a for a in result.unchanged if keep(a.key)],
    )


def summarize(result: ComparisonResult) -> dict[str, int]:
    return {
        "added": len(result.added),
        "removed": len(result.removed),
        "updated": len(result.updated),
        "unchanged": len(result.unchanged),
    }


def render_diff(result: ComparisonResult, bom_name: str, *, include_unchanged: bool = True) -> str:
    """Render the comparison as a markdown ``diff`` block, one line per coordinate."""

    rows: dict[str, list[str]] = {}
    for artifact in result.removed:
        rows[artifact.key] = [f"-{artifact.coordinates}"]
    for artifact in result.added:
        rows[artifact.key] = [f"+{artifact.coordinates}"]
    for update in result.updated:
        rows[update.key] = [
            f"-{update.key}:{update.from_version}",
            f"+{update.key}:{update.to_version}",
        ]
    if include_unchanged:
        for artifact in result.unchanged:
            rows[artifact.key] = [f" {artifact.coordinates}"]

    lines = [
        "```diff",
        f"--- {bom_name} {result.from_version}",
        f"+++ {bom_name} {result.to_version}",
        "",
    ]
    for key in sorted(rows):
        lines.extend(rows[key])
    lines.append("```")
    return "\n".join(lines)
