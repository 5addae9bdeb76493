"""Tests for the diff engine and its renderers."""

import random

from core.domain.models import ArtifactCoordinate, ArtifactUpdate, build_artifact_set
from core.services.diff_engine import compare_sets, filter_result, render_diff, summarize


def coord(group_id, artifact_id, version):
    return ArtifactCoordinate(group_id=group_id, artifact_id=artifact_id, version=version)


def artifact_set(*triples):
    return build_artifact_set(coord(*t) for t in triples)


class TestCompareSets:
    def test_concrete_scenario(self):
        """1.0.0 {a:1.0, b:2.0} -> 1.1.0 {a:1.1, c:1.0}."""
        v100 = artifact_set(("g", "a", "1.0"), ("g", "b", "2.0"))
        v110 = artifact_set(("g", "a", "1.1"), ("g", "c", "1.0"))

        result = compare_sets(v100, v110, "1.0.0", "1.1.0")

        assert result.from_version == "1.0.0"
        assert result.to_version == "1.1.0"
        assert result.added == [coord("g", "c", "1.0")]
        assert result.removed == [coord("g", "b", "2.0")]
        assert result.updated == [
            ArtifactUpdate(group_id="g", artifact_id="a", from_version="1.0", to_version="1.1")
        ]
        assert result.unchanged == []
        assert result.has_changes

    def test_self_comparison(self):
        a = artifact_set(("g", "a", "1"), ("g", "b", "2"), ("h", "c", "3"))

        result = compare_sets(a, a, "v", "v")

        assert result.added == result.removed == result.updated == []
        assert {x.key for x in result.unchanged} == set(a)
        assert not result.has_changes

    def test_empty_sets(self):
        result = compare_sets({}, {}, "1", "2")
        assert summarize(result) == {"added": 0, "removed": 0, "updated": 0, "unchanged": 0}

    def test_version_compare_is_exact_string(self):
        """`1.0` and `1.0.0` are different strings, so the entry is updated."""
        result = compare_sets(artifact_set(("g", "a", "1.0")), artifact_set(("g", "a", "1.0.0")), "x", "y")
        assert [u.key for u in result.updated] == ["g:a"]

    def test_lists_sorted_ordinally_by_key(self):
        to_set = artifact_set(("org.b", "z", "1"), ("Org.a", "y", "1"), ("org.a", "x", "1"))
        result = compare_sets({}, to_set, "1", "2")
        assert [a.key for a in result.added] == ["Org.a:y", "org.a:x", "org.b:z"]

    def test_partition_is_exhaustive_and_disjoint(self):
        rng = random.Random(1234)
        for _ in range(50):
            from_set = artifact_set(
                *{("g", f"a{rng.randint(0, 20)}", str(rng.randint(1, 3))) for _ in range(rng.randint(0, 15))}
            )
            to_set = artifact_set(
                *{("g", f"a{rng.randint(0, 20)}", str(rng.randint(1, 3))) for _ in range(rng.randint(0, 15))}
            )
            result = compare_sets(from_set, to_set, "f", "t")

            buckets = [
                [a.key for a in result.added],
                [a.key for a in result.removed],
                [u.key for u in result.updated],
                [a.key for a in result.unchanged],
            ]
            flat = [key for bucket in buckets for key in bucket]
            assert len(flat) == len(set(flat))
            assert set(flat) == set(from_set) | set(to_set)
            for bucket in buckets:
                assert bucket == sorted(bucket)


class TestFilterResult:
    def test_filters_all_lists_case_insensitively(self):
        from_set = artifact_set(("io.netty", "netty-all", "1"), ("org.slf4j", "slf4j-api", "1"))
        to_set = artifact_set(("io.netty", "netty-all", "2"), ("io.netty", "netty-codec", "2"))
        result = compare_sets(from_set, to_set, "1", "2")

        filtered = filter_result(result, "NETTY")

        assert [a.key for a in filtered.added] == ["io.netty:netty-codec"]
        assert [u.key for u in filtered.updated] == ["io.netty:netty-all"]
        assert filtered.removed == []

    def test_blank_filter_returns_result_unchanged(self):
        result = compare_sets(artifact_set(("g", "a", "1")), {}, "1", "2")
        assert filter_result(result, "  ") is result
        assert filter_result(result, None) is result


class TestRenderDiff:
    def test_markdown_diff(self):
        v100 = artifact_set(("g", "a", "1.0"), ("g", "b", "2.0"), ("g", "d", "4"))
        v110 = artifact_set(("g", "a", "1.1"), ("g", "c", "1.0"), ("g", "d", "4"))
        result = compare_sets(v100, v110, "1.0.0", "1.1.0")

        text = render_diff(result, "g:bom")

        assert text.splitlines() == [
            "```diff",
            "--- g:bom 1.0.0",
            "+++ g:bom 1.1.0",
            "",
            "-g:a:1.0",
            "+g:a:1.1",
            "-g:b:2.0",
            "+g:c:1.0",
            " g:d:4",
            "```",
        ]

    def test_without_unchanged(self):
        same = artifact_set(("g", "d", "4"))
        text = render_diff(compare_sets(same, same, "1", "2"), "bom", include_unchanged=False)
        assert " g:d:4" not in text
