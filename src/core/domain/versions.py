"""Version ordering for Maven release strings.

The order is syntactic: each version is split on `.` and `-` and compared
segment by segment. Numeric segments compare as integers, text segments
compare ordinally, and a numeric segment always sorts before a text one.
A missing trailing segment counts as `0` against a numeric segment and as
`""` against a text segment.
"""

from __future__ import annotations

import functools
import re
from typing import Iterable

_SEPARATORS = re.compile(r"[.-]")
_NUMERIC = re.compile(r"[0-9]+")


def split_version(version: str) -> list[str]:
    return _SEPARATORS.split(version)


def _is_numeric(segment: str) -> bool:
    return _NUMERIC.fullmatch(segment) is not None


def _compare_segments(left: str, right: str) -> int:
    left_num = _is_numeric(left)
    right_num = _is_numeric(right)
    if left_num and right_num:
        # Enteros de cualquier longitud: sin ceros a la izquierda, longitud y luego dígitos.
        a = left.lstrip("0")
        b = right.lstrip("0")
        key_a, key_b = (len(a), a), (len(b), b)
        return (key_a > key_b) - (key_a < key_b)
    if not left_num and not right_num:
        return (left > right) - (left < right)
    return -1 if left_num else 1


def compare_versions(left: str, right: str) -> int:
    """Compara dos versiones; devuelve -1, 0 o 1."""

    left_parts = split_version(left)
    right_parts = split_version(right)

    for index in range(max(len(left_parts), len(right_parts))):
        a = left_parts[index] if index < len(left_parts) else None
        b = right_parts[index] if index < len(right_parts) else None
        if a is None:
            a = "0" if _is_numeric(b or "") else ""
        if b is None:
            b = "0" if _is_numeric(a) else ""
        result = _compare_segments(a, b)
        if result:
            return result
    return 0


version_sort_key = functools.cmp_to_key(compare_versions)


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Deduplicate and order versions ascending.

    Distinct strings that compare equal (`1.0`, `1.0.0`) keep their first-seen
    order.
    """

    return sorted(dict.fromkeys(versions), key=version_sort_key)


def is_snapshot(version: str) -> bool:
    return "SNAPSHOT" in version
