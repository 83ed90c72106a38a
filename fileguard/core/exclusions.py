"""
Exclusion rules: paths that are expected to diverge from the manifest and are
never reported as unknown.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from fileguard.core.paths import to_relative

__all__ = ("ExclusionSet", "is_excluded")


@dataclass(frozen=True)
class ExclusionSet:
    """
    Ordered set of exclusion patterns.

    ``patterns`` match either a path component exactly (``wp-config.php``,
    ``.well-known``) or, for multi-segment patterns, a path prefix
    (``wp-admin/custom`` excludes everything below it). ``subtrees`` are
    root-relative directories that are always excluded, whatever the whitelist
    says.
    """

    patterns: tuple[str, ...] = ()
    subtrees: tuple[str, ...] = ()

    @classmethod
    def build(cls, patterns: Iterable[str] = (), subtrees: Iterable[str] = ()) -> ExclusionSet:
        def _clean(values: Iterable[str]) -> tuple[str, ...]:
            seen: dict[str, None] = {}
            for value in values:
                rel = to_relative(value)
                if rel:
                    seen.setdefault(rel, None)
            return tuple(seen)

        return cls(patterns=_clean(patterns), subtrees=_clean(subtrees))

    def matches(self, path: str) -> bool:
        return is_excluded(path, self)


def is_excluded(path: str, exclusions: ExclusionSet) -> bool:
    """
    Decide whether a root-relative path is covered by ``exclusions``.

    A path is covered when any of its components equals a single-segment
    pattern, when it equals or starts with ``pattern + "/"``, or when it lies in
    an excluded subtree. Covering a directory therefore covers everything
    below it, so pruning a directory during traversal and checking a file
    inside it give the same answer.
    """
    rel = to_relative(path)
    if not rel:
        return False

    components = rel.split("/")
    for pattern in exclusions.patterns:
        if "/" not in pattern:
            if pattern in components:
                return True
        elif rel == pattern or rel.startswith(pattern + "/"):
            return True

    for subtree in exclusions.subtrees:
        if rel == subtree or rel.startswith(subtree + "/"):
            return True

    return False
