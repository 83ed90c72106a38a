"""
Relative path canonicalization and root containment.
"""

from __future__ import annotations

import os
from pathlib import Path

from fileguard.core.errors import PathTraversalRejected

__all__ = (
    "canonical_root",
    "entry_within",
    "is_within",
    "resolve_within",
    "to_relative",
)


def to_relative(path: str) -> str:
    """
    Normalize a manifest or scan path to the canonical form used for comparison:
    forward slashes, no leading ``./`` or ``/``, no duplicate separators.
    """
    parts = [p for p in path.replace("\\", "/").split("/") if p not in ("", ".")]
    return "/".join(parts)


def canonical_root(root: str | os.PathLike[str]) -> str:
    return os.path.realpath(os.fspath(root))


def is_within(candidate: str, root_real: str) -> bool:
    """True when ``candidate`` (already canonical) lies strictly below ``root_real``."""
    prefix = root_real if root_real.endswith(os.sep) else root_real + os.sep
    return candidate.startswith(prefix)


def resolve_within(root: str | os.PathLike[str], path: str) -> Path:
    """
    Resolve ``path`` against ``root`` following symlinks and ``..`` segments.

    Raises PathTraversalRejected unless the canonical result is strictly inside
    the canonical root.
    """
    root_real = canonical_root(root)
    candidate = os.path.realpath(os.path.join(root_real, path))
    if not is_within(candidate, root_real):
        raise PathTraversalRejected(path, root_real)
    return Path(candidate)


def entry_within(root: str | os.PathLike[str], path: str) -> Path:
    """
    Locate the directory entry ``path`` names under ``root`` without following
    a symlink in its final component.

    Both the entry's parent and whatever the entry resolves to must lie inside
    the canonical root. The returned path is the entry itself, so unlinking or
    replacing it never touches a symlink's target.
    """
    root_real = canonical_root(root)
    lexical = os.path.normpath(os.path.join(root_real, path))
    if not is_within(lexical, root_real):
        raise PathTraversalRejected(path, root_real)

    parent_real = os.path.realpath(os.path.dirname(lexical))
    if parent_real != root_real and not is_within(parent_real, root_real):
        raise PathTraversalRejected(path, root_real)

    entry = os.path.join(parent_real, os.path.basename(lexical))
    if not is_within(os.path.realpath(entry), root_real):
        raise PathTraversalRejected(path, root_real)
    return Path(entry)
