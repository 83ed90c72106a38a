"""
Error taxonomy for integrity checks.

Only ``ManifestUnavailable`` and ``PathTraversalRejected`` cross component
boundaries as exceptions; per-file failures are turned into values and end up
in the report.
"""

__all__ = (
    "DeletionFailed",
    "FetchFailed",
    "FileGuardError",
    "ManifestUnavailable",
    "PathTraversalRejected",
    "ScanIOError",
    "VerificationFailed",
)


class FileGuardError(Exception):
    """Base class for all integrity engine errors."""


class ManifestUnavailable(FileGuardError):
    """Reference manifest could not be fetched or parsed."""

    def __init__(self, version: str, locale: str, reason: str):
        self.version = version
        self.locale = locale
        self.reason = reason
        super().__init__(f"manifest for {version}/{locale} unavailable: {reason}")


class PathTraversalRejected(FileGuardError):
    """A path resolved to a location outside the scanned root."""

    def __init__(self, path: str, root: str):
        self.path = path
        self.root = root
        super().__init__(f"path {path!r} resolves outside {root}")


class ScanIOError(FileGuardError):
    """A directory entry could not be read during traversal."""


class FetchFailed(FileGuardError):
    """Authoritative content could not be downloaded."""


class VerificationFailed(FileGuardError):
    """Restored content does not match the manifest checksum."""


class DeletionFailed(FileGuardError):
    """A file could not be removed."""
