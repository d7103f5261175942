from __future__ import annotations

"""Exception types raised while resolving Debian package releases."""


class DebReleaseError(Exception):
    """Base class for all debrelease errors."""


class ConfigurationError(DebReleaseError, ValueError):
    """Repository location is malformed or misses a required parameter."""


class UnsupportedCompressionError(DebReleaseError, ValueError):
    """Compression identifier has no matching decoder."""


class ExtractionError(DebReleaseError):
    """Decompressing a downloaded index failed."""


class IndexUnavailableError(DebReleaseError):
    """No usable Packages index could be obtained."""
