from __future__ import annotations

"""
debrelease - Debian repository release lookup

Resolves the published versions and homepage of a package from the binary
Packages indexes of a Debian-style APT repository, with a local index cache
that only re-downloads indexes when the upstream copy has changed.
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Make version accessible
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _version

try:
    __version__ = _version("debrelease")
except PackageNotFoundError:
    # Package not installed yet
    pass
