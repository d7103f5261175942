from __future__ import annotations

"""
Debian repository plugin for debrelease.

Resolves package releases from the binary Packages indexes of APT repositories.
"""

from debrelease.plugins.deb.datasource import DebDatasource
from debrelease.plugins.deb.models import ComponentOutcome, Release, ReleaseResult, RepositoryLocation
from debrelease.plugins.deb.urls import construct_component_urls, parse_repository_location

__all__ = [
    "ComponentOutcome",
    "DebDatasource",
    "Release",
    "ReleaseResult",
    "RepositoryLocation",
    "construct_component_urls",
    "parse_repository_location",
]
