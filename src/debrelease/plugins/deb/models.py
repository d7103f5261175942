from __future__ import annotations

"""
Pydantic models for Debian repository lookups.
"""

from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class RepositoryLocation(BaseModel):
    """
    Parsed registry URL of a Debian-style repository.

    The registry URL encodes an apt sources.list line as query parameters,
    e.g. ``https://ftp.debian.org/debian?suite=stable&components=main,contrib&binaryArch=amd64``.
    """

    base_url: str = Field(..., description="Repository root URL without recognized parameters")
    release: str = Field(..., description="Release codename or suite alias (e.g. bookworm, stable)")
    components: list[str] = Field(..., description="Components in configured order")
    binary_arch: str = Field(..., description="Binary architecture (amd64, arm64, ...)")


class Release(BaseModel):
    """A single published version of a package."""

    version: str = Field(..., description="Debian version string")


class ReleaseResult(BaseModel):
    """
    Versions and metadata found for one package.

    Releases keep discovery order (component order, then stanza order);
    they are neither sorted nor deduplicated.
    """

    releases: list[Release] = Field(default_factory=list)
    homepage: str | None = Field(None, description="Upstream project homepage")

    @property
    def versions(self) -> list[str]:
        """Version strings in discovery order."""
        return [release.version for release in self.releases]


class CachedIndex(BaseModel):
    """Locally decompressed Packages index of one component."""

    extracted_file: Path
    last_timestamp: datetime = Field(
        ..., description="Local creation time of extracted_file, used as freshness token"
    )


class ComponentOutcome(BaseModel):
    """Result of resolving a package against a single component."""

    component_url: str
    status: Literal["found", "not-found", "failed"]
    result: ReleaseResult | None = None
    error: str | None = None
