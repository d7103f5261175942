from __future__ import annotations

"""
Streaming parser for extracted APT Packages indexes.

Packages files use RFC822-style stanzas:
- Field: value
- Blank lines separate stanzas (package records)

Extracted indexes can be many megabytes, so they are read line by line and
only the handful of fields needed for release lookup are kept.
"""

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime
from pathlib import Path

from debrelease.core.cache import ResultCache
from debrelease.plugins.deb.models import Release, ReleaseResult

logger = logging.getLogger(__name__)

REQUIRED_PACKAGE_KEYS = ("Package", "Version", "Homepage")

CACHE_NAMESPACE = "datasource-deb-package"
CACHE_TTL_MINUTES = 24 * 60


def iter_stanzas(
    lines: Iterable[str], keys: Iterable[str] = REQUIRED_PACKAGE_KEYS
) -> Iterator[dict[str, str]]:
    """
    Reassemble stanzas from an iterable of lines.

    Only fields listed in keys are kept; a line sets at most one field.
    The last stanza is yielded even without a trailing blank line.

    Example:
        >>> lines = ["Package: nginx", "Version: 1.18.0", "", "Package: curl"]
        >>> list(iter_stanzas(lines))
        [{'Package': 'nginx', 'Version': '1.18.0'}, {'Package': 'curl'}]
    """
    current: dict[str, str] = {}

    for raw_line in lines:
        line = raw_line.rstrip("\r\n")
        if line == "":
            if current:
                yield current
            current = {}
            continue

        for key in keys:
            if line.startswith(f"{key}:"):
                current[key] = line[len(key) + 1 :].strip()
                break

    if current:
        yield current


def format_release_result(stanza: dict[str, str]) -> ReleaseResult:
    """Build a ReleaseResult from a matching stanza."""
    releases = [Release(version=stanza["Version"])] if stanza.get("Version") else []
    return ReleaseResult(releases=releases, homepage=stanza.get("Homepage"))


def find_package(extracted_file: Path, package_name: str) -> ReleaseResult | None:
    """
    Scan an extracted Packages file for the first stanza of package_name.

    Reading stops as soon as the matching stanza is complete.

    Args:
        extracted_file: Path to the extracted Packages file
        package_name: Name of the package to find

    Returns:
        ReleaseResult if found, otherwise None
    """
    with open(extracted_file, encoding="utf-8", errors="replace") as f:
        for stanza in iter_stanzas(f):
            if stanza.get("Package") == package_name:
                return format_release_result(stanza)
    return None


def parse_extracted_package(
    extracted_file: Path,
    package_name: str,
    last_timestamp: datetime,
    cache: ResultCache | None = None,
    ttl_minutes: int = CACHE_TTL_MINUTES,
) -> ReleaseResult | None:
    """
    Look up package_name in an extracted Packages file, memoizing the answer.

    The freshness token is only part of the cache key: a re-extracted index
    gets a new timestamp and therefore a fresh scan.

    Args:
        extracted_file: Path to the extracted Packages file
        package_name: Name of the package to find
        last_timestamp: Local creation time of extracted_file
        cache: Optional result cache
        ttl_minutes: Lifetime of memoized answers

    Returns:
        ReleaseResult if found, otherwise None
    """
    if cache is None:
        return find_package(extracted_file, package_name)

    key = f"{extracted_file}:{package_name}:{int(last_timestamp.timestamp() * 1000)}"

    def compute() -> dict | None:
        result = find_package(extracted_file, package_name)
        return result.model_dump() if result else None

    data = cache.get_or_compute(CACHE_NAMESPACE, key, ttl_minutes, compute)
    return ReleaseResult.model_validate(data) if data is not None else None
