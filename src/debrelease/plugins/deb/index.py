from __future__ import annotations

"""
Download and local caching of per-component Packages indexes.

Each component URL maps to two files in the ``deb`` cache subdirectory,
named after the SHA256 hash of the URL:

- ``<hash>.<compression>``: downloaded index, deleted after every extraction attempt
- ``<hash>.txt``: extracted index; its creation time is the freshness token
  sent as If-Modified-Since on the next lookup
"""

import logging
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path

import requests

from debrelease.core.downloader import DownloadManager
from debrelease.core.errors import DebReleaseError, IndexUnavailableError
from debrelease.core.storage import CacheStorage
from debrelease.plugins.deb.compression import extract
from debrelease.plugins.deb.models import CachedIndex
from debrelease.plugins.deb.urls import join_url_parts

logger = logging.getLogger(__name__)

CACHE_SUBDIR = "deb"
DEFAULT_COMPRESSIONS = ["gz"]


def http_date(timestamp: datetime) -> str:
    """Format a timestamp as an RFC 7231 HTTP date (always GMT)."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return format_datetime(timestamp.astimezone(timezone.utc), usegmt=True)


def check_if_modified(
    downloader: DownloadManager, package_url: str, last_download_timestamp: datetime
) -> bool:
    """Check if package_url has been modified since the given timestamp.

    See https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers/If-Modified-Since

    Args:
        downloader: Download manager
        package_url: URL to check
        last_download_timestamp: Timestamp of the last download

    Returns:
        False only if the server answered 304 Not Modified
    """
    since = http_date(last_download_timestamp)
    try:
        status = downloader.head(package_url, headers={"If-Modified-Since": since})
    except requests.RequestException as e:
        logger.warning(f"Could not determine if {package_url} is modified since {since}: {e}")
        return True  # Assume it needs to be downloaded if check fails

    return status != 304


def download_package_file(
    downloader: DownloadManager,
    base_package_url: str,
    compression: str,
    compressed_file: Path,
    last_download_timestamp: datetime | None = None,
) -> bool:
    """Download a Packages file if it has been modified since the last download.

    Args:
        downloader: Download manager
        base_package_url: Component URL (ending in binary-<arch>)
        compression: Compression identifier (e.g., 'gz')
        compressed_file: Where the compressed file is saved
        last_download_timestamp: Freshness token of the cached index, if any

    Returns:
        True if a new compressed file was downloaded, otherwise False
    """
    package_url = join_url_parts(base_package_url, f"Packages.{compression}")

    needs_to_download = True
    if last_download_timestamp:
        needs_to_download = check_if_modified(downloader, package_url, last_download_timestamp)

    if not needs_to_download:
        logger.debug(f"No need to download {package_url}, file is up to date.")
        return False

    try:
        logger.debug(f"Downloading Debian package file {package_url} to {compressed_file}")
        downloader.stream_to_file(package_url, compressed_file)
    except (requests.RequestException, OSError) as e:
        logger.error(f"Failed to download package file from {package_url}: {e}")
        return False

    return True


class IndexCacheManager:
    """Keeps one extracted Packages index per component URL up to date.

    Handles:
    - Deriving cache file names from the component URL
    - Conditional download of Packages.<compression>
    - Extraction and cleanup of the compressed download
    - Falling back to a previously extracted index when nothing changed
      or no compression could be refreshed
    """

    def __init__(
        self,
        storage: CacheStorage,
        downloader: DownloadManager,
        compressions: list[str] | None = None,
    ):
        """Initialize index cache manager.

        Args:
            storage: Cache directory
            downloader: Download manager
            compressions: Compressions to try, in order of preference
        """
        self.storage = storage
        self.downloader = downloader
        self.compressions = list(compressions or DEFAULT_COMPRESSIONS)

    def cache_files(self, component_url: str) -> tuple[Path, str]:
        """Return the extracted file path and the file name stem for a component."""
        cache_dir = self.storage.ensure_directory(CACHE_SUBDIR)
        url_hash = self.storage.url_hash(component_url)
        return cache_dir / f"{url_hash}.txt", url_hash

    def download_and_extract(self, component_url: str) -> CachedIndex:
        """Download (if changed) and extract the Packages index of a component.

        Compressions are tried in order. A 304 answer for any of them keeps
        the extracted index as is; a failed download or extraction moves on
        to the next compression. The previously extracted index is only used
        once every compression has failed.

        Args:
            component_url: Component URL (ending in binary-<arch>)

        Returns:
            CachedIndex with the extracted file and its freshness token

        Raises:
            IndexUnavailableError: If no compression yields a usable index
        """
        extracted_file, url_hash = self.cache_files(component_url)
        last_timestamp = self.storage.creation_time(extracted_file)

        for compression in self.compressions:
            compressed_file = extracted_file.with_name(f"{url_hash}.{compression}")

            if last_timestamp:
                package_url = join_url_parts(component_url, f"Packages.{compression}")
                if not check_if_modified(self.downloader, package_url, last_timestamp):
                    logger.debug(f"No need to download {package_url}, file is up to date.")
                    return CachedIndex(extracted_file=extracted_file, last_timestamp=last_timestamp)

            if not download_package_file(
                self.downloader, component_url, compression, compressed_file
            ):
                continue

            try:
                extract(compressed_file, compression, extracted_file, self.storage)
            except DebReleaseError as e:
                logger.error(
                    f"Failed to extract package file from {compressed_file} "
                    f"(component: {component_url}, compression: {compression}): {e}"
                )
                continue
            finally:
                self.storage.remove(compressed_file)

            return CachedIndex(
                extracted_file=extracted_file,
                last_timestamp=self.storage.creation_time(extracted_file),
            )

        if last_timestamp:
            logger.warning(f"Using previously extracted index for {component_url}")
            return CachedIndex(extracted_file=extracted_file, last_timestamp=last_timestamp)

        raise IndexUnavailableError(f"No compression standard worked for {component_url}")
