"""Shared fixtures for debrelease tests."""

import gzip
import tempfile
from pathlib import Path

import pytest
import requests

PACKAGES_MAIN = """Package: nginx
Version: 1.22.1-9
Architecture: amd64
Homepage: https://nginx.org

Package: curl
Version: 7.88.1-10
Architecture: amd64
Homepage: https://curl.se/

"""

PACKAGES_CONTRIB = """Package: nginx
Version: 1.22.1-9+contrib1
Architecture: amd64
Homepage: https://nginx.org

Package: steamcmd
Version: 0~20180105-5
Architecture: i386
"""


class FakeDownloader:
    """In-memory stand-in for DownloadManager.

    files maps URLs to response bodies; head_status maps URLs to a status code
    or an exception to raise. Unknown URLs answer HEAD with 200 and GET with 404.
    """

    def __init__(self, files=None):
        self.files = dict(files or {})
        self.head_status = {}
        self.head_calls = []
        self.get_calls = []

    def head(self, url, headers=None):
        self.head_calls.append((url, dict(headers or {})))
        status = self.head_status.get(url, 200)
        if isinstance(status, Exception):
            raise status
        return status

    def stream_to_file(self, url, dest):
        self.get_calls.append(url)
        if url not in self.files:
            raise requests.HTTPError(f"404 Client Error: Not Found for url: {url}")
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(self.files[url])
        return dest

    def not_modified(self):
        """Answer every HEAD request with 304 from now on."""
        for url in self.files:
            self.head_status[url] = 304


@pytest.fixture
def temp_cache_dir():
    """Create temporary cache directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_downloader():
    """Fake downloader serving Packages.gz for main and contrib of Debian stable."""
    base = "https://ftp.debian.org/debian/dists/stable"
    return FakeDownloader(
        {
            f"{base}/main/binary-amd64/Packages.gz": gzip.compress(PACKAGES_MAIN.encode()),
            f"{base}/contrib/binary-amd64/Packages.gz": gzip.compress(PACKAGES_CONTRIB.encode()),
        }
    )
