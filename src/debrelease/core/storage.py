"""
Local cache directory manager for debrelease.

Files are addressed by the SHA256 hash of the URL they were fetched from, so
the hash itself is the lookup and no registry of cached files is needed:

    {cache_path}/deb/3f2a...9c1e.txt
"""

import hashlib
import logging
import shutil
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Optional

logger = logging.getLogger(__name__)


class CacheStorage:
    """Filesystem primitives for the on-disk cache directory."""

    def __init__(self, cache_path: Path):
        """Initialize cache storage.

        Args:
            cache_path: Root cache directory (created lazily)
        """
        self.cache_path = Path(cache_path)

    @staticmethod
    def url_hash(url: str) -> str:
        """Return the hex SHA256 digest used to name files cached for a URL."""
        return hashlib.sha256(url.encode("utf-8")).hexdigest()

    def ensure_directory(self, subpath: str) -> Path:
        """Create a cache subdirectory if needed and return its path."""
        directory = self.cache_path / subpath
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def creation_time(self, file_path: Path) -> Optional[datetime]:
        """Get the local change time of a cached file.

        Args:
            file_path: Path to the cached file

        Returns:
            Timezone-aware UTC timestamp, or None if the file doesn't exist
        """
        try:
            stat = file_path.stat()
        except FileNotFoundError:
            return None
        return datetime.fromtimestamp(stat.st_ctime, tz=timezone.utc)

    def open_read(self, file_path: Path) -> BinaryIO:
        """Open a cached file for binary reading."""
        return open(file_path, "rb")

    @contextmanager
    def atomic_writer(self, file_path: Path) -> Iterator[BinaryIO]:
        """Write to a temporary file and move it over file_path on success.

        On any error the temporary file is removed and file_path is left
        untouched.
        """
        file_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = tempfile.NamedTemporaryFile(delete=False, dir=file_path.parent, suffix=".tmp")
        tmp_path = Path(tmp_file.name)
        try:
            with tmp_file:
                yield tmp_file
            tmp_path.replace(file_path)
        finally:
            tmp_path.unlink(missing_ok=True)

    def pipe(
        self,
        source: BinaryIO,
        destination: Path,
        transform: Optional[Callable[[BinaryIO], BinaryIO]] = None,
    ) -> Path:
        """Copy a readable stream into destination, optionally through a transform.

        Args:
            source: Readable binary stream
            destination: Target file (written atomically)
            transform: Callable wrapping source in a decoding stream

        Returns:
            Destination path

        Raises:
            OSError: On read/write errors of any stage
        """
        stream = transform(source) if transform else source
        with self.atomic_writer(destination) as out:
            shutil.copyfileobj(stream, out, length=65536)
        return destination

    def remove(self, file_path: Path) -> None:
        """Remove a cached file if it exists."""
        file_path.unlink(missing_ok=True)
        logger.debug(f"Removed cache file: {file_path}")

    def iter_files(self, subpath: str, pattern: str = "*") -> list[Path]:
        """List regular files in a cache subdirectory."""
        directory = self.cache_path / subpath
        if not directory.exists():
            return []
        return sorted(p for p in directory.glob(pattern) if p.is_file())
