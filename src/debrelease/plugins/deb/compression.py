"""Decompression of downloaded Packages indexes."""

from __future__ import annotations

import bz2
import gzip
import logging
import lzma
import zlib
from pathlib import Path
from typing import BinaryIO, Callable

import zstandard as zstd

from debrelease.core.errors import ExtractionError, UnsupportedCompressionError
from debrelease.core.storage import CacheStorage

logger = logging.getLogger(__name__)


def _zstd_reader(source: BinaryIO) -> BinaryIO:
    return zstd.ZstdDecompressor().stream_reader(source)


# Compression identifier (Packages.<ext>) -> stream decoder factory
DECODERS: dict[str, Callable[[BinaryIO], BinaryIO]] = {
    "gz": lambda source: gzip.GzipFile(fileobj=source, mode="rb"),
    "xz": lambda source: lzma.LZMAFile(source, mode="rb"),
    "bz2": lambda source: bz2.BZ2File(source, mode="rb"),
    "zst": _zstd_reader,
}

# Errors raised by the decoders on corrupt or truncated input
DECODER_ERRORS = (OSError, EOFError, lzma.LZMAError, zlib.error, zstd.ZstdError)


def get_decoder(compression: str) -> Callable[[BinaryIO], BinaryIO]:
    """Look up the stream decoder for a compression identifier.

    Raises:
        UnsupportedCompressionError: If the compression is unknown
    """
    try:
        return DECODERS[compression]
    except KeyError:
        raise UnsupportedCompressionError(
            f"Unsupported compression standard '{compression}'"
        ) from None


def extract(
    compressed_file: Path,
    compression: str,
    output_file: Path,
    storage: CacheStorage | None = None,
) -> None:
    """Extract a compressed Packages index to output_file.

    The output is written to a temporary file and moved into place, so
    output_file is either completely written or left as it was.

    Args:
        compressed_file: Path to the compressed file
        compression: Compression identifier (gz, xz, bz2, zst)
        output_file: Where the extracted content is stored
        storage: Cache storage used for streaming (default: one rooted at output_file's directory)

    Raises:
        UnsupportedCompressionError: If the compression is unknown
        ExtractionError: If the compressed stream cannot be decoded
    """
    decoder = get_decoder(compression)
    storage = storage or CacheStorage(output_file.parent)

    try:
        with storage.open_read(compressed_file) as source:
            storage.pipe(source, output_file, transform=decoder)
    except DECODER_ERRORS as e:
        raise ExtractionError(f"Failed to extract {compressed_file} ({compression}): {e}") from e

    logger.debug(f"Extracted {compressed_file} to {output_file}")
