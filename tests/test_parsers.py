"""
Tests for the streaming Packages parser.
"""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from debrelease.core.cache import ResultCache
from debrelease.plugins.deb.models import Release, ReleaseResult
from debrelease.plugins.deb.parsers import (
    REQUIRED_PACKAGE_KEYS,
    find_package,
    format_release_result,
    iter_stanzas,
    parse_extracted_package,
)

INDEX = """Package: A
Version: 1.0
Homepage: h1
Description: first package

Package: B
Version: 2.0
Description: second package

"""

TIMESTAMP = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def index_file(temp_cache_dir):
    """Write an extracted Packages file."""
    path = temp_cache_dir / "index.txt"
    path.write_text(INDEX)
    return path


class TestIterStanzas:
    """Tests for stanza reassembly."""

    def test_only_known_keys_kept(self):
        """Test that unknown fields are ignored."""
        stanzas = list(iter_stanzas(INDEX.splitlines(keepends=True)))

        assert stanzas == [
            {"Package": "A", "Version": "1.0", "Homepage": "h1"},
            {"Package": "B", "Version": "2.0"},
        ]

    def test_last_stanza_without_trailing_blank_line(self):
        """Test that the final stanza is flushed at end of input."""
        stanzas = list(iter_stanzas(["Package: A\n", "\n", "Package: B\n", "Version: 2.0\n"]))

        assert stanzas[-1] == {"Package": "B", "Version": "2.0"}

    def test_values_are_trimmed(self):
        """Test that whitespace around values is removed."""
        stanzas = list(iter_stanzas(["Package:   spaced  \n", "Version:1.0\n"]))

        assert stanzas == [{"Package": "spaced", "Version": "1.0"}]

    def test_crlf_line_endings(self):
        """Test that CRLF files still split into stanzas."""
        stanzas = list(iter_stanzas(["Package: A\r\n", "\r\n", "Package: B\r\n"]))

        assert stanzas == [{"Package": "A"}, {"Package": "B"}]

    def test_similar_field_names_not_matched(self):
        """Test that fields merely starting with a known name are ignored."""
        stanzas = list(iter_stanzas(["Package: A\n", "Package-List: foo\n", "Version-Extra: 9\n"]))

        assert stanzas == [{"Package": "A"}]

    def test_consecutive_blank_lines(self):
        """Test that repeated delimiters don't yield empty stanzas."""
        stanzas = list(iter_stanzas(["Package: A\n", "\n", "\n", "\n", "Package: B\n"]))

        assert stanzas == [{"Package": "A"}, {"Package": "B"}]

    def test_custom_keys(self):
        """Test that callers can select other fields without touching the defaults."""
        lines = ["Package: A\n", "Architecture: amd64\n", "Version: 1.0\n"]

        assert list(iter_stanzas(lines, keys=("Package", "Architecture"))) == [
            {"Package": "A", "Architecture": "amd64"}
        ]
        assert list(iter_stanzas(lines)) == [{"Package": "A", "Version": "1.0"}]
        assert REQUIRED_PACKAGE_KEYS == ("Package", "Version", "Homepage")

    def test_lazy_consumption(self):
        """Test that lines after the requested stanza are never read."""

        def lines():
            yield "Package: A\n"
            yield "\n"
            raise AssertionError("read past the first stanza")

        assert next(iter_stanzas(lines())) == {"Package": "A"}


class TestFindPackage:
    """Tests for find_package()."""

    def test_first_package(self, index_file):
        result = find_package(index_file, "A")

        assert result == ReleaseResult(releases=[Release(version="1.0")], homepage="h1")

    def test_package_without_homepage(self, index_file):
        result = find_package(index_file, "B")

        assert result.versions == ["2.0"]
        assert result.homepage is None

    def test_missing_package(self, index_file):
        assert find_package(index_file, "C") is None

    def test_no_trailing_blank_line(self, temp_cache_dir):
        """Test the end-of-file check for the last stanza."""
        path = temp_cache_dir / "index.txt"
        path.write_text("Package: A\nVersion: 1.0\n\nPackage: B\nVersion: 2.0")

        assert find_package(path, "B").versions == ["2.0"]

    def test_first_matching_stanza_wins(self, temp_cache_dir):
        """Test that scanning stops at the first stanza of the package."""
        path = temp_cache_dir / "index.txt"
        path.write_text("Package: A\nVersion: 1.0\n\nPackage: A\nVersion: 0.9\n")

        assert find_package(path, "A").versions == ["1.0"]

    def test_name_must_match_exactly(self, index_file):
        """Test that package names are not prefix-matched."""
        assert find_package(index_file, "a") is None
        assert find_package(index_file, "A1") is None


class TestFormatReleaseResult:
    """Tests for format_release_result()."""

    def test_with_version(self):
        result = format_release_result({"Package": "A", "Version": "1.0", "Homepage": "h"})
        assert result.versions == ["1.0"]
        assert result.homepage == "h"

    def test_without_version(self):
        """Test that a stanza without Version produces no release entry."""
        result = format_release_result({"Package": "A"})
        assert result.releases == []


class TestParseExtractedPackage:
    """Tests for memoized parsing."""

    def test_without_cache(self, index_file):
        result = parse_extracted_package(index_file, "A", TIMESTAMP)
        assert result.versions == ["1.0"]

    def test_result_is_memoized(self, index_file, temp_cache_dir):
        """Test that an unchanged index is only scanned once."""
        cache = ResultCache(temp_cache_dir / "memo")

        with patch("debrelease.plugins.deb.parsers.find_package", wraps=find_package) as scan:
            first = parse_extracted_package(index_file, "A", TIMESTAMP, cache=cache)
            second = parse_extracted_package(index_file, "A", TIMESTAMP, cache=cache)

        assert first == second
        assert second.homepage == "h1"
        assert scan.call_count == 1

    def test_absence_is_memoized(self, index_file, temp_cache_dir):
        """Test that "not found" answers are cached too."""
        cache = ResultCache(temp_cache_dir / "memo")

        with patch("debrelease.plugins.deb.parsers.find_package", wraps=find_package) as scan:
            assert parse_extracted_package(index_file, "C", TIMESTAMP, cache=cache) is None
            assert parse_extracted_package(index_file, "C", TIMESTAMP, cache=cache) is None

        assert scan.call_count == 1

    def test_new_timestamp_rescans(self, index_file, temp_cache_dir):
        """Test that a new freshness token bypasses the memoized answer."""
        cache = ResultCache(temp_cache_dir / "memo")
        parse_extracted_package(index_file, "A", TIMESTAMP, cache=cache)

        Path(index_file).write_text("Package: A\nVersion: 1.1\n")
        newer = datetime(2024, 1, 2, tzinfo=timezone.utc)

        assert parse_extracted_package(index_file, "A", TIMESTAMP, cache=cache).versions == ["1.0"]
        assert parse_extracted_package(index_file, "A", newer, cache=cache).versions == ["1.1"]

    def test_package_name_is_part_of_key(self, index_file, temp_cache_dir):
        cache = ResultCache(temp_cache_dir / "memo")

        assert parse_extracted_package(index_file, "A", TIMESTAMP, cache=cache).versions == ["1.0"]
        assert parse_extracted_package(index_file, "B", TIMESTAMP, cache=cache).versions == ["2.0"]
