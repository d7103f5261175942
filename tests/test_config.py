"""Tests for configuration management."""

import tempfile
from pathlib import Path

import pytest

from debrelease.core.config import (
    DEFAULT_REGISTRY_URL,
    AuthConfig,
    CacheConfig,
    ConfigLoader,
    DownloadConfig,
    GlobalConfig,
    RepositoryConfig,
    create_example_config,
    load_config,
)

REPO_URL = "https://ftp.debian.org/debian?suite=stable&components=main&binaryArch=amd64"


def test_cache_config_defaults():
    """Test cache config with defaults."""
    config = CacheConfig()
    assert config.ttl_minutes == 1440
    assert config.enabled is True
    assert config.compressions == ["gz"]
    assert config.get_cache_path() == Path.home() / ".cache" / "debrelease"


def test_cache_config_expands_home():
    config = CacheConfig(cache_dir="~/debrelease-cache")
    assert config.get_cache_path() == Path.home() / "debrelease-cache"


def test_cache_config_validation():
    """Test compression and TTL validation."""
    assert CacheConfig(compressions=["zst", "xz", "bz2", "gz"]).compressions[0] == "zst"

    with pytest.raises(ValueError, match="Invalid compression"):
        CacheConfig(compressions=["lz4"])

    with pytest.raises(ValueError, match="at least one entry"):
        CacheConfig(compressions=[])

    with pytest.raises(ValueError, match="ttl_minutes"):
        CacheConfig(ttl_minutes=0)


def test_download_config_validation():
    """Test download config limits."""
    assert DownloadConfig().timeout == 60
    assert DownloadConfig().parallel == 1

    with pytest.raises(ValueError, match="timeout"):
        DownloadConfig(timeout=0)

    with pytest.raises(ValueError, match="parallel must be at least 1"):
        DownloadConfig(parallel=0)

    with pytest.raises(ValueError, match="parallel cannot exceed 32"):
        DownloadConfig(parallel=33)


def test_auth_config_validation():
    """Test authentication type validation."""
    for auth_type in ["client_cert", "basic", "bearer", "custom"]:
        assert AuthConfig(type=auth_type).type == auth_type

    with pytest.raises(ValueError, match="Invalid auth type"):
        AuthConfig(type="kerberos")


def test_repository_config_validation():
    """Test that repository URLs must carry the registry parameters."""
    config = RepositoryConfig(id="debian", url=REPO_URL)
    assert config.enabled is True
    assert config.display_name == "debian"

    config = RepositoryConfig(id="debian", name="Debian", url=REPO_URL)
    assert config.display_name == "Debian"

    with pytest.raises(ValueError, match="Invalid deb repo URL"):
        RepositoryConfig(id="broken", url="https://ftp.debian.org/debian?suite=stable")


def test_global_config_repositories():
    """Test repository lookup helpers."""
    config = GlobalConfig(
        repositories=[
            RepositoryConfig(id="a", url=REPO_URL),
            RepositoryConfig(id="b", url=REPO_URL, enabled=False),
        ]
    )

    assert config.get_repository("b").id == "b"
    assert config.get_repository("missing") is None
    assert [r.id for r in config.get_enabled_repositories()] == ["a"]


def test_config_loader_yaml():
    """Test loading configuration from YAML."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_file = Path(tmpdir) / "config.yaml"
        config_file.write_text(
            f"""
cache:
  cache_dir: {tmpdir}/cache
  ttl_minutes: 60
  compressions: [xz, gz]

download:
  timeout: 10
  parallel: 4

proxy:
  https_proxy: http://proxy.example.com:3128

repositories:
  - id: debian
    url: "{REPO_URL}"
    auth:
      type: basic
      username: user
      password: pass
"""
        )

        config = ConfigLoader(config_file).load()

        assert config.cache.ttl_minutes == 60
        assert config.cache.compressions == ["xz", "gz"]
        assert config.download.parallel == 4
        assert config.proxy.https_proxy == "http://proxy.example.com:3128"
        assert config.repositories[0].auth.username == "user"


def test_config_loader_include():
    """Test that repositories from included files are merged."""
    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir = Path(tmpdir)
        (tmpdir / "conf.d").mkdir()
        (tmpdir / "conf.d" / "b.yaml").write_text(
            f'repositories:\n  - id: from-b\n    url: "{REPO_URL}"\n'
        )
        (tmpdir / "conf.d" / "a.yaml").write_text(
            f'repositories:\n  - id: from-a\n    url: "{REPO_URL}"\n'
        )
        (tmpdir / "conf.d" / "notes.txt").write_text("ignored")

        config_file = tmpdir / "config.yaml"
        config_file.write_text(
            f'repositories:\n  - id: main\n    url: "{REPO_URL}"\ninclude: "conf.d/*.yaml"\n'
        )

        config = ConfigLoader(config_file).load()

        assert [r.id for r in config.repositories] == ["main", "from-a", "from-b"]


def test_config_loader_errors():
    """Test loader error reporting."""
    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir = Path(tmpdir)

        with pytest.raises(FileNotFoundError):
            ConfigLoader(tmpdir / "missing.yaml").load()

        bad_yaml = tmpdir / "bad.yaml"
        bad_yaml.write_text("cache: [unclosed\n")
        with pytest.raises(ValueError, match="YAML syntax error"):
            ConfigLoader(bad_yaml).load()

        invalid = tmpdir / "invalid.yaml"
        invalid.write_text("download:\n  parallel: 100\n")
        with pytest.raises(ValueError, match="Configuration validation error"):
            ConfigLoader(invalid).load()


def test_load_config_explicit_path_missing():
    with pytest.raises(FileNotFoundError):
        load_config(Path("/nonexistent/debrelease.yaml"))


def test_load_config_from_env(monkeypatch):
    """Test DEBRELEASE_CONFIG environment variable."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_file = Path(tmpdir) / "env.yaml"
        config_file.write_text("download:\n  timeout: 7\n")
        monkeypatch.setenv("DEBRELEASE_CONFIG", str(config_file))

        assert load_config().download.timeout == 7

        monkeypatch.setenv("DEBRELEASE_CONFIG", str(Path(tmpdir) / "missing.yaml"))
        with pytest.raises(FileNotFoundError, match="DEBRELEASE_CONFIG"):
            load_config()


def test_load_config_defaults(monkeypatch, tmp_path):
    """Test that the built-in defaults apply without any config file."""
    monkeypatch.delenv("DEBRELEASE_CONFIG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    if Path("/etc/debrelease/config.yaml").exists():
        pytest.skip("system configuration present")

    config = load_config()

    assert config.repositories == []
    assert config.cache.compressions == ["gz"]


def test_create_example_config():
    """Test that the example config loads back cleanly."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_file = Path(tmpdir) / "config.yaml"

        create_example_config(config_file)
        config = ConfigLoader(config_file).load()

        assert [r.id for r in config.repositories] == ["debian-stable", "ubuntu-jammy"]
        assert config.repositories[0].url == DEFAULT_REGISTRY_URL
        assert config.include == "conf.d/*.yaml"
