"""
Configuration management for debrelease.

This module provides Pydantic models for configuration validation and
YAML-based configuration loading with include support.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_REGISTRY_URL = (
    "https://ftp.debian.org/debian?suite=stable&components=main,contrib,non-free&binaryArch=amd64"
)


class ProxyConfig(BaseModel):
    """HTTP proxy configuration."""

    http_proxy: Optional[str] = None
    https_proxy: Optional[str] = None
    no_proxy: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class SSLConfig(BaseModel):
    """SSL/TLS configuration for HTTPS connections."""

    # Path to CA bundle file (PEM format)
    ca_bundle: Optional[str] = None

    # Inline CA certificates (PEM format, multiple certs separated by newlines)
    ca_cert: Optional[str] = None

    # Disable SSL verification (not recommended for production)
    verify: bool = True

    # Client certificate for mTLS
    client_cert: Optional[str] = None
    client_key: Optional[str] = None


class AuthConfig(BaseModel):
    """Repository authentication configuration."""

    type: str  # client_cert, basic, bearer, custom

    # Client certificate authentication
    cert_file: Optional[str] = None
    key_file: Optional[str] = None

    # HTTP Basic authentication
    username: Optional[str] = None
    password: Optional[str] = None

    # Bearer token authentication
    token: Optional[str] = None

    # Custom HTTP headers
    headers: Optional[Dict[str, str]] = None  # e.g., {"X-API-Key": "secret"}

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        """Validate authentication type."""
        valid_types = ["client_cert", "basic", "bearer", "custom"]
        if v not in valid_types:
            raise ValueError(f"Invalid auth type: {v}. Must be one of {valid_types}")
        return v


class DownloadConfig(BaseModel):
    """Download configuration for index files."""

    timeout: int = 60  # Request timeout in seconds
    parallel: int = 1  # Components processed concurrently
    user_agent: str = "debrelease"

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout value."""
        if v < 1:
            raise ValueError("timeout must be at least 1 second")
        return v

    @field_validator("parallel")
    @classmethod
    def validate_parallel(cls, v: int) -> int:
        """Validate parallel component count."""
        if v < 1:
            raise ValueError("parallel must be at least 1")
        if v > 32:
            raise ValueError("parallel cannot exceed 32")
        return v


class CacheConfig(BaseModel):
    """Index and lookup cache configuration."""

    cache_dir: str = str(Path.home() / ".cache" / "debrelease")
    ttl_minutes: int = 24 * 60  # Lifetime of memoized lookup results
    enabled: bool = True  # Memoize lookup results (index files are always cached)

    # Packages index compressions to try, in order of preference
    compressions: List[str] = Field(default_factory=lambda: ["gz"])

    @field_validator("ttl_minutes")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        """Validate TTL value."""
        if v < 1:
            raise ValueError("ttl_minutes must be at least 1")
        return v

    @field_validator("compressions")
    @classmethod
    def validate_compressions(cls, v: List[str]) -> List[str]:
        """Validate compression preference list."""
        if not v:
            raise ValueError("compressions must contain at least one entry")
        valid_compressions = ["gz", "xz", "bz2", "zst"]
        for compression in v:
            if compression not in valid_compressions:
                raise ValueError(
                    f"Invalid compression: {compression}. Must be one of {valid_compressions}"
                )
        return v

    def get_cache_path(self) -> Path:
        """Get cache directory with user home expanded."""
        return Path(self.cache_dir).expanduser()


class RepositoryConfig(BaseModel):
    """Repository configuration."""

    id: str
    name: Optional[str] = None
    url: str  # registry URL with components, binaryArch and release/suite parameters
    enabled: bool = True

    # Authentication
    auth: Optional[AuthConfig] = None

    # Per-repository proxy override (overrides global proxy config)
    proxy: Optional[ProxyConfig] = None

    # Per-repository SSL/TLS override (overrides global ssl config)
    ssl: Optional[SSLConfig] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the registry URL carries the required query parameters."""
        from debrelease.plugins.deb.urls import parse_repository_location

        parse_repository_location(v)
        return v

    @property
    def display_name(self) -> str:
        """Get display name (use name if set, otherwise id)."""
        return self.name or self.id


class GlobalConfig(BaseModel):
    """Global debrelease configuration."""

    cache: CacheConfig = Field(default_factory=CacheConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    proxy: Optional[ProxyConfig] = None
    ssl: Optional[SSLConfig] = None
    repositories: List[RepositoryConfig] = Field(default_factory=list)

    # Include pattern for additional config files
    include: Optional[str] = None

    def get_repository(self, repo_id: str) -> Optional[RepositoryConfig]:
        """Get repository configuration by ID."""
        for repo in self.repositories:
            if repo.id == repo_id:
                return repo
        return None

    def get_enabled_repositories(self) -> List[RepositoryConfig]:
        """Get all enabled repositories."""
        return [repo for repo in self.repositories if repo.enabled]


class ConfigLoader:
    """Configuration file loader with include support."""

    def __init__(self, config_path: Path):
        """Initialize config loader.

        Args:
            config_path: Path to main configuration file
        """
        self.config_path = config_path

    def load(self) -> GlobalConfig:
        """Load configuration from YAML file.

        Returns:
            GlobalConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path) as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"YAML syntax error in {self.config_path}:\n{e}")

        if "include" in config_data:
            included_repos = self._load_includes(config_data["include"])
            if "repositories" not in config_data:
                config_data["repositories"] = []
            config_data["repositories"].extend(included_repos)

        try:
            return GlobalConfig(**config_data)
        except Exception as e:
            raise ValueError(f"Configuration validation error in {self.config_path}:\n{e}")

    def _load_includes(self, include_pattern: str) -> List[Dict[str, Any]]:
        """Load repositories from included configuration files.

        Args:
            include_pattern: Glob pattern for include files (e.g., "conf.d/*.yaml")

        Returns:
            Repository entries from included files
        """
        config_dir = self.config_path.parent

        if "*" in include_pattern:
            pattern_parts = Path(include_pattern).parts
            if len(pattern_parts) > 1:
                search_dir = config_dir / Path(*pattern_parts[:-1])
                pattern = pattern_parts[-1]
            else:
                search_dir = config_dir
                pattern = include_pattern

            config_files = sorted(search_dir.glob(pattern)) if search_dir.exists() else []
        else:
            include_path = config_dir / include_pattern
            config_files = [include_path] if include_path.exists() else []

        all_repos = []
        for config_file in config_files:
            if config_file.suffix in [".yaml", ".yml"]:
                try:
                    with open(config_file) as f:
                        data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ValueError(f"YAML syntax error in {config_file}:\n{e}")
                all_repos.extend(data.get("repositories", []))

        return all_repos


def load_config(config_path: Optional[Path] = None) -> GlobalConfig:
    """Load configuration from file.

    Priority:
    1. Explicit config_path parameter (--config CLI flag)
    2. DEBRELEASE_CONFIG environment variable
    3. Default locations (/etc/debrelease/config.yaml, ~/.config/debrelease/config.yaml, ./config.yaml)

    Args:
        config_path: Path to config file. If None, tries DEBRELEASE_CONFIG env or default locations.

    Returns:
        GlobalConfig instance

    Raises:
        FileNotFoundError: If an explicitly requested config file is missing
    """
    import os

    default_paths = [
        Path("/etc/debrelease/config.yaml"),
        Path.home() / ".config" / "debrelease" / "config.yaml",
        Path("config.yaml"),
    ]

    if config_path:
        paths_to_try = [config_path]
    elif os.environ.get("DEBRELEASE_CONFIG"):
        paths_to_try = [Path(os.environ["DEBRELEASE_CONFIG"])]
    else:
        paths_to_try = default_paths

    for path in paths_to_try:
        if path.exists():
            return ConfigLoader(path).load()

    if config_path:
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    elif os.environ.get("DEBRELEASE_CONFIG"):
        raise FileNotFoundError(
            f"Configuration file not found: {os.environ['DEBRELEASE_CONFIG']} (from DEBRELEASE_CONFIG)"
        )
    else:
        # Return default config if no file found
        return GlobalConfig()


def create_example_config(output_path: Path) -> None:
    """Create an example configuration file.

    Args:
        output_path: Path to write example config
    """
    example_config = {
        "cache": {
            "cache_dir": "~/.cache/debrelease",
            "ttl_minutes": 1440,
            "compressions": ["gz"],
        },
        "download": {
            "timeout": 60,
            "parallel": 1,
        },
        "repositories": [
            {
                "id": "debian-stable",
                "name": "Debian stable",
                "url": DEFAULT_REGISTRY_URL,
            },
            {
                "id": "ubuntu-jammy",
                "name": "Ubuntu 22.04",
                "url": "https://archive.ubuntu.com/ubuntu?release=jammy&components=main,universe&binaryArch=amd64",
            },
        ],
        "include": "conf.d/*.yaml",
    }

    with open(output_path, "w") as f:
        yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
