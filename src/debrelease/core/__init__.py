"""
Core functionality for debrelease.

This package provides core services like configuration management,
the download manager, the cache directory and the lookup result cache.
"""

from debrelease.core.cache import CacheStats, ResultCache
from debrelease.core.config import (
    AuthConfig,
    CacheConfig,
    ConfigLoader,
    DownloadConfig,
    GlobalConfig,
    ProxyConfig,
    RepositoryConfig,
    SSLConfig,
    create_example_config,
    load_config,
)
from debrelease.core.storage import CacheStorage

__all__ = [
    "AuthConfig",
    "CacheConfig",
    "CacheStats",
    "CacheStorage",
    "ConfigLoader",
    "DownloadConfig",
    "GlobalConfig",
    "ProxyConfig",
    "RepositoryConfig",
    "ResultCache",
    "SSLConfig",
    "create_example_config",
    "load_config",
]
