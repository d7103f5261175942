from __future__ import annotations

"""
Release lookup for Debian-style APT repositories.

Resolves the versions and homepage of a package across all components of a
repository. Components are independent: a component whose index can't be
fetched or parsed is logged and skipped.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from debrelease.core.cache import ResultCache
from debrelease.core.config import CacheConfig, DownloadConfig, GlobalConfig, RepositoryConfig
from debrelease.core.downloader import DownloadManager
from debrelease.core.errors import IndexUnavailableError
from debrelease.core.storage import CacheStorage
from debrelease.plugins.deb.index import IndexCacheManager
from debrelease.plugins.deb.models import ComponentOutcome, ReleaseResult
from debrelease.plugins.deb.parsers import parse_extracted_package
from debrelease.plugins.deb.urls import construct_component_urls

logger = logging.getLogger(__name__)


class DebDatasource:
    """Looks up package releases in Debian repositories.

    Handles:
    - Building component URLs from a registry URL
    - Keeping per-component Packages indexes cached and fresh
    - Finding the package in each component's index
    - Aggregating releases found in several components
    """

    id = "deb"

    def __init__(
        self,
        cache_config: CacheConfig | None = None,
        download_config: DownloadConfig | None = None,
        downloader: DownloadManager | None = None,
        storage: CacheStorage | None = None,
        result_cache: ResultCache | None = None,
    ):
        """Initialize Debian datasource.

        Args:
            cache_config: Cache configuration (directory, TTL, compressions)
            download_config: Download configuration (timeout, parallelism)
            downloader: Download manager (default: plain requests session)
            storage: Cache directory (default: from cache_config)
            result_cache: Lookup result cache (default: from cache_config)
        """
        self.cache_config = cache_config or CacheConfig()
        self.download_config = download_config or DownloadConfig()

        cache_path = self.cache_config.get_cache_path()
        self.storage = storage or CacheStorage(cache_path)
        self.result_cache = result_cache or ResultCache(
            self.storage.cache_path / "memo", enabled=self.cache_config.enabled
        )
        self.downloader = downloader or DownloadManager(download_config=self.download_config)
        self.index_cache = IndexCacheManager(
            self.storage, self.downloader, self.cache_config.compressions
        )

    @classmethod
    def from_config(
        cls, config: GlobalConfig, repo_config: RepositoryConfig | None = None
    ) -> "DebDatasource":
        """Create a datasource with proxy, SSL and auth settings applied.

        Args:
            config: Global configuration
            repo_config: Repository whose auth/proxy/ssl overrides apply

        Returns:
            DebDatasource instance
        """
        downloader = DownloadManager(
            config=repo_config,
            download_config=config.download,
            proxy_config=config.proxy,
            ssl_config=config.ssl,
        )
        return cls(
            cache_config=config.cache,
            download_config=config.download,
            downloader=downloader,
        )

    def resolve_component(self, component_url: str, package_name: str) -> ComponentOutcome:
        """Look up a package in a single component.

        Never raises: any failure is reported as a "failed" outcome.
        """
        try:
            index = self.index_cache.download_and_extract(component_url)
            result = parse_extracted_package(
                Path(index.extracted_file),
                package_name,
                index.last_timestamp,
                cache=self.result_cache,
                ttl_minutes=self.cache_config.ttl_minutes,
            )
        except Exception as e:
            logger.warning(f"Skipping component {component_url} due to an error: {e}")
            return ComponentOutcome(component_url=component_url, status="failed", error=str(e))

        if result is None:
            return ComponentOutcome(component_url=component_url, status="not-found")
        return ComponentOutcome(component_url=component_url, status="found", result=result)

    def resolve_components(self, component_urls: list[str], package_name: str) -> list[ComponentOutcome]:
        """Look up a package in every component, keeping component order."""
        workers = min(self.download_config.parallel, len(component_urls))
        if workers <= 1:
            return [self.resolve_component(url, package_name) for url in component_urls]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(
                executor.map(lambda url: self.resolve_component(url, package_name), component_urls)
            )

    def get_releases(self, registry_url: str, package_name: str) -> ReleaseResult | None:
        """Fetch the release information of a package from a repository.

        Args:
            registry_url: Repository URL with components/binaryArch/release parameters
            package_name: Binary package name

        Returns:
            Aggregated ReleaseResult, or None if no component has the package

        Raises:
            ConfigurationError: If registry_url is invalid
            IndexUnavailableError: If no component index could be obtained at all
        """
        result, _ = self.lookup(registry_url, package_name)
        return result

    def lookup(
        self, registry_url: str, package_name: str
    ) -> tuple[ReleaseResult | None, list[ComponentOutcome]]:
        """Like get_releases(), but also return the per-component outcomes."""
        component_urls = construct_component_urls(registry_url)
        outcomes = self.resolve_components(component_urls, package_name)

        if outcomes and all(outcome.status == "failed" for outcome in outcomes):
            raise IndexUnavailableError(
                f"No Packages index could be obtained for any component of {registry_url}"
            )

        return self.aggregate(outcomes, package_name), outcomes

    def aggregate(self, outcomes: list[ComponentOutcome], package_name: str) -> ReleaseResult | None:
        """Merge per-component results in component order.

        The first match seeds the result; releases of later matches are
        appended. Differing homepages are logged but don't stop the merge.
        """
        aggregated_release: ReleaseResult | None = None

        for outcome in outcomes:
            if outcome.status != "found" or outcome.result is None:
                continue

            if aggregated_release is None:
                aggregated_release = outcome.result.model_copy(deep=True)
                continue

            if not self.release_meta_information_matches(aggregated_release, outcome.result):
                logger.warning(
                    f"Package {package_name} occurred in more than one repository with "
                    "different meta information. Aggregating releases anyway."
                )
            aggregated_release.releases.extend(outcome.result.releases)

        return aggregated_release

    @staticmethod
    def release_meta_information_matches(lhs: ReleaseResult, rhs: ReleaseResult) -> bool:
        """Check if two release results carry the same metadata."""
        return lhs.homepage == rhs.homepage
