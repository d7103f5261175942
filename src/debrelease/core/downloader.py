from __future__ import annotations

"""
Central download manager for repository index files.

This module provides an abstraction layer for talking to remote repositories,
enabling consistent handling of authentication, SSL/TLS, proxies and timeouts
for conditional HEAD requests and streamed downloads.
"""

import logging
import tempfile
import threading
from pathlib import Path

import requests

from debrelease.core.config import (
    AuthConfig,
    DownloadConfig,
    ProxyConfig,
    RepositoryConfig,
    SSLConfig,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536


class DownloadBackend:
    """Abstract download backend."""

    def head(self, url: str, headers: dict[str, str] | None = None) -> int:
        """Issue a HEAD request.

        Args:
            url: Target URL
            headers: Additional request headers (e.g. If-Modified-Since)

        Returns:
            HTTP status code

        Raises:
            requests.RequestException: On transport errors or error status codes
        """
        raise NotImplementedError

    def stream_to_file(self, url: str, dest: Path) -> Path:
        """Stream a remote file to a local path.

        Args:
            url: Source URL
            dest: Destination path

        Returns:
            Path to downloaded file

        Raises:
            requests.RequestException: On download errors
        """
        raise NotImplementedError


class RequestsBackend(DownloadBackend):
    """Download backend using requests library."""

    def __init__(
        self,
        config: RepositoryConfig | None = None,
        download_config: DownloadConfig | None = None,
        proxy_config: ProxyConfig | None = None,
        ssl_config: SSLConfig | None = None,
    ):
        """Initialize requests backend.

        Args:
            config: Repository configuration (for authentication), optional
            download_config: Download configuration (timeout, user agent)
            proxy_config: Optional proxy configuration
            ssl_config: Optional SSL/TLS configuration
        """
        self.config = config
        self.download_config = download_config or DownloadConfig()
        self.proxy_config = proxy_config
        self.ssl_config = ssl_config
        self._temp_ca_file: str | None = None
        self._local = threading.local()

        if ssl_config and ssl_config.verify and ssl_config.ca_cert:
            # Inline CA certificate - requests needs a file path
            ca_file = tempfile.NamedTemporaryFile(mode="w", suffix=".pem", delete=False)
            ca_file.write(ssl_config.ca_cert)
            ca_file.flush()
            ca_file.close()
            self._temp_ca_file = ca_file.name

    @property
    def session(self) -> requests.Session:
        """Requests session of the calling thread.

        Sessions are not shared between threads, so every worker of a
        parallel lookup gets its own, configured the same way.
        """
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._setup_session()
            self._local.session = session
        return session

    def _setup_session(self) -> requests.Session:
        """Setup requests session with auth, SSL, and proxy configuration.

        Returns:
            Configured requests session
        """
        session = requests.Session()
        session.headers.update({"User-Agent": self.download_config.user_agent})

        if self.proxy_config:
            proxies = {}
            if self.proxy_config.http_proxy:
                proxies["http"] = self.proxy_config.http_proxy
            if self.proxy_config.https_proxy:
                proxies["https"] = self.proxy_config.https_proxy
            if self.proxy_config.no_proxy:
                proxies["no_proxy"] = self.proxy_config.no_proxy
            session.proxies.update(proxies)

            if self.proxy_config.username and self.proxy_config.password:
                session.auth = (self.proxy_config.username, self.proxy_config.password)

        if self.ssl_config:
            if not self.ssl_config.verify:
                session.verify = False
            elif self._temp_ca_file:
                session.verify = self._temp_ca_file
            elif self.ssl_config.ca_bundle:
                session.verify = self.ssl_config.ca_bundle

            if self.ssl_config.client_cert:
                if self.ssl_config.client_key:
                    session.cert = (self.ssl_config.client_cert, self.ssl_config.client_key)
                else:
                    session.cert = self.ssl_config.client_cert

        if self.config and self.config.auth:
            self._setup_auth(session, self.config.auth)

        return session

    def _setup_auth(self, session: requests.Session, auth: AuthConfig) -> None:
        """Setup authentication on session.

        Args:
            session: Requests session
            auth: Authentication configuration
        """
        if auth.type == "client_cert":
            if auth.cert_file and auth.key_file:
                session.cert = (auth.cert_file, auth.key_file)
                logger.debug("Using client certificate authentication")

        elif auth.type == "basic":
            if auth.username and auth.password:
                session.auth = (auth.username, auth.password)
                logger.debug(f"Using HTTP Basic authentication (user: {auth.username})")

        elif auth.type == "bearer":
            if auth.token:
                session.headers.update({"Authorization": f"Bearer {auth.token}"})
                logger.debug("Using Bearer token authentication")

        elif auth.type == "custom":
            if auth.headers:
                session.headers.update(auth.headers)
                logger.debug("Using custom HTTP headers")

    def head(self, url: str, headers: dict[str, str] | None = None) -> int:
        """Issue a HEAD request, following redirects.

        A 304 Not Modified answer is returned as-is; other 4xx/5xx answers raise.
        """
        response = self.session.head(
            url,
            headers=headers or {},
            allow_redirects=True,
            timeout=self.download_config.timeout,
        )
        if response.status_code != 304:
            response.raise_for_status()
        return response.status_code

    def stream_to_file(self, url: str, dest: Path) -> Path:
        """Stream a download into a temporary file and move it into place."""
        dest.parent.mkdir(parents=True, exist_ok=True)

        response = self.session.get(url, stream=True, timeout=self.download_config.timeout)
        try:
            response.raise_for_status()

            with tempfile.NamedTemporaryFile(
                delete=False, dir=dest.parent, suffix=".part"
            ) as tmp_file:
                tmp_path = Path(tmp_file.name)
                try:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        tmp_file.write(chunk)
                except BaseException:
                    tmp_file.close()
                    tmp_path.unlink(missing_ok=True)
                    raise

            tmp_path.replace(dest)
        finally:
            response.close()

        logger.debug(f"Downloaded {url} to {dest}")
        return dest

    def __del__(self) -> None:
        """Cleanup temporary files."""
        if self._temp_ca_file:
            Path(self._temp_ca_file).unlink(missing_ok=True)


class DownloadManager:
    """Central download manager for all repository requests."""

    def __init__(
        self,
        config: RepositoryConfig | None = None,
        download_config: DownloadConfig | None = None,
        proxy_config: ProxyConfig | None = None,
        ssl_config: SSLConfig | None = None,
        backend: str = "requests",
    ):
        """Initialize download manager.

        Args:
            config: Repository configuration (optional, for auth and overrides)
            download_config: Download configuration (timeout etc.)
            proxy_config: Optional proxy configuration (repository override wins)
            ssl_config: Optional SSL/TLS configuration (repository override wins)
            backend: Download backend to use (default: "requests")

        Raises:
            ValueError: If backend is not supported
        """
        self.config = config
        self.download_config = download_config or DownloadConfig()

        if config and config.proxy:
            proxy_config = config.proxy
        if config and config.ssl:
            ssl_config = config.ssl

        self.backend_impl = self._init_backend(
            backend, config, self.download_config, proxy_config, ssl_config
        )

    def _init_backend(
        self,
        backend: str,
        config: RepositoryConfig | None,
        download_config: DownloadConfig,
        proxy_config: ProxyConfig | None,
        ssl_config: SSLConfig | None,
    ) -> DownloadBackend:
        """Initialize download backend.

        Raises:
            ValueError: If backend is not supported
        """
        if backend == "requests":
            return RequestsBackend(config, download_config, proxy_config, ssl_config)
        raise ValueError(f"Unknown download backend: {backend}")

    def head(self, url: str, headers: dict[str, str] | None = None) -> int:
        """Issue a HEAD request and return the status code."""
        return self.backend_impl.head(url, headers)

    def stream_to_file(self, url: str, dest: Path) -> Path:
        """Stream a remote file to a local path."""
        return self.backend_impl.stream_to_file(url, dest)

    @property
    def session(self) -> requests.Session:
        """Get underlying requests session.

        Raises:
            AttributeError: If backend doesn't use requests
        """
        if isinstance(self.backend_impl, RequestsBackend):
            return self.backend_impl.session
        raise AttributeError("Current backend does not provide a requests session")
