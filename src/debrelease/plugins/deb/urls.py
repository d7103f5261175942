from __future__ import annotations

"""
Registry URL handling for Debian repositories.

The apt sources.list format is ``deb uri distribution [component1] [component2] [...]``
(see https://wiki.debian.org/DebianRepository/Format). To express it as a
single valid URL, distribution, components and architecture are encoded as
query parameters:

- components: comma separated list of components (required)
- binaryArch: architecture, e.g. amd64 (required)
- release: release codename, e.g. bookworm (either this or suite)
- suite: release alias, e.g. stable (checked after release)

``https://ftp.debian.org/debian?suite=stable&components=main&binaryArch=amd64``
resolves to ``https://ftp.debian.org/debian/dists/stable/main/binary-amd64``.
"""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from debrelease.core.errors import ConfigurationError
from debrelease.plugins.deb.models import RepositoryLocation

REQUIRED_PARAMS = ["components", "binaryArch"]
RELEASE_PARAMS = ["release", "suite"]  # first match wins
SUPPORTED_SCHEMES = ("http", "https")


def join_url_parts(base_url: str, *parts: str) -> str:
    """Append path segments to a URL, keeping its query string intact.

    Examples:
        >>> join_url_parts("https://example.com/debian/", "dists", "stable")
        'https://example.com/debian/dists/stable'
        >>> join_url_parts("https://example.com/debian?token=x", "Packages.gz")
        'https://example.com/debian/Packages.gz?token=x'
    """
    scheme, netloc, path, query, fragment = urlsplit(base_url)
    segments = [path.rstrip("/")] + [part.strip("/") for part in parts if part]
    return urlunsplit((scheme, netloc, "/".join(segments), query, fragment))


def _parse(registry_url: str) -> RepositoryLocation:
    scheme, netloc, path, query, fragment = urlsplit(registry_url)
    if scheme not in SUPPORTED_SCHEMES or not netloc:
        raise ValueError("not an absolute http(s) URL")

    params = parse_qsl(query, keep_blank_values=True)
    values: dict[str, str] = {}
    for name, value in params:
        values.setdefault(name, value)

    for param in REQUIRED_PARAMS:
        if not values.get(param):
            raise ValueError(f"Missing required query parameter '{param}'")

    release = next((values[p] for p in RELEASE_PARAMS if values.get(p)), None)
    if release is None:
        raise ValueError(f"Missing one of {', '.join(RELEASE_PARAMS)} query parameter")

    components = [c.strip() for c in values["components"].split(",") if c.strip()]
    if not components:
        raise ValueError("Query parameter 'components' lists no component")

    # Clean up recognized parameters so they don't leak into component URLs
    recognized = set(REQUIRED_PARAMS) | set(RELEASE_PARAMS)
    remaining = urlencode([(n, v) for n, v in params if n not in recognized])
    base_url = urlunsplit((scheme, netloc, path, remaining, fragment))

    return RepositoryLocation(
        base_url=base_url,
        release=release,
        components=components,
        binary_arch=values["binaryArch"],
    )


def parse_repository_location(registry_url: str) -> RepositoryLocation:
    """Parse a registry URL into its repository location.

    Args:
        registry_url: Repository URL with query parameters

    Returns:
        RepositoryLocation

    Raises:
        ConfigurationError: If the URL is invalid or misses required parameters
    """
    try:
        return _parse(registry_url)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid deb repo URL: {registry_url} - see documentation: {e}"
        ) from e


def construct_component_urls(registry_url: str) -> list[str]:
    """Construct one binary index URL per component.

    Args:
        registry_url: Repository URL with query parameters

    Returns:
        Component URLs, in the order the components were listed

    Raises:
        ConfigurationError: If the URL is invalid or misses required parameters
    """
    location = parse_repository_location(registry_url)
    return [
        join_url_parts(
            location.base_url,
            "dists",
            location.release,
            component,
            f"binary-{location.binary_arch}",
        )
        for component in location.components
    ]
