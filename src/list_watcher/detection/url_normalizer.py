"""URL normalization utilities."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote, urljoin, urlparse, urlunparse

if TYPE_CHECKING:
    from urllib.parse import ParseResult

_INVALID_URL = "Invalid URL"
_DEFAULT_PORTS = {"http": 80, "https": 443}
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_SKIPPED_PREFIXES = ("#", "javascript:")


def normalize_url(url: str, *, base_url: str | None = None) -> str:
    """
    Resolve ``url`` against ``base_url`` and return its canonical absolute form.

    Scheme and host are lowercased, default ports dropped, an empty path
    becomes ``/`` and unsafe path characters are percent-encoded. Query and
    fragment are kept as-is. Raises ``ValueError`` for anything that is not
    an absolute http(s) URL after resolution.
    """
    if not url:
        raise ValueError(_INVALID_URL)

    parsed, scheme = _parse_url(url, base_url=base_url)
    netloc = _build_netloc(parsed, scheme)
    path = quote(parsed.path or "/", safe=_PATH_SAFE)
    return urlunparse((scheme, netloc, path, parsed.params, parsed.query, parsed.fragment))


def resolve_link(href: str | None, base_url: str) -> str | None:
    """Return the absolute URL an anchor points at, or None for in-page, script and non-web links."""
    if href is None:
        return None
    href = href.strip()
    if not href or href.lower().startswith(_SKIPPED_PREFIXES):
        return None
    try:
        return normalize_url(href, base_url=base_url)
    except ValueError:
        return None


def _parse_url(url: str, *, base_url: str | None) -> tuple[ParseResult, str]:
    resolved = urljoin(base_url, url.strip()) if base_url is not None else url.strip()
    parsed = urlparse(resolved)
    scheme = parsed.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not parsed.netloc:
        raise ValueError(_INVALID_URL)
    if parsed.hostname is None:
        raise ValueError(_INVALID_URL)
    return parsed, scheme


def _build_netloc(parsed: ParseResult, scheme: str) -> str:
    hostname = parsed.hostname
    if hostname is None:
        raise ValueError(_INVALID_URL)
    try:
        host = hostname.encode("idna").decode("ascii").lower()
        port = parsed.port
    except (UnicodeError, ValueError) as exc:
        raise ValueError(_INVALID_URL) from exc

    userinfo = ""
    if parsed.username is not None:
        userinfo = parsed.username
        if parsed.password is not None:
            userinfo = f"{userinfo}:{parsed.password}"
        userinfo = f"{userinfo}@"

    if ":" in host:
        host = f"[{host}]"
    netloc = f"{userinfo}{host}"
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"
    return netloc
