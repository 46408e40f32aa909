"""URL parsing helpers shared by every scoring layer."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

import tldextract

# Offline extractor: uses the public suffix snapshot bundled with tldextract
# so scoring never reaches out to the network.
_EXTRACTOR = tldextract.TLDExtract(suffix_list_urls=())


class URLParseError(ValueError):
    """Raised when a URL cannot be parsed into a scheme and hostname."""


@dataclass(frozen=True)
class ParsedURL:
    """The pieces of a URL the scoring layers care about."""

    url: str
    scheme: str
    hostname: str  # lowercase, as given (may include "www.")
    domain: str  # hostname normalized via normalize_domain()
    port: int | None
    path: str


def normalize_domain(domain: str) -> str:
    """Lowercase a domain and strip a single leading ``www.``."""
    domain = domain.strip().lower().rstrip(".")
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def parse_url(url: str) -> ParsedURL:
    """Parse a URL, raising URLParseError when it has no usable host.

    Args:
        url: The raw URL string.

    Returns:
        A ParsedURL with a normalized domain.

    Raises:
        URLParseError: If the URL is malformed, has no scheme, or no hostname.
    """
    if not isinstance(url, str) or not url.strip():
        raise URLParseError("Invalid URL: empty input")

    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname or ""
        port = parsed.port
    except ValueError as exc:
        raise URLParseError(f"Invalid URL: {exc}") from exc

    if not parsed.scheme:
        raise URLParseError(f"Invalid URL: missing scheme in {url!r}")
    if not hostname:
        raise URLParseError(f"Invalid URL: missing hostname in {url!r}")

    return ParsedURL(
        url=url,
        scheme=parsed.scheme.lower(),
        hostname=hostname.lower(),
        domain=normalize_domain(hostname),
        port=port,
        path=parsed.path,
    )


def extract(hostname: str) -> tldextract.ExtractResult:
    """Split a hostname into subdomain, domain and public suffix."""
    return _EXTRACTOR(hostname)


def registrable_domain(hostname: str) -> str:
    """Return the registrable domain (e.g. ``maybank2u.com.my``) of a host.

    Hosts without a known public suffix (IP addresses, ``localhost``) are
    returned unchanged.
    """
    extracted = extract(hostname)
    if extracted.domain and extracted.suffix:
        return f"{extracted.domain}.{extracted.suffix}"
    return normalize_domain(hostname)
