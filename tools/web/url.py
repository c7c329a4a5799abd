"""URL normalization and validation."""

import ipaddress
import re
from dataclasses import dataclass
from urllib.parse import quote, urlsplit, urlunsplit

from models.errors import ValidationError

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_HOST_RE = re.compile(r"^[a-z0-9_](?:[a-z0-9_.-]*[a-z0-9_])?$")
_DEFAULT_PORTS = {"http": 80, "https": 443}
# Reserved characters and existing escapes survive; spaces and non-ASCII are percent-encoded
_URL_SAFE = "/%:@!$&'()*+,;=?"


@dataclass(frozen=True)
class NormalizedUrl:
    url: str
    domain: str


def _ascii_host(host: str) -> str:
    """IDNA-encode a hostname; ``ValidationError`` when it is not a valid host."""
    if not host.isascii():
        try:
            host = host.encode("idna").decode("ascii")
        except UnicodeError as exc:
            raise ValidationError("Invalid URL format") from exc
    if not _HOST_RE.match(host) or ".." in host:
        raise ValidationError("Invalid URL format")
    return host


def normalize_url(raw) -> NormalizedUrl:
    """
    Turn free-text input into a canonical absolute URL.

    ``https://`` is prepended when no http(s) scheme is present. The result
    has a lowercase scheme and an ASCII (punycode) host, no default port, no
    fragment, a percent-encoded path and query and at least a ``/`` path, so
    it can be used directly as a cache key. Bracketed IPv6 literals are kept
    in brackets.

    Raises:
        ValidationError: If the input is empty, not a string or not a URL
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("URL is required and must be a string")

    candidate = raw.strip()
    if not _SCHEME_RE.match(candidate):
        candidate = "https://" + candidate

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as exc:
        raise ValidationError("Invalid URL format") from exc

    if parts.username or parts.password:
        raise ValidationError("Invalid URL format")

    hostname = (parts.hostname or "").rstrip(".")
    if not hostname:
        raise ValidationError("Invalid URL format")

    if "[" in parts.netloc:
        try:
            host = ipaddress.IPv6Address(hostname).compressed
        except ValueError as exc:
            raise ValidationError("Invalid URL format") from exc
        netloc = f"[{host}]"
    else:
        host = _ascii_host(hostname)
        netloc = host

    scheme = parts.scheme.lower()
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{port}"

    path = quote(parts.path, safe=_URL_SAFE) or "/"
    query = quote(parts.query, safe=_URL_SAFE)
    url = urlunsplit((scheme, netloc, path, query, ""))

    return NormalizedUrl(url=url, domain=extract_domain(host))


def extract_domain(host_or_url: str) -> str:
    """Bare hostname with a leading ``www.`` stripped."""
    host = host_or_url
    if "://" in host:
        host = urlsplit(host).hostname or ""
    host = host.lower()
    return host[4:] if host.startswith("www.") else host
