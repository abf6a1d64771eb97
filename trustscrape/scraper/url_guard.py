"""Pre-flight URL guards applied before any network call."""

from __future__ import annotations

import ipaddress
import re
import socket
from typing import Optional, Union
from urllib.parse import urlsplit

from trustscrape.errors import InvalidURLError

MAX_URL_LENGTH = 2048

_BLOCKED_HOSTNAMES = frozenset({"localhost", "127.0.0.1", "0.0.0.0", "::1", "[::1]"})
_BLOCKED_SUFFIXES = (".localhost", ".local", ".internal")

_PRIVATE_IP_PATTERNS = [
    re.compile(r"^10\.\d{1,3}\.\d{1,3}\.\d{1,3}$"),
    re.compile(r"^172\.(1[6-9]|2\d|3[01])\.\d{1,3}\.\d{1,3}$"),
    re.compile(r"^192\.168\.\d{1,3}\.\d{1,3}$"),
    re.compile(r"^169\.254\.\d{1,3}\.\d{1,3}$"),  # link-local
    re.compile(r"^127\.\d{1,3}\.\d{1,3}\.\d{1,3}$"),  # loopback
]

# Shorthand IPv4 forms resolvers still accept: 127.1, 0x7f.1, 2130706433.
_LEGACY_IPV4_RE = re.compile(r"^(?:0x[0-9a-f]+|\d+)(?:\.(?:0x[0-9a-f]+|\d+)){0,3}$")

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def _parse_ip(host: str) -> Optional[IPAddress]:
    try:
        ip = ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        if not _LEGACY_IPV4_RE.match(host):
            return None
        try:
            ip = ipaddress.IPv4Address(socket.inet_aton(host))
        except OSError:
            return None
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def _is_private_ip(host: str) -> bool:
    """``True`` when *host* is an IP literal in a private or local range."""
    ip = _parse_ip(host)
    if ip is None:
        return False
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_reserved
        or ip.is_unspecified
    )


def is_private_host(hostname: str) -> bool:
    """Return ``True`` for blocked hostnames and private/loopback IP literals."""
    host = hostname.strip().lower()
    if host in _BLOCKED_HOSTNAMES or host.endswith(_BLOCKED_SUFFIXES):
        return True
    if any(pattern.match(host) for pattern in _PRIVATE_IP_PATTERNS):
        return True
    return _is_private_ip(host)


def normalize_url(url: str) -> str:
    """Validate *url* and return it with a scheme.

    ``https://`` is prepended when the URL carries no ``http(s)://`` prefix.

    Raises:
        InvalidURLError: If the URL is empty, too long, not http(s), has no
            host, or points at a local/private address.
    """
    if not url or not isinstance(url, str) or not url.strip():
        raise InvalidURLError(str(url or ""), "URL is required")

    candidate = url.strip()
    if len(candidate) > MAX_URL_LENGTH:
        raise InvalidURLError(url, f"URL must be less than {MAX_URL_LENGTH} characters")

    lowered = candidate.lower()
    if not lowered.startswith(("http://", "https://")):
        if "://" in candidate:
            raise InvalidURLError(url, "Only HTTP/HTTPS URLs are allowed")
        candidate = f"https://{candidate}"

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname or ""
    except ValueError as exc:
        raise InvalidURLError(url, "Invalid URL format") from exc

    if parts.scheme.lower() not in ("http", "https"):
        raise InvalidURLError(url, "Only HTTP/HTTPS URLs are allowed")
    if not hostname:
        raise InvalidURLError(url, "Invalid URL format")
    if is_private_host(hostname):
        raise InvalidURLError(url, "URL not allowed")

    return candidate
