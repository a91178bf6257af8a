"""
URL validation shared by every storage backend.

A target is accepted only if it parses as an absolute URL with a non-empty
scheme and a syntactically valid host. Unlike a redirect allow-list, any
scheme is accepted ("ftp://host/x" is valid); relative paths and bare words
are not.

Rules beyond `urlsplit`, which is lenient on purpose:
    - ASCII control characters (0x00-0x1f, 0x7f) are rejected anywhere.
      `urlsplit` silently drops tab/CR/LF, so they must be caught first.
    - The host is a registered name (ASCII name characters, percent escapes
      or non-ASCII/IDNA characters), an IPv4 address, or a bracketed IPv6
      address. Spaces, `<>`, quotes and the like are rejected.
"""

import ipaddress
import re
import string
from urllib.parse import urlsplit

from .base import InvalidURL

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

# RFC 3986 reg-name: unreserved / pct-encoded / sub-delims
_HOST_CHARS = frozenset(string.ascii_letters + string.digits + "-._~!$&'()*+,;=%")


def _valid_host(netloc: str, host: str) -> bool:
    if "[" in netloc:
        # bracketed literal: only IPv6, optionally with a zone id
        try:
            ipaddress.IPv6Address(host.split("%", 1)[0])
        except ValueError:
            return False
        return True
    return all(ch in _HOST_CHARS or ord(ch) > 127 for ch in host)


def validate_url(url: str) -> str:
    """
    Return `url` unchanged if it is a valid target.

    Raises:
        InvalidURL: If the URL is empty, relative or malformed.
    """
    if not isinstance(url, str) or not url:
        raise InvalidURL("invalid url")
    if _CONTROL_CHARS.search(url):
        raise InvalidURL("invalid control character in url")
    try:
        parts = urlsplit(url)
        # both accessors parse the netloc and raise on bad ports/brackets
        host, _port = parts.hostname, parts.port
    except ValueError as exc:
        raise InvalidURL("invalid url") from exc
    if not parts.scheme or not host:
        raise InvalidURL("invalid url")
    if not _valid_host(parts.netloc, host):
        raise InvalidURL("invalid character in host name")
    return url


def is_valid_url(url: str) -> bool:
    try:
        validate_url(url)
    except InvalidURL:
        return False
    return True
