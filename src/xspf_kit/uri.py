"""URI, URL and URN validation used by the playlist model."""

from __future__ import annotations

import re
from typing import Iterable, Optional
from urllib.parse import urlsplit

from xspf_kit.errors import InvalidValueError

URL_SCHEMES = frozenset({"file", "ftp", "http", "https"})

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):(.+)\Z", re.DOTALL)
# RFC 3986 reserved and unreserved characters plus non-ASCII (IRI) text.
_ALLOWED_RE = re.compile(r"^[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%\u00a0-\U0010ffff]+\Z")
_BAD_PERCENT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_NETWORK_SCHEMES = frozenset({"ftp", "http", "https"})


def is_valid_uri(
    value: object, allowed_schemes: Optional[Iterable[str]] = None
) -> bool:
    """Return True when ``value`` is an absolute URI.

    When ``allowed_schemes`` is given, the scheme must be one of them
    (compared case-insensitively).
    """
    if not isinstance(value, str):
        return False
    match = _SCHEME_RE.match(value)
    if match is None:
        return False
    scheme = match.group(1).lower()
    if not _ALLOWED_RE.match(match.group(2)):
        return False
    if _BAD_PERCENT_RE.search(value):
        return False
    if allowed_schemes is not None:
        if scheme not in {item.lower() for item in allowed_schemes}:
            return False
    if scheme in _NETWORK_SCHEMES:
        try:
            parts = urlsplit(value)
        except ValueError:
            return False
        if not parts.hostname:
            return False
    return True


def is_valid_url(value: object) -> bool:
    return is_valid_uri(value, URL_SCHEMES)


def is_valid_urn(value: object) -> bool:
    return is_valid_uri(value)


def ensure_uri(field: str, value: object) -> str:
    """Return ``value`` if it is a URI, else raise InvalidValueError."""
    if not is_valid_uri(value):
        raise InvalidValueError(field, value, "not a valid URI")
    return str(value)


def ensure_url(field: str, value: object) -> str:
    if not is_valid_url(value):
        schemes = ", ".join(sorted(URL_SCHEMES))
        raise InvalidValueError(field, value, f"not a valid URL ({schemes})")
    return str(value)


def ensure_urn(field: str, value: object) -> str:
    if not is_valid_urn(value):
        raise InvalidValueError(field, value, "not a valid URN")
    return str(value)
