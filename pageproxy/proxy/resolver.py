import re
from typing import Optional
from urllib.parse import unquote

import httpx

ALLOWED_SCHEMES = ("http", "https")

# "https:/host" left behind when a server collapses the double slash in a path
_COLLAPSED_SCHEME = re.compile(r"^(https?:)/(?=[^/])", re.IGNORECASE)


class InvalidURL(ValueError):
    def __init__(self, candidate: Optional[str], reason: str = "Invalid URL."):
        self.candidate = candidate
        self.reason = reason
        super().__init__(reason)


def _from_path_info(path_info: str) -> str:
    # path_info is the raw, still percent-encoded path segment
    candidate = unquote(path_info.lstrip("/"))
    return _COLLAPSED_SCHEME.sub(r"\1//", candidate, count=1)


def validate_target_url(candidate: Optional[str]) -> str:
    """
    Validate an absolute http(s) URL.

    Raises InvalidURL when the candidate is missing, contains whitespace,
    does not parse, uses another scheme or has no host.
    """
    if not candidate:
        raise InvalidURL(candidate, "Missing target URL")
    if any(ch.isspace() for ch in candidate):
        raise InvalidURL(candidate)
    try:
        parsed = httpx.URL(candidate)
    except httpx.InvalidURL as e:
        raise InvalidURL(candidate) from e
    if parsed.scheme not in ALLOWED_SCHEMES or not parsed.host:
        raise InvalidURL(candidate)
    return candidate


def resolve_target_url(
    path_info: Optional[str] = None, query_url: Optional[str] = None
) -> str:
    """
    Extract the target URL from either the path form
    (``/proxy/https%3A%2F%2Fexample.com``) or the query form
    (``/proxy?url=https%3A%2F%2Fexample.com``). The path form wins when both
    are present.

    Both arguments must be the raw values as sent by the client, before any
    framework decoding. Each is percent-decoded exactly once here, so an
    escape inside the target URL (``%20``, ``%26``) survives.
    """
    if path_info and path_info.strip("/"):
        candidate = _from_path_info(path_info)
    elif query_url is not None:
        candidate = unquote(query_url)
    else:
        candidate = None
    return validate_target_url(candidate)
