import posixpath
from typing import Dict, Mapping, Tuple
from urllib.parse import urlsplit

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

# Forwarded verbatim for non-HTML resources only
FORWARDED_HEADERS = (
    "content-type",
    "cache-control",
    "content-disposition",
    "expires",
    "last-modified",
)

FONT_EXTENSIONS = {"woff", "woff2", "ttf", "otf", "eot"}

CHALLENGE_PATH_MARKER = "/cdn-cgi/"


def _url_path(url: str) -> str:
    return urlsplit(url).path


def url_extension(url: str) -> str:
    return posixpath.splitext(_url_path(url))[1].lstrip(".").lower()


def is_font_url(url: str) -> bool:
    return url_extension(url) in FONT_EXTENSIONS


def is_challenge_path(url: str) -> bool:
    """Cloudflare challenge endpoints are answered with 204 and never fetched."""
    return CHALLENGE_PATH_MARKER in _url_path(url)


def is_html(headers: Mapping[str, str]) -> bool:
    content_type = headers.get("content-type")
    if content_type is None:
        return True
    return "text/html" in content_type.lower()


def build_response_headers(
    url: str, captured: Mapping[str, str]
) -> Tuple[Dict[str, str], bool]:
    """
    Headers for the proxied response and whether the body is HTML.

    Non-HTML keeps the upstream content type and caching headers; HTML is
    always re-served as UTF-8.
    """
    headers: Dict[str, str] = {}
    html = is_html(captured)
    if not html:
        for name in FORWARDED_HEADERS:
            if name in captured:
                headers[name] = captured[name]
    headers["access-control-allow-origin"] = "*"
    if html:
        headers["content-type"] = HTML_CONTENT_TYPE
    if is_font_url(url):
        headers["access-control-allow-origin"] = "*"
    return headers, html
