import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "page-proxy")
PROXY_BASE_PATH = os.environ.get("PROXY_BASE_PATH", "").rstrip("/")
PROXY_ENTRY = "/" + os.environ.get("PROXY_ENTRY", "/proxy").strip("/")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

CACHE_DIR = os.environ.get("CACHE_DIR", "./cache")
CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "86400"))
CACHE_STORE = os.getenv("CACHE_STORE", "FileCacheStore")

WORD_REPLACEMENTS_FILE = os.getenv(
    "WORD_REPLACEMENTS_FILE", "./word_replacements.json"
)

FETCH_USER_AGENT = os.getenv(
    "FETCH_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
)
# Matches the httpx default
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "5.0"))

BANNER_FILE = os.getenv("BANNER_FILE", "")
PLACEHOLDER_IMAGE = os.getenv("PLACEHOLDER_IMAGE", "placeholder.jpg")
STATIC_DIR = os.getenv("STATIC_DIR", "")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")


def _parse_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


IMAGE_MARKER_CLASSES = _parse_list(os.getenv("IMAGE_MARKER_CLASSES", "w-100,h-auto"))
BLOCKED_DOMAINS = _parse_list(os.getenv("BLOCKED_DOMAINS", "adnxs.com"))


def _parse_headers(raw: str) -> dict:
    headers: dict = {}
    for entry in _parse_list(raw):
        if "=" in entry:
            key, val = entry.split("=", 1)
            if key.strip():
                headers[key.strip()] = val.strip()
    return headers


OTLP_HEADER_MAP = _parse_headers(OTLP_HEADERS)
