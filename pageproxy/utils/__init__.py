import hashlib
from typing import Optional
from urllib.parse import urlsplit


def url_for_log(url: Optional[str], max_length: int = 120) -> str:
    """Shorten a target URL for log lines, keeping host and path visible."""
    if not url:
        return "<empty>"
    if len(url) <= max_length:
        return url
    parts = urlsplit(url)
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:8]
    head = f"{parts.scheme}://{parts.netloc}{parts.path}"[: max_length - 16]
    return f"{head}... sha256={digest}"
