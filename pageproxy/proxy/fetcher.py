import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import httpx
from opentelemetry import trace

from pageproxy.utils import url_for_log
from pageproxy.utils.exception_logging import format_exception_message
from pageproxy.vars import FETCH_TIMEOUT, FETCH_USER_AGENT

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")


class FetchError(Exception):
    """The upstream could not be reached (DNS, connect, timeout, protocol)."""

    def __init__(self, url: str, message: str):
        self.url = url
        self.message = message
        super().__init__(message)


@dataclass
class FetchResult:
    status_code: int
    body: bytes
    header_lines: List[str] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)


def merge_header_lines(lines: Iterable[str]) -> Dict[str, str]:
    """
    Reduce raw ``Name: value`` lines to a lowercase-name mapping.
    Repeated headers are joined with ", " in arrival order; lines without a
    colon (the status line) are skipped.
    """
    merged: Dict[str, str] = {}
    for line in lines:
        name, sep, value = line.partition(":")
        if not sep:
            continue
        name = name.strip().lower()
        value = value.strip()
        if not name:
            continue
        if name in merged:
            merged[name] = f"{merged[name]}, {value}"
        else:
            merged[name] = value
    return merged


def _header_lines(response: httpx.Response) -> List[str]:
    lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}"]
    lines.extend(f"{name}: {value}" for name, value in response.headers.multi_items())
    return lines


async def fetch_document(
    url: str, client: Optional[httpx.AsyncClient] = None
) -> FetchResult:
    """
    GET ``url`` with the configured User-Agent.

    Any HTTP status counts as a successful fetch; only transport failures
    raise FetchError.
    """
    with tracer.start_as_current_span("proxy.fetch") as span:
        span.set_attribute("proxy.target_url", url)
        headers = {"User-Agent": FETCH_USER_AGENT}
        try:
            if client is not None:
                response = await client.get(url, headers=headers)
            else:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(FETCH_TIMEOUT), follow_redirects=True
                ) as own_client:
                    response = await own_client.get(url, headers=headers)
        except httpx.RequestError as e:
            message = format_exception_message(e)
            span.set_attribute("proxy.error", message)
            logger.error(f"[Fetch] Transport failure for {url_for_log(url)}: {message}")
            raise FetchError(url, message) from e

        span.set_attribute("proxy.status_code", response.status_code)
        lines = _header_lines(response)
        logger.debug(
            f"[Fetch] {response.status_code} {len(response.content)} bytes from {url_for_log(url)}"
        )
        return FetchResult(
            status_code=response.status_code,
            body=response.content,
            header_lines=lines,
            headers=merge_header_lines(lines),
        )
