import asyncio
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Awaitable, Callable, Dict, Optional, Tuple

from pageproxy.proxy.cache_store import CacheEntry, CacheStoreBase, cache_store
from pageproxy.proxy.emitter import (
    TEXT_CONTENT_TYPE,
    build_response_headers,
    is_challenge_path,
)
from pageproxy.proxy.fetcher import FetchResult, fetch_document
from pageproxy.rewrite.html_rewriter import decode_body, extract_text, rewrite_html
from pageproxy.rewrite.replacements import load_replacements
from pageproxy.utils import url_for_log

logger = logging.getLogger("uvicorn.error")

Fetcher = Callable[[str], Awaitable[FetchResult]]


@dataclass
class ProxyResult:
    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    cache_hit: Optional[bool] = None


class ProxyService:
    """
    Fetch, cache and rewrite pipeline behind the proxy routes.

    FetchError from the fetcher propagates untouched, before anything is
    written to the cache. Cache I/O and HTML parsing run in worker
    threads.
    """

    def __init__(
        self,
        store: CacheStoreBase,
        fetcher: Fetcher = fetch_document,
        replacements_loader: Callable[[], Dict[str, str]] = load_replacements,
    ):
        self.store = store
        self.fetcher = fetcher
        self.replacements_loader = replacements_loader

    async def load(self, url: str) -> Tuple[CacheEntry, bool]:
        entry = await asyncio.to_thread(self.store.lookup, url)
        if entry is not None:
            logger.debug(f"[Cache] Hit for {url_for_log(url)}")
            return entry, True
        logger.debug(f"[Cache] Miss for {url_for_log(url)}")
        result = await self.fetcher(url)
        entry = await asyncio.to_thread(
            self.store.store, url, result.body, result.headers
        )
        return entry, False

    def _rewrite(self, entry: CacheEntry) -> bytes:
        text = decode_body(entry.body, entry.headers.get("content-type"))
        return rewrite_html(text, self.replacements_loader()).encode("utf-8")

    def _extract(self, entry: CacheEntry) -> str:
        return extract_text(decode_body(entry.body, entry.headers.get("content-type")))

    def _challenge_response(self, url: str) -> ProxyResult:
        logger.info(f"[Proxy] Challenge path answered with 204: {url_for_log(url)}")
        return ProxyResult(
            status_code=204, headers={"access-control-allow-origin": "*"}
        )

    async def proxy(self, url: str) -> ProxyResult:
        if is_challenge_path(url):
            return self._challenge_response(url)

        entry, hit = await self.load(url)
        headers, html = build_response_headers(url, entry.headers)
        body = entry.body
        if html:
            body = await asyncio.to_thread(self._rewrite, entry)
        return ProxyResult(status_code=200, body=body, headers=headers, cache_hit=hit)

    async def show_text(self, url: str) -> ProxyResult:
        if is_challenge_path(url):
            return self._challenge_response(url)

        entry, hit = await self.load(url)
        text = await asyncio.to_thread(self._extract, entry)
        return ProxyResult(
            status_code=200,
            body=text.encode("utf-8"),
            headers={
                "content-type": TEXT_CONTENT_TYPE,
                "access-control-allow-origin": "*",
            },
            cache_hit=hit,
        )


@lru_cache(maxsize=1)
def default_proxy_service() -> ProxyService:
    return ProxyService(cache_store())
