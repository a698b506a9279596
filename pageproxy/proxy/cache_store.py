import hashlib
import inspect
import json
import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from pageproxy.utils import url_for_log
from pageproxy.vars import CACHE_DIR, CACHE_STORE, CACHE_TTL_SECONDS

logger = logging.getLogger("uvicorn.error")


def cache_key(url: str) -> str:
    return hashlib.md5(url.encode("utf-8")).hexdigest()


@dataclass
class CacheEntry:
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)
    timestamp: float = 0.0


class CacheStoreBase(ABC):
    """URL -> (body, headers) store with a fixed freshness window."""

    def __init__(self, ttl: int = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self._clock = clock

    def is_fresh(self, timestamp: float) -> bool:
        return self._clock() - timestamp < self.ttl

    @abstractmethod
    def lookup(self, url: str) -> Optional[CacheEntry]:
        pass

    @abstractmethod
    def store(self, url: str, body: bytes, headers: Dict[str, str]) -> CacheEntry:
        pass


def cache_store(name: str = CACHE_STORE, **kwargs) -> CacheStoreBase:
    if name == "FileCacheStore":
        return FileCacheStore(kwargs.pop("base_path", CACHE_DIR), **kwargs)
    cls = globals().get(name)
    if (
        isinstance(cls, type)
        and issubclass(cls, CacheStoreBase)
        and not inspect.isabstract(cls)
    ):
        return cls(**kwargs)
    raise ValueError(f"Unknown cache store type: {name}")


class InMemoryCacheStore(CacheStoreBase):
    def __init__(self, ttl: int = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.time):
        super().__init__(ttl, clock)
        self._entries: dict[str, CacheEntry] = {}

    def lookup(self, url: str) -> Optional[CacheEntry]:
        entry = self._entries.get(cache_key(url))
        if entry is None or not self.is_fresh(entry.timestamp):
            return None
        return entry

    def store(self, url: str, body: bytes, headers: Dict[str, str]) -> CacheEntry:
        entry = CacheEntry(body=body, headers=dict(headers), timestamp=self._clock())
        self._entries[cache_key(url)] = entry
        return entry


class FileCacheStore(CacheStoreBase):
    """
    Two files per URL in ``base_path``:

    - ``<md5>.html``: raw upstream body
    - ``<md5>.html.headers``: JSON object of captured headers

    Freshness is the body file's modification time. Both files are replaced
    whole (temp file + rename), so readers never see a partial write.
    """

    def __init__(
        self,
        base_path: str = CACHE_DIR,
        ttl: int = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if not base_path:
            raise ValueError("Cache directory is required")
        super().__init__(ttl, clock)
        self.base_path = os.path.abspath(base_path)

    def body_path(self, url: str) -> str:
        return os.path.join(self.base_path, f"{cache_key(url)}.html")

    def headers_path(self, url: str) -> str:
        return self.body_path(url) + ".headers"

    def lookup(self, url: str) -> Optional[CacheEntry]:
        body_path = self.body_path(url)
        try:
            timestamp = os.path.getmtime(body_path)
        except OSError:
            return None
        if not self.is_fresh(timestamp):
            logger.debug(f"[Cache] Stale entry bypassed for {url_for_log(url)}")
            return None
        try:
            with open(body_path, "rb") as handle:
                body = handle.read()
        except FileNotFoundError:
            return None
        return CacheEntry(
            body=body, headers=self._read_headers(url), timestamp=timestamp
        )

    def _read_headers(self, url: str) -> Dict[str, str]:
        path = self.headers_path(url)
        if not os.path.exists(path):
            return {}
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"[Cache] Ignoring unreadable headers file {path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k).lower(): str(v) for k, v in data.items()}

    def _write_atomic(self, path: str, data: bytes) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=self.base_path)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def store(self, url: str, body: bytes, headers: Dict[str, str]) -> CacheEntry:
        os.makedirs(self.base_path, exist_ok=True)
        # headers first: a fresh body file always has its headers next to it
        self._write_atomic(
            self.headers_path(url),
            json.dumps(headers, ensure_ascii=False).encode("utf-8"),
        )
        self._write_atomic(self.body_path(url), body)
        timestamp = os.path.getmtime(self.body_path(url))
        logger.debug(f"[Cache] Stored {len(body)} bytes for {url_for_log(url)}")
        return CacheEntry(body=body, headers=dict(headers), timestamp=timestamp)
