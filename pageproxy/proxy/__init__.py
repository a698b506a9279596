from .cache_store import (
    CacheEntry,
    CacheStoreBase,
    FileCacheStore,
    InMemoryCacheStore,
    cache_key,
    cache_store,
)
from .fetcher import FetchError, FetchResult, fetch_document, merge_header_lines
from .resolver import InvalidURL, resolve_target_url, validate_target_url

__all__ = [
    "CacheEntry",
    "CacheStoreBase",
    "FileCacheStore",
    "InMemoryCacheStore",
    "cache_key",
    "cache_store",
    "FetchError",
    "FetchResult",
    "fetch_document",
    "merge_header_lines",
    "InvalidURL",
    "resolve_target_url",
    "validate_target_url",
]
