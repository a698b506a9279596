import httpx
import pytest

from pageproxy.proxy.cache_store import FileCacheStore, InMemoryCacheStore
from pageproxy.utils_tests.fetcher_mock import FakeClock, RecordingFetcher


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    return InMemoryCacheStore(ttl=86400, clock=clock)


@pytest.fixture
def file_store(tmp_path):
    return FileCacheStore(str(tmp_path / "cache"), ttl=86400)


@pytest.fixture
def html_fetcher():
    return RecordingFetcher(
        body=b"<html><head><title>t</title></head><body><p>Hello foo</p></body></html>",
        header_lines=["HTTP/1.1 200 OK", "Content-Type: text/html; charset=utf-8"],
    )


@pytest.fixture
def mock_async_client():
    """Build an httpx.AsyncClient backed by a MockTransport handler."""

    def _create(handler):
        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler), follow_redirects=True
        )

    return _create
