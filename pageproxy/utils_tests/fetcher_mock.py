from pageproxy.proxy.fetcher import FetchResult, merge_header_lines


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingFetcher:
    """Async fetcher double that returns canned responses and counts calls."""

    def __init__(self, body: bytes = b"", header_lines=None, status_code: int = 200):
        self.body = body
        self.header_lines = list(header_lines or [])
        self.status_code = status_code
        self.calls: list[str] = []
        self.error: Exception | None = None

    async def __call__(self, url: str) -> FetchResult:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return FetchResult(
            status_code=self.status_code,
            body=self.body,
            header_lines=self.header_lines,
            headers=merge_header_lines(self.header_lines),
        )
