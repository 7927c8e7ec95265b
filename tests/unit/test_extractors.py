"""
Unit tests for the HTTP fetcher, rate limiter, cache and source APIs
"""

import pytest
from unittest.mock import AsyncMock
from core.exceptions import HttpFailureError, ResponseParseError, UnknownServiceError
from models.base import CacheCategory
from sync.extractors.cache import MemoryCache
from sync.extractors.ffxivcollect_source import FFXIVCollectSource
from sync.extractors.http_fetcher import HttpFetcher, ServiceConfig
from sync.extractors.rate_limiter import RateLimiter
from sync.extractors.xivapi_source import XivapiSource
import httpx


class ManualClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _fetcher(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    services = {
        "xivapi": ServiceConfig(base_url="https://xivapi.test/api", max_retries=3),
        "ffxivcollect": ServiceConfig(base_url="https://collect.test/api", max_retries=3),
    }
    kwargs.setdefault("sleep", AsyncMock())
    return HttpFetcher(services, client=client, **kwargs)


class TestRateLimiter:
    """Test sliding window throttling"""

    @pytest.mark.asyncio
    async def test_allows_up_to_limit_without_waiting(self):
        sleep = AsyncMock()
        limiter = RateLimiter({"xivapi": 3}, clock=ManualClock(), sleep=sleep)

        for _ in range(3):
            await limiter.acquire("xivapi")

        sleep.assert_not_called()
        assert limiter.pending("xivapi") == 3

    @pytest.mark.asyncio
    async def test_waits_until_oldest_request_leaves_window(self):
        clock = ManualClock()

        async def fake_sleep(seconds):
            clock.now += seconds

        sleep = AsyncMock(side_effect=fake_sleep)
        limiter = RateLimiter({"xivapi": 2}, clock=clock, sleep=sleep)

        await limiter.acquire("xivapi")
        clock.now += 10
        await limiter.acquire("xivapi")
        await limiter.acquire("xivapi")

        sleep.assert_awaited_once_with(50.0)
        assert limiter.pending("xivapi") == 2

    @pytest.mark.asyncio
    async def test_unlimited_source_never_waits(self):
        sleep = AsyncMock()
        limiter = RateLimiter({"xivapi": 1}, clock=ManualClock(), sleep=sleep)

        for _ in range(10):
            await limiter.acquire("ffxivcollect")

        sleep.assert_not_called()
        assert limiter.pending("ffxivcollect") == 0

    @pytest.mark.asyncio
    async def test_sources_are_counted_separately(self):
        sleep = AsyncMock()
        limiter = RateLimiter({"xivapi": 1, "universalis": 1}, clock=ManualClock(), sleep=sleep)

        await limiter.acquire("xivapi")
        await limiter.acquire("universalis")

        sleep.assert_not_called()


class TestMemoryCache:
    """Test response cache expiry"""

    @pytest.mark.asyncio
    async def test_entry_expires(self):
        clock = ManualClock()
        cache = MemoryCache(clock=clock)

        await cache.set("xivapi_/Mount", [1, 2], ttl=60)
        assert await cache.get("xivapi_/Mount") == [1, 2]

        clock.now += 60
        assert await cache.get("xivapi_/Mount") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_clear(self):
        cache = MemoryCache()
        await cache.set("a", 1, ttl=60)

        await cache.clear()

        assert await cache.get("a") is None


class TestHttpFetcher:
    """Test retries, caching and pagination"""

    @pytest.mark.asyncio
    async def test_fetch_success(self):
        fetcher = _fetcher(lambda request: httpx.Response(200, json={"ok": True}))

        assert await fetcher.fetch("https://xivapi.test/api/Mount") == {"ok": True}

    @pytest.mark.asyncio
    async def test_retries_with_exponential_backoff(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(503)
            return httpx.Response(200, json=[{"id": 1}])

        sleep = AsyncMock()
        fetcher = _fetcher(handler, sleep=sleep)

        result = await fetcher.fetch("https://xivapi.test/api/Mount", max_retries=3)

        assert result == [{"id": 1}]
        assert len(calls) == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_all_attempts(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        sleep = AsyncMock()
        fetcher = _fetcher(handler, sleep=sleep)

        with pytest.raises(HttpFailureError) as exc_info:
            await fetcher.fetch("https://xivapi.test/api/Mount", max_retries=3)

        assert exc_info.value.attempts == 4
        assert str(exc_info.value).startswith("Failed after 4 attempts:")
        assert "Connection refused" in str(exc_info.value)
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_invalid_json_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, text="<html>maintenance</html>")

        fetcher = _fetcher(handler)

        with pytest.raises(ResponseParseError):
            await fetcher.fetch("https://xivapi.test/api/Mount")

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_request_unknown_service(self):
        fetcher = _fetcher(lambda request: httpx.Response(200, json={}))

        with pytest.raises(UnknownServiceError):
            await fetcher.request("lodestone", "/character")

    @pytest.mark.asyncio
    async def test_request_uses_cache(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=[{"id": 1}])

        fetcher = _fetcher(handler, cache=MemoryCache(), cache_ttls={CacheCategory.STATIC: 3600})

        first = await fetcher.request("ffxivcollect", "/mounts")
        second = await fetcher.request("ffxivcollect", "/mounts")
        third = await fetcher.request("ffxivcollect", "/mounts", skip_cache=True)

        assert first == second == third
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_request_rate_limits_each_network_call(self):
        limiter = RateLimiter({"xivapi": 20})
        limiter.acquire = AsyncMock()
        fetcher = _fetcher(lambda request: httpx.Response(200, json={}), rate_limiter=limiter)

        await fetcher.request("xivapi", "/Mount", skip_cache=True)

        limiter.acquire.assert_awaited_once_with("xivapi")

    def test_ttl_for_falls_back_to_static(self):
        fetcher = _fetcher(
            lambda request: httpx.Response(200, json={}),
            cache_ttls={CacheCategory.STATIC: 86400, CacheCategory.MARKET: 300}
        )

        assert fetcher.ttl_for(CacheCategory.MARKET) == 300
        assert fetcher.ttl_for(CacheCategory.USER) == 86400

    @pytest.mark.asyncio
    async def test_fetch_paginated_until_short_page(self):
        pages = {
            "1": [{"Id": 1}, {"Id": 2}],
            "2": [{"Id": 3}, {"Id": 4}],
            "3": [{"Id": 5}],
        }
        seen = []

        def handler(request):
            page = request.url.params["page"]
            seen.append((page, request.url.params["limit"]))
            return httpx.Response(200, json={"results": pages.get(page, [])})

        sleep = AsyncMock()
        fetcher = _fetcher(handler, page_size=2, page_delay=0.1, sleep=sleep)

        records = await fetcher.fetch_paginated("xivapi", "/Mount")

        assert [r["Id"] for r in records] == [1, 2, 3, 4, 5]
        assert seen == [("1", "2"), ("2", "2"), ("3", "2")]
        assert [c.args[0] for c in sleep.await_args_list] == [0.1, 0.1]

    @pytest.mark.asyncio
    async def test_fetch_paginated_stops_on_empty_page(self):
        def handler(request):
            if request.url.params["page"] == "1":
                return httpx.Response(200, json={"results": [{"Id": 1}, {"Id": 2}]})
            return httpx.Response(200, json={"results": []})

        fetcher = _fetcher(handler, page_size=2)

        records = await fetcher.fetch_paginated("xivapi", "/Mount")

        assert len(records) == 2


class TestSources:
    """Test source API response handling"""

    @pytest.mark.asyncio
    async def test_xivapi_source_paginates(self):
        fetcher = AsyncMock()
        fetcher.fetch_paginated.return_value = [{"Id": 1}]

        records = await XivapiSource(fetcher).fetch_records("/Mount")

        assert records == [{"Id": 1}]
        fetcher.fetch_paginated.assert_awaited_once_with("xivapi", "/Mount")

    @pytest.mark.asyncio
    async def test_ffxivcollect_source_accepts_bare_list(self):
        fetcher = _fetcher(lambda request: httpx.Response(200, json=[{"id": 1}, {"id": 2}]))

        records = await FFXIVCollectSource(fetcher).fetch_records("/mounts")

        assert len(records) == 2

    @pytest.mark.asyncio
    async def test_ffxivcollect_source_accepts_results_envelope(self):
        fetcher = _fetcher(
            lambda request: httpx.Response(200, json={"count": 1, "results": [{"id": 7}]})
        )

        records = await FFXIVCollectSource(fetcher).fetch_records("/mounts")

        assert records == [{"id": 7}]

    @pytest.mark.asyncio
    async def test_ffxivcollect_source_unexpected_body(self):
        fetcher = _fetcher(lambda request: httpx.Response(200, json={"error": "nope"}))

        records = await FFXIVCollectSource(fetcher).fetch_records("/mounts")

        assert records == []
