from sync.extractors.cache import MemoryCache, ResponseCache
from sync.extractors.rate_limiter import RateLimiter
from sync.extractors.http_fetcher import HttpFetcher, ServiceConfig
from sync.extractors.xivapi_source import XivapiSource
from sync.extractors.ffxivcollect_source import FFXIVCollectSource

__all__ = [
    "FFXIVCollectSource",
    "HttpFetcher",
    "MemoryCache",
    "RateLimiter",
    "ResponseCache",
    "ServiceConfig",
    "XivapiSource",
]
