"""
HTTP access to the source APIs with rate limiting, retries and caching.

This module provides:
- Exponential backoff retry logic (1s, 2s, 4s, ...) for failed attempts
- A fresh timeout for every attempt
- Per-service rate limiting before each network call
- A pluggable response cache with per-category lifetimes
- Page-by-page collection for paginated list endpoints
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional
from urllib.parse import urlencode
from pydantic import BaseModel
import httpx
import logging

from core.config import Settings
from core.exceptions import HttpFailureError, ResponseParseError, UnknownServiceError
from models.base import CacheCategory
from sync.extractors.cache import MemoryCache, ResponseCache
from sync.extractors.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class ServiceConfig(BaseModel):
    """Connection settings of one external API"""

    base_url: str
    timeout: float = 10.0
    max_retries: int = 3


class HttpFetcher:
    """
    Fetch JSON from the configured services.

    Attributes:
        services: service name -> ServiceConfig
        rate_limiter: throttle consulted before every network call
        cache: optional response cache (None disables caching)
        cache_ttls: lifetime in seconds per CacheCategory
        backoff_base: first retry delay in seconds, doubled per attempt
        page_size: results requested per page by fetch_paginated
        page_delay: pause between pages in seconds
    """

    def __init__(
        self,
        services: Mapping[str, ServiceConfig],
        rate_limiter: Optional[RateLimiter] = None,
        cache: Optional[ResponseCache] = None,
        cache_ttls: Optional[Mapping[CacheCategory, float]] = None,
        client: Optional[httpx.AsyncClient] = None,
        backoff_base: float = 1.0,
        page_size: int = 100,
        page_delay: float = 0.1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.services: Dict[str, ServiceConfig] = dict(services)
        self.rate_limiter = rate_limiter or RateLimiter()
        self.cache = cache
        self.cache_ttls: Dict[CacheCategory, float] = dict(cache_ttls or {})
        self.backoff_base = backoff_base
        self.page_size = page_size
        self.page_delay = page_delay
        self._sleep = sleep
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "HttpFetcher":
        services = {
            name: ServiceConfig(
                base_url=url,
                timeout=settings.REQUEST_TIMEOUT,
                max_retries=settings.MAX_RETRIES
            )
            for name, url in settings.service_base_urls().items()
        }
        kwargs.setdefault("rate_limiter", RateLimiter(settings.RATE_LIMITS))
        if settings.CACHE_ENABLED:
            kwargs.setdefault("cache", MemoryCache())
        kwargs.setdefault("cache_ttls", {
            CacheCategory.MARKET: settings.CACHE_TTL_MARKET,
            CacheCategory.STATIC: settings.CACHE_TTL_STATIC,
            CacheCategory.USER: settings.CACHE_TTL_USER,
        })
        kwargs.setdefault("page_size", settings.PAGE_SIZE)
        kwargs.setdefault("page_delay", settings.PAGE_DELAY)
        return cls(services, **kwargs)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    def ttl_for(self, category: CacheCategory) -> float:
        if category in self.cache_ttls:
            return self.cache_ttls[category]
        return self.cache_ttls.get(CacheCategory.STATIC, 0)

    async def fetch(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: float = 10.0,
        max_retries: int = 3
    ) -> Any:
        """
        GET ``url`` and return the parsed JSON body.

        Non-2xx statuses, timeouts and transport errors are retried up to
        ``max_retries`` extra times with exponential backoff.

        Raises:
            HttpFailureError: every attempt failed
            ResponseParseError: the body is not JSON (not retried)
        """
        attempts = max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                logger.debug(f"Request attempt {attempt + 1}/{attempts} to {url}")
                response = await self.client.get(url, params=params, timeout=timeout)
                response.raise_for_status()
            except httpx.HTTPError as e:
                last_error = e
                logger.warning(f"Attempt {attempt + 1} failed for {url}: {e}")
                if attempt < max_retries:
                    delay = self.backoff_base * (2 ** attempt)
                    await self._sleep(delay)
                continue

            try:
                return response.json()
            except ValueError as e:
                raise ResponseParseError(
                    "Failed to parse JSON response",
                    context={
                        "url": url,
                        "status_code": response.status_code,
                        "response_body": response.text[:500]
                    },
                    original_exception=e
                )

        raise HttpFailureError(url, attempts, last_error)

    async def request(
        self,
        service: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        skip_cache: bool = False,
        category: CacheCategory = CacheCategory.STATIC,
        cache_ttl: Optional[float] = None
    ) -> Any:
        """
        Call ``endpoint`` of a configured service.

        The cache is consulted first (unless ``skip_cache``), then the rate
        limiter, then the network. Successful results are cached under the
        same key for the lifetime of ``category``.
        """
        config = self.services.get(service)
        if config is None:
            raise UnknownServiceError(
                f"Unknown API service: {service}",
                context={"service": service}
            )

        cache_key = f"{service}_{endpoint}"
        if params:
            cache_key += "?" + urlencode(sorted(params.items()))

        if self.cache is not None and not skip_cache:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for {service}:{endpoint}")
                return cached

        await self.rate_limiter.acquire(service)

        data = await self.fetch(
            f"{config.base_url}{endpoint}",
            params=params,
            timeout=config.timeout,
            max_retries=config.max_retries
        )

        if self.cache is not None and data is not None:
            ttl = cache_ttl if cache_ttl is not None else self.ttl_for(category)
            await self.cache.set(cache_key, data, ttl)

        return data

    async def fetch_paginated(
        self,
        service: str,
        endpoint: str,
        page_size: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Collect ``results`` from every page of a paginated list endpoint.

        Stops on an empty page or one shorter than the page size.
        """
        page_size = page_size or self.page_size
        all_records: List[Dict[str, Any]] = []
        page = 1

        while True:
            logger.info(f"Fetching page {page} of {service}{endpoint}")
            data = await self.request(
                service,
                endpoint,
                params={"page": page, "limit": page_size},
                skip_cache=True
            )

            records = data.get("results") if isinstance(data, dict) else None
            if not records:
                break

            all_records.extend(records)
            if len(records) < page_size:
                break

            page += 1
            await self._sleep(self.page_delay)

        logger.info(
            f"Fetched {len(all_records)} records from {service}{endpoint} ({page} pages)"
        )
        return all_records
