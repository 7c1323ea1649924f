################################################################################
# File Name: offline_cache.py
# Purpose/Description: Request interception that keeps VIN decoding usable offline
# Author: Michael Cornelison
# Creation Date: 2026-10-15
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-15    | M. Cornelison | Initial implementation
# 2026-10-17    | Ralph Agent  | All-or-nothing install, activate cleanup
# ================================================================================
################################################################################

"""
Offline response cache module.

Every outbound request goes through OfflineResponseCache.fetch():

- Non-GET requests are bypassed: sent to the network untouched.
- Decode API requests (host matches decodeHost) are network first. Successful
  responses are copied into the current cache generation. When the network
  is unreachable the newest cached response for the same request is served,
  or a canned "offline" payload when none exists, so callers never see a
  request error from the decode API. A failing cache store is logged and
  treated as a miss.
- Other GET requests (the application shell) are cache first and fall back
  to the network on a miss.

install() warm-starts the current generation from the precache manifest and
activate() deletes every other generation.

Usage:
    from vinlookup.cache_storage import InMemoryCacheStorage
    from vinlookup.offline_cache import HttpxFetcher, OfflineResponseCache

    cache = OfflineResponseCache(InMemoryCacheStorage(), HttpxFetcher())
    response = await cache.fetch(httpx.Request('GET', url))
"""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from common.error_handler import PersistenceError

from .cache_storage import CachedResponse, CacheStorage
from .exceptions import CacheInstallError

logger = logging.getLogger(__name__)

Fetcher = Callable[[httpx.Request], Awaitable[httpx.Response]]


# ================================================================================
# Constants
# ================================================================================

DEFAULT_CACHE_NAME = 'vin-decoder-v1'

DEFAULT_DECODE_HOST = 'vpic.nhtsa.dot.gov'

DEFAULT_APP_BASE_URL = 'http://localhost:3000'

DEFAULT_PRECACHE_URLS = [
    '/',
    '/static/js/bundle.js',
    '/static/css/main.css',
    '/manifest.json',
]

OFFLINE_MESSAGE = 'Offline - cached data not available'

OFFLINE_PAYLOAD = {
    'Results': [],
    'Message': OFFLINE_MESSAGE,
    'SearchCriteria': '',
}

DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0


# ================================================================================
# Network Fetcher
# ================================================================================

class HttpxFetcher:
    """
    Network fetch capability backed by one shared httpx.AsyncClient.

    Responses are returned fully read. Request failures propagate as
    httpx.RequestError.
    """

    def __init__(
        self,
        timeoutSeconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.timeoutSeconds = timeoutSeconds
        self._client = httpx.AsyncClient(
            timeout=timeoutSeconds,
            transport=transport,
            follow_redirects=True,
        )

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        return await self._client.send(request)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> 'HttpxFetcher':
        return self

    async def __aexit__(self, *excInfo: Any) -> None:
        await self.aclose()


def buildOfflineResponse(request: httpx.Request) -> httpx.Response:
    """Canned 200 response telling the caller no decode data is available."""
    return httpx.Response(
        200,
        headers={'Content-Type': 'application/json'},
        content=json.dumps(OFFLINE_PAYLOAD).encode('utf-8'),
        request=request,
    )


# ================================================================================
# Offline Response Cache
# ================================================================================

class OfflineResponseCache:
    """
    Intercepts requests and applies the offline caching policy.

    Attributes:
        storage: Named cache storage
        fetcher: Async callable that performs the real network request
        cacheName: Current generation tag
        decodeHost: Host whose requests use the network-first policy
        precacheUrls: Application shell URLs stored by install()
        appBaseUrl: Base URL the precache paths resolve against
    """

    def __init__(
        self,
        storage: CacheStorage,
        fetcher: Fetcher,
        cacheName: str = DEFAULT_CACHE_NAME,
        decodeHost: str = DEFAULT_DECODE_HOST,
        precacheUrls: list[str] | None = None,
        appBaseUrl: str = DEFAULT_APP_BASE_URL
    ):
        self.storage = storage
        self.fetcher = fetcher
        self.cacheName = cacheName
        self.decodeHost = decodeHost
        self.precacheUrls = list(precacheUrls if precacheUrls is not None else DEFAULT_PRECACHE_URLS)
        self.appBaseUrl = appBaseUrl

        self._stats = {
            'requests': 0,
            'bypassed': 0,
            'networkResponses': 0,
            'responsesCached': 0,
            'cacheFallbacks': 0,
            'offlineResponses': 0,
            'shellCacheHits': 0,
        }

    # ----------------------------------------------------------------------------
    # Interception
    # ----------------------------------------------------------------------------

    async def fetch(self, request: httpx.Request) -> httpx.Response:
        """
        Resolve a request through the cache policy.

        Args:
            request: Outbound request

        Returns:
            Live, cached or synthesized response

        Raises:
            httpx.RequestError: Only for bypassed or application shell
                requests that miss the cache and cannot reach the network
        """
        self._stats['requests'] += 1

        if request.method.upper() != 'GET':
            self._stats['bypassed'] += 1
            return await self.fetcher(request)

        if self.isDecodeRequest(request):
            return await self._networkFirst(request)

        return await self._cacheFirst(request)

    def isDecodeRequest(self, request: httpx.Request) -> bool:
        return self.decodeHost in request.url.host

    async def _networkFirst(self, request: httpx.Request) -> httpx.Response:
        try:
            response = await self.fetcher(request)
        except httpx.RequestError as e:
            logger.warning(f"Decode request failed, serving from cache | url={request.url} | error={e}")
            return await self._fallback(request)

        self._stats['networkResponses'] += 1
        if response.is_success:
            await response.aread()
            try:
                await self.storage.put(self.cacheName, request, response)
            except PersistenceError as e:
                logger.warning(f"Decode response not cached | url={request.url} | error={e}")
            else:
                self._stats['responsesCached'] += 1
                logger.debug(f"Decode response cached | url={request.url} | cache={self.cacheName}")

        return response

    async def _fallback(self, request: httpx.Request) -> httpx.Response:
        try:
            cached = await self.storage.match(request)
        except PersistenceError as e:
            logger.warning(f"Cache lookup failed, treating as a miss | url={request.url} | error={e}")
            cached = None

        if cached is not None:
            self._stats['cacheFallbacks'] += 1
            logger.info(f"Served cached decode response | url={request.url}")
            return cached

        self._stats['offlineResponses'] += 1
        logger.info(f"No cached decode response, returning offline payload | url={request.url}")
        return buildOfflineResponse(request)

    async def _cacheFirst(self, request: httpx.Request) -> httpx.Response:
        cached = await self.storage.match(request)
        if cached is not None:
            self._stats['shellCacheHits'] += 1
            return cached

        response = await self.fetcher(request)
        self._stats['networkResponses'] += 1
        return response

    # ----------------------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------------------

    def resolvePrecacheUrls(self) -> list[httpx.URL]:
        base = httpx.URL(self.appBaseUrl)
        return [base.join(path) for path in self.precacheUrls]

    async def install(self) -> int:
        """
        Warm-start the current generation with the application shell.

        Every manifest URL is fetched before anything is stored; a single
        failure leaves the cache untouched.

        Returns:
            Number of responses stored

        Raises:
            CacheInstallError: If any manifest URL fails or returns a non-ok status
        """
        entries: list[CachedResponse] = []

        for url in self.resolvePrecacheUrls():
            request = httpx.Request('GET', url)
            try:
                response = await self.fetcher(request)
                await response.aread()
            except httpx.RequestError as e:
                raise CacheInstallError(
                    f"Failed to precache {url}: {e}",
                    details={'url': str(url), 'cacheName': self.cacheName}
                ) from e

            if not response.is_success:
                raise CacheInstallError(
                    f"Failed to precache {url}: HTTP status {response.status_code}",
                    details={'url': str(url), 'status': response.status_code}
                )

            entries.append(CachedResponse.fromResponse(self.cacheName, request, response))

        await self.storage.putMany(entries)
        logger.info(f"Offline cache installed | cache={self.cacheName} | entries={len(entries)}")
        return len(entries)

    async def activate(self) -> list[str]:
        """
        Delete every cache generation other than the current one.

        Returns:
            Names of the deleted generations
        """
        deleted = []
        for name in await self.storage.keys():
            if name != self.cacheName and await self.storage.delete(name):
                deleted.append(name)

        if deleted:
            logger.info(f"Stale caches removed | current={self.cacheName} | deleted={deleted}")
        return deleted

    def getStats(self) -> dict[str, Any]:
        return {'cacheName': self.cacheName, **self._stats}
