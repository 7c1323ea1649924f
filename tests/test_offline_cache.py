################################################################################
# File Name: test_offline_cache.py
# Purpose/Description: Tests for offline request interception and lifecycle
# Author: Michael Cornelison
# Creation Date: 2026-10-15
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-15    | M. Cornelison | Initial implementation
# 2026-10-17    | Ralph Agent  | Install and activate tests
# ================================================================================
################################################################################

"""
Tests for the offline response cache module.

Run with:
    pytest tests/test_offline_cache.py -v
"""

import httpx
import pytest

from tests.test_utils import (
    DECODE_URL,
    RecordingFetcher,
    connectError,
    createJsonResponse,
    createTextResponse,
)
from vinlookup.cache_storage import InMemoryCacheStorage
from vinlookup.exceptions import CacheInstallError, CacheStorageError
from vinlookup.offline_cache import (
    DEFAULT_CACHE_NAME,
    OFFLINE_MESSAGE,
    OFFLINE_PAYLOAD,
    HttpxFetcher,
    OfflineResponseCache,
    buildOfflineResponse,
)

SHELL_URL = 'http://localhost:3000/manifest.json'


# ================================================================================
# Fixtures
# ================================================================================

@pytest.fixture
def storage() -> InMemoryCacheStorage:
    return InMemoryCacheStorage()


@pytest.fixture
def offlineCache(storage, recordingFetcher) -> OfflineResponseCache:
    return OfflineResponseCache(
        storage,
        recordingFetcher,
        precacheUrls=['/', '/manifest.json'],
    )


def getRequest(url: str = DECODE_URL) -> httpx.Request:
    return httpx.Request('GET', url)


class FailingCacheStorage(InMemoryCacheStorage):
    """In-memory storage whose reads and writes fail like a broken database file."""

    async def putMany(self, entries):
        raise CacheStorageError('Database operation failed: disk I/O error')

    async def put(self, cacheName, request, response):
        raise CacheStorageError('Database operation failed: disk I/O error')

    async def matchEntry(self, request, cacheName=None):
        raise CacheStorageError('Database operation failed: disk I/O error')


def nonTransportErrors() -> list[httpx.RequestError]:
    request = getRequest()
    return [
        httpx.TooManyRedirects('Exceeded maximum allowed redirects.', request=request),
        httpx.DecodingError('Malformed gzip body', request=request),
    ]


# ================================================================================
# Routing Tests
# ================================================================================

class TestRouting:
    """Tests for request classification."""

    def test_isDecodeRequest_decodeHost_true(self, offlineCache):
        assert offlineCache.isDecodeRequest(getRequest()) is True

    def test_isDecodeRequest_shellHost_false(self, offlineCache):
        assert offlineCache.isDecodeRequest(getRequest(SHELL_URL)) is False

    @pytest.mark.asyncio
    async def test_fetch_nonGet_bypassesCache(self, offlineCache, storage, recordingFetcher):
        """
        Given: A POST to the decode host
        When: It goes through the cache
        Then: It reaches the network and nothing is stored
        """
        recordingFetcher.queue.append(createJsonResponse({'ok': True}))
        request = httpx.Request('POST', DECODE_URL, content=b'{}')

        response = await offlineCache.fetch(request)

        assert response.json() == {'ok': True}
        assert recordingFetcher.callCount == 1
        assert await storage.keys() == []
        assert offlineCache.getStats()['bypassed'] == 1

    @pytest.mark.asyncio
    async def test_fetch_nonGetOffline_raisesTransportError(self, offlineCache):
        with pytest.raises(httpx.TransportError):
            await offlineCache.fetch(httpx.Request('DELETE', DECODE_URL))


# ================================================================================
# Decode (Network First) Tests
# ================================================================================

class TestDecodeRequests:
    """Tests for the network-first decode policy."""

    @pytest.mark.asyncio
    async def test_fetch_online_returnsLiveAndCaches(
        self, offlineCache, storage, recordingFetcher, nhtsaPayload
    ):
        """
        Given: The network is reachable
        When: A decode request is fetched
        Then: The live response is returned and a copy lands in the current cache
        """
        recordingFetcher.queue.append(createJsonResponse(nhtsaPayload))

        response = await offlineCache.fetch(getRequest())

        assert response.json() == nhtsaPayload
        cached = await storage.match(getRequest(), DEFAULT_CACHE_NAME)
        assert cached is not None
        assert cached.json() == nhtsaPayload

    @pytest.mark.asyncio
    async def test_fetch_nonOkStatus_returnedButNotCached(
        self, offlineCache, storage, recordingFetcher
    ):
        recordingFetcher.queue.append(createJsonResponse({'Message': 'down'}, statusCode=503))

        response = await offlineCache.fetch(getRequest())

        assert response.status_code == 503
        assert await storage.match(getRequest()) is None

    @pytest.mark.asyncio
    async def test_fetch_offlineAfterOnline_servesCachedCopy(
        self, offlineCache, recordingFetcher, nhtsaPayload
    ):
        """
        Given: A decode response cached while online
        When: The same request is made with the network down
        Then: The cached response is served
        """
        recordingFetcher.queue.append(createJsonResponse(nhtsaPayload))
        await offlineCache.fetch(getRequest())

        response = await offlineCache.fetch(getRequest())

        assert response.status_code == 200
        assert response.json() == nhtsaPayload
        assert offlineCache.getStats()['cacheFallbacks'] == 1

    @pytest.mark.asyncio
    async def test_fetch_offlineCacheMiss_returnsOfflinePayload(self, offlineCache):
        """
        Given: Nothing cached and the network down
        When: A decode request is fetched
        Then: A 200 JSON response with empty Results and the offline message is returned
        """
        response = await offlineCache.fetch(getRequest())

        assert response.status_code == 200
        assert response.headers['content-type'] == 'application/json'
        body = response.json()
        assert body == OFFLINE_PAYLOAD
        assert body['Results'] == []
        assert body['Message'] == OFFLINE_MESSAGE
        assert offlineCache.getStats()['offlineResponses'] == 1

    @pytest.mark.asyncio
    async def test_fetch_timeout_fallsBackLikeOffline(self, offlineCache, recordingFetcher):
        recordingFetcher.queue.append(httpx.ReadTimeout('timed out', request=getRequest()))

        response = await offlineCache.fetch(getRequest())

        assert response.json()['Message'] == OFFLINE_MESSAGE

    @pytest.mark.asyncio
    async def test_fetch_offline_servesEntryFromOlderGeneration(
        self, storage, recordingFetcher, nhtsaPayload
    ):
        """
        Given: A decode response cached under an older generation name
        When: The current generation is offline
        Then: The older entry is still served
        """
        old = OfflineResponseCache(storage, recordingFetcher, cacheName='vin-decoder-v0')
        recordingFetcher.queue.append(createJsonResponse(nhtsaPayload))
        await old.fetch(getRequest())

        current = OfflineResponseCache(storage, recordingFetcher)
        response = await current.fetch(getRequest())

        assert response.json() == nhtsaPayload

    @pytest.mark.asyncio
    async def test_fetch_online_replacesEarlierCopy(self, offlineCache, recordingFetcher):
        recordingFetcher.queue.extend([
            createJsonResponse({'Results': [1]}),
            createJsonResponse({'Results': [2]}),
        ])
        await offlineCache.fetch(getRequest())
        await offlineCache.fetch(getRequest())

        response = await offlineCache.fetch(getRequest())

        assert response.json() == {'Results': [2]}

    @pytest.mark.asyncio
    @pytest.mark.parametrize('error', nonTransportErrors(), ids=lambda e: type(e).__name__)
    async def test_fetch_nonTransportRequestError_fallsBackLikeOffline(
        self, offlineCache, recordingFetcher, nhtsaPayload, error
    ):
        """
        Given: A cached decode response and a request error outside the transport family
        When: The same request is fetched again
        Then: The cached copy is served instead of the error escaping
        """
        recordingFetcher.queue.extend([createJsonResponse(nhtsaPayload), error])
        await offlineCache.fetch(getRequest())

        response = await offlineCache.fetch(getRequest())

        assert response.json() == nhtsaPayload
        assert offlineCache.getStats()['cacheFallbacks'] == 1

    @pytest.mark.asyncio
    async def test_fetch_tooManyRedirectsNothingCached_returnsOfflinePayload(
        self, offlineCache, recordingFetcher
    ):
        recordingFetcher.queue.append(nonTransportErrors()[0])

        response = await offlineCache.fetch(getRequest())

        assert response.json() == OFFLINE_PAYLOAD

    @pytest.mark.asyncio
    async def test_fetch_cacheWriteFails_returnsLiveResponse(self, recordingFetcher, nhtsaPayload):
        """
        Given: A cache store that rejects every write
        When: A decode request succeeds online
        Then: The live response is still returned and nothing is counted as cached
        """
        offlineCache = OfflineResponseCache(FailingCacheStorage(), recordingFetcher)
        recordingFetcher.queue.append(createJsonResponse(nhtsaPayload))

        response = await offlineCache.fetch(getRequest())

        assert response.status_code == 200
        assert response.json() == nhtsaPayload
        assert offlineCache.getStats()['responsesCached'] == 0

    @pytest.mark.asyncio
    async def test_fetch_cacheReadFailsOffline_returnsOfflinePayload(self, recordingFetcher):
        offlineCache = OfflineResponseCache(FailingCacheStorage(), recordingFetcher)

        response = await offlineCache.fetch(getRequest())

        assert response.status_code == 200
        assert response.json() == OFFLINE_PAYLOAD
        assert offlineCache.getStats()['offlineResponses'] == 1

    def test_buildOfflineResponse_attachesRequest(self):
        request = getRequest()

        response = buildOfflineResponse(request)

        assert response.request is request
        assert response.json()['SearchCriteria'] == ''


# ================================================================================
# Application Shell (Cache First) Tests
# ================================================================================

class TestShellRequests:
    """Tests for the cache-first shell policy."""

    @pytest.mark.asyncio
    async def test_fetch_cachedShell_skipsNetwork(self, offlineCache, storage, recordingFetcher):
        """
        Given: A shell asset already cached
        When: It is fetched
        Then: The cached copy is returned without touching the network
        """
        await storage.put(DEFAULT_CACHE_NAME, getRequest(SHELL_URL), createTextResponse('cached'))

        response = await offlineCache.fetch(getRequest(SHELL_URL))

        assert response.text == 'cached'
        assert recordingFetcher.callCount == 0
        assert offlineCache.getStats()['shellCacheHits'] == 1

    @pytest.mark.asyncio
    async def test_fetch_uncachedShell_goesToNetworkWithoutCaching(
        self, offlineCache, storage, recordingFetcher
    ):
        recordingFetcher.queue.append(createTextResponse('live'))

        response = await offlineCache.fetch(getRequest(SHELL_URL))

        assert response.text == 'live'
        assert await storage.match(getRequest(SHELL_URL)) is None

    @pytest.mark.asyncio
    async def test_fetch_uncachedShellOffline_raises(self, offlineCache):
        with pytest.raises(httpx.ConnectError):
            await offlineCache.fetch(getRequest(SHELL_URL))


# ================================================================================
# Lifecycle Tests
# ================================================================================

class TestLifecycle:
    """Tests for install, activate and stats."""

    def test_resolvePrecacheUrls_joinsBase(self, offlineCache):
        urls = [str(url) for url in offlineCache.resolvePrecacheUrls()]

        assert urls == ['http://localhost:3000/', SHELL_URL]

    @pytest.mark.asyncio
    async def test_install_allSucceed_storesEveryUrl(self, offlineCache, storage, recordingFetcher):
        """
        Given: Every manifest URL is reachable
        When: install is called
        Then: Each response is stored in the current generation
        """
        recordingFetcher.default = createTextResponse('<html></html>')

        stored = await offlineCache.install()

        assert stored == 2
        assert await storage.keys() == [DEFAULT_CACHE_NAME]
        assert await storage.match(getRequest(SHELL_URL), DEFAULT_CACHE_NAME) is not None

    @pytest.mark.asyncio
    async def test_install_oneUnreachable_storesNothing(self, offlineCache, storage, recordingFetcher):
        """
        Given: The second manifest URL is unreachable
        When: install is called
        Then: CacheInstallError is raised and the cache stays empty
        """
        recordingFetcher.queue.extend([
            createTextResponse('<html></html>'),
            connectError(SHELL_URL),
        ])

        with pytest.raises(CacheInstallError) as excInfo:
            await offlineCache.install()

        assert excInfo.value.details['url'] == SHELL_URL
        assert await storage.keys() == []

    @pytest.mark.asyncio
    async def test_install_notFound_storesNothing(self, offlineCache, storage, recordingFetcher):
        recordingFetcher.queue.extend([
            createTextResponse('<html></html>'),
            createTextResponse('missing', statusCode=404),
        ])

        with pytest.raises(CacheInstallError) as excInfo:
            await offlineCache.install()

        assert excInfo.value.details['status'] == 404
        assert await storage.keys() == []

    @pytest.mark.asyncio
    async def test_install_tooManyRedirects_raisesInstallError(self, offlineCache, storage, recordingFetcher):
        recordingFetcher.queue.append(
            httpx.TooManyRedirects('Exceeded maximum allowed redirects.', request=httpx.Request('GET', SHELL_URL))
        )

        with pytest.raises(CacheInstallError):
            await offlineCache.install()

        assert await storage.keys() == []

    @pytest.mark.asyncio
    async def test_activate_deletesOtherGenerations(self, offlineCache, storage):
        """
        Given: Entries in the current and two stale generations
        When: activate is called
        Then: Only the current generation remains
        """
        for name in ('vin-decoder-v0', 'other-cache', DEFAULT_CACHE_NAME):
            await storage.put(name, getRequest(), createJsonResponse({'name': name}))

        deleted = await offlineCache.activate()

        assert sorted(deleted) == ['other-cache', 'vin-decoder-v0']
        assert await storage.keys() == [DEFAULT_CACHE_NAME]

    @pytest.mark.asyncio
    async def test_activate_nothingStale_returnsEmpty(self, offlineCache):
        assert await offlineCache.activate() == []

    @pytest.mark.asyncio
    async def test_getStats_countsRequests(self, offlineCache, recordingFetcher, nhtsaPayload):
        recordingFetcher.queue.append(createJsonResponse(nhtsaPayload))
        await offlineCache.fetch(getRequest())
        await offlineCache.fetch(getRequest())

        stats = offlineCache.getStats()

        assert stats['cacheName'] == DEFAULT_CACHE_NAME
        assert stats['requests'] == 2
        assert stats['networkResponses'] == 1
        assert stats['responsesCached'] == 1
        assert stats['cacheFallbacks'] == 1


# ================================================================================
# HttpxFetcher Tests
# ================================================================================

class TestHttpxFetcher:
    """Tests for the httpx-backed network fetcher."""

    @pytest.mark.asyncio
    async def test_call_sendsThroughTransport(self, nhtsaPayload):
        """
        Given: A fetcher over a mock transport
        When: A request is sent
        Then: The transport's response comes back fully read
        """
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=nhtsaPayload)

        async with HttpxFetcher(transport=httpx.MockTransport(handler)) as fetcher:
            response = await fetcher(getRequest())

        assert response.json() == nhtsaPayload
        assert str(seen[0].url) == DECODE_URL

    @pytest.mark.asyncio
    async def test_call_transportFailure_raisesTransportError(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('refused', request=request)

        async with HttpxFetcher(transport=httpx.MockTransport(handler)) as fetcher:
            with pytest.raises(httpx.TransportError):
                await fetcher(getRequest())

    @pytest.mark.asyncio
    async def test_offlineCache_overHttpxFetcher_fallsBack(self, storage):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('refused', request=request)

        async with HttpxFetcher(transport=httpx.MockTransport(handler)) as fetcher:
            cache = OfflineResponseCache(storage, fetcher)
            response = await cache.fetch(getRequest())

        assert response.json() == OFFLINE_PAYLOAD
