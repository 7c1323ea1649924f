################################################################################
# File Name: test_cache_storage.py
# Purpose/Description: Tests for named offline cache storage
# Author: Michael Cornelison
# Creation Date: 2026-10-15
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-15    | M. Cornelison | Initial implementation
# ================================================================================
################################################################################

"""
Tests for the cache storage module.

Run with:
    pytest tests/test_cache_storage.py -v
"""

import json
from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from common.error_handler import PersistenceError
from tests.test_utils import DECODE_URL, createJsonResponse
from vinlookup.cache_storage import (
    CachedResponse,
    CacheStorage,
    InMemoryCacheStorage,
    SqliteCacheStorage,
)
from vinlookup.exceptions import CacheStorageError


# ================================================================================
# Fixtures
# ================================================================================

@pytest_asyncio.fixture(params=['sqlite', 'memory'])
async def storage(request, tmp_path: Path) -> AsyncGenerator[CacheStorage, None]:
    """Provide each storage implementation in turn."""
    if request.param == 'memory':
        yield InMemoryCacheStorage()
        return

    sqliteStorage = SqliteCacheStorage(str(tmp_path / 'cache.db'))
    yield sqliteStorage
    await sqliteStorage.close()


@pytest.fixture
def decodeRequest() -> httpx.Request:
    return httpx.Request('GET', DECODE_URL)


def snapshot(cacheName: str, body: dict, storedAt: int, url: str = DECODE_URL) -> CachedResponse:
    return CachedResponse(
        cacheName=cacheName,
        method='GET',
        url=url,
        status=200,
        headers=(('content-type', 'application/json'),),
        body=json.dumps(body).encode('utf-8'),
        storedAt=storedAt,
    )


# ================================================================================
# CachedResponse Tests
# ================================================================================

class TestCachedResponse:
    """Tests for the stored response snapshot."""

    def test_fromResponse_stripsTransferHeaders(self, decodeRequest):
        """
        Given: A response with content-encoding and content-length headers
        When: It is snapshotted
        Then: Those headers are dropped and the rest are kept
        """
        response = httpx.Response(
            200,
            headers={
                'Content-Type': 'application/json',
                'Content-Encoding': 'identity',
                'X-Source': 'vpic',
            },
            content=b'{}',
            request=decodeRequest,
        )

        entry = CachedResponse.fromResponse('v1', decodeRequest, response)

        names = {name.lower() for name, _ in entry.headers}
        assert 'content-encoding' not in names
        assert 'content-length' not in names
        assert {'content-type', 'x-source'} <= names

    def test_fromResponse_keyUsesMethodAndUrl(self, decodeRequest):
        entry = CachedResponse.fromResponse('v1', decodeRequest, createJsonResponse({}))

        assert entry.method == 'GET'
        assert entry.url == DECODE_URL
        assert entry.cacheName == 'v1'

    def test_toResponse_freshResponseWithBody(self, decodeRequest):
        """
        Given: A snapshot
        When: toResponse is called
        Then: A readable response with the stored status and body is built
        """
        entry = snapshot('v1', {'Results': [1]}, storedAt=1)

        response = entry.toResponse(decodeRequest)

        assert response.status_code == 200
        assert response.json() == {'Results': [1]}
        assert response.headers['content-type'] == 'application/json'
        assert response.request is decodeRequest


# ================================================================================
# Storage Tests
# ================================================================================

class TestCacheStorage:
    """Behavior shared by every storage implementation."""

    @pytest.mark.asyncio
    async def test_match_emptyStorage_returnsNone(self, storage: CacheStorage, decodeRequest):
        assert await storage.match(decodeRequest) is None

    @pytest.mark.asyncio
    async def test_put_thenMatch_returnsStoredResponse(self, storage: CacheStorage, decodeRequest):
        """
        Given: A response stored in a named cache
        When: The same request is matched
        Then: A response with the same body comes back
        """
        await storage.put('v1', decodeRequest, createJsonResponse({'Count': 1}))

        response = await storage.match(decodeRequest)

        assert response is not None
        assert response.json() == {'Count': 1}

    @pytest.mark.asyncio
    async def test_match_differentMethod_misses(self, storage: CacheStorage, decodeRequest):
        await storage.put('v1', decodeRequest, createJsonResponse({}))

        assert await storage.match(httpx.Request('HEAD', DECODE_URL)) is None

    @pytest.mark.asyncio
    async def test_match_differentQuery_misses(self, storage: CacheStorage, decodeRequest):
        await storage.put('v1', decodeRequest, createJsonResponse({}))

        other = httpx.Request('GET', DECODE_URL.replace('format=json', 'format=xml'))
        assert await storage.match(other) is None

    @pytest.mark.asyncio
    async def test_put_sameKeyTwice_replaces(self, storage: CacheStorage, decodeRequest):
        await storage.put('v1', decodeRequest, createJsonResponse({'n': 1}))
        await storage.put('v1', decodeRequest, createJsonResponse({'n': 2}))

        response = await storage.match(decodeRequest, 'v1')

        assert response.json() == {'n': 2}

    @pytest.mark.asyncio
    async def test_match_acrossCaches_newestWins(self, storage: CacheStorage, decodeRequest):
        """
        Given: The same request cached in two generations at different times
        When: It is matched without a cache name
        Then: The newest entry is returned
        """
        await storage.putMany([
            snapshot('v2', {'gen': 2}, storedAt=2000),
            snapshot('v1', {'gen': 1}, storedAt=1000),
        ])

        response = await storage.match(decodeRequest)

        assert response.json() == {'gen': 2}

    @pytest.mark.asyncio
    async def test_match_sameTimestamp_lastWrittenWins(self, storage: CacheStorage, decodeRequest):
        await storage.putMany([
            snapshot('v1', {'gen': 1}, storedAt=1000),
            snapshot('v2', {'gen': 2}, storedAt=1000),
        ])

        response = await storage.match(decodeRequest)

        assert response.json() == {'gen': 2}

    @pytest.mark.asyncio
    async def test_match_namedCache_onlySearchesThatCache(self, storage: CacheStorage, decodeRequest):
        await storage.putMany([
            snapshot('v1', {'gen': 1}, storedAt=1000),
            snapshot('v2', {'gen': 2}, storedAt=2000),
        ])

        response = await storage.match(decodeRequest, 'v1')

        assert response.json() == {'gen': 1}
        assert await storage.match(decodeRequest, 'v3') is None

    @pytest.mark.asyncio
    async def test_keys_listsCachesWithEntries(self, storage: CacheStorage):
        await storage.putMany([
            snapshot('v2', {}, storedAt=1),
            snapshot('v1', {}, storedAt=1, url='http://localhost:3000/'),
        ])

        assert await storage.keys() == ['v1', 'v2']

    @pytest.mark.asyncio
    async def test_delete_removesWholeCache(self, storage: CacheStorage, decodeRequest):
        """
        Given: Two caches
        When: One is deleted
        Then: Its entries are gone and the other cache remains
        """
        await storage.putMany([
            snapshot('v1', {'gen': 1}, storedAt=1),
            snapshot('v2', {'gen': 2}, storedAt=1),
        ])

        assert await storage.delete('v1') is True

        assert await storage.keys() == ['v2']
        assert await storage.match(decodeRequest, 'v1') is None

    @pytest.mark.asyncio
    async def test_delete_unknownCache_returnsFalse(self, storage: CacheStorage):
        assert await storage.delete('nope') is False

    @pytest.mark.asyncio
    async def test_putMany_empty_noOp(self, storage: CacheStorage):
        await storage.putMany([])

        assert await storage.keys() == []


# ================================================================================
# SQLite-specific Tests
# ================================================================================

class TestSqliteCacheStorage:
    """Tests specific to the durable storage."""

    @pytest.mark.asyncio
    async def test_entries_surviveReopen(self, tmp_path: Path, decodeRequest):
        path = str(tmp_path / 'cache.db')
        first = SqliteCacheStorage(path)
        await first.put('v1', decodeRequest, createJsonResponse({'Count': 3}))
        await first.close()

        second = SqliteCacheStorage(path)
        try:
            response = await second.match(decodeRequest)
        finally:
            await second.close()

        assert response.json() == {'Count': 3}

    @pytest.mark.asyncio
    async def test_queryFailure_raisesCacheStorageError(self, tmp_path: Path, decodeRequest):
        """
        Given: A cache database whose table was dropped
        When: A lookup runs
        Then: CacheStorageError is raised, which is a persistence error
        """
        storage = SqliteCacheStorage(str(tmp_path / 'cache.db'))
        await storage.database.run(lambda conn: conn.execute("DROP TABLE cache_entries"))
        try:
            with pytest.raises(CacheStorageError) as excInfo:
                await storage.match(decodeRequest)

            assert isinstance(excInfo.value, PersistenceError)
        finally:
            await storage.close()
