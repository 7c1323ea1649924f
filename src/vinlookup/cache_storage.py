################################################################################
# File Name: cache_storage.py
# Purpose/Description: Named, generational storage of cached HTTP responses
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
Offline cache storage module.

Responses are grouped into named caches (one name per generation, e.g.
'vin-decoder-v1') and keyed by request method and URL. Storing the same key
again replaces the earlier entry. There is no eviction within a cache; old
generations are removed whole with delete().

Classes:
    CachedResponse: Stored snapshot of one response
    CacheStorage: Abstract interface
    SqliteCacheStorage: Durable storage in the cache_entries table
    InMemoryCacheStorage: Dictionary-backed storage

Usage:
    from vinlookup.cache_storage import SqliteCacheStorage

    storage = SqliteCacheStorage('./data/offline_cache.db')
    await storage.put('vin-decoder-v1', request, response)
    cached = await storage.match(request)
"""

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from .database import LookupDatabase
from .exceptions import CacheStorageError
from .types import nowMillis

logger = logging.getLogger(__name__)


# ================================================================================
# Schema Definitions
# ================================================================================

SCHEMA_CACHE_ENTRIES = """
CREATE TABLE IF NOT EXISTS cache_entries (
    -- Cache generation name
    cache_name TEXT NOT NULL,

    -- Request key
    method TEXT NOT NULL,
    url TEXT NOT NULL,

    -- Response snapshot
    status INTEGER NOT NULL,
    headers_json TEXT NOT NULL,
    body BLOB NOT NULL,

    -- When the entry was written, milliseconds since the epoch
    stored_at INTEGER NOT NULL,

    PRIMARY KEY (cache_name, method, url)
);
"""

INDEX_CACHE_ENTRIES_URL = """
CREATE INDEX IF NOT EXISTS IX_cache_entries_url
    ON cache_entries(method, url);
"""

CACHE_MIGRATIONS: dict[int, list[str]] = {
    1: [
        SCHEMA_CACHE_ENTRIES,
        INDEX_CACHE_ENTRIES_URL,
    ],
}

# The stored body is already decoded, so these no longer describe it
STRIPPED_HEADERS = frozenset({'content-encoding', 'content-length', 'transfer-encoding'})


# ================================================================================
# Cached Response
# ================================================================================

@dataclass(frozen=True)
class CachedResponse:
    """
    Snapshot of a response as stored in a cache.

    Attributes:
        cacheName: Generation the entry belongs to
        method: Request method of the key
        url: Request URL of the key
        status: HTTP status code
        headers: Header (name, value) pairs
        body: Decoded response body
        storedAt: Write time in epoch milliseconds
    """

    cacheName: str
    method: str
    url: str
    status: int
    headers: tuple[tuple[str, str], ...]
    body: bytes
    storedAt: int

    @classmethod
    def fromResponse(
        cls,
        cacheName: str,
        request: httpx.Request,
        response: httpx.Response
    ) -> 'CachedResponse':
        """
        Snapshot a response whose body has already been read.

        Raises:
            httpx.ResponseNotRead: If the body is still streaming
        """
        headers = tuple(
            (name, value) for name, value in response.headers.multi_items()
            if name.lower() not in STRIPPED_HEADERS
        )
        return cls(
            cacheName=cacheName,
            method=request.method.upper(),
            url=str(request.url),
            status=response.status_code,
            headers=headers,
            body=response.content,
            storedAt=nowMillis(),
        )

    def toResponse(self, request: httpx.Request | None = None) -> httpx.Response:
        """Build a fresh httpx.Response carrying this snapshot."""
        return httpx.Response(
            self.status,
            headers=list(self.headers),
            content=self.body,
            request=request,
        )


def requestKey(request: httpx.Request) -> tuple[str, str]:
    return request.method.upper(), str(request.url)


# ================================================================================
# Storage Interface
# ================================================================================

class CacheStorage(ABC):
    """Abstract named-cache storage."""

    @abstractmethod
    async def put(
        self,
        cacheName: str,
        request: httpx.Request,
        response: httpx.Response
    ) -> None:
        """Store a read response under (method, URL) in the named cache."""

    @abstractmethod
    async def putMany(self, entries: list[CachedResponse]) -> None:
        """Store several snapshots at once; all or none are written."""

    @abstractmethod
    async def matchEntry(
        self,
        request: httpx.Request,
        cacheName: str | None = None
    ) -> CachedResponse | None:
        """Newest snapshot for the request key, searching every cache when no name is given."""

    @abstractmethod
    async def keys(self) -> list[str]:
        """Names of the caches that currently hold entries."""

    @abstractmethod
    async def delete(self, cacheName: str) -> bool:
        """Remove a whole cache. Returns False when it did not exist."""

    async def match(
        self,
        request: httpx.Request,
        cacheName: str | None = None
    ) -> httpx.Response | None:
        """
        Look up a cached response.

        Args:
            request: Request whose method and URL form the key
            cacheName: Restrict the search to one cache

        Returns:
            A fresh response built from the newest matching entry, or None
        """
        entry = await self.matchEntry(request, cacheName)
        return entry.toResponse(request) if entry else None


# ================================================================================
# SQLite Storage
# ================================================================================

class SqliteCacheStorage(CacheStorage):
    """
    Cache storage in a SQLite file.

    Shares LookupDatabase's connection handling: opened on first use, held
    until close(), one serialized worker-thread call per operation.
    """

    def __init__(self, dbPath: str, walMode: bool = True):
        self.database = LookupDatabase(
            dbPath,
            walMode=walMode,
            migrations=CACHE_MIGRATIONS,
            errorClass=CacheStorageError,
        )

    async def close(self) -> None:
        await self.database.close()

    async def put(
        self,
        cacheName: str,
        request: httpx.Request,
        response: httpx.Response
    ) -> None:
        await self.putMany([CachedResponse.fromResponse(cacheName, request, response)])

    async def putMany(self, entries: list[CachedResponse]) -> None:
        if not entries:
            return
        rows = [self._toRow(entry) for entry in entries]
        await self.database.run(lambda conn: conn.executemany(
            "INSERT OR REPLACE INTO cache_entries "
            "(cache_name, method, url, status, headers_json, body, stored_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            rows
        ))
        logger.debug(f"Cached responses stored | count={len(rows)}")

    async def matchEntry(
        self,
        request: httpx.Request,
        cacheName: str | None = None
    ) -> CachedResponse | None:
        method, url = requestKey(request)
        query = "SELECT * FROM cache_entries WHERE method = ? AND url = ?"
        params: list = [method, url]
        if cacheName is not None:
            query += " AND cache_name = ?"
            params.append(cacheName)
        query += " ORDER BY stored_at DESC, rowid DESC LIMIT 1"

        row = await self.database.run(lambda conn: conn.execute(query, params).fetchone())
        return self._fromRow(row) if row else None

    async def keys(self) -> list[str]:
        return await self.database.run(lambda conn: [
            row[0] for row in conn.execute(
                "SELECT DISTINCT cache_name FROM cache_entries ORDER BY cache_name"
            )
        ])

    async def delete(self, cacheName: str) -> bool:
        deleted = await self.database.run(lambda conn: conn.execute(
            "DELETE FROM cache_entries WHERE cache_name = ?", (cacheName,)
        ).rowcount)
        if deleted:
            logger.info(f"Cache deleted | name={cacheName} | entries={deleted}")
        return deleted > 0

    @staticmethod
    def _toRow(entry: CachedResponse) -> tuple:
        return (
            entry.cacheName,
            entry.method,
            entry.url,
            entry.status,
            json.dumps([list(pair) for pair in entry.headers]),
            entry.body,
            entry.storedAt,
        )

    @staticmethod
    def _fromRow(row: sqlite3.Row) -> CachedResponse:
        return CachedResponse(
            cacheName=row['cache_name'],
            method=row['method'],
            url=row['url'],
            status=row['status'],
            headers=tuple((name, value) for name, value in json.loads(row['headers_json'])),
            body=bytes(row['body']),
            storedAt=row['stored_at'],
        )


# ================================================================================
# In-Memory Storage
# ================================================================================

class InMemoryCacheStorage(CacheStorage):
    """Dictionary-backed cache storage; contents live as long as the object."""

    def __init__(self):
        self._caches: dict[str, dict[tuple[str, str], CachedResponse]] = {}
        # Insertion sequence breaks stored_at ties, like rowid does in SQLite
        self._sequence: dict[tuple[str, str, str], int] = {}
        self._counter = 0

    async def put(
        self,
        cacheName: str,
        request: httpx.Request,
        response: httpx.Response
    ) -> None:
        await self.putMany([CachedResponse.fromResponse(cacheName, request, response)])

    async def putMany(self, entries: list[CachedResponse]) -> None:
        for entry in entries:
            key = (entry.method, entry.url)
            self._caches.setdefault(entry.cacheName, {})[key] = entry
            self._counter += 1
            self._sequence[(entry.cacheName, *key)] = self._counter

    async def matchEntry(
        self,
        request: httpx.Request,
        cacheName: str | None = None
    ) -> CachedResponse | None:
        key = requestKey(request)
        names = [cacheName] if cacheName is not None else list(self._caches)
        candidates = [
            self._caches[name][key] for name in names
            if name in self._caches and key in self._caches[name]
        ]
        if not candidates:
            return None
        return max(
            candidates,
            key=lambda entry: (entry.storedAt, self._sequence[(entry.cacheName, *key)])
        )

    async def keys(self) -> list[str]:
        return sorted(self._caches)

    async def delete(self, cacheName: str) -> bool:
        return self._caches.pop(cacheName, None) is not None
