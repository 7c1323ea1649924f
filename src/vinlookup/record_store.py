################################################################################
# File Name: record_store.py
# Purpose/Description: Durable, searchable store of VIN lookup records
# Author: Michael Cornelison
# Creation Date: 2026-10-14
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-14    | M. Cornelison | Initial implementation
# 2026-10-16    | Ralph Agent  | Added in-memory store for tests and substitution
# ================================================================================
################################################################################

"""
Lookup record store module.

Records are keyed by id; saving an existing id overwrites it. Search and
VIN lookups are full scans, which is fine for the hundreds of records a
history holds. No operation retries; SQLite failures surface as
RecordStoreError.

Classes:
    LookupStore: Abstract interface shared by every implementation
    SqliteLookupStore: Durable store over a LookupDatabase
    InMemoryLookupStore: Dictionary-backed store

Usage:
    from vinlookup.database import LookupDatabase
    from vinlookup.record_store import SqliteLookupStore

    store = SqliteLookupStore(LookupDatabase('./data/vin_lookups.db'))
    await store.save(lookup)
    matches = await store.search('civic')
"""

import dataclasses
import logging
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Iterable

from .database import LookupDatabase
from .exceptions import RecordValidationError
from .types import DecodeResult, VinLookup
from .validator import normalizeVin

logger = logging.getLogger(__name__)

# Column name -> DecodeResult attribute
RESULT_COLUMN_MAPPING = {
    'make': 'make',
    'model': 'model',
    'model_year': 'modelYear',
    'engine_model': 'engineModel',
    'trim': 'trim',
    'plant_country': 'plantCountry',
    'plant_company_name': 'plantCompanyName',
    'plant_city': 'plantCity',
    'plant_state': 'plantState',
}

LOOKUP_COLUMNS = ['id', 'vin', 'timestamp', *RESULT_COLUMN_MAPPING, 'error']

UPSERT_LOOKUP_SQL = (
    f"INSERT OR REPLACE INTO vin_lookups ({', '.join(LOOKUP_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in LOOKUP_COLUMNS)})"
)

SELECT_LOOKUPS_SQL = f"SELECT {', '.join(LOOKUP_COLUMNS)} FROM vin_lookups"


def ensureConsistentOutcome(lookup: VinLookup) -> None:
    """
    Reject a record that does not carry exactly one of result/error.

    Raises:
        RecordValidationError: If both or neither are present
    """
    if not lookup.hasConsistentOutcome():
        raise RecordValidationError(
            "Lookup must have exactly one of result or error",
            details={'id': lookup.id, 'vin': lookup.vin}
        )


def matchesQuery(lookup: VinLookup, query: str) -> bool:
    """Case-insensitive substring match on VIN, make and model."""
    needle = query.lower()
    if needle in lookup.vin.lower():
        return True
    if lookup.result is None:
        return False
    return needle in lookup.result.make.lower() or needle in lookup.result.model.lower()


# ================================================================================
# Store Interface
# ================================================================================

class LookupStore(ABC):
    """
    Abstract lookup record store.

    Subclasses implement the primitive operations; search and the secondary
    access helpers are full scans over getAll().
    """

    @abstractmethod
    async def save(self, lookup: VinLookup) -> None:
        """Insert or overwrite a record by id; durable once this returns."""

    @abstractmethod
    async def getAll(self) -> list[VinLookup]:
        """Return every record, in no particular order."""

    @abstractmethod
    async def clear(self) -> None:
        """Irreversibly delete every record."""

    @abstractmethod
    async def importMany(self, lookups: Iterable[VinLookup]) -> int:
        """Upsert many records at once; returns how many were written."""

    async def search(self, query: str) -> list[VinLookup]:
        """
        Find records whose VIN, make or model contains query (case-insensitive).

        Records without a result are matched on VIN only.
        """
        return [lookup for lookup in await self.getAll() if matchesQuery(lookup, query)]

    async def getById(self, lookupId: str) -> VinLookup | None:
        for lookup in await self.getAll():
            if lookup.id == lookupId:
                return lookup
        return None

    async def findByVin(self, vin: str) -> list[VinLookup]:
        """All attempts for one VIN, newest first."""
        cleanVin = normalizeVin(vin)
        matches = [lookup for lookup in await self.getAll() if lookup.vin == cleanVin]
        return sorted(matches, key=lambda lookup: lookup.timestamp, reverse=True)

    async def count(self) -> int:
        return len(await self.getAll())


# ================================================================================
# SQLite Store
# ================================================================================

class SqliteLookupStore(LookupStore):
    """
    Lookup store persisted in the vin_lookups table.

    Attributes:
        database: LookupDatabase handle (opened lazily on first use)
    """

    def __init__(self, database: LookupDatabase):
        self.database = database

    async def save(self, lookup: VinLookup) -> None:
        ensureConsistentOutcome(lookup)
        row = self._toRow(lookup)
        await self.database.run(lambda conn: conn.execute(UPSERT_LOOKUP_SQL, row))
        logger.debug(f"Lookup saved | id={lookup.id} | vin={lookup.vin}")

    async def getAll(self) -> list[VinLookup]:
        rows = await self.database.run(lambda conn: conn.execute(SELECT_LOOKUPS_SQL).fetchall())
        return [self._fromRow(row) for row in rows]

    async def clear(self) -> None:
        deleted = await self.database.run(
            lambda conn: conn.execute("DELETE FROM vin_lookups").rowcount
        )
        logger.info(f"Lookup history cleared | deleted={deleted}")

    async def importMany(self, lookups: Iterable[VinLookup]) -> int:
        lookups = list(lookups)
        if not lookups:
            return 0

        for lookup in lookups:
            ensureConsistentOutcome(lookup)
        rows = [self._toRow(lookup) for lookup in lookups]

        # One transaction: either every row lands or none do
        await self.database.run(lambda conn: conn.executemany(UPSERT_LOOKUP_SQL, rows))
        logger.info(f"Lookups imported | count={len(rows)}")
        return len(rows)

    async def getById(self, lookupId: str) -> VinLookup | None:
        row = await self.database.run(lambda conn: conn.execute(
            f"{SELECT_LOOKUPS_SQL} WHERE id = ?", (lookupId,)
        ).fetchone())
        return self._fromRow(row) if row else None

    async def count(self) -> int:
        return await self.database.run(
            lambda conn: conn.execute("SELECT COUNT(*) FROM vin_lookups").fetchone()[0]
        )

    @staticmethod
    def _toRow(lookup: VinLookup) -> tuple:
        result = lookup.result
        resultValues = [
            getattr(result, attr) if result else None
            for attr in RESULT_COLUMN_MAPPING.values()
        ]
        return (lookup.id, lookup.vin, lookup.timestamp, *resultValues, lookup.error)

    @staticmethod
    def _fromRow(row: sqlite3.Row) -> VinLookup:
        result = None
        if row['make'] is not None:
            result = DecodeResult(**{
                attr: row[column] for column, attr in RESULT_COLUMN_MAPPING.items()
            })
        return VinLookup(
            id=row['id'],
            vin=row['vin'],
            timestamp=row['timestamp'],
            result=result,
            error=row['error'],
        )


# ================================================================================
# In-Memory Store
# ================================================================================

class InMemoryLookupStore(LookupStore):
    """
    Dictionary-backed lookup store with the same semantics as the SQLite one.

    Records are copied on the way in and out, so callers never share state
    with the stored rows.
    """

    def __init__(self, lookups: Iterable[VinLookup] | None = None):
        self._records: dict[str, VinLookup] = {}
        for lookup in lookups or []:
            self._records[lookup.id] = dataclasses.replace(lookup)

    async def save(self, lookup: VinLookup) -> None:
        ensureConsistentOutcome(lookup)
        self._records[lookup.id] = dataclasses.replace(lookup)

    async def getAll(self) -> list[VinLookup]:
        return [dataclasses.replace(lookup) for lookup in self._records.values()]

    async def clear(self) -> None:
        self._records.clear()

    async def importMany(self, lookups: Iterable[VinLookup]) -> int:
        lookups = list(lookups)
        for lookup in lookups:
            ensureConsistentOutcome(lookup)
        self._records.update((lookup.id, dataclasses.replace(lookup)) for lookup in lookups)
        return len(lookups)
