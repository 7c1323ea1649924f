################################################################################
# File Name: database.py
# Purpose/Description: SQLite persistence substrate with versioned schema
# Author: Michael Cornelison
# Creation Date: 2026-10-13
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-13    | M. Cornelison | Initial implementation
# 2026-10-15    | M. Cornelison | Async access through a single held connection
# ================================================================================
################################################################################

"""
SQLite persistence module for the VIN lookup system.

Provides:
- One lazily opened connection per database, held until close()
- A versioned schema initializer (PRAGMA user_version) whose steps are
  additive and idempotent
- Async access: blocking SQLite work runs in a worker thread, serialized per
  database so callers never interleave on the connection
- WAL mode configuration
- Schema introspection helpers

Tables:
- vin_lookups: One row per lookup attempt (see LOOKUP_MIGRATIONS)

Usage:
    from vinlookup.database import LookupDatabase

    db = LookupDatabase('./data/vin_lookups.db')
    await db.open()

    rows = await db.run(lambda conn: conn.execute('SELECT * FROM vin_lookups').fetchall())
"""

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from .exceptions import (
    RecordStoreConnectionError,
    RecordStoreError,
    RecordStoreInitializationError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

MEMORY_PATH = ':memory:'


# ================================================================================
# Schema Definitions
# ================================================================================

LOOKUP_TABLE = 'vin_lookups'

SCHEMA_VIN_LOOKUPS = """
CREATE TABLE IF NOT EXISTS vin_lookups (
    -- Primary key (opaque lookup id)
    id TEXT PRIMARY KEY,

    -- Normalized VIN
    vin TEXT NOT NULL,

    -- Creation instant, milliseconds since the epoch
    timestamp INTEGER NOT NULL,

    -- Decoded attributes; all NULL when the decode failed
    make TEXT,
    model TEXT,
    model_year TEXT,
    engine_model TEXT,
    trim TEXT,
    plant_country TEXT,
    plant_company_name TEXT,
    plant_city TEXT,
    plant_state TEXT,

    -- Failure description; NULL when the decode succeeded
    error TEXT
);
"""

INDEX_VIN_LOOKUPS_VIN = """
CREATE INDEX IF NOT EXISTS IX_vin_lookups_vin
    ON vin_lookups(vin);
"""

INDEX_VIN_LOOKUPS_TIMESTAMP = """
CREATE INDEX IF NOT EXISTS IX_vin_lookups_timestamp
    ON vin_lookups(timestamp);
"""

# Schema version -> statements that bring the previous version up to it
LOOKUP_MIGRATIONS: dict[int, list[str]] = {
    1: [
        SCHEMA_VIN_LOOKUPS,
        INDEX_VIN_LOOKUPS_VIN,
        INDEX_VIN_LOOKUPS_TIMESTAMP,
    ],
}

SCHEMA_VERSION = max(LOOKUP_MIGRATIONS)


# ================================================================================
# Database Class
# ================================================================================

class LookupDatabase:
    """
    Async handle around one SQLite database file.

    The connection is opened on first use and then reused for the lifetime
    of the handle. Work submitted through run() executes inside a
    transaction that commits on success and rolls back on error.

    Attributes:
        dbPath: Path to the SQLite file, or ':memory:'
        walMode: Whether to enable write-ahead logging
        migrations: Schema version -> DDL statements
        errorClass: Exception raised for SQLite failures inside run()
    """

    def __init__(
        self,
        dbPath: str,
        walMode: bool = True,
        migrations: dict[int, list[str]] | None = None,
        errorClass: type[Exception] = RecordStoreError
    ):
        self.dbPath = dbPath
        self.walMode = walMode
        self.migrations = migrations if migrations is not None else LOOKUP_MIGRATIONS
        self.errorClass = errorClass
        self._connection: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def schemaVersion(self) -> int:
        """Version this handle migrates the database to."""
        return max(self.migrations, default=0)

    def isOpen(self) -> bool:
        return self._connection is not None

    async def open(self) -> 'LookupDatabase':
        """
        Open the database and bring its schema up to date.

        Safe to call repeatedly; only the first call touches the file.

        Returns:
            This handle, ready for use

        Raises:
            RecordStoreConnectionError: If the file cannot be opened
            RecordStoreInitializationError: If the schema cannot be applied
        """
        async with self._lock:
            if self._connection is None:
                self._connection = await asyncio.to_thread(self._openAndInitialize)
        return self

    async def close(self) -> None:
        """Close the held connection. The next open() reconnects."""
        async with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                logger.debug(f"Database closed | path={self.dbPath}")

    async def run(self, work: Callable[[sqlite3.Connection], T]) -> T:
        """
        Execute a unit of work against the connection in a worker thread.

        Args:
            work: Callable receiving the connection; runs in one transaction

        Returns:
            Whatever work returns

        Raises:
            errorClass: If SQLite reports an error
        """
        await self.open()
        async with self._lock:
            return await asyncio.to_thread(self._runInTransaction, work)

    # ----------------------------------------------------------------------------
    # Introspection
    # ----------------------------------------------------------------------------

    async def getSchemaVersion(self) -> int:
        return await self.run(lambda conn: conn.execute('PRAGMA user_version').fetchone()[0])

    async def getTableNames(self) -> list[str]:
        return await self.run(lambda conn: [
            row[0] for row in conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
        ])

    async def getIndexNames(self) -> list[str]:
        return await self.run(lambda conn: [
            row[0] for row in conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type='index' AND name NOT LIKE 'sqlite_%'"
            )
        ])

    # ----------------------------------------------------------------------------
    # Private Helpers
    # ----------------------------------------------------------------------------

    def _openAndInitialize(self) -> sqlite3.Connection:
        conn = self._connect()
        try:
            self._initializeSchema(conn)
        except sqlite3.Error as e:
            conn.close()
            raise RecordStoreInitializationError(
                f"Failed to initialize database: {e}",
                details={'path': self.dbPath, 'error': str(e)}
            ) from e
        return conn

    def _connect(self) -> sqlite3.Connection:
        try:
            if self.dbPath != MEMORY_PATH:
                Path(self.dbPath).parent.mkdir(parents=True, exist_ok=True)

            # Worker threads change between calls; the lock serializes access
            conn = sqlite3.connect(self.dbPath, timeout=30.0, check_same_thread=False)
            conn.row_factory = sqlite3.Row

            if self.walMode and self.dbPath != MEMORY_PATH:
                conn.execute('PRAGMA journal_mode = WAL')
                conn.execute('PRAGMA synchronous = NORMAL')

            logger.debug(f"Database connected | path={self.dbPath} | walMode={self.walMode}")
            return conn

        except (sqlite3.Error, OSError) as e:
            raise RecordStoreConnectionError(
                f"Failed to connect to database: {e}",
                details={'path': self.dbPath, 'error': str(e)}
            ) from e

    def _initializeSchema(self, conn: sqlite3.Connection) -> None:
        currentVersion = conn.execute('PRAGMA user_version').fetchone()[0]
        targetVersion = self.schemaVersion

        if currentVersion > targetVersion:
            logger.warning(
                f"Database schema is newer than this build | "
                f"path={self.dbPath} | found={currentVersion} | expected={targetVersion}"
            )
            return

        for version in sorted(v for v in self.migrations if v > currentVersion):
            logger.info(f"Applying schema version {version} | path={self.dbPath}")
            with conn:
                for statement in self.migrations[version]:
                    conn.execute(statement)
                conn.execute(f'PRAGMA user_version = {int(version)}')

        logger.debug(f"Database schema ready | path={self.dbPath} | version={targetVersion}")

    def _runInTransaction(self, work: Callable[[sqlite3.Connection], T]) -> T:
        conn = self._connection
        if conn is None:
            raise self.errorClass(
                "Database is not open",
                details={'path': self.dbPath}
            )
        try:
            with conn:
                return work(conn)
        except (sqlite3.Error, OverflowError) as e:
            raise self.errorClass(
                f"Database operation failed: {e}",
                details={'path': self.dbPath, 'error': str(e)}
            ) from e


# ================================================================================
# Helper Functions
# ================================================================================

async def openDatabase(
    dbPath: str,
    walMode: bool = True,
    migrations: dict[int, list[str]] | None = None,
    errorClass: type[Exception] = RecordStoreError
) -> LookupDatabase:
    """Create a LookupDatabase and open it in one step."""
    return await LookupDatabase(
        dbPath, walMode=walMode, migrations=migrations, errorClass=errorClass
    ).open()
