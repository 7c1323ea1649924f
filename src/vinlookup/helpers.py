################################################################################
# File Name: helpers.py
# Purpose/Description: Factory functions building lookup components from config
# Author: Ralph Agent
# Creation Date: 2026-10-16
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-16    | Ralph Agent  | Initial implementation
# ================================================================================
################################################################################

"""
VIN lookup helper functions module.

Provides factory functions for:
- Database and record store creation
- Offline cache creation
- VIN decoder creation
- Full service wiring (LookupComponents)
"""

import logging
from dataclasses import dataclass
from typing import Any

from .cache_storage import SqliteCacheStorage
from .database import LookupDatabase
from .decoder import VinDecoder
from .offline_cache import Fetcher, HttpxFetcher, OfflineResponseCache
from .record_store import SqliteLookupStore
from .service import LookupService

logger = logging.getLogger(__name__)


# ================================================================================
# Persistence Helpers
# ================================================================================

def createDatabaseFromConfig(config: dict[str, Any]) -> LookupDatabase:
    """
    Create a LookupDatabase from configuration.

    The database is not opened; the first operation opens it.

    Args:
        config: Configuration dictionary with 'database' section

    Returns:
        Unopened LookupDatabase
    """
    dbConfig = config.get('database', {})
    return LookupDatabase(
        dbConfig['path'],
        walMode=dbConfig.get('walMode', True),
    )


def createRecordStoreFromConfig(
    config: dict[str, Any],
    database: LookupDatabase | None = None
) -> SqliteLookupStore:
    return SqliteLookupStore(database or createDatabaseFromConfig(config))


# ================================================================================
# Network Helpers
# ================================================================================

def isOfflineCacheEnabled(config: dict[str, Any]) -> bool:
    return config.get('offlineCache', {}).get('enabled', True)


def createOfflineCacheFromConfig(
    config: dict[str, Any],
    fetcher: Fetcher
) -> OfflineResponseCache:
    """
    Create an OfflineResponseCache backed by a SQLite cache file.

    Args:
        config: Configuration dictionary with 'offlineCache' section
        fetcher: Network fetch capability

    Returns:
        Configured OfflineResponseCache
    """
    cacheConfig = config.get('offlineCache', {})
    storage = SqliteCacheStorage(
        cacheConfig['path'],
        walMode=config.get('database', {}).get('walMode', True),
    )
    return OfflineResponseCache(
        storage,
        fetcher,
        cacheName=cacheConfig['cacheName'],
        decodeHost=cacheConfig['decodeHost'],
        precacheUrls=cacheConfig['precacheUrls'],
        appBaseUrl=cacheConfig['appBaseUrl'],
    )


def createDecoderFromConfig(config: dict[str, Any], fetch: Fetcher) -> VinDecoder:
    decoderConfig = config.get('vinDecoder', {})
    return VinDecoder(
        fetch,
        apiBaseUrl=decoderConfig['apiBaseUrl'],
        timeoutSeconds=decoderConfig['apiTimeoutSeconds'],
    )


# ================================================================================
# Service Wiring
# ================================================================================

@dataclass
class LookupComponents:
    """
    Everything a running lookup session holds open.

    Attributes:
        service: Lookup workflow
        database: Lookup record database
        fetcher: Network fetch capability
        offlineCache: Offline cache, or None when disabled
    """
    service: LookupService
    database: LookupDatabase
    fetcher: Fetcher
    offlineCache: OfflineResponseCache | None = None

    async def aclose(self) -> None:
        """Close the databases and the network client."""
        await self.database.close()
        if self.offlineCache is not None and isinstance(self.offlineCache.storage, SqliteCacheStorage):
            await self.offlineCache.storage.close()
        if isinstance(self.fetcher, HttpxFetcher):
            await self.fetcher.aclose()

    async def __aenter__(self) -> 'LookupComponents':
        return self

    async def __aexit__(self, *excInfo: Any) -> None:
        await self.aclose()


def createLookupServiceFromConfig(
    config: dict[str, Any],
    fetcher: Fetcher | None = None
) -> LookupComponents:
    """
    Wire a LookupService and its dependencies from configuration.

    Decode requests go through the offline cache when it is enabled and
    straight to the network otherwise.

    Args:
        config: Validated configuration dictionary
        fetcher: Network fetch capability; defaults to an HttpxFetcher

    Returns:
        LookupComponents holding the service and the handles to close

    Example:
        config = loadLookupConfig('vin_config.json')
        async with createLookupServiceFromConfig(config) as components:
            lookup = await components.service.lookupVin(vin)
    """
    if fetcher is None:
        fetcher = HttpxFetcher(timeoutSeconds=config['vinDecoder']['apiTimeoutSeconds'])

    offlineCache = None
    fetch = fetcher
    if isOfflineCacheEnabled(config):
        offlineCache = createOfflineCacheFromConfig(config, fetcher)
        fetch = offlineCache.fetch
    else:
        logger.info("Offline cache disabled; decoding directly over the network")

    database = createDatabaseFromConfig(config)
    service = LookupService(
        createRecordStoreFromConfig(config, database),
        createDecoderFromConfig(config, fetch),
        exportDirectory=config.get('export', {}).get('directory', './exports'),
    )
    return LookupComponents(
        service=service,
        database=database,
        fetcher=fetcher,
        offlineCache=offlineCache,
    )
