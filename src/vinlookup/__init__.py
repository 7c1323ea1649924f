################################################################################
# File Name: __init__.py
# Purpose/Description: VIN lookup package initialization
# Author: Michael Cornelison
# Creation Date: 2026-10-13
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-13    | M. Cornelison | Initial implementation
# ================================================================================
################################################################################
"""
VIN Lookup Package.

This package contains the VIN lookup components:
- VIN validation (ISO 3779 check digit)
- NHTSA vPIC decoding through an offline response cache
- Durable, searchable lookup history with CSV backup/restore

Types:
    DecodeResult: Decoded vehicle attributes
    VinLookup: One decode attempt
    ValidationOutcome: Verdict of VIN validation

Classes:
    LookupDatabase: SQLite substrate with versioned schema
    LookupStore, SqliteLookupStore, InMemoryLookupStore: Lookup history stores
    CacheStorage, SqliteCacheStorage, InMemoryCacheStorage: Response cache storage
    OfflineResponseCache, HttpxFetcher: Request interception and network fetch
    VinDecoder: NHTSA vPIC client
    LookupService: Lookup workflow

Usage:
    from vinlookup import loadLookupConfig, createLookupServiceFromConfig

    config = loadLookupConfig('src/vin_config.json')
    async with createLookupServiceFromConfig(config) as components:
        lookup = await components.service.lookupVin('1HGBH41JXMN109186')
"""

# Types
from .types import (
    UNKNOWN,
    DecodeResult,
    ValidationOutcome,
    VinLookup,
)

# Exceptions
from .exceptions import (
    CacheInstallError,
    CacheStorageError,
    CsvImportError,
    LookupConfigError,
    RecordStoreConnectionError,
    RecordStoreError,
    RecordStoreInitializationError,
    RecordValidationError,
    VinApiError,
    VinApiTimeoutError,
    VinValidationError,
)

# Pure functions
from .validator import computeCheckDigit, isValidVin, normalizeVin, validateVin
from .csv_codec import (
    CSV_HEADERS,
    exportToCsv,
    generateExportFilename,
    importFromCsv,
    readCsvFile,
    writeCsvFile,
)

# Classes
from .database import SCHEMA_VERSION, LookupDatabase, openDatabase
from .record_store import InMemoryLookupStore, LookupStore, SqliteLookupStore
from .cache_storage import (
    CachedResponse,
    CacheStorage,
    InMemoryCacheStorage,
    SqliteCacheStorage,
)
from .offline_cache import OFFLINE_PAYLOAD, HttpxFetcher, OfflineResponseCache
from .decoder import NHTSA_API_BASE_URL, VinDecoder
from .service import LookupService

# Configuration and helpers
from .config import LOOKUP_DEFAULTS, loadLookupConfig, validateLookupConfig
from .helpers import (
    LookupComponents,
    createDatabaseFromConfig,
    createDecoderFromConfig,
    createLookupServiceFromConfig,
    createOfflineCacheFromConfig,
    createRecordStoreFromConfig,
)

__all__ = [
    # Types
    'UNKNOWN',
    'DecodeResult',
    'ValidationOutcome',
    'VinLookup',
    # Exceptions
    'CacheInstallError',
    'CacheStorageError',
    'CsvImportError',
    'LookupConfigError',
    'RecordStoreConnectionError',
    'RecordStoreError',
    'RecordStoreInitializationError',
    'RecordValidationError',
    'VinApiError',
    'VinApiTimeoutError',
    'VinValidationError',
    # Validation
    'computeCheckDigit',
    'isValidVin',
    'normalizeVin',
    'validateVin',
    # CSV
    'CSV_HEADERS',
    'exportToCsv',
    'generateExportFilename',
    'importFromCsv',
    'readCsvFile',
    'writeCsvFile',
    # Classes
    'SCHEMA_VERSION',
    'LookupDatabase',
    'openDatabase',
    'LookupStore',
    'SqliteLookupStore',
    'InMemoryLookupStore',
    'CachedResponse',
    'CacheStorage',
    'SqliteCacheStorage',
    'InMemoryCacheStorage',
    'OFFLINE_PAYLOAD',
    'HttpxFetcher',
    'OfflineResponseCache',
    'NHTSA_API_BASE_URL',
    'VinDecoder',
    'LookupService',
    # Configuration and helpers
    'LOOKUP_DEFAULTS',
    'loadLookupConfig',
    'validateLookupConfig',
    'LookupComponents',
    'createDatabaseFromConfig',
    'createDecoderFromConfig',
    'createLookupServiceFromConfig',
    'createOfflineCacheFromConfig',
    'createRecordStoreFromConfig',
]
