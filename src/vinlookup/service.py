################################################################################
# File Name: service.py
# Purpose/Description: Lookup orchestration: validate, decode, record, export
# Author: Michael Cornelison
# Creation Date: 2026-10-16
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-16    | M. Cornelison | Initial implementation
# 2026-10-17    | Ralph Agent  | CSV export/import of history
# ================================================================================
################################################################################

"""
Lookup service module.

Ties the validator, the decoder and the record store together:

    raw VIN -> validateVin -> VinDecoder.decodeVin -> VinLookup -> LookupStore

Failed decodes are recorded too, with the failure text in VinLookup.error,
so history shows every attempt.

Usage:
    from vinlookup.service import LookupService

    service = LookupService(store, decoder, exportDirectory='./exports')
    lookup = await service.lookupVin('1HGBH41JXMN109186')
    print(lookup.getVehicleSummary())
"""

import asyncio
import dataclasses
import logging
from pathlib import Path

from common.logging_config import logWithContext

from .csv_codec import generateExportFilename, readCsvFile, writeCsvFile
from .decoder import VinDecoder
from .exceptions import VinApiError, VinValidationError
from .record_store import LookupStore
from .types import DECODE_FAILED_MESSAGE, VinLookup
from .validator import validateVin

logger = logging.getLogger(__name__)

SORT_BY_TIMESTAMP = 'timestamp'
SORT_BY_VIN = 'vin'
SORT_OPTIONS = (SORT_BY_TIMESTAMP, SORT_BY_VIN)

DEFAULT_EXPORT_DIRECTORY = './exports'


def sortLookups(lookups: list[VinLookup], sortBy: str = SORT_BY_TIMESTAMP) -> list[VinLookup]:
    """
    Order lookups for display.

    Args:
        lookups: Records to order
        sortBy: 'timestamp' for newest first, 'vin' for ascending VIN

    Raises:
        ValueError: If sortBy is not a known option
    """
    if sortBy == SORT_BY_TIMESTAMP:
        return sorted(lookups, key=lambda lookup: lookup.timestamp, reverse=True)
    if sortBy == SORT_BY_VIN:
        return sorted(lookups, key=lambda lookup: lookup.vin)
    raise ValueError(f"Unknown sort option: {sortBy} (expected one of {SORT_OPTIONS})")


def _withOutcome(lookup: VinLookup) -> VinLookup:
    # Imported rows may carry neither or both outcome cells
    if lookup.result is None and not lookup.error:
        return dataclasses.replace(lookup, error=DECODE_FAILED_MESSAGE)
    if lookup.result is not None and lookup.error:
        return dataclasses.replace(lookup, error=None)
    return lookup


class LookupService:
    """
    VIN lookup workflow over a record store and a decoder.

    Attributes:
        store: Lookup history store
        decoder: Remote VIN decoder
        exportDirectory: Default directory for CSV exports
    """

    def __init__(
        self,
        store: LookupStore,
        decoder: VinDecoder,
        exportDirectory: str = DEFAULT_EXPORT_DIRECTORY
    ):
        self.store = store
        self.decoder = decoder
        self.exportDirectory = exportDirectory

    async def lookupVin(self, rawVin: str | None) -> VinLookup:
        """
        Validate, decode and record a VIN.

        Args:
            rawVin: VIN as typed by the user

        Returns:
            The saved lookup; failed decodes carry their error text

        Raises:
            VinValidationError: If the VIN is invalid (nothing is decoded or saved)
            RecordStoreError: If the lookup cannot be saved
        """
        outcome = validateVin(rawVin)
        if not outcome:
            raise VinValidationError(outcome.error, details={'vin': rawVin})

        vin = outcome.normalizedVin
        try:
            result = await self.decoder.decodeVin(vin)
            lookup = VinLookup.create(vin, result=result)
        except VinApiError as e:
            lookup = VinLookup.create(vin, error=e.message)

        await self.store.save(lookup)
        logWithContext(
            logger, 'info', 'VIN lookup recorded',
            id=lookup.id, vin=vin, success=lookup.isSuccess()
        )
        return lookup

    async def getHistory(self, sortBy: str = SORT_BY_TIMESTAMP) -> list[VinLookup]:
        return sortLookups(await self.store.getAll(), sortBy)

    async def searchHistory(self, query: str) -> list[VinLookup]:
        """Store search results, newest first. A blank query returns the full history."""
        if not query.strip():
            return await self.getHistory()
        return sortLookups(await self.store.search(query.strip()))

    async def clearHistory(self) -> None:
        await self.store.clear()

    async def exportHistory(self, path: str | Path | None = None) -> Path:
        """
        Write the full history, newest first, as CSV.

        Args:
            path: Output file; defaults to a dated file in exportDirectory

        Returns:
            Path of the written file
        """
        lookups = await self.getHistory()
        outputPath = Path(path) if path else Path(self.exportDirectory) / generateExportFilename()
        writtenPath = await asyncio.to_thread(writeCsvFile, lookups, outputPath)
        logWithContext(logger, 'info', 'History exported', path=writtenPath, records=len(lookups))
        return writtenPath

    async def importHistory(self, path: str | Path) -> int:
        """
        Import history from a CSV file written by exportHistory.

        Rows without a result or an error are recorded as failed decodes.

        Returns:
            Number of records imported

        Raises:
            CsvImportError: If the file cannot be read
            RecordStoreError: If the records cannot be stored
        """
        lookups = [_withOutcome(lookup) for lookup in await asyncio.to_thread(readCsvFile, path)]
        count = await self.store.importMany(lookups)
        logWithContext(logger, 'info', 'History imported', path=path, records=count)
        return count
