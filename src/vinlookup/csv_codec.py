################################################################################
# File Name: csv_codec.py
# Purpose/Description: CSV export/import of VIN lookup history
# Author: Michael Cornelison
# Creation Date: 2026-10-13
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-13    | M. Cornelison | Initial implementation
# 2026-10-16    | M. Cornelison | Added file helpers and dated export filenames
# ================================================================================
################################################################################

"""
CSV codec for VIN lookup history.

This is the backup/restore interchange format. The layout is fixed:

    VIN,Timestamp,Date,Make,Model,Year,Engine,Trim,Plant Country,Plant Company,Plant City,Plant State,Error
    "1HGBH41JXMN109186",1640995200000,"2022-01-01T00:00:00.000Z","Honda","Civic",...,""

Every cell is double-quoted except the raw millisecond timestamp. The Date
column is derived from the timestamp and ignored on import.

Known limitation: quote characters inside a value are neither escaped on
export nor recoverable on import. The parser simply toggles its in-quotes
state on every '"'.

Usage:
    from vinlookup.csv_codec import exportToCsv, importFromCsv

    text = exportToCsv(lookups)
    restored = importFromCsv(text)
"""

import logging
import re
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from .exceptions import CsvImportError
from .types import DecodeResult, VinLookup, newLookupId, nowMillis

logger = logging.getLogger(__name__)


# ================================================================================
# Constants
# ================================================================================

CSV_HEADERS = [
    'VIN',
    'Timestamp',
    'Date',
    'Make',
    'Model',
    'Year',
    'Engine',
    'Trim',
    'Plant Country',
    'Plant Company',
    'Plant City',
    'Plant State',
    'Error',
]

# Rows with fewer parsed fields are dropped
MIN_FIELD_COUNT = len(CSV_HEADERS)

# Result attributes in column order, starting at the Make column
RESULT_COLUMNS = [
    'make',
    'model',
    'modelYear',
    'engineModel',
    'trim',
    'plantCountry',
    'plantCompanyName',
    'plantCity',
    'plantState',
]

MAKE_COLUMN = CSV_HEADERS.index('Make')
ERROR_COLUMN = CSV_HEADERS.index('Error')

EXPORT_FILENAME_PREFIX = 'vin-history'

_LEADING_INTEGER = re.compile(r'\s*([+-]?\d+)')

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Epoch-millisecond range a datetime can represent
MIN_TIMESTAMP_MS = (datetime.min.replace(tzinfo=timezone.utc) - _EPOCH) // timedelta(milliseconds=1)
MAX_TIMESTAMP_MS = (datetime.max.replace(tzinfo=timezone.utc) - _EPOCH) // timedelta(milliseconds=1)


# ================================================================================
# Encoding
# ================================================================================

def formatIsoTimestamp(timestampMs: int) -> str:
    """Render epoch milliseconds as an ISO-8601 UTC instant with millisecond precision."""
    instant = _EPOCH + timedelta(seconds=timestampMs // 1000)
    return f"{instant.year:04d}-{instant:%m-%dT%H:%M:%S}.{timestampMs % 1000:03d}Z"


def _quote(value: str | None) -> str:
    return f'"{value or ""}"'


def _encodeRow(lookup: VinLookup) -> str:
    result = lookup.result
    cells = [
        _quote(lookup.vin),
        str(lookup.timestamp),
        _quote(formatIsoTimestamp(lookup.timestamp)),
    ]
    cells.extend(
        _quote(getattr(result, attr) if result else None) for attr in RESULT_COLUMNS
    )
    cells.append(_quote(lookup.error))
    return ','.join(cells)


def exportToCsv(lookups: Iterable[VinLookup]) -> str:
    """
    Encode lookups as CSV text.

    Args:
        lookups: Records to export, written in the given order

    Returns:
        CSV text; always starts with the header row, so an empty input yields
        exactly one line
    """
    rows = [','.join(CSV_HEADERS)]
    rows.extend(_encodeRow(lookup) for lookup in lookups)
    return '\n'.join(rows)


# ================================================================================
# Decoding
# ================================================================================

def parseCsvLine(line: str) -> list[str]:
    """
    Split one CSV line into fields.

    Commas separate fields only outside double quotes; quote characters are
    consumed and never emitted.
    """
    values: list[str] = []
    current: list[str] = []
    inQuotes = False

    for char in line:
        if char == '"':
            inQuotes = not inQuotes
        elif char == ',' and not inQuotes:
            values.append(''.join(current))
            current = []
        else:
            current.append(char)

    values.append(''.join(current))
    return values


def _parseTimestamp(value: str) -> int:
    match = _LEADING_INTEGER.match(value)
    if match is None:
        return nowMillis()

    timestamp = int(match.group(1))
    if not MIN_TIMESTAMP_MS <= timestamp <= MAX_TIMESTAMP_MS:
        logger.warning(f"Timestamp out of range, using current time | value={match.group(1)}")
        return nowMillis()
    return timestamp


def _decodeRow(values: list[str]) -> VinLookup:
    result = None
    if values[MAKE_COLUMN]:
        result = DecodeResult(**{
            attr: values[MAKE_COLUMN + offset]
            for offset, attr in enumerate(RESULT_COLUMNS)
        })

    return VinLookup(
        id=newLookupId(),
        vin=values[0],
        timestamp=_parseTimestamp(values[1]),
        result=result,
        error=values[ERROR_COLUMN] or None,
    )


def importFromCsv(csvContent: str) -> list[VinLookup]:
    """
    Decode CSV text into lookups.

    The first line is treated as the header and skipped. Lines with fewer
    than 13 fields are dropped without error. A result is rebuilt only when
    the Make cell is non-empty. Every record gets a fresh id.

    Args:
        csvContent: CSV text in the export layout

    Returns:
        Decoded lookups in file order
    """
    lines = csvContent.strip().split('\n')
    if len(lines) < 2:
        return []

    lookups: list[VinLookup] = []
    skipped = 0

    for line in lines[1:]:
        values = parseCsvLine(line.rstrip('\r'))
        if len(values) < MIN_FIELD_COUNT:
            skipped += 1
            continue
        lookups.append(_decodeRow(values))

    if skipped:
        logger.debug(f"Skipped {skipped} malformed CSV rows")

    return lookups


# ================================================================================
# File Helpers
# ================================================================================

def generateExportFilename(today: date | None = None) -> str:
    """Build the dated export filename, e.g. vin-history-2026-10-16.csv."""
    today = today or datetime.now(timezone.utc).date()
    return f"{EXPORT_FILENAME_PREFIX}-{today.isoformat()}.csv"


def writeCsvFile(lookups: Iterable[VinLookup], path: str | Path) -> Path:
    """
    Export lookups to a CSV file, creating parent directories.

    Returns:
        Path of the written file
    """
    outputPath = Path(path)
    outputPath.parent.mkdir(parents=True, exist_ok=True)
    outputPath.write_text(exportToCsv(lookups), encoding='utf-8')
    logger.info(f"Exported lookup history | path={outputPath}")
    return outputPath


def readCsvFile(path: str | Path) -> list[VinLookup]:
    """
    Import lookups from a CSV file.

    Raises:
        CsvImportError: If the file cannot be read or decoded as UTF-8
    """
    inputPath = Path(path)
    try:
        content = inputPath.read_text(encoding='utf-8-sig')
    except (OSError, UnicodeDecodeError) as e:
        raise CsvImportError(
            f"Failed to read CSV file: {e}",
            details={'path': str(inputPath)}
        ) from e

    lookups = importFromCsv(content)
    logger.info(f"Read lookup history | path={inputPath} | records={len(lookups)}")
    return lookups
