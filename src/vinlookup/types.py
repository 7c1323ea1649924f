################################################################################
# File Name: types.py
# Purpose/Description: Lookup record, decode result and validation outcome types
# Author: Ralph Agent
# Creation Date: 2026-10-13
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-13    | Ralph Agent  | Initial creation
# ================================================================================
################################################################################

"""
VIN lookup types module.

Contains dataclasses for:
- DecodeResult: Flat vehicle attributes decoded from a VIN
- VinLookup: One stored decode attempt (successful or failed)
- ValidationOutcome: Verdict of the VIN validator
"""

import time
import uuid
from dataclasses import dataclass, fields
from typing import Any

# Sentinel for any attribute the remote service left blank
UNKNOWN = 'Unknown'

# Shown for a failed lookup that carries no error text
DECODE_FAILED_MESSAGE = 'Decode failed'

# Python attribute -> wire key used by the decode payload and stored exports
DECODE_RESULT_KEYS = {
    'make': 'Make',
    'model': 'Model',
    'modelYear': 'ModelYear',
    'engineModel': 'EngineModel',
    'trim': 'Trim',
    'plantCountry': 'PlantCountry',
    'plantCompanyName': 'PlantCompanyName',
    'plantCity': 'PlantCity',
    'plantState': 'PlantState',
}


def nowMillis() -> int:
    """Current time in milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def newLookupId() -> str:
    """Generate an opaque unique lookup identifier."""
    return str(uuid.uuid4())


# ================================================================================
# Decode Result
# ================================================================================

@dataclass(frozen=True)
class DecodeResult:
    """
    Vehicle attributes decoded from a VIN.

    Every attribute is a string; blanks are normalized to UNKNOWN.
    """
    make: str = UNKNOWN
    model: str = UNKNOWN
    modelYear: str = UNKNOWN
    engineModel: str = UNKNOWN
    trim: str = UNKNOWN
    plantCountry: str = UNKNOWN
    plantCompanyName: str = UNKNOWN
    plantCity: str = UNKNOWN
    plantState: str = UNKNOWN

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or not str(value).strip():
                object.__setattr__(self, f.name, UNKNOWN)

    def toDict(self) -> dict[str, str]:
        """Convert to a dictionary keyed by wire names (Make, Model, ...)."""
        return {wireKey: getattr(self, attr) for attr, wireKey in DECODE_RESULT_KEYS.items()}

    @classmethod
    def fromDict(cls, data: dict[str, Any]) -> 'DecodeResult':
        """Build from a dictionary keyed by wire names; missing keys become UNKNOWN."""
        return cls(**{
            attr: str(data.get(wireKey) or UNKNOWN)
            for attr, wireKey in DECODE_RESULT_KEYS.items()
        })

    def knownFields(self) -> dict[str, str]:
        """Wire-keyed attributes whose value is not the UNKNOWN sentinel."""
        return {key: value for key, value in self.toDict().items() if value != UNKNOWN}


# ================================================================================
# Lookup Record
# ================================================================================

@dataclass
class VinLookup:
    """
    One VIN decode attempt.

    Attributes:
        id: Opaque unique identifier, the store's upsert key
        vin: Normalized 17-character VIN
        timestamp: Creation instant in milliseconds since the epoch
        result: Decoded attributes, or None when the decode failed
        error: Failure description, present only when result is None
    """
    id: str
    vin: str
    timestamp: int
    result: DecodeResult | None = None
    error: str | None = None

    @classmethod
    def create(
        cls,
        vin: str,
        result: DecodeResult | None = None,
        error: str | None = None,
        timestamp: int | None = None
    ) -> 'VinLookup':
        """Create a new lookup with a fresh id and (by default) the current time."""
        return cls(
            id=newLookupId(),
            vin=vin,
            timestamp=nowMillis() if timestamp is None else timestamp,
            result=result,
            error=error,
        )

    def isSuccess(self) -> bool:
        return self.result is not None

    def hasConsistentOutcome(self) -> bool:
        """True when exactly one of result/error carries the outcome."""
        return (self.result is None) != (not self.error)

    def toDict(self) -> dict[str, Any]:
        """Convert lookup to dictionary for serialization."""
        return {
            'id': self.id,
            'vin': self.vin,
            'timestamp': self.timestamp,
            'result': self.result.toDict() if self.result else None,
            'error': self.error,
        }

    @classmethod
    def fromDict(cls, data: dict[str, Any]) -> 'VinLookup':
        result = data.get('result')
        return cls(
            id=data['id'],
            vin=data['vin'],
            timestamp=int(data['timestamp']),
            result=DecodeResult.fromDict(result) if result else None,
            error=data.get('error') or None,
        )

    def getVehicleSummary(self) -> str:
        """
        Get a human-readable one-line summary.

        Successful lookups read "<year> <make> <model>" with the trim appended
        when known; failed lookups show their error text.
        """
        if self.result is None:
            return self.error or DECODE_FAILED_MESSAGE

        summary = f"{self.result.modelYear} {self.result.make} {self.result.model}"
        if self.result.trim != UNKNOWN:
            summary += f" • {self.result.trim}"
        return summary


# ================================================================================
# Validation Outcome
# ================================================================================

@dataclass(frozen=True)
class ValidationOutcome:
    """
    Verdict of VIN validation.

    Attributes:
        isValid: Whether every check passed
        error: Reason string when invalid
        normalizedVin: Cleaned VIN when valid
    """
    isValid: bool
    error: str | None = None
    normalizedVin: str | None = None

    @classmethod
    def valid(cls, normalizedVin: str) -> 'ValidationOutcome':
        return cls(isValid=True, normalizedVin=normalizedVin)

    @classmethod
    def invalid(cls, reason: str) -> 'ValidationOutcome':
        return cls(isValid=False, error=reason)

    def __bool__(self) -> bool:
        return self.isValid
