################################################################################
# File Name: exceptions.py
# Purpose/Description: VIN lookup exceptions
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
VIN lookup exceptions module.

Every exception derives from common.error_handler.BaseError, so it carries a
message, a details dictionary and an ErrorCategory:

- VinValidationError: VIN failed format/checksum validation (VALIDATION)
- RecordValidationError: Lookup record violates the outcome invariant (VALIDATION)
- VinApiError: Remote decode failed or returned no usable data (NETWORK)
- VinApiTimeoutError: Remote decode timed out (NETWORK)
- RecordStoreError: Lookup record store operation failed (PERSISTENCE)
- RecordStoreConnectionError: Store could not be opened (PERSISTENCE)
- RecordStoreInitializationError: Schema initialization failed (PERSISTENCE)
- CacheStorageError: Offline cache substrate operation failed (PERSISTENCE)
- CacheInstallError: Warm-start precache failed (NETWORK)
- CsvImportError: CSV history could not be imported (DATA)
- LookupConfigError: Configuration missing or invalid (CONFIGURATION)
"""

from common.error_handler import (
    ConfigurationError,
    DataError,
    NetworkError,
    PersistenceError,
    ValidationError,
)


# ================================================================================
# Validation
# ================================================================================

class VinValidationError(ValidationError):
    """VIN format or check digit is invalid."""
    pass


class RecordValidationError(ValidationError):
    """Lookup record must carry exactly one of result/error."""
    pass


# ================================================================================
# Remote Decode
# ================================================================================

class VinApiError(NetworkError):
    """Error calling the remote decode service."""
    pass


class VinApiTimeoutError(VinApiError):
    """Remote decode request timed out."""
    pass


class CacheInstallError(NetworkError):
    """Application shell resources could not be precached."""
    pass


# ================================================================================
# Persistence
# ================================================================================

class RecordStoreError(PersistenceError):
    """Error reading or writing lookup records."""
    pass


class RecordStoreConnectionError(RecordStoreError):
    """Error opening the lookup database."""
    pass


class RecordStoreInitializationError(RecordStoreError):
    """Error initializing the lookup database schema."""
    pass


class CacheStorageError(PersistenceError):
    """Error reading or writing the offline response cache."""
    pass


# ================================================================================
# Import / Export
# ================================================================================

class CsvImportError(DataError):
    """Lookup history CSV could not be read or imported."""
    pass


# ================================================================================
# Configuration
# ================================================================================

class LookupConfigError(ConfigurationError):
    """
    Lookup configuration could not be loaded or failed validation.

    Attributes:
        missingFields: Dot-notation paths of required fields that are absent
        invalidFields: Dot-notation paths of fields with unusable values
    """

    def __init__(
        self,
        message: str,
        missingFields: list[str] | None = None,
        invalidFields: list[str] | None = None
    ):
        self.missingFields = missingFields or []
        self.invalidFields = invalidFields or []
        super().__init__(
            message,
            details={'missingFields': self.missingFields, 'invalidFields': self.invalidFields}
        )
