################################################################################
# File Name: error_handler.py
# Purpose/Description: Centralized error handling with classification
# Author: Michael Cornelison
# Creation Date: 2026-10-12
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-12    | M. Cornelison | Initial implementation
# 2026-10-15    | M. Cornelison | Replaced retry categories with lookup taxonomy
# ================================================================================
################################################################################

"""
Error handling module.

Provides centralized error handling with:
- A base exception class carrying a message and structured details
- Error classification (validation, network, persistence, data, config, system)
- Structured error reporting

Nothing here retries. Every failure is reported to the caller, which decides
whether to repeat the user-facing action.

Usage:
    from common.error_handler import BaseError, ErrorCategory, handleError

    try:
        record = await service.lookupVin(vin)
    except Exception as e:
        handleError(e, context={'vin': vin}, reraise=False)
"""

import logging
import traceback
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of errors for classification."""
    VALIDATION = 'validation'     # Bad user input, surfaced immediately
    NETWORK = 'network'           # Remote decode failed, captured on the record
    PERSISTENCE = 'persistence'   # Local store failed, surfaced to the caller
    DATA = 'data'                 # Malformed import data
    CONFIGURATION = 'config'      # Config errors, fail fast
    SYSTEM = 'system'             # Unexpected errors


# ================================================================================
# Custom Exception Classes
# ================================================================================

class BaseError(Exception):
    """Base exception for all custom errors."""

    category: ErrorCategory = ErrorCategory.SYSTEM

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def toDict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            'type': self.__class__.__name__,
            'category': self.category.value,
            'message': self.message,
            'details': self.details
        }


class ValidationError(BaseError):
    """Input failed validation."""
    category = ErrorCategory.VALIDATION


class NetworkError(BaseError):
    """Remote service call failed."""
    category = ErrorCategory.NETWORK


class PersistenceError(BaseError):
    """Local storage operation failed."""
    category = ErrorCategory.PERSISTENCE


class ConfigurationError(BaseError):
    """Configuration validation failure."""
    category = ErrorCategory.CONFIGURATION


class DataError(BaseError):
    """Data validation or processing error."""
    category = ErrorCategory.DATA


# ================================================================================
# Error Classification
# ================================================================================

def classifyError(error: Exception) -> ErrorCategory:
    """
    Classify an error into a category.

    Args:
        error: Exception to classify

    Returns:
        ErrorCategory for the error
    """
    if isinstance(error, BaseError):
        return error.category

    errorType = type(error).__name__.lower()
    errorModule = type(error).__module__.lower()
    errorMessage = str(error).lower()

    if errorModule.startswith('sqlite3') or 'database' in errorType:
        return ErrorCategory.PERSISTENCE

    if errorModule.startswith('httpx') or any(
        term in errorType for term in ['timeout', 'connection', 'network']
    ):
        return ErrorCategory.NETWORK

    if any(term in errorMessage for term in ['config', 'missing', 'required']):
        return ErrorCategory.CONFIGURATION

    if any(term in errorMessage for term in ['validation', 'invalid', 'parse']):
        return ErrorCategory.DATA

    return ErrorCategory.SYSTEM


# ================================================================================
# Error Handling
# ================================================================================

def handleError(
    error: Exception,
    context: dict[str, Any] | None = None,
    reraise: bool = True
) -> dict[str, Any]:
    """
    Handle an error with logging and classification.

    Args:
        error: Exception that occurred
        context: Additional context information
        reraise: Whether to re-raise the exception

    Returns:
        Error details dictionary

    Raises:
        The original exception if reraise is True
    """
    category = classifyError(error)
    context = context or {}

    errorDetails = {
        'type': type(error).__name__,
        'category': category.value,
        'message': str(error),
        'context': context,
        'traceback': traceback.format_exc()
    }

    if category == ErrorCategory.CONFIGURATION:
        logger.error(f"Configuration error: {error}")
    elif category in (ErrorCategory.VALIDATION, ErrorCategory.DATA):
        logger.warning(f"{category.value.capitalize()} error: {error}")
    elif category == ErrorCategory.NETWORK:
        logger.warning(f"Network error: {error}")
    elif category == ErrorCategory.PERSISTENCE:
        logger.error(f"Persistence error: {error}")
    else:
        logger.error(f"Error: {error}", exc_info=True)

    if reraise:
        raise error

    return errorDetails


def formatError(error: Exception) -> str:
    """
    Format an error for display/logging.

    Args:
        error: Exception to format

    Returns:
        Formatted error string
    """
    category = classifyError(error)

    if isinstance(error, BaseError):
        details = f" | details={error.details}" if error.details else ""
        return f"[{category.value.upper()}] {error.message}{details}"

    return f"[{category.value.upper()}] {type(error).__name__}: {error}"
