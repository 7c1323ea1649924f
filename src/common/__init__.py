################################################################################
# File Name: __init__.py
# Purpose/Description: Common utilities package initialization
# Author: Michael Cornelison
# Creation Date: 2026-10-12
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-12    | M. Cornelison | Initial implementation
# ================================================================================
################################################################################

"""
Common utilities package.

This package provides shared functionality used across the application:
- Configuration validation
- Secrets management
- Logging configuration
- Error handling

Usage:
    from common.config_validator import ConfigValidator
    from common.secrets_loader import loadEnvFile, resolveSecrets
    from common.logging_config import getLogger
    from common.error_handler import BaseError, ErrorCategory
"""

from .config_validator import ConfigValidationError, ConfigValidator
from .error_handler import (
    BaseError,
    ConfigurationError,
    DataError,
    ErrorCategory,
    NetworkError,
    PersistenceError,
    ValidationError,
    classifyError,
    formatError,
    handleError,
)
from .logging_config import getLogger, setupLogging
from .secrets_loader import loadEnvFile, resolveSecrets

__all__ = [
    'ConfigValidator',
    'ConfigValidationError',
    'loadEnvFile',
    'resolveSecrets',
    'getLogger',
    'setupLogging',
    'BaseError',
    'ErrorCategory',
    'ValidationError',
    'NetworkError',
    'PersistenceError',
    'ConfigurationError',
    'DataError',
    'classifyError',
    'formatError',
    'handleError',
]
