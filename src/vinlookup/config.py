################################################################################
# File Name: config.py
# Purpose/Description: VIN lookup configuration loading and validation
# Author: Ralph Agent
# Creation Date: 2026-10-14
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-14    | Ralph Agent  | Initial implementation
# 2026-10-17    | Ralph Agent  | Offline cache and export settings
# ================================================================================
################################################################################

"""
VIN lookup configuration loader module.

Loads the JSON configuration file, resolves ${VAR} / ${VAR:default}
placeholders from the environment (optionally seeded from a .env file),
applies defaults and validates the lookup-specific settings.

Usage:
    from vinlookup.config import loadLookupConfig

    try:
        config = loadLookupConfig('src/vin_config.json', '.env')
    except LookupConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)
"""

import json
import logging
import os
from typing import Any

from common.config_validator import (
    ConfigValidationError,
    ConfigValidator,
    getNestedValue,
)
from common.secrets_loader import loadEnvFile, resolveSecrets

from .exceptions import LookupConfigError
from .offline_cache import (
    DEFAULT_APP_BASE_URL,
    DEFAULT_CACHE_NAME,
    DEFAULT_DECODE_HOST,
    DEFAULT_PRECACHE_URLS,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

LOOKUP_REQUIRED_FIELDS: list[str] = [
    'database.path',
]

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

LOOKUP_DEFAULTS: dict[str, Any] = {
    # Application
    'application.name': 'VIN Lookup',

    # Database
    'database.walMode': True,

    # VIN Decoder
    'vinDecoder.apiBaseUrl': 'https://vpic.nhtsa.dot.gov/api/vehicles',
    'vinDecoder.apiTimeoutSeconds': 30,

    # Offline cache
    'offlineCache.enabled': True,
    'offlineCache.cacheName': DEFAULT_CACHE_NAME,
    'offlineCache.path': './data/offline_cache.db',
    'offlineCache.decodeHost': DEFAULT_DECODE_HOST,
    'offlineCache.appBaseUrl': DEFAULT_APP_BASE_URL,
    'offlineCache.precacheUrls': DEFAULT_PRECACHE_URLS,

    # Export
    'export.directory': './exports',

    # Logging
    'logging.level': 'INFO',
    'logging.maskPII': True,
}


# =============================================================================
# Public API
# =============================================================================

def loadLookupConfig(
    configPath: str,
    envFilePath: str | None = None
) -> dict[str, Any]:
    """
    Load and validate VIN lookup configuration from file.

    Performs the following operations:
    1. Load environment variables from .env file (if provided)
    2. Load configuration JSON file
    3. Resolve secret placeholders (${VAR} syntax)
    4. Validate required fields and apply defaults
    5. Validate field types and values

    Args:
        configPath: Path to the configuration JSON file
        envFilePath: Optional path to .env file

    Returns:
        Validated configuration dictionary with defaults applied

    Raises:
        LookupConfigError: If configuration file cannot be loaded or validation fails
    """
    logger.info(f"Loading configuration from: {configPath}")

    if envFilePath and os.path.exists(envFilePath):
        logger.debug(f"Loading environment from: {envFilePath}")
        loadEnvFile(envFilePath)

    config = _loadConfigFile(configPath)
    config = resolveSecrets(config)
    config = validateLookupConfig(config)

    logger.info("Configuration loaded and validated successfully")
    return config


def validateLookupConfig(config: dict[str, Any]) -> dict[str, Any]:
    """
    Validate lookup configuration and apply defaults.

    Args:
        config: Raw configuration dictionary

    Returns:
        Validated configuration with defaults applied

    Raises:
        LookupConfigError: If validation fails
    """
    validator = ConfigValidator(
        requiredKeys=LOOKUP_REQUIRED_FIELDS,
        defaults=LOOKUP_DEFAULTS
    )

    try:
        config = validator.validate(config)
    except ConfigValidationError as e:
        raise LookupConfigError(
            f"Configuration validation failed: {e}",
            missingFields=e.missingFields
        ) from e

    invalidFields = []

    # Placeholders resolve to strings, so numeric settings may arrive as text
    timeout = _coerceNumber(config, 'vinDecoder', 'apiTimeoutSeconds')
    if timeout is None or timeout <= 0:
        invalidFields.append('vinDecoder.apiTimeoutSeconds')

    for key in ('database.walMode', 'offlineCache.enabled', 'logging.maskPII'):
        if not validator.validateField(config, key, bool):
            invalidFields.append(key)

    for key in ('vinDecoder.apiBaseUrl', 'offlineCache.appBaseUrl'):
        value = getNestedValue(config, key)
        if not isinstance(value, str) or not value.startswith(('http://', 'https://')):
            invalidFields.append(key)

    for key in ('offlineCache.cacheName', 'offlineCache.decodeHost', 'offlineCache.path'):
        value = getNestedValue(config, key)
        if not isinstance(value, str) or not value.strip():
            invalidFields.append(key)

    precacheUrls = getNestedValue(config, 'offlineCache.precacheUrls')
    if not isinstance(precacheUrls, list) or not all(isinstance(url, str) for url in precacheUrls):
        invalidFields.append('offlineCache.precacheUrls')

    level = getNestedValue(config, 'logging.level')
    if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
        invalidFields.append('logging.level')

    if invalidFields:
        raise LookupConfigError(
            f"Invalid configuration values: {', '.join(invalidFields)}",
            invalidFields=invalidFields
        )

    return config


# =============================================================================
# Private Helpers
# =============================================================================

def _loadConfigFile(configPath: str) -> dict[str, Any]:
    """
    Load configuration from JSON file.

    Raises:
        LookupConfigError: If file cannot be loaded or parsed
    """
    configPath = os.path.abspath(configPath)

    if not os.path.exists(configPath):
        raise LookupConfigError(
            f"Configuration file not found: {configPath}",
            missingFields=['configFile']
        )

    try:
        with open(configPath, 'r', encoding='utf-8') as f:
            config = json.load(f)
            logger.debug(f"Configuration file loaded: {configPath}")
    except json.JSONDecodeError as e:
        raise LookupConfigError(
            f"Invalid JSON in configuration file: {configPath}\n"
            f"Parse error: {e.msg} at line {e.lineno}, column {e.colno}",
            invalidFields=['configFile']
        ) from e
    except OSError as e:
        raise LookupConfigError(
            f"Cannot read configuration file: {configPath}\nError: {e}",
            missingFields=['configFile']
        ) from e

    if not isinstance(config, dict):
        raise LookupConfigError(
            f"Configuration file must contain a JSON object: {configPath}",
            invalidFields=['configFile']
        )
    return config


def _coerceNumber(config: dict[str, Any], section: str, key: str) -> float | None:
    sectionConfig = config.get(section, {})
    value = sectionConfig.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
        sectionConfig[key] = value
    return value if isinstance(value, (int, float)) else None
