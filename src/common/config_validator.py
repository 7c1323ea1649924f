################################################################################
# File Name: config_validator.py
# Purpose/Description: Configuration validation with required fields and defaults
# Author: Michael Cornelison
# Creation Date: 2026-10-12
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-12    | M. Cornelison | Initial implementation
# 2026-10-15    | M. Cornelison | Expose dot-notation accessors as module functions
# ================================================================================
################################################################################

"""
Configuration validation module.

Provides validation of configuration dictionaries with:
- Required field checking
- Default value application (deep-copied, so list defaults are never shared)
- Dot-notation access to nested keys ('vinDecoder.apiBaseUrl')
- Field type checks

Usage:
    from common.config_validator import ConfigValidator, getNestedValue

    validator = ConfigValidator(requiredKeys=['database.path'], defaults=DEFAULTS)
    config = validator.validate(rawConfig)
    dbPath = getNestedValue(config, 'database.path')
"""

import copy
import logging
from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, missingFields: list[str] | None = None):
        super().__init__(message)
        self.missingFields = missingFields or []


def getNestedValue(config: dict[str, Any], key: str, default: Any = None) -> Any:
    """
    Get a value from a nested dictionary using dot notation.

    Args:
        config: Configuration dictionary
        key: Dot-notation key (e.g., 'database.path')
        default: Value returned when any segment is missing

    Returns:
        Value if found, default otherwise
    """
    value: Any = config

    for part in key.split('.'):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            return default

    return value


def setNestedValue(config: dict[str, Any], key: str, value: Any) -> None:
    """
    Set a value in a nested dictionary using dot notation.

    Intermediate dictionaries are created as needed.

    Args:
        config: Configuration dictionary to modify
        key: Dot-notation key (e.g., 'database.path')
        value: Value to set
    """
    parts = key.split('.')
    current = config

    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value


class ConfigValidator:
    """
    Validates configuration dictionaries.

    Attributes:
        requiredKeys: Required configuration keys (dot notation)
        defaults: Default values for optional fields (dot notation)
    """

    def __init__(
        self,
        requiredKeys: list[str] | None = None,
        defaults: dict[str, Any] | None = None
    ):
        self.requiredKeys = list(requiredKeys or [])
        self.defaults = dict(defaults or {})

    def validate(self, config: dict[str, Any]) -> dict[str, Any]:
        """
        Validate and enhance configuration.

        Args:
            config: Raw configuration dictionary (modified in place)

        Returns:
            Validated configuration with defaults applied

        Raises:
            ConfigValidationError: If required fields are missing
        """
        missingFields = [
            key for key in self.requiredKeys
            if getNestedValue(config, key, _MISSING) in (_MISSING, None, '')
        ]
        if missingFields:
            raise ConfigValidationError(
                f"Missing required configuration fields: {', '.join(missingFields)}",
                missingFields=missingFields
            )

        for key, defaultValue in self.defaults.items():
            if getNestedValue(config, key) is None:
                setNestedValue(config, key, copy.deepcopy(defaultValue))
                logger.debug(f"Applied default for {key}: {defaultValue}")

        logger.info("Configuration validated successfully")
        return config

    def validateField(
        self,
        config: dict[str, Any],
        key: str,
        expectedType: type | tuple[type, ...],
        allowNone: bool = False
    ) -> bool:
        """
        Validate a specific field's type.

        Args:
            config: Configuration dictionary
            key: Dot-notation key to validate
            expectedType: Expected Python type(s)
            allowNone: Whether None is acceptable

        Returns:
            True if valid, False otherwise
        """
        value = getNestedValue(config, key)

        if value is None:
            return allowNone

        # bool is an int subclass; never let True pass as a number
        if isinstance(value, bool) and bool not in _asTuple(expectedType):
            return False

        return isinstance(value, expectedType)


def _asTuple(expectedType: type | tuple[type, ...]) -> tuple[type, ...]:
    return expectedType if isinstance(expectedType, tuple) else (expectedType,)
