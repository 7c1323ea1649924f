################################################################################
# File Name: secrets_loader.py
# Purpose/Description: Loading of .env files and resolution of ${VAR} placeholders
# Author: Michael Cornelison
# Creation Date: 2026-10-12
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-12    | M. Cornelison | Initial implementation
# 2026-10-15    | M. Cornelison | Parse .env files with python-dotenv
# ================================================================================
################################################################################

"""
Secrets management module.

Provides secure loading and resolution of secrets:
- Loads environment variables from a .env file (python-dotenv)
- Resolves ${VAR_NAME} placeholders in configuration
- Supports default values: ${VAR_NAME:default}
- Never logs or exposes secret values

Usage:
    from common.secrets_loader import loadEnvFile, resolveSecrets

    loadEnvFile('.env')
    config = resolveSecrets(rawConfig)
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

# Pattern to match ${VAR_NAME} or ${VAR_NAME:default}
PLACEHOLDER_PATTERN = re.compile(r'\$\{([^}:]+)(?::([^}]*))?\}')


def loadEnvFile(envPath: str | None = None) -> dict[str, str]:
    """
    Load environment variables from a .env file.

    Existing environment variables are never overridden.

    Args:
        envPath: Path to .env file. Defaults to .env in current directory.

    Returns:
        Names of the variables that were loaded, mapped to '[LOADED]'
    """
    envFile = Path(envPath or '.env')
    loadedVars: dict[str, str] = {}

    if not envFile.exists():
        logger.debug(f".env file not found at {envFile}")
        return loadedVars

    for key, value in dotenv_values(envFile, encoding='utf-8').items():
        if value is None or key in os.environ:
            continue
        os.environ[key] = value
        loadedVars[key] = '[LOADED]'

    logger.info(f"Loaded {len(loadedVars)} variables from {envFile}")
    return loadedVars


def resolveSecrets(config: Any) -> Any:
    """
    Recursively resolve ${VAR_NAME} placeholders in configuration.

    Args:
        config: Configuration value (dict, list, str, or other)

    Returns:
        Configuration with placeholders resolved
    """
    if isinstance(config, dict):
        return {key: resolveSecrets(value) for key, value in config.items()}

    if isinstance(config, list):
        return [resolveSecrets(item) for item in config]

    if isinstance(config, str):
        return _resolveString(config)

    return config


def _resolveString(value: str) -> str:
    def replacer(match: re.Match) -> str:
        varName = match.group(1)
        defaultValue = match.group(2)

        envValue = os.environ.get(varName)

        if envValue is not None:
            logger.debug(f"Resolved {varName} from environment")
            return envValue
        if defaultValue is not None:
            logger.debug(f"Using default for {varName}")
            return defaultValue

        logger.warning(f"Environment variable {varName} not set and no default")
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(replacer, value)
