################################################################################
# File Name: conftest.py
# Purpose/Description: Pytest fixtures and configuration
# Author: Michael Cornelison
# Creation Date: 2026-10-13
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-13    | M. Cornelison | Initial implementation
# 2026-10-17    | Ralph Agent  | NHTSA payload and mock transport fixtures
# ================================================================================
################################################################################

"""
Pytest configuration and shared fixtures.

Fixtures defined here are available to all test files automatically.

Usage:
    def test_something(sampleConfig, hondaResult):
        # sampleConfig and hondaResult are automatically injected
        pass
"""

import json
import os
import sys
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

# Add src to path for imports
srcPath = Path(__file__).parent.parent / 'src'
if str(srcPath) not in sys.path:
    sys.path.insert(0, str(srcPath))

from tests.test_utils import FORD_VIN, HONDA_VIN, RecordingFetcher
from vinlookup.types import DecodeResult, VinLookup


# ================================================================================
# Lookup Fixtures
# ================================================================================

@pytest.fixture
def hondaResult() -> DecodeResult:
    return DecodeResult(
        make='HONDA',
        model='Civic',
        modelYear='1991',
        engineModel='D15B2',
        trim='EX',
        plantCountry='JAPAN',
        plantCompanyName='Honda Motor Co.',
        plantCity='Suzuka',
        plantState='Mie',
    )


@pytest.fixture
def sampleLookups(hondaResult: DecodeResult) -> list[VinLookup]:
    """Two lookups: one success, one failure, oldest first."""
    return [
        VinLookup(
            id='lookup-1',
            vin=HONDA_VIN,
            timestamp=1640995200000,
            result=hondaResult,
        ),
        VinLookup(
            id='lookup-2',
            vin=FORD_VIN,
            timestamp=1641081600000,
            error='Invalid VIN',
        ),
    ]


# ================================================================================
# NHTSA Fixtures
# ================================================================================

@pytest.fixture
def nhtsaPayload() -> dict[str, Any]:
    """
    Provide a trimmed vPIC DecodeVin response.

    Returns:
        Dictionary in the DecodeVin JSON shape
    """
    return {
        'Count': 9,
        'Message': 'Results returned successfully',
        'SearchCriteria': f'VIN:{HONDA_VIN}',
        'Results': [
            {'Variable': 'Make', 'Value': 'HONDA', 'VariableId': 26},
            {'Variable': 'Model', 'Value': 'Civic', 'VariableId': 28},
            {'Variable': 'Model Year', 'Value': '1991', 'VariableId': 29},
            {'Variable': 'Engine Model', 'Value': '', 'VariableId': 18},
            {'Variable': 'Engine Configuration', 'Value': 'In-Line', 'VariableId': 64},
            {'Variable': 'Trim', 'Value': None, 'VariableId': 38},
            {'Variable': 'Series', 'Value': 'EX', 'VariableId': 34},
            {'Variable': 'Plant Country', 'Value': 'JAPAN', 'VariableId': 75},
            {'Variable': 'Plant City', 'Value': '  ', 'VariableId': 31},
        ],
    }


@pytest.fixture
def recordingFetcher() -> RecordingFetcher:
    return RecordingFetcher()


# ================================================================================
# Configuration Fixtures
# ================================================================================

@pytest.fixture
def sampleConfig(tmp_path: Path) -> dict[str, Any]:
    """
    Provide a complete lookup configuration rooted in tmp_path.

    Returns:
        Dictionary with test configuration values
    """
    return {
        'application': {
            'name': 'VIN Lookup Test',
        },
        'database': {
            'path': str(tmp_path / 'data' / 'vin_lookups.db'),
            'walMode': True,
        },
        'vinDecoder': {
            'apiBaseUrl': 'https://vpic.nhtsa.dot.gov/api/vehicles',
            'apiTimeoutSeconds': 5,
        },
        'offlineCache': {
            'enabled': True,
            'cacheName': 'vin-decoder-v1',
            'path': str(tmp_path / 'data' / 'offline_cache.db'),
            'decodeHost': 'vpic.nhtsa.dot.gov',
            'appBaseUrl': 'http://localhost:3000',
            'precacheUrls': ['/', '/manifest.json'],
        },
        'export': {
            'directory': str(tmp_path / 'exports'),
        },
        'logging': {
            'level': 'INFO',
            'maskPII': True,
        },
    }


@pytest.fixture
def minimalConfig(tmp_path: Path) -> dict[str, Any]:
    """Only the required fields."""
    return {
        'database': {
            'path': str(tmp_path / 'minimal.db'),
        },
    }


# ================================================================================
# Environment Fixtures
# ================================================================================

TEST_ENV_VARS = {
    'VIN_DATABASE_PATH': './test-data/lookups.db',
    'VIN_API_BASE_URL': 'https://vpic.test/api/vehicles',
}


@pytest.fixture
def envVars() -> Generator[dict[str, str], None, None]:
    """
    Set up test environment variables.

    Yields:
        Dictionary of environment variables that were set

    Automatically cleans up after test.
    """
    originalVars = {key: os.environ.get(key) for key in TEST_ENV_VARS}
    os.environ.update(TEST_ENV_VARS)

    yield dict(TEST_ENV_VARS)

    for key, value in originalVars.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture
def cleanEnv() -> Generator[None, None, None]:
    """
    Ensure clean environment with no test variables.

    Removes the test variables before the test, restores after.
    """
    varsToRemove = [*TEST_ENV_VARS, 'VIN_CACHE_PATH', 'VIN_APP_BASE_URL', 'TEST_VAR']

    saved = {var: os.environ.pop(var, None) for var in varsToRemove}

    yield

    for var in varsToRemove:
        os.environ.pop(var, None)
    for var, value in saved.items():
        if value is not None:
            os.environ[var] = value


# ================================================================================
# File System Fixtures
# ================================================================================

@pytest.fixture
def tempConfigFile(tmp_path: Path, sampleConfig: dict[str, Any]) -> Path:
    """
    Create temporary config file for testing.

    Returns:
        Path to temporary config file
    """
    configFile = tmp_path / 'vin_config.json'
    configFile.write_text(json.dumps(sampleConfig), encoding='utf-8')
    return configFile


# ================================================================================
# Pytest Configuration
# ================================================================================

def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
