################################################################################
# File Name: decoder.py
# Purpose/Description: NHTSA vPIC VIN decoding client
# Author: Michael Cornelison
# Creation Date: 2026-10-16
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-16    | M. Cornelison | Initial implementation
# ================================================================================
################################################################################

"""
VIN decoding module.

Calls the NHTSA vPIC DecodeVin endpoint and projects its variable list onto
a DecodeResult. Requests go through an injected fetch callable, normally
OfflineResponseCache.fetch, so decoding keeps working offline from cached
responses.

API Documentation:
    https://vpic.nhtsa.dot.gov/api/

Usage:
    from vinlookup.decoder import VinDecoder

    decoder = VinDecoder(offlineCache.fetch)
    result = await decoder.decodeVin('1HGBH41JXMN109186')
    print(f"{result.modelYear} {result.make} {result.model}")
"""

import logging
from typing import Any

import httpx

from .exceptions import VinApiError, VinApiTimeoutError
from .offline_cache import Fetcher
from .types import UNKNOWN, DecodeResult
from .validator import normalizeVin

logger = logging.getLogger(__name__)


# ================================================================================
# Constants
# ================================================================================

NHTSA_API_BASE_URL = 'https://vpic.nhtsa.dot.gov/api/vehicles'

DEFAULT_API_TIMEOUT = 30

ERROR_PREFIX = 'Failed to decode VIN'

ERROR_NO_DATA = 'No data returned from NHTSA API'

# DecodeResult attribute -> vPIC variable names, first non-blank wins
NHTSA_VARIABLE_MAPPING = {
    'make': ('Make',),
    'model': ('Model',),
    'modelYear': ('Model Year',),
    'engineModel': ('Engine Model', 'Engine Configuration'),
    'trim': ('Trim', 'Series'),
    'plantCountry': ('Plant Country',),
    'plantCompanyName': ('Plant Company Name',),
    'plantCity': ('Plant City',),
    'plantState': ('Plant State',),
}


def projectResults(results: list[dict[str, Any]]) -> DecodeResult:
    """
    Project a vPIC Results list onto a DecodeResult.

    Blank values are ignored; when a variable appears more than once the
    last non-blank value is kept.
    """
    values: dict[str, str] = {}
    for item in results:
        value = item.get('Value')
        variable = item.get('Variable')
        if isinstance(value, str) and value.strip() and variable:
            values[variable] = value

    fields = {}
    for attr, variables in NHTSA_VARIABLE_MAPPING.items():
        fields[attr] = next((values[name] for name in variables if name in values), UNKNOWN)

    return DecodeResult(**fields)


# ================================================================================
# VIN Decoder Class
# ================================================================================

class VinDecoder:
    """
    Decodes VINs with the NHTSA vPIC API.

    Attributes:
        fetch: Async callable sending an httpx.Request
        apiBaseUrl: vPIC vehicles API root
        timeoutSeconds: Per-request timeout
    """

    def __init__(
        self,
        fetch: Fetcher,
        apiBaseUrl: str = NHTSA_API_BASE_URL,
        timeoutSeconds: float = DEFAULT_API_TIMEOUT
    ):
        self.fetch = fetch
        self.apiBaseUrl = apiBaseUrl.rstrip('/')
        self.timeoutSeconds = timeoutSeconds

        # Statistics
        self._totalDecodes = 0
        self._apiErrors = 0

    def buildRequest(self, vin: str) -> httpx.Request:
        url = f"{self.apiBaseUrl}/DecodeVin/{normalizeVin(vin)}?format=json"
        return httpx.Request(
            'GET',
            url,
            headers={'Accept': 'application/json'},
            extensions={'timeout': httpx.Timeout(self.timeoutSeconds).as_dict()},
        )

    async def decodeVin(self, vin: str) -> DecodeResult:
        """
        Decode a VIN.

        Args:
            vin: VIN to decode; normalized before the request is built

        Returns:
            DecodeResult with unknown attributes set to 'Unknown'

        Raises:
            VinApiTimeoutError: If the request timed out
            VinApiError: On a non-ok status, unreadable body, request
                failure or an empty Results list
        """
        self._totalDecodes += 1
        request = self.buildRequest(vin)
        logger.info(f"Decoding VIN via NHTSA API | vin={normalizeVin(vin)}")

        try:
            response = await self.fetch(request)
        except httpx.TimeoutException as e:
            raise self._apiError(
                f"API request timed out after {self.timeoutSeconds}s",
                request,
                errorClass=VinApiTimeoutError,
                cause=e,
            ) from e
        except httpx.RequestError as e:
            raise self._apiError(str(e), request, cause=e) from e

        if not response.is_success:
            raise self._apiError(f"HTTP error! status: {response.status_code}", request)

        try:
            data = response.json()
        except ValueError as e:
            raise self._apiError(f"Invalid JSON response: {e}", request, cause=e) from e

        results = data.get('Results') if isinstance(data, dict) else None
        if not results:
            raise self._apiError(ERROR_NO_DATA, request)

        result = projectResults(results)
        logger.debug(f"VIN decoded | make={result.make} | model={result.model} | year={result.modelYear}")
        return result

    def getStats(self) -> dict[str, Any]:
        return {
            'totalDecodes': self._totalDecodes,
            'apiErrors': self._apiErrors,
        }

    def _apiError(
        self,
        reason: str,
        request: httpx.Request,
        errorClass: type[VinApiError] = VinApiError,
        cause: Exception | None = None
    ) -> VinApiError:
        self._apiErrors += 1
        message = f"{ERROR_PREFIX}: {reason}"
        logger.warning(f"{message} | url={request.url}")
        details = {'url': str(request.url)}
        if cause is not None:
            details['error'] = str(cause)
        return errorClass(message, details=details)
