################################################################################
# File Name: validator.py
# Purpose/Description: VIN format and ISO 3779 check digit validation
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
VIN validation module.

Checks, in order, stopping at the first failure:
1. Input is present
2. Normalized length is exactly 17
3. Only 0-9 and A-Z without I, O, Q
4. Check digit (position 9) matches the ISO 3779 weighted sum mod 11

Usage:
    from vinlookup.validator import validateVin

    outcome = validateVin('1hg bh4 1jx mn1 09186')
    if outcome:
        print(outcome.normalizedVin)
    else:
        print(outcome.error)
"""

import re

from .types import ValidationOutcome

# ================================================================================
# Constants
# ================================================================================

VIN_LENGTH = 17

# Zero-indexed position of the check digit
CHECK_DIGIT_POSITION = 8

VIN_WEIGHTS = (8, 7, 6, 5, 4, 3, 2, 10, 0, 9, 8, 7, 6, 5, 4, 3, 2)

VIN_TRANSLITERATION = {
    'A': 1, 'B': 2, 'C': 3, 'D': 4, 'E': 5, 'F': 6, 'G': 7, 'H': 8,
    'J': 1, 'K': 2, 'L': 3, 'M': 4, 'N': 5, 'P': 7, 'R': 9,
    'S': 2, 'T': 3, 'U': 4, 'V': 5, 'W': 6, 'X': 7, 'Y': 8, 'Z': 9,
    '0': 0, '1': 1, '2': 2, '3': 3, '4': 4, '5': 5, '6': 6, '7': 7, '8': 8, '9': 9,
}

VALID_VIN_CHARACTERS = frozenset('ABCDEFGHJKLMNPRSTUVWXYZ0123456789')

ERROR_VIN_REQUIRED = 'VIN is required'
ERROR_VIN_LENGTH = 'VIN must be exactly 17 characters'
ERROR_VIN_CHARACTERS = 'VIN contains invalid characters (I, O, Q not allowed)'
ERROR_VIN_CHECK_DIGIT = 'Invalid VIN check digit'

_WHITESPACE = re.compile(r'\s+')


# ================================================================================
# Public API
# ================================================================================

def normalizeVin(vin: str) -> str:
    """Remove all whitespace and uppercase."""
    return _WHITESPACE.sub('', vin).upper()


def computeCheckDigit(vin: str) -> str:
    """
    Compute the expected check character for a normalized 17-character VIN.

    The check-digit slot itself is skipped; characters outside the
    transliteration table contribute 0.

    Returns:
        '0'-'9', or 'X' when the remainder is 10
    """
    total = sum(
        VIN_TRANSLITERATION.get(char, 0) * VIN_WEIGHTS[position]
        for position, char in enumerate(vin[:VIN_LENGTH])
        if position != CHECK_DIGIT_POSITION
    )
    remainder = total % 11
    return 'X' if remainder == 10 else str(remainder)


def validateVin(vin: str | None) -> ValidationOutcome:
    """
    Validate a VIN.

    Args:
        vin: Raw user input; case and whitespace are ignored

    Returns:
        ValidationOutcome, carrying the normalized VIN when valid or the
        first failing reason when not
    """
    if vin is None or not vin.strip():
        return ValidationOutcome.invalid(ERROR_VIN_REQUIRED)

    cleanVin = normalizeVin(vin)

    if len(cleanVin) != VIN_LENGTH:
        return ValidationOutcome.invalid(ERROR_VIN_LENGTH)

    if not all(char in VALID_VIN_CHARACTERS for char in cleanVin):
        return ValidationOutcome.invalid(ERROR_VIN_CHARACTERS)

    if cleanVin[CHECK_DIGIT_POSITION] != computeCheckDigit(cleanVin):
        return ValidationOutcome.invalid(ERROR_VIN_CHECK_DIGIT)

    return ValidationOutcome.valid(cleanVin)


def isValidVin(vin: str | None) -> bool:
    """Convenience boolean form of validateVin."""
    return validateVin(vin).isValid
