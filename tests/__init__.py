################################################################################
# File Name: __init__.py
# Purpose/Description: Test package initialization
# Author: Michael Cornelison
# Creation Date: 2026-10-13
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
################################################################################

"""
Test package for the VIN lookup application.

Run tests with:
    pytest tests/
    pytest tests/test_validator.py -v
"""
