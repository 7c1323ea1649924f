################################################################################
# File Name: logging_config.py
# Purpose/Description: Structured logging configuration and utilities
# Author: Michael Cornelison
# Creation Date: 2026-10-12
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-12    | M. Cornelison | Initial implementation
# 2026-10-14    | M. Cornelison | Mask VIN serial numbers in log output
# ================================================================================
################################################################################

"""
Logging configuration module.

Provides structured logging with:
- Configurable log levels
- Console and file output
- PII masking (emails, phone numbers, VIN serial numbers)
- Consistent formatting

Usage:
    from common.logging_config import setupLogging, getLogger

    setupLogging(level='INFO')
    logger = getLogger(__name__)
    logger.info("Lookup saved", extra={"extra": {"vin": vin}})
"""

import logging
import re
import sys
from pathlib import Path
from typing import Any

# Default log format
DEFAULT_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s | %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# PII patterns for masking
PII_PATTERNS = {
    'email': re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b'),
    'phone': re.compile(r'\b\d{3}[-.]?\d{3}[-.]?\d{4}\b'),
}

# WMI + VDS + model year/plant stay readable, the 6-character serial is hidden
VIN_PATTERN = re.compile(r'\b([A-HJ-NPR-Z0-9]{11})[A-HJ-NPR-Z0-9]{6}\b')
VIN_SERIAL_MASK = '******'


class PIIMaskingFilter(logging.Filter):
    """
    Logging filter that masks PII in log messages.

    Detects and masks:
    - Email addresses
    - Phone numbers
    - VIN serial numbers (last six characters of a 17-character VIN)
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Filter and mask PII in log record.

        Args:
            record: Log record to filter

        Returns:
            True (always allows record, but modifies it)
        """
        if hasattr(record, 'msg') and isinstance(record.msg, str):
            record.msg = maskPII(record.msg)

        return True


def maskPII(message: str) -> str:
    """
    Mask PII patterns in a message.

    Args:
        message: Log message to mask

    Returns:
        Message with PII masked
    """
    message = VIN_PATTERN.sub(lambda m: m.group(1) + VIN_SERIAL_MASK, message)

    for name, pattern in PII_PATTERNS.items():
        message = pattern.sub(f'[{name.upper()}_MASKED]', message)

    return message


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter for structured logging.

    Adds support for extra fields in log output.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        extra = getattr(record, 'extra', None)
        if extra and isinstance(extra, dict):
            extraStr = ' | ' + ' '.join(f'{k}={v}' for k, v in extra.items())
            message += extraStr

        return message


def setupLogging(
    level: str = 'INFO',
    logFormat: str | None = None,
    logFile: str | None = None,
    enablePIIMasking: bool = True
) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        logFormat: Custom format string
        logFile: Optional file path for log output
        enablePIIMasking: Whether to mask PII in logs

    Returns:
        Root logger instance
    """
    rootLogger = logging.getLogger()
    rootLogger.setLevel(getattr(logging, level.upper(), logging.INFO))

    rootLogger.handlers.clear()

    formatter = StructuredFormatter(
        fmt=logFormat or DEFAULT_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT
    )

    consoleHandler = logging.StreamHandler(sys.stdout)
    consoleHandler.setFormatter(formatter)
    if enablePIIMasking:
        consoleHandler.addFilter(PIIMaskingFilter())
    rootLogger.addHandler(consoleHandler)

    if logFile:
        logPath = Path(logFile)
        logPath.parent.mkdir(parents=True, exist_ok=True)

        fileHandler = logging.FileHandler(logFile, encoding='utf-8')
        fileHandler.setFormatter(formatter)
        if enablePIIMasking:
            fileHandler.addFilter(PIIMaskingFilter())
        rootLogger.addHandler(fileHandler)

    # httpx logs every request at INFO; keep it out of normal output
    logging.getLogger('httpx').setLevel(logging.WARNING)

    rootLogger.info(f"Logging configured | level={level}")

    return rootLogger


def getLogger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def logWithContext(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: Any
) -> None:
    """
    Log a message with structured context.

    Args:
        logger: Logger instance
        level: Log level
        message: Log message
        **context: Additional context fields
    """
    logFunc = getattr(logger, level.lower(), logger.info)

    if context:
        contextStr = ' | ' + ' '.join(f'{k}={v}' for k, v in context.items())
        logFunc(message + contextStr)
    else:
        logFunc(message)
