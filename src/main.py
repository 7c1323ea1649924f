################################################################################
# File Name: main.py
# Purpose/Description: Command line entry point for VIN lookups
# Author: Michael Cornelison
# Creation Date: 2026-10-13
# Copyright: (c) 2026 VIN Lookup Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-13    | M. Cornelison | Initial implementation
# 2026-10-17    | Ralph Agent  | Added export/import/precache commands
# ================================================================================
################################################################################

"""
Main application entry point.

This module provides the command line interface with:
- CLI argument parsing (one subcommand per operation)
- Configuration loading and validation
- Logging setup from configuration
- Error handling and exit codes

Usage:
    python src/main.py --help
    python src/main.py lookup 1HGBH41JXMN109186
    python src/main.py history --sort vin
    python src/main.py history --search honda
    python src/main.py export --output backup.csv
    python src/main.py import backup.csv
    python src/main.py clear --yes
    python src/main.py precache
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Resolve project paths relative to this script (not CWD)
srcPath = Path(__file__).resolve().parent
projectRoot = srcPath.parent
if str(srcPath) not in sys.path:
    sys.path.insert(0, str(srcPath))

DEFAULT_CONFIG = str(srcPath / 'vin_config.json')
DEFAULT_ENV = str(projectRoot / '.env')

from common.error_handler import (
    ConfigurationError,
    DataError,
    NetworkError,
    PersistenceError,
    ValidationError,
    formatError,
    handleError,
)
from common.logging_config import getLogger, setupLogging
from vinlookup.config import loadLookupConfig
from vinlookup.helpers import LookupComponents, createLookupServiceFromConfig
from vinlookup.service import SORT_OPTIONS
from vinlookup.types import VinLookup

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUNTIME_ERROR = 2
EXIT_UNKNOWN_ERROR = 3

RUNTIME_ERRORS = (ValidationError, NetworkError, PersistenceError, DataError)


def buildParser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Decode VINs with the NHTSA vPIC API and keep a searchable lookup history',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py lookup 1HGBH41JXMN109186     Decode and record a VIN
  python main.py history --search civic       Search the lookup history
  python main.py export                       Export history to a dated CSV
  python main.py import backup.csv            Restore history from CSV
        '''
    )

    parser.add_argument(
        '--config', '-c',
        default=DEFAULT_CONFIG,
        help='Path to configuration file (default: src/vin_config.json)'
    )

    parser.add_argument(
        '--env-file', '-e',
        default=DEFAULT_ENV,
        help='Path to environment file (default: .env)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose (debug) logging'
    )

    parser.add_argument(
        '--version',
        action='version',
        version='%(prog)s 1.0.0'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    lookupParser = subparsers.add_parser('lookup', help='Validate, decode and record a VIN')
    lookupParser.add_argument('vin', help='Vehicle Identification Number (spaces allowed)')

    historyParser = subparsers.add_parser('history', help='List or search lookup history')
    historyParser.add_argument(
        '--sort',
        choices=SORT_OPTIONS,
        default='timestamp',
        help='Sort by newest first (timestamp) or by VIN'
    )
    historyParser.add_argument('--search', help='Filter by VIN, make or model')

    exportParser = subparsers.add_parser('export', help='Export history to CSV')
    exportParser.add_argument(
        '--output', '-o',
        help='Output file (default: <export.directory>/vin-history-YYYY-MM-DD.csv)'
    )

    importParser = subparsers.add_parser('import', help='Import history from CSV')
    importParser.add_argument('path', help='CSV file written by export')

    clearParser = subparsers.add_parser('clear', help='Delete all lookup history')
    clearParser.add_argument('--yes', action='store_true', help='Confirm deletion')

    subparsers.add_parser('precache', help='Warm the offline cache and drop stale generations')

    return parser


def parseArgs(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    return buildParser().parse_args(argv)


def formatLookup(lookup: VinLookup) -> str:
    """One display line for a lookup."""
    status = 'OK ' if lookup.isSuccess() else 'ERR'
    return f"{status} {lookup.vin}  {lookup.getVehicleSummary()}"


async def runCommand(args: argparse.Namespace, components: LookupComponents) -> int:
    """
    Execute one subcommand.

    Returns:
        Exit code
    """
    logger = getLogger(__name__)
    service = components.service

    if args.command == 'lookup':
        lookup = await service.lookupVin(args.vin)
        print(formatLookup(lookup))
        for key, value in (lookup.result.knownFields().items() if lookup.result else []):
            print(f"    {key}: {value}")
        return EXIT_SUCCESS if lookup.isSuccess() else EXIT_RUNTIME_ERROR

    if args.command == 'history':
        if args.search:
            lookups = await service.searchHistory(args.search)
        else:
            lookups = await service.getHistory(sortBy=args.sort)
        for lookup in lookups:
            print(formatLookup(lookup))
        print(f"{len(lookups)} lookup(s)")
        return EXIT_SUCCESS

    if args.command == 'export':
        path = await service.exportHistory(args.output)
        print(f"Exported history to {path}")
        return EXIT_SUCCESS

    if args.command == 'import':
        count = await service.importHistory(args.path)
        print(f"Imported {count} lookup(s)")
        return EXIT_SUCCESS

    if args.command == 'clear':
        if not args.yes:
            logger.warning("Refusing to clear history without --yes")
            return EXIT_RUNTIME_ERROR
        await service.clearHistory()
        print("History cleared")
        return EXIT_SUCCESS

    if args.command == 'precache':
        cache = components.offlineCache
        if cache is None:
            logger.warning("Offline cache is disabled in configuration")
            return EXIT_CONFIG_ERROR
        stored = await cache.install()
        deleted = await cache.activate()
        print(f"Cached {stored} resource(s); removed {len(deleted)} stale cache(s)")
        return EXIT_SUCCESS

    raise ValueError(f"Unknown command: {args.command}")


async def runWorkflow(args: argparse.Namespace, config: dict) -> int:
    async with createLookupServiceFromConfig(config) as components:
        return await runCommand(args, components)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parseArgs(argv)

    setupLogging(level='DEBUG' if args.verbose else 'WARNING')
    logger = getLogger(__name__)

    try:
        config = loadLookupConfig(args.config, args.env_file)

        loggingConfig = config.get('logging', {})
        setupLogging(
            level='DEBUG' if args.verbose else loggingConfig.get('level', 'INFO'),
            logFile=loggingConfig.get('file'),
            enablePIIMasking=loggingConfig.get('maskPII', True),
        )
        logger.info(f"{config['application']['name']} starting | command={args.command}")

        exitCode = asyncio.run(runWorkflow(args, config))
        logger.info(f"Command completed | command={args.command} | exitCode={exitCode}")
        return exitCode

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(formatError(e), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    except RUNTIME_ERRORS as e:
        handleError(e, context={'command': args.command}, reraise=False)
        print(formatError(e), file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    except KeyboardInterrupt:
        logger.warning("Application interrupted by user")
        return EXIT_RUNTIME_ERROR

    except Exception as e:
        handleError(e, context={'command': args.command}, reraise=False)
        logger.error(f"Unexpected error: {e}")
        return EXIT_UNKNOWN_ERROR


if __name__ == '__main__':
    sys.exit(main())
