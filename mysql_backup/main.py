#!/usr/bin/env python3
"""
MySQL Backup - CLI Entry Point
==============================
Dumps every database on a MySQL server (or a single named one) into one
file per database, optionally gzip compressed.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import DEFAULT_CONFIG_PATH, resolve_settings
from .credentials import acquire_password
from .database_dumper import DatabaseDumper
from .errors import MySQLBackupError, UsageError
from .utils import print_dry_run_info, setup_logging

EPILOG = """\
Settings are applied in order: built-in defaults, /etc/mysql-backup.conf (only
when its mode is 0600), then the flags above from left to right. A config file
named with -c is merged where it appears among the flags.

Config files hold KEY=value lines (HOSTNAME, USERNAME, PASSWORD, DATABASE,
OUTPUTDIR, GZIP_ENABLED, PASSWORD_PROMPT, COMMAND_GZIP, COMMAND_MYSQL,
COMMAND_MYSQLDUMP, EXCLUDE_DATABASES=(a b), LOG_LEVEL, LOG_FILE). They are
parsed, not executed as shell scripts.

Exit status is 0 once every database has been attempted, even if some dumps
failed; failures are listed in the log. Setup failures exit 1, bad usage 2.
"""


class BackupArgumentParser(argparse.ArgumentParser):
    """Argument parser that raises UsageError instead of exiting."""

    def error(self, message):
        raise UsageError(message)


class OrderedOverride(argparse.Action):
    """Record an option as a (field, value) pair, keeping command line order."""

    def __init__(self, option_strings, dest, nargs=None, const=None, **kwargs):
        kwargs.setdefault('default', argparse.SUPPRESS)
        super().__init__(option_strings, dest, nargs=nargs, const=const, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        overrides = list(getattr(namespace, 'overrides', []))
        overrides.append((self.dest, self.const if self.nargs == 0 else values))
        namespace.overrides = overrides


def build_parser() -> argparse.ArgumentParser:
    parser = BackupArgumentParser(
        prog='mysql-backup',
        description='MySQL Backup - dump each database on a server to its own file',
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.set_defaults(overrides=[])
    parser.add_argument(
        '-c', '--config', dest='config', action=OrderedOverride, metavar='PATH',
        help='Merge settings from a config file'
    )
    parser.add_argument(
        '-h', '--host', dest='host', action=OrderedOverride,
        help='MySQL server host'
    )
    parser.add_argument(
        '-u', '--user', dest='user', action=OrderedOverride,
        help='MySQL username'
    )
    parser.add_argument(
        '-p', '--password-prompt', dest='password_prompt', action=OrderedOverride,
        nargs=0, const=True,
        help='Prompt for the password (requires a username)'
    )
    parser.add_argument(
        '-d', '--database', dest='database', action=OrderedOverride,
        help='Dump only this database, skipping enumeration'
    )
    parser.add_argument(
        '-o', '--output-dir', dest='output_dir', action=OrderedOverride, metavar='PATH',
        help='Output directory (created if missing)'
    )
    parser.add_argument(
        '-z', '--gzip', dest='gzip_enabled', action=OrderedOverride,
        nargs=0, const=True,
        help='Compress each dump with gzip'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '-n', '--dry-run',
        action='store_true',
        help='Show what would be dumped without actually dumping'
    )
    parser.add_argument(
        '--help', action='help',
        help='Show this help message and exit'
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        parser.print_usage(sys.stderr)
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code

    # Resolve configuration
    try:
        settings = resolve_settings(args.overrides, DEFAULT_CONFIG_PATH)
        settings = acquire_password(settings)
    except MySQLBackupError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code

    # Setup logging
    setup_logging({
        'level': 'DEBUG' if args.verbose else settings.log_level,
        'file': settings.log_file,
    })

    dumper = DatabaseDumper(settings)

    try:
        # Dry run mode
        if args.dry_run:
            logging.info("DRY RUN MODE - No data will be dumped")
            print_dry_run_info(settings, dumper.get_databases())
            return 0

        stats = dumper.run()
    except MySQLBackupError as e:
        logging.error(f"Fatal error: {e}")
        return e.exit_code

    # Print summary
    logging.info("=" * 50)
    logging.info("BACKUP COMPLETE")
    logging.info(f"Databases: {len(stats.results)}")
    logging.info(f"Succeeded: {len(stats.succeeded)}")

    if stats.failed:
        logging.warning(f"Failed: {len(stats.failed)}")
        for result in stats.failed:
            logging.warning(f"  - {result.database}: {result.error}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
