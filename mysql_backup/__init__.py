"""
MySQL Backup
============
Dumps the databases of a MySQL server to one file per database with:
- Layered configuration (defaults, permission-checked config file, CLI flags)
- Interactive password prompt
- Database exclusion list
- Optional gzip compression
- Per-database error reporting without aborting the run
"""

from .config import ConfigLoader, resolve_settings
from .credentials import acquire_password
from .database_dumper import DatabaseDumper
from .errors import (
    ConfigError,
    ConfigNotFoundError,
    ConfigSyntaxError,
    ConfigTrustError,
    CredentialError,
    DumpItemError,
    EnumerationError,
    MySQLBackupError,
    OutputDirError,
    UsageError,
)
from .main import main
from .models import BackupStats, DumpResult, Settings
from .mysql_client import MySQLClient
from .utils import print_dry_run_info, setup_logging

__version__ = "1.0.0"

__all__ = [
    # Main entry point
    "main",
    # Core classes
    "ConfigLoader",
    "DatabaseDumper",
    "MySQLClient",
    # Functions
    "acquire_password",
    "resolve_settings",
    # Models
    "BackupStats",
    "DumpResult",
    "Settings",
    # Errors
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigSyntaxError",
    "ConfigTrustError",
    "CredentialError",
    "DumpItemError",
    "EnumerationError",
    "MySQLBackupError",
    "OutputDirError",
    "UsageError",
    # Utilities
    "print_dry_run_info",
    "setup_logging",
]
