"""
Main backup orchestration for MySQL Backup.
"""

import fnmatch
import logging
import os
import re
from pathlib import Path
from typing import Optional

from .errors import DumpItemError, OutputDirError
from .models import BackupStats, DumpResult, Settings
from .mysql_client import MySQLClient


class DatabaseDumper:
    """Selects the databases to back up and dumps them one by one."""

    def __init__(self, settings: Settings, client: Optional[MySQLClient] = None):
        self.settings = settings
        self.client = client or MySQLClient(settings)
        self.stats = BackupStats()
        self._exclude_patterns = list(settings.exclude_databases)
        self._compiled_patterns = self._compile_exclusion_patterns(self._exclude_patterns)

    def _compile_exclusion_patterns(self, exclude_patterns: list[str]) -> list[re.Pattern]:
        """
        Pre-compile exclusion patterns to case-insensitive regexes.

        Plain names only match the whole database name; fnmatch wildcards
        ('*', '?', '[...]') are also honoured.
        """
        return [
            re.compile(fnmatch.translate(pattern), re.IGNORECASE)
            for pattern in exclude_patterns
        ]

    def _is_database_excluded(self, name: str) -> bool:
        for pattern, compiled in zip(self._exclude_patterns, self._compiled_patterns):
            if compiled.match(name):
                logging.debug(f"Database '{name}' excluded by '{pattern}'")
                return True
        return False

    def get_databases(self) -> list[str]:
        """
        Determine the databases to dump.

        A single requested database is used as is, without querying the
        server. Otherwise every database the server reports is returned in
        server order, minus the excluded ones.

        Raises:
            EnumerationError: The server could not be queried.
        """
        if self.settings.database:
            logging.info(f"Dumping only database '{self.settings.database}'")
            return [self.settings.database]

        names = self.client.list_databases()
        databases = [name for name in names if not self._is_database_excluded(name)]

        excluded_count = len(names) - len(databases)
        if excluded_count > 0:
            logging.info(f"Excluded {excluded_count} database(s) matching exclusion list")
        return databases

    def prepare_output_dir(self) -> Path:
        """Create the output directory, including parents, if missing."""
        output_dir = self.settings.output_dir
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirError(f"Cannot create output directory '{output_dir}': {e}") from e
        return output_dir

    def run(self) -> BackupStats:
        """Run the backup for every selected database.

        A failed dump is recorded and logged, and the remaining databases are
        still dumped.
        """
        databases = self.get_databases()
        output_dir = self.prepare_output_dir()

        logging.info(f"Starting dump of {len(databases)} database(s) into {output_dir}")

        for database in databases:
            result = self._dump_database(database)
            self.stats.results.append(result)
            self._log_dump_result(result)

        return self.stats

    def _dump_database(self, database: str) -> DumpResult:
        """Dump a single database and return its result."""
        output_path = self.settings.output_path(database)
        result = DumpResult(database=database, output_path=str(output_path))

        logging.info(f"Dumping database '{database}'")

        try:
            self._check_file_name(database)
            with open(output_path, 'wb') as output:
                self.client.dump_database(database, output)
            result.success = True
        except DumpItemError as e:
            result.error = str(e)
        except OSError as e:
            result.error = f"cannot write '{output_path}': {e}"

        return result

    def _check_file_name(self, database: str) -> None:
        """Reject names that would place the backup outside the output directory."""
        separators = [sep for sep in (os.sep, os.altsep, '/') if sep]
        if any(sep in database for sep in separators):
            raise DumpItemError(database, 'output', f"'{database}' cannot be used as a file name")

    def _log_dump_result(self, result: DumpResult) -> None:
        """Log the result of a database dump."""
        if result.success:
            logging.info(f"  ✓ {result.database}: {result.output_path}")
        else:
            logging.error(f"  ✗ {result.database}: {result.error}")
