"""
External MySQL client commands for MySQL Backup.

The ``mysql`` client lists databases and ``mysqldump`` produces each backup,
optionally piped through a compression command. All commands run as blocking
child processes, one at a time.
"""

import logging
import shlex
import subprocess
import tempfile
from typing import BinaryIO, IO

from .errors import DumpItemError, EnumerationError
from .models import Settings
from .utils import format_command

LIST_DATABASES_QUERY = 'SHOW DATABASES'


def parse_database_list(output: str) -> list[str]:
    """Extract database names from ``mysql --raw --skip-column-names`` output.

    One name per line, unescaped and without a header line. A name that
    itself contains a newline cannot be represented in this output.
    """
    return [line for line in output.split('\n') if line]


def _read_stderr(handle: IO[bytes]) -> str:
    handle.seek(0)
    return handle.read().decode('utf-8', errors='replace').strip()


class MySQLClient:
    """Builds and runs the query, dump and compression commands."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def connection_args(self) -> list[str]:
        """Host and credential options shared by mysql and mysqldump."""
        args = []
        if self.settings.host:
            args.append(f"--host={self.settings.host}")
        if self.settings.user:
            args.append(f"--user={self.settings.user}")
        if self.settings.password:
            args.append(f"--password={self.settings.password}")
        return args

    def query_command(self, statement: str) -> list[str]:
        return [
            *shlex.split(self.settings.command_mysql),
            *self.connection_args(),
            '--batch',
            '--raw',
            '--skip-column-names',
            '-e', statement,
        ]

    def dump_command(self, database: str) -> list[str]:
        return [
            *shlex.split(self.settings.command_mysqldump),
            *self.connection_args(),
            '--databases', database,
        ]

    def compress_command(self) -> list[str]:
        return shlex.split(self.settings.command_gzip)

    def list_databases(self) -> list[str]:
        """
        Ask the server for every database name, in server order.

        Raises:
            EnumerationError: The query client could not be run or exited
                with a non-zero status.
        """
        cmd = self.query_command(LIST_DATABASES_QUERY)
        logging.debug(f"Running: {format_command(cmd)}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise EnumerationError(f"Cannot run '{cmd[0]}': {e}") from e

        if result.returncode != 0:
            raise EnumerationError(
                f"Listing databases failed with exit status {result.returncode}: "
                f"{result.stderr.strip()}"
            )

        return parse_database_list(result.stdout)

    def dump_database(self, database: str, output: BinaryIO) -> None:
        """
        Dump one database into an open binary file.

        With compression enabled the dump is piped through the compression
        command, and both stages' exit statuses are checked.

        Raises:
            DumpItemError: Either stage could not be started or exited with a
                non-zero status.
        """
        dump_cmd = self.dump_command(database)

        with tempfile.TemporaryFile() as dump_err:
            if not self.settings.gzip_enabled:
                logging.debug(f"Running: {format_command(dump_cmd)}")
                try:
                    returncode = subprocess.run(dump_cmd, stdout=output, stderr=dump_err).returncode
                except OSError as e:
                    raise DumpItemError(database, 'dump', str(e)) from e
                self._check_exit(database, 'dump', returncode, dump_err)
                return

            gzip_cmd = self.compress_command()
            logging.debug(f"Running: {format_command(dump_cmd)} | {format_command(gzip_cmd)}")

            with tempfile.TemporaryFile() as gzip_err:
                try:
                    dump_proc = subprocess.Popen(dump_cmd, stdout=subprocess.PIPE, stderr=dump_err)
                except OSError as e:
                    raise DumpItemError(database, 'dump', str(e)) from e

                try:
                    gzip_proc = subprocess.Popen(
                        gzip_cmd, stdin=dump_proc.stdout, stdout=output, stderr=gzip_err
                    )
                except OSError as e:
                    dump_proc.kill()
                    dump_proc.wait()
                    raise DumpItemError(database, 'compression', str(e)) from e
                finally:
                    # the compressor holds its own end of the pipe
                    dump_proc.stdout.close()

                gzip_returncode = gzip_proc.wait()
                dump_returncode = dump_proc.wait()

                self._check_exit(database, 'dump', dump_returncode, dump_err)
                self._check_exit(database, 'compression', gzip_returncode, gzip_err)

    def _check_exit(self, database: str, stage: str, returncode: int, stderr: IO[bytes]) -> None:
        if returncode != 0:
            detail = f"exit status {returncode}"
            message = _read_stderr(stderr)
            if message:
                detail += f": {message}"
            raise DumpItemError(database, stage, detail)
