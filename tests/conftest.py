"""
Shared fixtures: a fake MySQL server made of small mysql/mysqldump scripts.
"""

import shlex
import sys
import tempfile
import textwrap
from pathlib import Path

import pytest

from mysql_backup.models import Settings

FAKE_MYSQL = textwrap.dedent("""\
    import pathlib, sys
    here = pathlib.Path(__file__).parent
    with open(here / "mysql.log", "a") as log:
        log.write(" ".join(sys.argv[1:]) + "\\n")
    if (here / "mysql.fail").exists():
        sys.stderr.write("ERROR 2005 (HY000): Unknown MySQL server host\\n")
        sys.exit(1)
    if "--skip-column-names" not in sys.argv:
        sys.stdout.write("Database\\n")
    sys.stdout.write((here / "databases.txt").read_text())
""")

FAKE_MYSQLDUMP = textwrap.dedent("""\
    import pathlib, sys
    here = pathlib.Path(__file__).parent
    database = sys.argv[-1]
    with open(here / "mysqldump.log", "a") as log:
        log.write(" ".join(sys.argv[1:]) + "\\n")
    if database in (here / "failing.txt").read_text().split():
        sys.stderr.write("mysqldump: Got error: 1049: Unknown database '%s'\\n" % database)
        sys.exit(2)
    sys.stdout.write("-- dump of %s\\nCREATE DATABASE `%s`;\\n" % (database, database))
""")


def python_command(*args: str) -> str:
    return shlex.join([sys.executable, *args])


class FakeServer:
    """Fake mysql and mysqldump commands backed by files in a directory."""

    def __init__(self, directory: Path):
        self.directory = directory
        (directory / "fake_mysql.py").write_text(FAKE_MYSQL)
        (directory / "fake_mysqldump.py").write_text(FAKE_MYSQLDUMP)
        self.set_databases([
            "information_schema", "app", "performance_schema", "logs",
        ])
        self.set_failing([])

    def set_databases(self, names):
        (self.directory / "databases.txt").write_text("".join(f"{n}\n" for n in names))

    def set_failing(self, names):
        (self.directory / "failing.txt").write_text(" ".join(names))

    def break_connection(self):
        (self.directory / "mysql.fail").touch()

    def _calls(self, name):
        log = self.directory / name
        if not log.exists():
            return []
        return log.read_text().splitlines()

    @property
    def mysql_calls(self):
        return self._calls("mysql.log")

    @property
    def mysqldump_calls(self):
        return self._calls("mysqldump.log")

    @property
    def command_mysql(self):
        return python_command(str(self.directory / "fake_mysql.py"))

    @property
    def command_mysqldump(self):
        return python_command(str(self.directory / "fake_mysqldump.py"))

    @property
    def command_gzip(self):
        return python_command("-m", "gzip")

    def settings(self, **changes) -> Settings:
        values = {
            "command_mysql": self.command_mysql,
            "command_mysqldump": self.command_mysqldump,
            "command_gzip": self.command_gzip,
        }
        values.update(changes)
        return Settings().merged(**values)


@pytest.fixture
def fake_server():
    """A fake server reporting information_schema, app, performance_schema, logs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield FakeServer(Path(tmpdir))


@pytest.fixture
def output_dir():
    """A temporary directory for backup files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "backups"
