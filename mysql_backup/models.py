"""
Data models for MySQL Backup.
"""

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


DEFAULT_EXCLUDE_DATABASES = ("information_schema", "performance_schema")


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one backup run.

    Instances are immutable. Each configuration layer (config file, command
    line flag, password prompt) produces a new value through ``merged``.
    """
    host: str = ""
    user: str = ""
    password: str = field(default="", repr=False)
    database: Optional[str] = None
    output_dir: Path = field(default_factory=Path.cwd)
    gzip_enabled: bool = False
    password_prompt: bool = False
    command_mysql: str = "mysql"
    command_mysqldump: str = "mysqldump"
    command_gzip: str = "gzip"
    exclude_databases: tuple[str, ...] = DEFAULT_EXCLUDE_DATABASES
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def merged(self, **changes: Any) -> "Settings":
        """Return a copy with the given fields replaced."""
        if 'output_dir' in changes:
            changes['output_dir'] = Path(changes['output_dir'])
        if 'exclude_databases' in changes:
            changes['exclude_databases'] = tuple(changes['exclude_databases'])
        if 'database' in changes and not changes['database']:
            changes['database'] = None
        return dataclasses.replace(self, **changes)

    @property
    def file_extension(self) -> str:
        return "sql.gz" if self.gzip_enabled else "sql"

    def output_path(self, database: str) -> Path:
        """Path of the backup artifact for a database."""
        return self.output_dir / f"{database}.{self.file_extension}"

    def to_display_dict(self) -> dict[str, Any]:
        """Settings as plain values, with the password masked."""
        data = dataclasses.asdict(self)
        data['password'] = "***" if self.password else ""
        data['output_dir'] = str(self.output_dir)
        data['exclude_databases'] = list(self.exclude_databases)
        return data


@dataclass
class DumpResult:
    """Outcome of dumping a single database."""
    database: str
    output_path: str = ""
    success: bool = False
    error: Optional[str] = None


@dataclass
class BackupStats:
    """Overall backup run statistics."""
    results: list[DumpResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[DumpResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[DumpResult]:
        return [r for r in self.results if not r.success]
