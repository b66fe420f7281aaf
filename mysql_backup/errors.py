"""
Exceptions for MySQL Backup.

Every fatal failure maps to a subclass of ``MySQLBackupError`` carrying the
process exit code the command line tool terminates with.
"""


class MySQLBackupError(Exception):
    """Base exception for fatal backup failures."""
    exit_code = 1


class ConfigError(MySQLBackupError):
    """Configuration could not be loaded."""


class ConfigTrustError(ConfigError):
    """The default config file is readable or writable by group or others."""


class ConfigNotFoundError(ConfigError):
    """An explicitly named config file does not exist."""


class ConfigSyntaxError(ConfigError):
    """A config file line could not be parsed."""


class UsageError(MySQLBackupError):
    """Unrecognised command line usage."""
    exit_code = 2


class CredentialError(MySQLBackupError):
    """The password prompt was interrupted."""


class OutputDirError(MySQLBackupError):
    """The output directory is missing and cannot be created."""


class EnumerationError(MySQLBackupError):
    """The server could not be queried for its databases."""


class DumpItemError(MySQLBackupError):
    """Dumping a single database failed.

    Recoverable: the dump loop records it and moves on to the next database.
    """

    def __init__(self, database: str, stage: str, detail: str = ""):
        self.database = database
        self.stage = stage
        self.detail = detail
        message = f"{stage} failed"
        if detail:
            message += f": {detail}"
        super().__init__(message)
