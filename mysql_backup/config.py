"""
Configuration loading and resolution for MySQL Backup.

Settings are resolved in layers: built-in defaults, the default config file
(only when its permissions are owner read/write only), then command line flags
in the order they were given. A ``-c`` flag merges another config file at its
position in that sequence.

Config files are parsed, never executed. Each line is a ``KEY=value``
assignment using shell quoting rules; arrays are written ``KEY=(a b c)``.
"""

import logging
import os
import re
import shlex
import stat
from pathlib import Path
from typing import Any, Iterable, Iterator, Union

from .errors import ConfigError, ConfigNotFoundError, ConfigSyntaxError, ConfigTrustError
from .models import Settings

DEFAULT_CONFIG_PATH = Path('/etc/mysql-backup.conf')
TRUSTED_CONFIG_MODE = 0o600

ConfigValue = Union[str, list[str]]

TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off', ''}


def _to_str(value: str) -> str:
    return value


def _to_path(value: str) -> str:
    return os.path.expanduser(value)


def _to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"expected a boolean, got '{value}'")


class ConfigLoader:
    """Loads ``KEY=value`` assignments from a config file."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')
    ASSIGNMENT_PATTERN = re.compile(r'^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)=(.*)$')

    # config key -> (Settings field, converter)
    SCALAR_KEYS = {
        'HOSTNAME': ('host', _to_str),
        'USERNAME': ('user', _to_str),
        'PASSWORD': ('password', _to_str),
        'DATABASE': ('database', _to_str),
        'OUTPUTDIR': ('output_dir', _to_path),
        'GZIP_ENABLED': ('gzip_enabled', _to_bool),
        'PASSWORD_PROMPT': ('password_prompt', _to_bool),
        'COMMAND_GZIP': ('command_gzip', _to_str),
        'COMMAND_MYSQL': ('command_mysql', _to_str),
        'COMMAND_MYSQLDUMP': ('command_mysqldump', _to_str),
        'LOG_LEVEL': ('log_level', _to_str),
        'LOG_FILE': ('log_file', _to_path),
    }
    ARRAY_KEYS = {
        'EXCLUDE_DATABASES': 'exclude_databases',
    }

    def __init__(self, config_path: Union[str, Path]):
        self.config_path = Path(config_path)
        self.config = self._load_config()

    def _load_config(self) -> dict[str, ConfigValue]:
        """Load assignments from the config file."""
        with open(self.config_path, 'r', encoding='utf-8') as f:
            return dict(self._parse_lines(f))

    def _parse_lines(self, lines: Iterable[str]) -> Iterator[tuple[str, ConfigValue]]:
        numbered = enumerate(lines, start=1)
        for lineno, line in numbered:
            text = line.strip()
            if not text or text.startswith('#'):
                continue

            match = self.ASSIGNMENT_PATTERN.match(text)
            if not match:
                raise self._syntax_error(lineno, "expected KEY=value")
            key, raw = match.groups()

            if raw.startswith('('):
                start = lineno
                tokens = self._split(raw, lineno)
                while not tokens or not tokens[-1].endswith(')'):
                    try:
                        lineno, line = next(numbered)
                    except StopIteration:
                        raise self._syntax_error(start, f"unterminated array for {key}") from None
                    tokens += self._split(line, lineno)
                tokens[0] = tokens[0][1:]
                tokens[-1] = tokens[-1][:-1]
                yield key, [token for token in tokens if token]
                continue

            tokens = self._split(raw, lineno)
            if len(tokens) > 1:
                raise self._syntax_error(lineno, f"value of {key} contains unquoted whitespace")
            yield key, tokens[0] if tokens else ''

    def _split(self, raw: str, lineno: int) -> list[str]:
        """
        Split a value into words the way a shell would.

        Single quotes keep text literal. ``${VAR}`` is expanded outside single
        quotes, and ``#`` only starts a comment at the beginning of a word.
        """
        words = []
        word: list[str] = []
        in_word = False
        quote = None
        pos = 0

        while pos < len(raw):
            char = raw[pos]
            env_match = self.ENV_VAR_PATTERN.match(raw, pos) if char == '$' else None

            if quote == "'":
                if char == "'":
                    quote = None
                else:
                    word.append(char)
            elif env_match:
                word.append(os.environ.get(env_match.group(1), ''))
                in_word = True
                pos = env_match.end()
                continue
            elif quote == '"':
                if char == '"':
                    quote = None
                elif char == '\\' and raw[pos + 1:pos + 2] in ('"', '\\', '$', '`'):
                    word.append(raw[pos + 1])
                    pos += 1
                else:
                    word.append(char)
            elif char in ('"', "'"):
                quote = char
                in_word = True
            elif char == '\\':
                if pos + 1 < len(raw):
                    word.append(raw[pos + 1])
                    pos += 1
                in_word = True
            elif char.isspace():
                if in_word:
                    words.append(''.join(word))
                    word = []
                    in_word = False
            elif char == '#' and not in_word:
                break
            else:
                word.append(char)
                in_word = True
            pos += 1

        if quote:
            raise self._syntax_error(lineno, "unterminated quote")
        if in_word:
            words.append(''.join(word))
        return words

    def _syntax_error(self, lineno: int, message: str) -> ConfigSyntaxError:
        return ConfigSyntaxError(f"{self.config_path}:{lineno}: {message}")

    def get_settings_changes(self) -> dict[str, Any]:
        """Map the loaded assignments onto Settings field values."""
        changes: dict[str, Any] = {}
        for key, value in self.config.items():
            if key in self.ARRAY_KEYS:
                if isinstance(value, str):
                    value = [value] if value else []
                changes[self.ARRAY_KEYS[key]] = value
            elif key in self.SCALAR_KEYS:
                field_name, convert = self.SCALAR_KEYS[key]
                if isinstance(value, list):
                    raise ConfigSyntaxError(f"{self.config_path}: {key} does not take an array")
                try:
                    changes[field_name] = convert(value)
                except ValueError as e:
                    raise ConfigSyntaxError(f"{self.config_path}: {key}: {e}") from e
            else:
                logging.warning(f"Ignoring unknown key '{key}' in {self.config_path}")
        return changes


def check_config_permissions(config_path: Path) -> None:
    """Refuse a config file that group or others may access."""
    mode = stat.S_IMODE(config_path.stat().st_mode)
    if mode != TRUSTED_CONFIG_MODE:
        raise ConfigTrustError(
            f"Refusing to read '{config_path}': permissions are {mode:04o}, "
            f"expected {TRUSTED_CONFIG_MODE:04o}"
        )


def apply_config_file(settings: Settings, config_path: Union[str, Path]) -> Settings:
    """Merge a config file over settings, field by field."""
    try:
        loader = ConfigLoader(config_path)
    except FileNotFoundError as e:
        raise ConfigNotFoundError(f"Configuration file '{config_path}' not found") from e
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file '{config_path}': {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigSyntaxError(f"Configuration file '{config_path}' is not valid UTF-8: {e}") from e

    changes = loader.get_settings_changes()
    logging.debug(f"Loaded {len(changes)} setting(s) from {config_path}")
    return settings.merged(**changes)


def validate_settings(settings: Settings) -> None:
    """Check the resolved settings can drive the external commands."""
    for field_name in ('command_mysql', 'command_mysqldump', 'command_gzip'):
        if not shlex.split(getattr(settings, field_name)):
            raise ConfigError(f"{field_name.upper()} must not be empty")


def resolve_settings(
    overrides: Iterable[tuple[str, Any]] = (),
    default_config_path: Union[str, Path, None] = DEFAULT_CONFIG_PATH,
) -> Settings:
    """
    Build Settings from defaults, the default config file and overrides.

    Args:
        overrides: ``(field, value)`` pairs in command line order. The field
            ``config`` merges the named config file at that position.
        default_config_path: Config file read first when it exists. It is only
            honoured with permissions of exactly 0600.

    Raises:
        ConfigTrustError: The default config file has looser permissions.
        ConfigNotFoundError: An explicitly named config file is missing.
        ConfigSyntaxError: A config file could not be parsed.
    """
    settings = Settings()

    if default_config_path is not None:
        default_path = Path(default_config_path)
        if default_path.exists():
            check_config_permissions(default_path)
            settings = apply_config_file(settings, default_path)

    for field_name, value in overrides:
        if field_name == 'config':
            settings = apply_config_file(settings, value)
        else:
            settings = settings.merged(**{field_name: value})

    validate_settings(settings)
    return settings
