"""
Utility functions for MySQL Backup.
"""

import logging
import shlex
import sys
from pathlib import Path
from typing import Any

import yaml

from .models import Settings

SENSITIVE_PREFIXES = ('--password=',)


def setup_logging(log_settings: dict[str, Any]) -> None:
    """Setup logging configuration."""
    log_level = getattr(logging, log_settings.get('level', 'INFO').upper())
    log_file = log_settings.get('file')

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    # Config loading may already have logged through the root logger.
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def sanitize_command(cmd: list[str]) -> list[str]:
    """Mask secrets in a command line before it is logged."""
    sanitized = []
    for item in cmd:
        for prefix in SENSITIVE_PREFIXES:
            if item.startswith(prefix):
                item = prefix + '***'
                break
        sanitized.append(item)
    return sanitized


def format_command(cmd: list[str]) -> str:
    return shlex.join(sanitize_command(cmd))


def build_backup_plan(settings: Settings, databases: list[str]) -> dict[str, Any]:
    """Describe what a backup run would do, without secrets."""
    return {
        'settings': settings.to_display_dict(),
        'databases': [
            {'name': name, 'output': str(settings.output_path(name))}
            for name in databases
        ],
    }


def print_dry_run_info(settings: Settings, databases: list[str]) -> None:
    """Print the resolved settings and planned dumps as YAML."""
    logging.info(f"Would dump {len(databases)} database(s)")
    plan = build_backup_plan(settings, databases)
    print(yaml.safe_dump(plan, default_flow_style=False, sort_keys=False), end='')
