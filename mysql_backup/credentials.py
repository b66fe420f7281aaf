"""
Interactive password acquisition for MySQL Backup.
"""

import getpass
import logging
from typing import Callable, Optional

from .errors import CredentialError
from .models import Settings


def acquire_password(
    settings: Settings,
    prompt: Optional[Callable[[str], str]] = None
) -> Settings:
    """
    Prompt for the password when requested and a username is set.

    ``getpass`` turns terminal echo off while reading and restores the previous
    terminal mode on every exit path, including interrupts.

    Returns:
        Settings with the entered password, or the input unchanged when no
        prompt was needed.
    """
    if not settings.password_prompt:
        return settings

    if not settings.user:
        logging.debug("Password prompt requested without a username, skipping")
        return settings

    read_password = prompt or getpass.getpass
    try:
        password = read_password(f"Password for {settings.user}: ")
    except (KeyboardInterrupt, EOFError) as e:
        raise CredentialError("Password prompt aborted") from e

    return settings.merged(password=password)
