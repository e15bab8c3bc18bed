"""Interactive prompt helpers built on InquirerPy."""

from __future__ import annotations

import sys

from InquirerPy import inquirer

from .exceptions import UserAbort


def _ensure_tty() -> None:
    if not sys.stdin.isatty():
        raise UserAbort("Interactive confirmation requires a TTY. Pass --yes to run non-interactively.")


def confirm(message: str, default: bool = False) -> bool:
    _ensure_tty()
    return bool(inquirer.confirm(message=message, default=default).execute())


def require_confirmation(message: str, *, assume_yes: bool = False) -> None:
    """Raise :class:`UserAbort` unless the user agrees (or ``assume_yes`` is set)."""

    if assume_yes:
        return
    if not confirm(message):
        raise UserAbort("Aborted.")
