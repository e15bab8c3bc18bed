"""Thin wrappers around git CLI commands."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Iterable, Protocol

from .exceptions import GitCommandError

logger = logging.getLogger(__name__)


def run_git(
    args: Iterable[str],
    *,
    cwd: Path | None = None,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Execute a git command and optionally raise on failure."""

    cmd = ["git", *args]
    logger.debug("Running %s", " ".join(cmd))
    proc = subprocess.run(
        cmd,
        cwd=str(cwd) if cwd else None,
        capture_output=True,
        text=True,
        check=False,
    )
    if check and proc.returncode != 0:
        raise GitCommandError(cmd, proc.returncode, proc.stderr)
    return proc


class RemoteReader(Protocol):
    """Anything able to report the origin remote of the working checkout."""

    def get_origin_url(self) -> str | None:
        ...


class GitRemoteReader:
    """Read a remote URL from the repository enclosing ``cwd``.

    git itself walks upward from ``cwd`` to find the repository, so running
    from a subdirectory of a checkout works. Every way of not finding a URL
    (not a repository, no such remote, git not installed) yields ``None``.
    """

    def __init__(self, cwd: Path | None = None, remote: str = "origin") -> None:
        self.cwd = cwd
        self.remote = remote

    def get_origin_url(self) -> str | None:
        try:
            proc = run_git(["remote", "get-url", self.remote], cwd=self.cwd)
        except GitCommandError as exc:
            logger.debug("No %s remote available: %s", self.remote, exc.stderr.strip() or exc)
            return None
        except (FileNotFoundError, NotADirectoryError) as exc:
            logger.debug("Unable to run git: %s", exc)
            return None
        url = proc.stdout.strip()
        return url or None


def current_branch(cwd: Path | None = None) -> str | None:
    try:
        proc = run_git(["symbolic-ref", "--quiet", "--short", "HEAD"], cwd=cwd, check=False)
    except FileNotFoundError:
        return None
    if proc.returncode == 0:
        return proc.stdout.strip() or None
    return None


__all__ = ["run_git", "RemoteReader", "GitRemoteReader", "current_branch"]
