"""Custom error hierarchy for bb."""

from __future__ import annotations

NO_CONTEXT_HINT = "Use --repo WORKSPACE/REPO or run inside a git checkout with an origin remote."


class BitbucketCliError(RuntimeError):
    """Base error for the CLI."""


class ResolutionError(BitbucketCliError):
    """Raised when the target repository cannot be determined."""


class UrlFormatError(ResolutionError):
    """Raised when a git remote URL matches none of the known layouts."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Could not parse remote URL: {url}")


class FormatError(ResolutionError):
    """Raised when an explicit --repo value is not OWNER/REPO."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"Invalid repository format '{value}'. Expected WORKSPACE/REPO or PROJECT/REPO."
        )


class NoContextError(ResolutionError):
    """Raised when neither --repo nor a git origin remote is available."""

    def __init__(self, message: str = "Could not determine repository."):
        super().__init__(f"{message} {NO_CONTEXT_HINT}")


class GitCommandError(BitbucketCliError):
    """Raised when an underlying git command fails."""

    def __init__(self, command: list[str], returncode: int, stderr: str | None = None):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr or ""
        message = f"git command failed (exit {returncode}): {' '.join(command)}"
        if self.stderr.strip():
            message = f"{message}\n{self.stderr.strip()}"
        super().__init__(message)


class ConfigError(BitbucketCliError):
    """Raised when the configuration file is unreadable or a key is invalid."""


class AliasError(BitbucketCliError):
    """Raised when an alias cannot be created or expanded."""


class ApiError(BitbucketCliError):
    """Raised when the Bitbucket API answers with an error status."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        message = f"API request failed with HTTP {status}"
        if body.strip():
            message = f"{message}: {body.strip()[:500]}"
        super().__init__(message)


class UnsupportedError(BitbucketCliError):
    """Raised when a feature does not exist on the resolved host type."""


class UserAbort(BitbucketCliError):
    """Raised when the user cancels an interactive flow."""


__all__ = [
    "NO_CONTEXT_HINT",
    "BitbucketCliError",
    "ResolutionError",
    "UrlFormatError",
    "FormatError",
    "NoContextError",
    "GitCommandError",
    "ConfigError",
    "AliasError",
    "ApiError",
    "UnsupportedError",
    "UserAbort",
]
