"""Top-level package for bb, a Bitbucket Cloud and Server command line client."""

from importlib import metadata


try:  # pragma: no cover - best effort metadata lookup
    __version__ = metadata.version("bb-cli")
except metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = ["__version__"]
