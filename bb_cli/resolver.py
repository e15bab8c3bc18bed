"""Decide which Bitbucket repository a command should talk to."""

from __future__ import annotations

import logging

from .config import Config
from .exceptions import FormatError, NoContextError
from .git import GitRemoteReader, RemoteReader
from .hosts import BITBUCKET_CLOUD, infer_host_type, normalize_host
from .models import HostType, RepoContext, RepoOptions
from .remotes import parse_remote_url

logger = logging.getLogger(__name__)


class ContextResolver:
    """Resolve a :class:`RepoContext` from flags or the enclosing git checkout.

    An explicit ``--repo`` always wins and never falls back to git, even when
    it is malformed. Without it the ``origin`` remote is parsed. Any failure
    is raised to the caller; nothing is guessed.
    """

    def __init__(self, config: Config | None = None, remote_reader: RemoteReader | None = None) -> None:
        self.config = config or Config()
        self.remote_reader = remote_reader or GitRemoteReader()

    def resolve(self, options: RepoOptions) -> RepoContext:
        if options.repo is not None:
            logger.debug("Resolving repository from --repo %s", options.repo)
            return self.parse_repo_arg(options.repo, options.host)
        url = self.remote_reader.get_origin_url()
        if url is None:
            raise NoContextError("Could not determine repository: no git origin remote found.")
        logger.debug("Resolving repository from origin remote %s", url)
        return parse_remote_url(url, infer=self._infer_host_type)

    def parse_repo_arg(self, value: str, host: str | None = None) -> RepoContext:
        parts = value.split("/")
        if len(parts) != 2 or not all(part.strip() for part in parts):
            raise FormatError(value)
        owner, repo_slug = (part.strip() for part in parts)
        resolved_host = normalize_host(host) if host else BITBUCKET_CLOUD
        if not resolved_host:
            raise FormatError(value)
        return RepoContext(
            host=resolved_host,
            host_type=self._infer_host_type(resolved_host),
            owner=owner,
            repo_slug=repo_slug,
        )

    def _infer_host_type(self, host: str) -> HostType:
        return infer_host_type(host, self.config.host_type_override(host))


__all__ = ["ContextResolver"]
