"""Parse git remote URLs into repository contexts.

Four remote layouts are recognised and tried in order; the first match wins:

* ``git@<host>:<owner>/<repo>[.git]``                 host type inferred from host
* ``http(s)://<host>/scm/<owner>/<repo>[.git]``      always Server
* ``ssh://git@<host>[:<port>]/<owner>/<repo>[.git]`` always Server, port dropped
* ``http(s)://<host>/<owner>/<repo>[.git]``          host type inferred from host

Hosts are lower-cased and lose a default :443 or :80 port. Owner and
repository are single path segments. Anything deeper is rejected
rather than guessed at.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from .exceptions import UrlFormatError
from .hosts import infer_host_type, normalize_host
from .models import HostType, RepoContext

HostTypeInference = Callable[[str], HostType]

_USERINFO = r"(?:[^@/\s]+@)?"
_TAIL = r"/(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$"


@dataclass(frozen=True)
class RemoteGrammar:
    name: str
    pattern: re.Pattern[str]
    forced_host_type: HostType | None = None


GRAMMARS: tuple[RemoteGrammar, ...] = (
    RemoteGrammar(
        name="ssh",
        pattern=re.compile(r"^git@(?P<host>[^:/\s]+):(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$"),
    ),
    RemoteGrammar(
        name="server-scm",
        pattern=re.compile(r"^https?://" + _USERINFO + r"(?P<host>[^/@\s]+)/scm" + _TAIL),
        forced_host_type=HostType.SERVER,
    ),
    RemoteGrammar(
        name="server-ssh",
        pattern=re.compile(r"^ssh://" + _USERINFO + r"(?P<host>[^:/@\s]+)(?::\d+)?" + _TAIL),
        forced_host_type=HostType.SERVER,
    ),
    RemoteGrammar(
        name="https",
        pattern=re.compile(r"^https?://" + _USERINFO + r"(?P<host>[^/@\s]+)" + _TAIL),
    ),
)


def match_grammar(url: str) -> tuple[RemoteGrammar, re.Match[str]] | None:
    """Return the first grammar matching ``url`` together with its match."""

    for grammar in GRAMMARS:
        match = grammar.pattern.match(url)
        if match:
            return grammar, match
    return None


def parse_remote_url(url: str, infer: HostTypeInference = infer_host_type) -> RepoContext:
    """Map a remote URL to a :class:`RepoContext` or raise :class:`UrlFormatError`.

    ``infer`` decides the host type for layouts that do not force one, which
    lets callers apply configured per-host overrides.
    """

    candidate = url.strip()
    found = match_grammar(candidate)
    if found is None:
        raise UrlFormatError(url)
    grammar, match = found
    host = normalize_host(match.group("host"))
    host_type = grammar.forced_host_type or infer(host)
    return RepoContext(
        host=host,
        host_type=host_type,
        owner=match.group("owner"),
        repo_slug=match.group("repo"),
    )


__all__ = ["GRAMMARS", "RemoteGrammar", "match_grammar", "parse_remote_url"]
