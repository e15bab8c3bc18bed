"""Build web URLs for `bb browse`."""

from __future__ import annotations

from enum import Enum

from .exceptions import UnsupportedError
from .models import HostType, RepoContext


class BrowseTarget(str, Enum):
    REPO = "repo"
    SETTINGS = "settings"
    ISSUES = "issues"
    PRS = "prs"
    PIPELINES = "pipelines"
    WIKI = "wiki"
    PROJECTS = "projects"
    BRANCHES = "branches"
    COMMITS = "commits"
    DOWNLOADS = "downloads"


_SERVER_UNSUPPORTED = {
    BrowseTarget.ISSUES: "Issues are not available on Bitbucket Server. Use the Jira integration instead.",
    BrowseTarget.PIPELINES: "Pipelines are a Bitbucket Cloud feature. Bitbucket Server uses external CI/CD.",
    BrowseTarget.WIKI: "Wiki is not available on Bitbucket Server.",
    BrowseTarget.DOWNLOADS: "Downloads page is not available on Bitbucket Server.",
}

_CLOUD_SECTIONS = {
    BrowseTarget.SETTINGS: "admin",
    BrowseTarget.ISSUES: "issues",
    BrowseTarget.PRS: "pull-requests",
    BrowseTarget.PIPELINES: "pipelines",
    BrowseTarget.WIKI: "wiki",
    BrowseTarget.BRANCHES: "branches",
    BrowseTarget.DOWNLOADS: "downloads",
}

_SERVER_SECTIONS = {
    BrowseTarget.SETTINGS: "settings",
    BrowseTarget.PRS: "pull-requests",
    BrowseTarget.BRANCHES: "branches",
}


def build_browse_url(
    ctx: RepoContext,
    target: BrowseTarget = BrowseTarget.REPO,
    *,
    path: str | None = None,
    branch: str | None = None,
    commit: str | None = None,
) -> str:
    if ctx.host_type is HostType.CLOUD:
        return _cloud_url(ctx, target, path, branch, commit)
    return _server_url(ctx, target, path, branch, commit)


def _cloud_url(
    ctx: RepoContext,
    target: BrowseTarget,
    path: str | None,
    branch: str | None,
    commit: str | None,
) -> str:
    base = ctx.web_url()
    if target in _CLOUD_SECTIONS:
        return f"{base}/{_CLOUD_SECTIONS[target]}"
    if target is BrowseTarget.PROJECTS:
        return f"https://bitbucket.org/{ctx.owner}/workspace/projects"
    if target is BrowseTarget.COMMITS:
        return f"{base}/commits/branch/{branch}" if branch else f"{base}/commits"
    if commit:
        return f"{base}/commits/{commit}"
    if path:
        return f"{base}/src/{branch or 'HEAD'}/{path.lstrip('/')}"
    if branch:
        return f"{base}/src/{branch}"
    return base


def _server_url(
    ctx: RepoContext,
    target: BrowseTarget,
    path: str | None,
    branch: str | None,
    commit: str | None,
) -> str:
    if target in _SERVER_UNSUPPORTED:
        raise UnsupportedError(_SERVER_UNSUPPORTED[target])
    base = ctx.web_url()
    if target in _SERVER_SECTIONS:
        return f"{base}/{_SERVER_SECTIONS[target]}"
    if target is BrowseTarget.PROJECTS:
        return f"https://{ctx.host}/projects/{ctx.owner}"
    if target is BrowseTarget.COMMITS:
        return f"{base}/commits?until=refs/heads/{branch}" if branch else f"{base}/commits"
    if commit:
        return f"{base}/commits/{commit}"
    if path:
        url = f"{base}/browse/{path.lstrip('/')}"
        return f"{url}?at=refs/heads/{branch}" if branch else url
    if branch:
        return f"{base}/browse?at=refs/heads/{branch}"
    return f"{base}/browse"


def describe_target(target: BrowseTarget, path: str | None = None) -> str:
    if target is BrowseTarget.REPO:
        return "file" if path else "repository"
    if target is BrowseTarget.PRS:
        return "pull requests"
    return target.value


__all__ = ["BrowseTarget", "build_browse_url", "describe_target"]
