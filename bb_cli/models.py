"""Dataclasses shared across modules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class HostType(str, Enum):
    """Deployment model of a Bitbucket host."""

    CLOUD = "cloud"
    SERVER = "server"

    @classmethod
    def parse(cls, value: str) -> "HostType":
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown host type '{value}'. Expected 'cloud' or 'server'.") from exc

    @property
    def label(self) -> str:
        return "Bitbucket Cloud" if self is HostType.CLOUD else "Bitbucket Server/Data Center"

    @property
    def owner_label(self) -> str:
        return "Workspace" if self is HostType.CLOUD else "Project"


@dataclass(frozen=True)
class RepoContext:
    """Addressing information for the repository a command targets."""

    host: str
    host_type: HostType
    owner: str
    repo_slug: str
    default_branch: str | None = None

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("RepoContext requires a host")
        if not self.owner or not self.repo_slug:
            raise ValueError("RepoContext requires both an owner and a repository slug")

    def full_name(self) -> str:
        return f"{self.owner}/{self.repo_slug}"

    def web_url(self) -> str:
        if self.host_type is HostType.CLOUD:
            return f"https://bitbucket.org/{self.owner}/{self.repo_slug}"
        return f"https://{self.host}/projects/{self.owner}/repos/{self.repo_slug}"

    def api_root(self) -> str:
        if self.host_type is HostType.CLOUD:
            return "https://api.bitbucket.org/2.0"
        return f"https://{self.host}/rest/api/1.0"

    def api_url(self) -> str:
        if self.host_type is HostType.CLOUD:
            return f"{self.api_root()}/repositories/{self.owner}/{self.repo_slug}"
        return f"{self.api_root()}/projects/{self.owner}/repos/{self.repo_slug}"

    def to_dict(self) -> dict[str, str | None]:
        return {
            "host": self.host,
            "host_type": self.host_type.value,
            "owner": self.owner,
            "repo_slug": self.repo_slug,
            "default_branch": self.default_branch,
            "full_name": self.full_name(),
            "web_url": self.web_url(),
            "api_url": self.api_url(),
        }


@dataclass(frozen=True)
class RepoOptions:
    """Repository selection flags gathered from the command line or environment."""

    repo: str | None = None
    host: str | None = None


@dataclass
class HostConfig:
    """Per-host settings persisted in the config file."""

    host: str
    host_type: HostType | None = None
    user: str | None = None
    default_workspace: str | None = None
    default_project: str | None = None


@dataclass
class AliasEntry:
    expansion: str
    shell: bool = False
