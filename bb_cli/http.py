"""Minimal Bitbucket REST client used by ``bb api``."""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Mapping
from urllib.parse import urlsplit

import requests

from .exceptions import ApiError, BitbucketCliError
from .hosts import BITBUCKET_API, normalize_host
from .models import HostType, RepoContext

logger = logging.getLogger(__name__)

TOKEN_ENV = "BB_TOKEN"
METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
DEFAULT_TIMEOUT = 30

_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d+(?:[eE][-+]?\d+)?$")


def parse_field(raw: str) -> tuple[str, Any]:
    """Split ``key=value`` and coerce the value the way ``gh api -F`` does."""

    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise BitbucketCliError(f"Invalid field format: {raw}. Expected key=value")
    if value == "true":
        return key, True
    if value == "false":
        return key, False
    if value == "null":
        return key, None
    if _INT_RE.match(value):
        return key, int(value)
    if _FLOAT_RE.match(value):
        return key, float(value)
    if value.startswith(("[", "{")):
        try:
            return key, json.loads(value)
        except json.JSONDecodeError:
            pass
    return key, value


def build_body(fields: list[str]) -> dict[str, Any] | None:
    """Turn ``a.b=1`` style fields into a nested JSON object."""

    if not fields:
        return None
    body: dict[str, Any] = {}
    for raw in fields:
        key, value = parse_field(raw)
        target = body
        *parents, leaf = key.split(".")
        for part in parents:
            existing = target.get(part)
            if not isinstance(existing, dict):
                existing = {}
                target[part] = existing
            target = existing
        target[leaf] = value
    return body


def expand_placeholders(endpoint: str, ctx: RepoContext) -> str:
    owner_key = "workspace" if ctx.host_type is HostType.CLOUD else "project"
    replacements = {
        "{owner}": ctx.owner,
        "{" + owner_key + "}": ctx.owner,
        "{repo}": ctx.repo_slug,
    }
    for placeholder, value in replacements.items():
        endpoint = endpoint.replace(placeholder, value)
    return endpoint


class ApiClient:
    """Send authenticated requests relative to a repository's API root."""

    def __init__(
        self,
        ctx: RepoContext,
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.ctx = ctx
        self.token = token if token is not None else os.environ.get(TOKEN_ENV)
        self.timeout = timeout
        self.session = session or requests.Session()

    def url_for(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        path = expand_placeholders(endpoint, self.ctx)
        return f"{self.ctx.api_root()}/{path.lstrip('/')}"

    def trusted_hosts(self) -> set[str]:
        hosts = {normalize_host(self.ctx.host)}
        if self.ctx.host_type is HostType.CLOUD:
            hosts.add(BITBUCKET_API)
        return hosts

    def sends_token_to(self, url: str) -> bool:
        """Only the resolved Bitbucket host ever receives the bearer token."""

        netloc = urlsplit(url).netloc.rpartition("@")[2]
        return normalize_host(netloc) in self.trusted_hosts()

    def request(
        self,
        method: str,
        endpoint: str,
        *,
        body: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> requests.Response:
        verb = method.upper()
        if verb not in METHODS:
            raise BitbucketCliError(f"Unsupported HTTP method: {method}")
        url = self.url_for(endpoint)
        merged = {"Accept": "application/json"}
        if self.token:
            if self.sends_token_to(url):
                merged["Authorization"] = f"Bearer {self.token}"
            else:
                logger.warning("Not sending BB_TOKEN to %s, which is not %s", url, self.ctx.host)
        merged.update(headers or {})
        logger.debug("%s %s", verb, url)
        try:
            response = self.session.request(verb, url, json=body, headers=merged, timeout=self.timeout)
        except requests.RequestException as exc:
            raise BitbucketCliError(f"Request to {url} failed: {exc}") from exc
        if response.status_code >= 400:
            raise ApiError(response.status_code, response.text)
        return response


def parse_headers(raw_headers: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw in raw_headers:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise BitbucketCliError(f"Invalid header format: {raw}. Expected 'Name: value'")
        headers[name.strip()] = value.strip()
    return headers


__all__ = [
    "ApiClient",
    "METHODS",
    "build_body",
    "expand_placeholders",
    "parse_field",
    "parse_headers",
]
