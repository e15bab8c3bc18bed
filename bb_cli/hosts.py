"""Host name helpers shared by the parser and the resolver."""

from __future__ import annotations

from .models import HostType

BITBUCKET_CLOUD = "bitbucket.org"
BITBUCKET_API = "api.bitbucket.org"
CLOUD_HOSTS = frozenset({BITBUCKET_CLOUD, BITBUCKET_API})
DEFAULT_PORTS = (":443", ":80")


def is_cloud_host(host: str) -> bool:
    return normalize_host(host) in CLOUD_HOSTS


def normalize_host(host: str) -> str:
    """Reduce input such as ``https://Bitbucket.Example.com:443/`` to a bare host.

    Host names compare case-insensitively and the default HTTP(S) ports carry
    no identity, so both are dropped. Any other port is kept.
    """

    value = host.strip()
    for prefix in ("https://", "http://"):
        if value.lower().startswith(prefix):
            value = value[len(prefix):]
            break
    if value.endswith("/"):
        value = value[:-1]
    value = value.lower()
    for port in DEFAULT_PORTS:
        if value.endswith(port):
            value = value[: -len(port)]
            break
    return value


def infer_host_type(host: str, override: HostType | None = None) -> HostType:
    if override is not None:
        return override
    return HostType.CLOUD if is_cloud_host(host) else HostType.SERVER


__all__ = [
    "BITBUCKET_CLOUD",
    "BITBUCKET_API",
    "CLOUD_HOSTS",
    "is_cloud_host",
    "normalize_host",
    "infer_host_type",
]
