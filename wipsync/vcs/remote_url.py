"""
Parsing of git remote definitions into SSH connection details
"""
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit, unquote

from ..errors import ConfigurationError

SSH_SCHEMES = {"ssh", "git+ssh", "ssh+git"}

# [user@]host:path  (scp-like shorthand, the form `git clone` also accepts)
_SCP_LIKE = re.compile(r"^(?:(?P<user>[^@/:]+)@)?(?P<host>[^/:\[\]]+|\[[^\]]+\]):(?P<path>.*)$")
_SCHEME = re.compile(r"^(?P<scheme>[A-Za-z][A-Za-z0-9+.\-]*)://")


@dataclass(frozen=True)
class RemoteSpec:
    host: str
    path: str
    user: Optional[str] = None
    port: Optional[int] = None


def parse_remote_url(url: str) -> RemoteSpec:
    """
    Parse ``ssh://[user@]host[:port]/path`` or ``[user@]host:path``.

    In URL form a path starting with ``/~`` is taken relative to the remote
    home directory, as git does. Any other scheme is a ConfigurationError.
    """
    url = (url or "").strip()
    if not url:
        raise ConfigurationError("empty remote URL")

    m = _SCHEME.match(url)
    if m:
        scheme = m.group("scheme").lower()
        if scheme not in SSH_SCHEMES:
            raise ConfigurationError(
                f"unsupported remote scheme {scheme!r} in {url!r}; only ssh remotes can be mirrored"
            )
        parts = urlsplit(url)
        try:
            port = parts.port
        except ValueError as exc:
            raise ConfigurationError(f"invalid port in remote URL {url!r}") from exc
        path = unquote(parts.path)
        if path.startswith("/~"):
            path = path[1:]
        return RemoteSpec(
            host=parts.hostname or "",
            path=path,
            user=unquote(parts.username) if parts.username else None,
            port=port,
        )

    m = _SCP_LIKE.match(url)
    if m is None:
        raise ConfigurationError(f"cannot parse remote {url!r} as an ssh remote")
    host = m.group("host")
    # A single letter before the colon is a Windows drive, not a host
    if len(host) == 1 and url[2:3] in ("\\", "/"):
        raise ConfigurationError(f"{url!r} is a local path, not an ssh remote")
    return RemoteSpec(
        host=host.strip("[]"),
        path=m.group("path"),
        user=m.group("user"),
    )
