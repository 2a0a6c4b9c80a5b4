"""HTTP fetch for domain pages.

Policy:
- One timeout-bounded GET per record, no retries.
- Bodies are held fully in memory, capped by max_bytes.
- URLs naming localhost or a private/loopback/link-local IP literal are refused
  unless explicitly allowed. Hostnames are not resolved, and redirect targets
  are not re-checked.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import ipaddress
from urllib.parse import urlparse

import requests


DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; DomainSignals/1.0)"


class FetchErrorKind(str, Enum):
    TIMEOUT = "timeout"
    CONNECTION_FAILED = "connection_failed"
    HTTP_STATUS = "http_status"
    BLOCKED = "blocked"
    OTHER = "other"


class FetchError(Exception):
    """A page could not be retrieved. str(error) is what gets stored on the record."""

    def __init__(self, kind: FetchErrorKind, message: str, status_code: Optional[int] = None):
        self.kind = kind
        self.message = message
        self.status_code = status_code
        super().__init__(f"{kind.value}: {message}")


_PRIVATE_NETS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]


def _is_private_ip(hostname: str) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return any(ip in net for net in _PRIVATE_NETS)


def validate_fetch_url(url: str, *, allow_private_hosts: bool = False) -> Optional[str]:
    """Return a reason string if the URL must not be fetched, else None."""
    try:
        p = urlparse(url)
    except ValueError:
        return "invalid_url"
    if p.scheme not in ("http", "https"):
        return "bad_scheme"
    host = (p.hostname or "").strip().lower()
    if not p.netloc or not host:
        return "missing_host"
    if allow_private_hosts:
        return None
    if host in ("localhost", "localhost.localdomain"):
        return "blocked_host"
    if _is_private_ip(host):
        return "blocked_private_ip"
    return None


class HttpFetchClient:
    def __init__(
        self,
        *,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        max_bytes: int = 20_000_000,
        allow_private_hosts: bool = False,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.max_bytes = max_bytes
        self.allow_private_hosts = allow_private_hosts
        self.user_agent = user_agent
        self._http = session or requests

    def fetch(self, url: str) -> str:
        if not url or not url.strip():
            raise FetchError(FetchErrorKind.OTHER, "empty_url")
        url = url.strip()
        reason = validate_fetch_url(url, allow_private_hosts=self.allow_private_hosts)
        if reason:
            raise FetchError(FetchErrorKind.BLOCKED, f"{reason} ({url})")

        try:
            resp = self._http.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=(self.connect_timeout, self.timeout),
                allow_redirects=True,
                stream=True,
            )
            try:
                if resp.status_code >= 400:
                    raise FetchError(
                        FetchErrorKind.HTTP_STATUS,
                        f"request failed with status code {resp.status_code}",
                        status_code=resp.status_code,
                    )
                content = bytearray()
                for chunk in resp.iter_content(chunk_size=64 * 1024):
                    if not chunk:
                        continue
                    content.extend(chunk)
                    if len(content) > self.max_bytes:
                        raise FetchError(FetchErrorKind.OTHER, f"too_large (> {self.max_bytes} bytes)")
                encoding = resp.encoding or "utf-8"
            finally:
                resp.close()
        except requests.Timeout as e:
            raise FetchError(FetchErrorKind.TIMEOUT, str(e) or "request timed out") from e
        except requests.ConnectionError as e:
            raise FetchError(FetchErrorKind.CONNECTION_FAILED, str(e) or "connection failed") from e
        except requests.RequestException as e:
            raise FetchError(FetchErrorKind.OTHER, str(e) or e.__class__.__name__) from e

        try:
            return bytes(content).decode(encoding, errors="replace")
        except LookupError:
            return bytes(content).decode("utf-8", errors="replace")
