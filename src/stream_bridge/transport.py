"""
Blocking HTTP helpers on top of stdlib urllib.

Zulip credentials travel inside the URL's user-info until the request is
sent; `redact_url` is the only way a URL may reach a response body or log.
"""

from __future__ import annotations

import base64
import http.client
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

USER_AGENT = "StreamBridge/1.0"
DEFAULT_TIMEOUT = 10


@dataclass(frozen=True)
class HttpResult:
    status: int
    body: bytes
    url: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def redact_url(url: str) -> str:
    """Render `url` without user-info, keeping host, path and query."""
    parts = urllib.parse.urlsplit(url)
    if "@" not in parts.netloc:
        return url
    host = parts.netloc.rsplit("@", 1)[1]
    return urllib.parse.urlunsplit(parts._replace(netloc=host))


def with_credentials(url: str, user: str, password: str) -> str:
    parts = urllib.parse.urlsplit(redact_url(url))
    userinfo = urllib.parse.quote(user, safe="") + ":" + urllib.parse.quote(password, safe="")
    return urllib.parse.urlunsplit(parts._replace(netloc=f"{userinfo}@{parts.netloc}"))


def build_url(base: str, path: str, params: dict[str, Any] | None = None) -> str:
    """Replace the path of `base` with `/path` and set the query string."""
    parts = urllib.parse.urlsplit(base)
    query = urllib.parse.urlencode(params or {})
    return urllib.parse.urlunsplit(parts._replace(path="/" + path.lstrip("/"), query=query, fragment=""))


def _split_credentials(url: str) -> tuple[str, dict[str, str]]:
    parts = urllib.parse.urlsplit(url)
    if parts.username is None:
        return url, {}
    user = urllib.parse.unquote(parts.username)
    password = urllib.parse.unquote(parts.password or "")
    token = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
    return redact_url(url), {"Authorization": f"Basic {token}"}


def send(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> HttpResult:
    """Perform one request and read the whole body.

    Non-2xx answers are returned, not raised. Anything that prevents getting
    an answer at all raises `LocalTransportError`.
    """
    from .errors import LocalTransportError

    target, auth = _split_credentials(url)
    hdrs = {"User-Agent": USER_AGENT, **auth, **(headers or {})}
    try:
        req = urllib.request.Request(target, method=method, headers=hdrs)
        with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
            result = HttpResult(resp.status, resp.read(), url)
    except urllib.error.HTTPError as e:
        try:
            body = e.read()
        finally:
            e.close()
        result = HttpResult(e.code, body or b"", url)
    except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
        logger.warning("%s %s failed: %s", method, redact_url(url), e)
        raise LocalTransportError(str(e)) from e
    logger.debug("%s %s -> %s", method, redact_url(url), result.status)
    return result
