"""
Minimal GitHub REST client (repository lookup only).
"""

from __future__ import annotations

import json
import urllib.parse

from . import transport
from .errors import GitHubError
from .schemas import Repository, parse

GITHUB_API_VERSION = "2022-11-28"


def bearer_token(authorization: str) -> str:
    """Accept either a bare token or `Bearer <token>` / `token <token>`."""
    scheme, _, rest = authorization.strip().partition(" ")
    if rest and scheme.lower() in ("bearer", "token"):
        return rest.strip()
    return authorization.strip()


class GitHubClient:
    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = transport.DEFAULT_TIMEOUT,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {bearer_token(token)}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def get_repository(self, owner: str, name: str) -> Repository:
        url = (
            f"{self.api_url}/repos/{urllib.parse.quote(owner, safe='')}"
            f"/{urllib.parse.quote(name, safe='')}"
        )
        result = transport.send("GET", url, headers=self.headers, timeout=self.timeout)
        if not result.ok:
            raise GitHubError.for_status(result.status, _error_text("GET", url, result))
        return parse(Repository, result.body)


def _error_text(method: str, url: str, result: transport.HttpResult) -> str:
    message = result.text().strip()
    try:
        data = json.loads(message)
        if isinstance(data, dict) and data.get("message"):
            message = str(data["message"])
    except ValueError:
        pass
    return f"{method} {url}: {result.status} {message}".rstrip()
