"""
Terminal failures of a handler invocation.

Every error knows the response it maps to, so the entrypoint can render it
without second-guessing the status code.
"""

from __future__ import annotations

from .transport import redact_url


class BridgeError(Exception):
    status: int = 500

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        if status is not None:
            self.status = status

    @property
    def body(self) -> str:
        return str(self)


class ClientRequestError(BridgeError):
    """Malformed or incomplete inbound request."""

    status = 400


class MethodNotAllowedError(ClientRequestError):
    status = 405


class ConfigurationError(BridgeError):
    """Required configuration missing or unusable."""

    status = 500


class LocalTransportError(BridgeError):
    """Request build, network or response parse failure on our side."""

    status = 500


class GitHubError(BridgeError):
    """GitHub answered with a non-2xx status; passed through unchanged."""

    @classmethod
    def for_status(cls, status: int, message: str) -> GitHubError:
        if status in (401, 403):
            return GitHubAuthError(message, status)
        if status == 404:
            return GitHubNotFoundError(message, status)
        return GitHubError(message, status)


class GitHubAuthError(GitHubError):
    pass


class GitHubNotFoundError(GitHubError):
    pass


class ChatServiceError(BridgeError):
    """Zulip answered with a non-2xx status.

    The body echoes the request URL (without credentials) and the raw upstream
    body so operators can see which call failed.
    """

    def __init__(self, status: int, url: str, upstream_body: bytes | str) -> None:
        if isinstance(upstream_body, (bytes, bytearray)):
            upstream_body = upstream_body.decode("utf-8", errors="replace")
        self.url = redact_url(url)
        self.upstream_body = upstream_body
        super().__init__(self.url + "\n\n" + upstream_body, status)
