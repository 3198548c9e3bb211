"""
Zulip REST client for the handful of stream calls the bots make.

Every call is classified the same way: transport failures raise
`LocalTransportError`, non-2xx answers raise `ChatServiceError`, and 2xx
bodies are parsed into the matching schema.
"""

from __future__ import annotations

import json
from typing import Any

from . import transport
from .config import ZulipConfig
from .errors import ChatServiceError
from .schemas import (
    MessageResponse,
    StreamIdResponse,
    SubscribersResponse,
    Subscription,
    parse,
)


def project_stream_name(repository_name: str) -> str:
    return "project/" + repository_name


class ZulipClient:
    def __init__(self, config: ZulipConfig, timeout: float = transport.DEFAULT_TIMEOUT) -> None:
        self.base_url = transport.with_credentials(config.api_url, config.email, config.api_key)
        self.timeout = timeout

    # ----- Helpers -----
    def _call(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        check: bool = True,
    ) -> transport.HttpResult:
        url = transport.build_url(self.base_url, "api/v1/" + path, params)
        result = transport.send(method, url, timeout=self.timeout)
        if check and not result.ok:
            raise ChatServiceError(result.status, url, result.body)
        return result

    # ----- Public APIs -----
    def get_stream_id(self, stream: str) -> int:
        result = self._call("GET", "get_stream_id", {"stream": stream})
        return parse(StreamIdResponse, result.body).stream_id

    def create_or_update_subscription(
        self,
        name: str,
        description: str,
        principals: list[int] | tuple[int, ...],
        web_public: bool = False,
        check: bool = True,
    ) -> transport.HttpResult:
        """Subscribe `principals` to stream `name`, creating it if needed.

        Zulip treats a repeat call for an existing stream as an update, so
        this is safe to call again with the same arguments.
        """
        params: dict[str, Any] = {
            "subscriptions": json.dumps([Subscription(name=name, description=description).model_dump()]),
            "principals": json.dumps(list(principals)),
            "authorization_errors_fatal": "true",
            "announce": "true",
            "history_public_to_subscribers": "true",
            "stream_post_policy": "1",  # any member may post
            "message_retention_days": json.dumps("realm_default"),
        }
        # Not available on Zulip's free plan.
        if web_public:
            params["is_web_public"] = "true"
        return self._call("POST", "users/me/subscriptions", params, check=check)

    def update_stream_description(self, stream_id: int, description: str) -> None:
        self._call("PATCH", f"streams/{int(stream_id)}", {"description": json.dumps(description)})

    def post_message(self, stream_id: int, topic: str, content: str) -> int | None:
        params = {
            "type": "stream",
            "to": json.dumps([int(stream_id)]),
            "topic": topic,
            "content": content,
        }
        result = self._call("POST", "messages", params)
        return parse(MessageResponse, result.body).id

    def list_subscribers(self, stream_id: int) -> list[int]:
        result = self._call("GET", f"streams/{int(stream_id)}/members")
        return parse(SubscribersResponse, result.body).subscribers
