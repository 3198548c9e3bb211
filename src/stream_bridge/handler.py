"""
AWS Lambda handlers bridging GitHub repositories and Zulip project streams.

Each variant is a plain function `(InboundRequest, settings getter) -> Response`
that validates the request before asking for settings and raises
`BridgeError` at its first failing step; the `*_handler`
entrypoints adapt it to Lambda proxy events.
"""

from __future__ import annotations

import functools
import json
import logging
import os
import time
from collections.abc import Callable
from typing import Any

from .config import (
    DEFAULT_BOT,
    PROJECT_STREAM_BOT,
    TAG_ANNOUNCEMENT_BOT,
    Settings,
    load_settings,
    resolve_zulip_config,
)
from .errors import BridgeError
from .github import GitHubClient
from .inbound import InboundRequest, Response
from .schemas import ShieldBadge
from .validation import Param, RequestRule, Source, validate
from .zulip import ZulipClient, project_stream_name

logger = logging.getLogger(__name__)

AUTHORIZATION = "authorization"
REPOSITORY_NAME = "repository name"
TAG_TOPIC = "tag announcements"

ANNOUNCE_TAG_RULE = RequestRule(
    method="POST",
    headers=(AUTHORIZATION,),
    params=(Param("project"), Param("tag")),
)
PROJECT_STREAM_RULE = RequestRule(
    method="POST",
    headers=(AUTHORIZATION,),
    params=(Param(REPOSITORY_NAME, Source.BODY),),
)
SHIELD_RULE = RequestRule(method="GET", params=(Param("stream"),))

SettingsSource = Callable[[], Settings]
Variant = Callable[[InboundRequest, SettingsSource], Response]


def _configure_logging() -> None:
    level_name = (os.getenv("LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logger.setLevel(level)
    root = logging.getLogger()
    if root.level and root.level > level:
        root.setLevel(level)


def _rid(context: Any) -> str | None:
    try:
        return getattr(context, "aws_request_id", None)
    except Exception:
        return None


def _log(msg: str, **fields: Any) -> None:
    try:
        logger.info(json.dumps({"msg": msg, **fields}, ensure_ascii=False))
    except Exception:
        # Fallback to plain log
        logger.info("%s | %s", msg, fields)


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process; read once on cold start."""
    return load_settings()


def _github(settings: Settings, authorization: str) -> GitHubClient:
    return GitHubClient(
        authorization,
        api_url=settings.github_api_url,
        timeout=settings.http_timeout_seconds,
    )


def tag_announcement(settings: Settings, repository: str, tag: str) -> str:
    url = f"{settings.github_web_url}/{settings.github_owner}/{repository}/releases/tag/{tag}"
    return f"Tag pushed: [{tag}]({url})"


# ----- Variants -----


def announce_tag(request: InboundRequest, get_config: SettingsSource) -> Response:
    values = validate(request, ANNOUNCE_TAG_RULE)
    settings = get_config()
    zulip_config = resolve_zulip_config(settings, TAG_ANNOUNCEMENT_BOT)

    repository = _github(settings, values[AUTHORIZATION]).get_repository(
        settings.github_owner, values["project"]
    )

    zulip = ZulipClient(zulip_config, timeout=settings.http_timeout_seconds)
    stream_id = zulip.get_stream_id(project_stream_name(repository.name))
    zulip.post_message(
        stream_id, TAG_TOPIC, tag_announcement(settings, repository.name, values["tag"])
    )
    return Response(200, "Announced tag.")


def create_or_update_project_stream(request: InboundRequest, get_config: SettingsSource) -> Response:
    values = validate(request, PROJECT_STREAM_RULE)
    settings = get_config()
    zulip_config = resolve_zulip_config(settings, PROJECT_STREAM_BOT)

    repository = _github(settings, values[AUTHORIZATION]).get_repository(
        settings.github_owner, values[REPOSITORY_NAME]
    )
    stream = project_stream_name(repository.name)

    zulip = ZulipClient(zulip_config, timeout=settings.http_timeout_seconds)
    zulip.create_or_update_subscription(
        stream,
        repository.description,
        settings.maintainer_ids,
        web_public=settings.web_public_streams,
    )
    # Subscribing does not change the description of an existing stream.
    stream_id = zulip.get_stream_id(stream)
    zulip.update_stream_description(stream_id, repository.description)
    return Response(200, "Created stream or updated stream description.")


def stream_subscribers_shield(request: InboundRequest, get_config: SettingsSource) -> Response:
    values = validate(request, SHIELD_RULE)
    settings = get_config()
    zulip_config = resolve_zulip_config(settings, DEFAULT_BOT)

    zulip = ZulipClient(zulip_config, timeout=settings.http_timeout_seconds)
    stream_id = zulip.get_stream_id(values["stream"])
    subscribers = zulip.list_subscribers(stream_id)

    badge = ShieldBadge(message=f"{len(subscribers)} in stream")
    return Response.as_json(200, badge.to_json())


def touch_project_stream(request: InboundRequest, get_config: SettingsSource) -> Response:
    """Make sure the project stream exists, without touching its description.

    With `lenient_touch` the subscription answer is echoed with 200 whatever
    its status, like the first deployed version did.
    """
    values = validate(request, PROJECT_STREAM_RULE)
    settings = get_config()
    zulip_config = resolve_zulip_config(settings, DEFAULT_BOT)

    repository = _github(settings, values[AUTHORIZATION]).get_repository(
        settings.github_owner, values[REPOSITORY_NAME]
    )

    zulip = ZulipClient(zulip_config, timeout=settings.http_timeout_seconds)
    result = zulip.create_or_update_subscription(
        project_stream_name(repository.name),
        repository.description,
        settings.maintainer_ids,
        web_public=settings.web_public_streams,
        check=not settings.lenient_touch,
    )
    if settings.lenient_touch:
        return Response(200, "Response from Zulip:\n\n" + result.text())
    return Response(200, "Touched stream.")


# ----- Lambda entrypoints -----


def run(variant: Variant, event: dict[str, Any], context: Any) -> dict[str, Any]:
    _configure_logging()
    start_ts = time.time()
    name = getattr(variant, "__name__", "handler")
    try:
        request = InboundRequest.from_event(event)
        response = variant(request, get_settings)
    except BridgeError as e:
        response = Response(e.status, e.body)
        _log(
            "failed",
            rid=_rid(context),
            variant=name,
            error=type(e).__name__,
            status=e.status,
        )
    except Exception as e:
        logger.exception("%s failed unexpectedly", name)
        response = Response(500, str(e))
    _log(
        "done",
        rid=_rid(context),
        variant=name,
        status=response.status,
        ms_total=int((time.time() - start_ts) * 1000),
    )
    return response.to_lambda()


def announce_tag_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    return run(announce_tag, event, context)


def create_or_update_project_stream_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    return run(create_or_update_project_stream, event, context)


def stream_subscribers_shield_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    return run(stream_subscribers_shield, event, context)


def touch_project_stream_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    return run(touch_project_stream, event, context)


def health_check_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    return Response(200).to_lambda()
