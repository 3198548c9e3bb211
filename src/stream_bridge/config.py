"""
Configuration helpers and defaults.

`load_settings` reads the environment once per process; handlers get the
resulting `Settings` and resolve what they need with `resolve_zulip_config`,
which never touches the environment itself.
"""

from __future__ import annotations

import importlib
import json
import logging
import os
import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_GITHUB_OWNER = "Tamschi"
DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_GITHUB_WEB_URL = "https://github.com"
# user450752, the maintainer subscribed to every project stream
DEFAULT_MAINTAINER_IDS = (450752,)

DEFAULT_BOT = ""
TAG_ANNOUNCEMENT_BOT = "TAG_ANNOUNCEMENT_BOT"
PROJECT_STREAM_BOT = "PROJECT_STREAM_BOT"
BOT_PREFIXES = (DEFAULT_BOT, TAG_ANNOUNCEMENT_BOT, PROJECT_STREAM_BOT)

ZULIP_API_URL = "ZULIP_API_URL"


def _boto3():
    # Allow tests to monkeypatch module-level `boto3` symbol.
    return globals().get("boto3") or importlib.import_module("boto3")


def api_key_name(bot: str) -> str:
    return f"{bot}_ZULIP_API_KEY" if bot else "ZULIP_API_KEY"


def email_name(bot: str) -> str:
    return f"{bot}_ZULIP_EMAIL" if bot else "ZULIP_EMAIL"


@dataclass(frozen=True)
class BotCredentials:
    api_key: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class Settings:
    zulip_api_url: str | None = None
    bots: Mapping[str, BotCredentials] = field(default_factory=dict)
    github_owner: str = DEFAULT_GITHUB_OWNER
    github_api_url: str = DEFAULT_GITHUB_API_URL
    github_web_url: str = DEFAULT_GITHUB_WEB_URL
    maintainer_ids: tuple[int, ...] = DEFAULT_MAINTAINER_IDS
    web_public_streams: bool = False
    lenient_touch: bool = False
    http_timeout_seconds: int = 10


@dataclass(frozen=True)
class ZulipConfig:
    api_url: str
    api_key: str
    email: str


def _flag(value: str | None, default: bool = False) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes")


def _int(value: str | None, default: int) -> int:
    try:
        return int(value) if value else default
    except ValueError:
        logger.warning("ignoring non-integer value %r", value)
        return default


def _ids(value: str | None, default: tuple[int, ...]) -> tuple[int, ...]:
    if value is None:
        return default
    try:
        return tuple(int(s.strip()) for s in value.split(",") if s.strip())
    except ValueError:
        logger.warning("ignoring malformed id list %r", value)
        return default


def load_secret(secret_name: str) -> dict[str, str]:
    """Fetch a JSON object secret from AWS Secrets Manager."""
    try:
        sm = _boto3().client("secretsmanager")
        resp = sm.get_secret_value(SecretId=secret_name)
        data = json.loads(resp.get("SecretString") or "{}")
    except Exception as e:
        logger.exception("loading secret %s failed", secret_name)
        raise ConfigurationError(f"secret `{secret_name}` could not be loaded: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"secret `{secret_name}` is not a JSON object")
    return {str(k): str(v) for k, v in data.items() if v is not None}


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from the environment (and Secrets Manager, if named)."""
    env: dict[str, str] = dict(os.environ if environ is None else environ)

    secret_name = env.get("ZULIP_SECRET_NAME")
    if secret_name:
        secret = load_secret(secret_name)
        known = {ZULIP_API_URL} | {api_key_name(b) for b in BOT_PREFIXES} | {
            email_name(b) for b in BOT_PREFIXES
        }
        env.update({k: v for k, v in secret.items() if k in known})

    bots = {
        bot: BotCredentials(api_key=env.get(api_key_name(bot)), email=env.get(email_name(bot)))
        for bot in BOT_PREFIXES
    }

    return Settings(
        zulip_api_url=env.get(ZULIP_API_URL),
        bots=bots,
        github_owner=env.get("GITHUB_OWNER") or DEFAULT_GITHUB_OWNER,
        github_api_url=env.get("GITHUB_API_URL") or DEFAULT_GITHUB_API_URL,
        github_web_url=(env.get("GITHUB_WEB_URL") or DEFAULT_GITHUB_WEB_URL).rstrip("/"),
        maintainer_ids=_ids(env.get("PROJECT_STREAM_MAINTAINER_IDS"), DEFAULT_MAINTAINER_IDS),
        web_public_streams=_flag(env.get("ZULIP_WEB_PUBLIC_STREAMS")),
        lenient_touch=_flag(env.get("TOUCH_STREAM_LENIENT")),
        http_timeout_seconds=_int(env.get("HTTP_TIMEOUT_SECONDS"), 10),
    )


def _check_url(value: str) -> None:
    try:
        u = urllib.parse.urlsplit(value)
        u.port  # noqa: B018 - raises on a malformed port
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    if u.scheme not in ("http", "https") or not u.hostname:
        raise ConfigurationError(f"parse {value!r}: `{ZULIP_API_URL}` must be an absolute http(s) URL")


def resolve_zulip_config(settings: Settings, bot: str = DEFAULT_BOT) -> ZulipConfig:
    """Return the Zulip config for `bot` or raise on the first missing value."""
    creds = settings.bots.get(bot) or BotCredentials()
    if not creds.api_key:
        raise ConfigurationError(f"`{api_key_name(bot)}` not set.")
    if not settings.zulip_api_url:
        raise ConfigurationError(f"`{ZULIP_API_URL}` not set.")
    _check_url(settings.zulip_api_url)
    if not creds.email:
        raise ConfigurationError(f"`{email_name(bot)}` not set.")
    return ZulipConfig(api_url=settings.zulip_api_url, api_key=creds.api_key, email=creds.email)
