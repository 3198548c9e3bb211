import json

import pytest

import stream_bridge.config as cfg
from stream_bridge.errors import ConfigurationError

ENV = {
    "ZULIP_API_URL": "https://example.zulipchat.com",
    "ZULIP_API_KEY": "k0",
    "ZULIP_EMAIL": "shield-bot@example.zulipchat.com",
    "TAG_ANNOUNCEMENT_BOT_ZULIP_API_KEY": "k1",
    "TAG_ANNOUNCEMENT_BOT_ZULIP_EMAIL": "tag-bot@example.zulipchat.com",
}


def test_load_settings_defaults():
    s = cfg.load_settings(ENV)
    assert s.zulip_api_url == "https://example.zulipchat.com"
    assert s.github_owner == "Tamschi"
    assert s.github_web_url == "https://github.com"
    assert s.maintainer_ids == (450752,)
    assert s.web_public_streams is False
    assert s.lenient_touch is False
    assert s.bots["TAG_ANNOUNCEMENT_BOT"].api_key == "k1"
    assert s.bots["PROJECT_STREAM_BOT"].api_key is None


def test_load_settings_overrides():
    env = dict(
        ENV,
        GITHUB_OWNER="someone",
        PROJECT_STREAM_MAINTAINER_IDS="1, 2,3",
        ZULIP_WEB_PUBLIC_STREAMS="yes",
        TOUCH_STREAM_LENIENT="true",
        HTTP_TIMEOUT_SECONDS="3",
    )
    s = cfg.load_settings(env)
    assert s.github_owner == "someone"
    assert s.maintainer_ids == (1, 2, 3)
    assert s.web_public_streams is True
    assert s.lenient_touch is True
    assert s.http_timeout_seconds == 3


def test_load_settings_tolerates_malformed_numbers():
    s = cfg.load_settings(dict(ENV, PROJECT_STREAM_MAINTAINER_IDS="x", HTTP_TIMEOUT_SECONDS="soon"))
    assert s.maintainer_ids == (450752,)
    assert s.http_timeout_seconds == 10


def test_resolve_per_bot():
    s = cfg.load_settings(ENV)
    c = cfg.resolve_zulip_config(s, cfg.TAG_ANNOUNCEMENT_BOT)
    assert (c.api_key, c.email) == ("k1", "tag-bot@example.zulipchat.com")
    c = cfg.resolve_zulip_config(s)
    assert (c.api_key, c.email) == ("k0", "shield-bot@example.zulipchat.com")


@pytest.mark.parametrize(
    "drop,expect",
    [
        ("TAG_ANNOUNCEMENT_BOT_ZULIP_API_KEY", "`TAG_ANNOUNCEMENT_BOT_ZULIP_API_KEY` not set."),
        ("ZULIP_API_URL", "`ZULIP_API_URL` not set."),
        ("TAG_ANNOUNCEMENT_BOT_ZULIP_EMAIL", "`TAG_ANNOUNCEMENT_BOT_ZULIP_EMAIL` not set."),
    ],
)
def test_resolve_names_missing_value(drop, expect):
    env = {k: v for k, v in ENV.items() if k != drop}
    with pytest.raises(ConfigurationError) as ei:
        cfg.resolve_zulip_config(cfg.load_settings(env), cfg.TAG_ANNOUNCEMENT_BOT)
    assert ei.value.status == 500
    assert ei.value.body == expect


def test_resolve_checks_key_before_url():
    with pytest.raises(ConfigurationError) as ei:
        cfg.resolve_zulip_config(cfg.load_settings({}), cfg.PROJECT_STREAM_BOT)
    assert ei.value.body == "`PROJECT_STREAM_BOT_ZULIP_API_KEY` not set."


@pytest.mark.parametrize("url", ["not a url", "https://example.com:port", "https://[::1"])
def test_resolve_rejects_unparseable_url(url):
    with pytest.raises(ConfigurationError) as ei:
        cfg.resolve_zulip_config(cfg.load_settings(dict(ENV, ZULIP_API_URL=url)))
    assert ei.value.status == 500
    assert ei.value.body


def test_secret_overlays_environment(monkeypatch):
    seen = {}

    class FakeSecrets:
        def get_secret_value(self, SecretId: str):
            seen["id"] = SecretId
            return {
                "SecretString": json.dumps(
                    {"PROJECT_STREAM_BOT_ZULIP_API_KEY": "from-secret", "UNRELATED": "x"}
                )
            }

    class BotoModule:
        def client(self, name: str):
            assert name == "secretsmanager"
            return FakeSecrets()

    monkeypatch.setitem(cfg.__dict__, "boto3", BotoModule())
    s = cfg.load_settings(dict(ENV, ZULIP_SECRET_NAME="zulip/bots"))
    assert seen["id"] == "zulip/bots"
    assert s.bots["PROJECT_STREAM_BOT"].api_key == "from-secret"
    assert s.bots[""].api_key == "k0"
