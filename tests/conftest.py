import json
import urllib.parse
from dataclasses import dataclass, field

import pytest

from stream_bridge import transport
from stream_bridge.config import BOT_PREFIXES, BotCredentials, Settings

API_KEY = "s3cr3t-zulip-key"
BOT_EMAIL = "bot@example.zulipchat.com"
ZULIP_URL = "https://example.zulipchat.com"


@dataclass
class Call:
    method: str
    url: str
    headers: dict = field(default_factory=dict)

    @property
    def path(self) -> str:
        return urllib.parse.urlsplit(self.url).path

    @property
    def params(self) -> dict:
        return dict(urllib.parse.parse_qsl(urllib.parse.urlsplit(self.url).query))


class FakeHttp:
    """Stands in for `transport.send`, answering by (method, path)."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def route(self, method, path, body=None, status=200):
        if not isinstance(body, (bytes, str)):
            body = json.dumps(body if body is not None else {"result": "success", "msg": ""})
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[(method, path)] = (status, body)

    def __call__(self, method, url, headers=None, timeout=10):
        call = Call(method, url, dict(headers or {}))
        self.calls.append(call)
        status, body = self.routes.get(
            (method, call.path), (404, b'{"result":"error","msg":"no such route"}')
        )
        return transport.HttpResult(status, body, url)

    def steps(self):
        return [(c.method, c.path) for c in self.calls]

    def find(self, method, path):
        return [c for c in self.calls if (c.method, c.path) == (method, path)]


@pytest.fixture
def http(monkeypatch):
    fake = FakeHttp()
    monkeypatch.setattr(transport, "send", fake)
    return fake


@pytest.fixture
def settings():
    return Settings(
        zulip_api_url=ZULIP_URL,
        bots={bot: BotCredentials(api_key=API_KEY, email=BOT_EMAIL) for bot in BOT_PREFIXES},
    )
