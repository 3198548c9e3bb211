import json

import pytest

from stream_bridge.errors import LocalTransportError
from stream_bridge.schemas import ShieldBadge, StreamIdResponse, parse


def test_shield_badge_uses_shields_io_keys():
    assert json.loads(ShieldBadge(message="3 in stream").to_json()) == {
        "schemaVersion": 1,
        "label": "chat",
        "message": "3 in stream",
        "color": "g",
        "namedLogo": "zulip",
    }


def test_parse_ignores_extra_fields():
    r = parse(StreamIdResponse, b'{"msg":"","result":"success","stream_id":5,"extra":1}')
    assert r.stream_id == 5


def test_parse_missing_field():
    with pytest.raises(LocalTransportError):
        parse(StreamIdResponse, b'{"msg":"","result":"success"}')
