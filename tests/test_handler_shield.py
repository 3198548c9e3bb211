import json

import pytest

import stream_bridge.handler as h
from stream_bridge.inbound import InboundRequest


def _request(method="GET", **query):
    return InboundRequest(method, query=query or {"stream": "project/foo"})


def test_badge(http, settings):
    http.route("GET", "/api/v1/get_stream_id", {"msg": "", "result": "success", "stream_id": 7})
    http.route("GET", "/api/v1/streams/7/members", {"msg": "", "result": "success", "subscribers": [1, 2, 3]})

    res = h.stream_subscribers_shield(_request(), lambda: settings)

    assert res.status == 200
    assert res.content_type == "application/json"
    assert json.loads(res.body) == {
        "schemaVersion": 1,
        "label": "chat",
        "message": "3 in stream",
        "color": "g",
        "namedLogo": "zulip",
    }
    assert http.calls[0].params == {"stream": "project/foo"}


def test_post_is_405(http, settings):
    with pytest.raises(h.BridgeError) as ei:
        h.stream_subscribers_shield(_request("POST"), lambda: settings)
    assert ei.value.status == 405
    assert ei.value.body == "Must `GET`."
    assert http.calls == []


def test_missing_stream_is_400(http, settings):
    with pytest.raises(h.BridgeError) as ei:
        h.stream_subscribers_shield(_request(stream=""), lambda: settings)
    assert ei.value.status == 400
    assert http.calls == []


def test_members_failure(http, settings):
    http.route("GET", "/api/v1/get_stream_id", {"msg": "", "result": "success", "stream_id": 7})
    http.route("GET", "/api/v1/streams/7/members", "denied", status=403)
    with pytest.raises(h.BridgeError) as ei:
        h.stream_subscribers_shield(_request(), lambda: settings)
    assert ei.value.status == 403
    assert ei.value.body == "https://example.zulipchat.com/api/v1/streams/7/members\n\ndenied"
