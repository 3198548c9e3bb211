"""
Inbound request and outbound response as seen by the handlers.

`InboundRequest.from_event` understands API Gateway REST (v1) and HTTP API /
Function URL (v2) proxy events. It never raises: the body is kept as bytes
and only decoded or parsed when a handler asks for it.
"""

from __future__ import annotations

import base64
import binascii
import json
import urllib.parse
from dataclasses import dataclass, field
from email.parser import BytesParser
from email.policy import HTTP
from typing import Any


@dataclass(frozen=True)
class InboundRequest:
    method: str
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)
    raw_body: bytes = b""
    # set when the event carried a body that could not be decoded
    body_error: str | None = None

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> InboundRequest:
        http = (event.get("requestContext") or {}).get("http") or {}
        method = str(event.get("httpMethod") or http.get("method") or "").upper()
        headers = {str(k): str(v) for k, v in (event.get("headers") or {}).items() if v is not None}

        query = {
            str(k): str(v)
            for k, v in (event.get("queryStringParameters") or {}).items()
            if v is not None
        }
        if not query and event.get("rawQueryString"):
            query = dict(
                urllib.parse.parse_qsl(
                    str(event["rawQueryString"]), keep_blank_values=True, errors="replace"
                )
            )

        raw, error = _raw_body(event)
        return cls(method=method, headers=headers, query=query, raw_body=raw, body_error=error)

    @property
    def body(self) -> str:
        return self.raw_body.decode("utf-8", errors="replace")

    @property
    def content_type(self) -> str:
        for k, v in self.headers.items():
            if k.lower() == "content-type":
                return v
        return ""

    def form(self) -> dict[str, str]:
        """Form fields of a urlencoded or multipart body, parsed on demand."""
        return _parse_form(self.content_type, self.raw_body)


@dataclass(frozen=True)
class Response:
    status: int
    body: str = ""
    content_type: str = "text/plain; charset=utf-8"

    @classmethod
    def as_json(cls, status: int, body: str) -> Response:
        return cls(status, body, "application/json")

    def to_lambda(self) -> dict[str, Any]:
        return {
            "statusCode": self.status,
            "headers": {"Content-Type": self.content_type},
            "body": self.body,
        }


def _raw_body(event: dict[str, Any]) -> tuple[bytes, str | None]:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True), None
        except (binascii.Error, TypeError, ValueError) as e:
            return b"", f"Invalid base64 body: {e}"
    if isinstance(body, (bytes, bytearray)):
        return bytes(body), None
    if not isinstance(body, str):
        body = json.dumps(body)
    return body.encode("utf-8", errors="replace"), None


def _decode(payload: bytes, charset: str | None) -> str:
    try:
        return payload.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return payload.decode("utf-8", errors="replace")


def _parse_form(content_type: str, raw: bytes) -> dict[str, str]:
    mime = content_type.split(";", 1)[0].strip().lower()
    if mime == "application/x-www-form-urlencoded":
        return dict(
            urllib.parse.parse_qsl(_decode(raw, None), keep_blank_values=True, errors="replace")
        )
    if mime != "multipart/form-data" or not raw:
        return {}
    head = f"Content-Type: {content_type}\r\nMIME-Version: 1.0\r\n\r\n".encode("utf-8", errors="replace")
    msg = BytesParser(policy=HTTP).parsebytes(head + raw)
    fields: dict[str, str] = {}
    if not msg.is_multipart():
        return fields
    for part in msg.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if not name or part.get_filename():
            continue
        payload = part.get_payload(decode=True) or b""
        fields[str(name)] = _decode(payload, part.get_content_charset())
    return fields
