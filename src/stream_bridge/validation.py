"""
Request validation. Runs before any upstream call and has no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ClientRequestError, MethodNotAllowedError
from .inbound import InboundRequest


class Source(Enum):
    QUERY = "query"
    FORM = "form"
    BODY = "body"


@dataclass(frozen=True)
class Param:
    name: str
    source: Source = Source.QUERY


@dataclass(frozen=True)
class RequestRule:
    method: str
    headers: tuple[str, ...] = ()
    params: tuple[Param, ...] = ()


def _lookup(request: InboundRequest, param: Param) -> str | None:
    if param.source is Source.QUERY:
        return request.query.get(param.name)
    if request.body_error:
        raise ClientRequestError(request.body_error)
    if param.source is Source.FORM:
        return request.form().get(param.name)
    return request.body


def _missing(param: Param) -> str:
    if param.source is Source.QUERY:
        return f"Query string parameter `{param.name}` missing or empty."
    if param.source is Source.FORM:
        return f"Form field `{param.name}` missing or empty."
    return f"Empty request body/{param.name}."


def validate(request: InboundRequest, rule: RequestRule) -> dict[str, str]:
    """Return the required header and parameter values, keyed by name.

    Header names are matched exactly as received. An empty value counts as
    missing.
    """
    if request.method != rule.method:
        raise MethodNotAllowedError(f"Must `{rule.method}`.")

    values: dict[str, str] = {}
    for name in rule.headers:
        v = request.headers.get(name)
        if not v:
            raise ClientRequestError(f"Header `{name}` missing or empty.")
        values[name] = v

    for param in rule.params:
        v = _lookup(request, param)
        if not v:
            raise ClientRequestError(_missing(param))
        values[param.name] = v
    return values
