"""
Shapes of everything exchanged with GitHub, Zulip and shields.io.

Each upstream response is declared once here and parsed with `parse`.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import LocalTransportError

M = TypeVar("M", bound=BaseModel)


class Repository(BaseModel):
    """The only parts of a GitHub repository the handlers use."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., min_length=1)
    description: str = Field("", description="Empty when GitHub reports null")
    html_url: str | None = None

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, v):
        return "" if v is None else v


class ZulipResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    msg: str = ""
    result: str = ""


class StreamIdResponse(ZulipResponse):
    stream_id: int


class SubscribersResponse(ZulipResponse):
    subscribers: list[int]


class MessageResponse(ZulipResponse):
    id: int | None = None


class Subscription(BaseModel):
    """One entry of the `subscriptions` parameter."""

    name: str
    description: str = ""


class ShieldBadge(BaseModel):
    """shields.io endpoint badge, see <https://shields.io/endpoint>."""

    model_config = ConfigDict(populate_by_name=True)

    schema_version: int = Field(1, alias="schemaVersion")
    label: str = "chat"
    message: str
    # "g" renders a nicer shade than "green".
    color: str = "g"
    named_logo: str = Field("zulip", alias="namedLogo")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


def parse(model: type[M], body: bytes | str) -> M:
    try:
        return model.model_validate_json(body)
    except ValidationError as e:
        raise LocalTransportError(str(e)) from e
