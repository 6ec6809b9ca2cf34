"""Messages exchanged with the embedded hosted payment page via postMessage."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

DISCRIMINANT = "flexMsg"


class _FrameMessageBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SizeMessage(_FrameMessageBase):
    kind: Literal["size"] = Field("size", alias=DISCRIMINANT)
    height: float = Field(..., ge=0)


class ReadyMessage(_FrameMessageBase):
    kind: Literal["ready"] = Field("ready", alias=DISCRIMINANT)


class NavigateMessage(_FrameMessageBase):
    kind: Literal["navigate"] = Field("navigate", alias=DISCRIMINANT)
    href: str


class SubmitMessage(_FrameMessageBase):
    kind: Literal["submit"] = Field("submit", alias=DISCRIMINANT)


FrameMessage = Annotated[
    Union[SizeMessage, ReadyMessage, NavigateMessage, SubmitMessage],
    Field(discriminator="kind"),
]

_adapter: TypeAdapter[FrameMessage] = TypeAdapter(FrameMessage)


def parse_frame_message(data: Any) -> Optional[FrameMessage]:
    """Return the typed message, or ``None`` for anything not in the protocol.

    Other scripts share the same window message channel, so unknown shapes
    are expected and simply dropped.
    """
    if not isinstance(data, dict) or DISCRIMINANT not in data:
        return None
    try:
        return _adapter.validate_python(data)
    except ValidationError:
        return None


def to_wire(message: FrameMessage) -> dict[str, Any]:
    """Render a message the way the frame script expects it."""
    return message.model_dump(by_alias=True)
