"""Inbound Messenger events, one per messaging item in a webhook callback."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    AUTHENTICATION = "authentication"
    MESSAGE = "message"
    POSTBACK = "postback"
    UNKNOWN = "unknown"


@dataclass
class InboundEvent:
    """Fields shared by every messaging event."""

    sender_id: str
    recipient_id: str
    timestamp: int  # epoch milliseconds, 0 when absent
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    kind = EventKind.UNKNOWN


@dataclass
class AuthenticationEvent(InboundEvent):
    """Opt-in through the "Send to Messenger" plugin."""

    ref: str | None = None

    kind = EventKind.AUTHENTICATION


@dataclass
class MessageEvent(InboundEvent):
    text: str | None = None
    attachments: list[dict[str, Any]] = field(default_factory=list)
    is_quick_reply: bool = False
    quick_reply_payload: str | None = None
    is_echo: bool = False
    message_id: str | None = None
    app_id: str | None = None
    metadata: str | None = None

    kind = EventKind.MESSAGE


@dataclass
class PostbackEvent(InboundEvent):
    payload: str | None = None
    title: str | None = None

    kind = EventKind.POSTBACK


@dataclass
class UnknownEvent(InboundEvent):
    kind = EventKind.UNKNOWN
