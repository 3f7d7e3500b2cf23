"""Shared Pydantic data models for the restaurant messenger bot."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

# --- Enums ---


class OutboundKind(str, Enum):
    TEXT = "text"
    BUTTON_TEMPLATE = "button_template"
    GENERIC_TEMPLATE = "generic_template"
    RECEIPT_TEMPLATE = "receipt_template"
    QUICK_REPLY = "quick_reply"
    SENDER_ACTION = "sender_action"


class SenderAction(str, Enum):
    TYPING_ON = "typing_on"
    TYPING_OFF = "typing_off"
    MARK_SEEN = "mark_seen"


# --- Send API Models ---


class OutboundMessage(BaseModel):
    """A single Send API call addressed to one recipient."""

    model_config = ConfigDict(frozen=True)

    kind: OutboundKind
    recipient_id: str
    message: dict[str, Any] | None = None
    sender_action: SenderAction | None = None

    @model_validator(mode="after")
    def _one_body(self) -> OutboundMessage:
        if (self.message is None) == (self.sender_action is None):
            raise ValueError("exactly one of message or sender_action is required")
        if (self.kind == OutboundKind.SENDER_ACTION) != (self.sender_action is not None):
            raise ValueError(f"kind {self.kind.value} does not match message body")
        return self

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body expected by the Send API."""
        payload: dict[str, Any] = {"recipient": {"id": self.recipient_id}}
        if self.sender_action is not None:
            payload["sender_action"] = self.sender_action.value
        else:
            payload["message"] = self.message
        return payload


class SendResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool
    status_code: int | None = None
    recipient_id: str | None = None
    message_id: str | None = None
    error: dict[str, Any] | None = None
