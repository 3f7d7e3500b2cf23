"""Classification of raw Messenger messaging events."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from src.webhook.models import (
    AuthenticationEvent,
    InboundEvent,
    MessageEvent,
    PostbackEvent,
    UnknownEvent,
)

logger = logging.getLogger(__name__)


def iter_messaging_events(payload: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield every messaging event of every page entry, in array order.

    Entries and ``messaging`` values that are not lists are skipped.
    """
    entries = payload.get("entry")
    if not isinstance(entries, list):
        return
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        messaging = entry.get("messaging")
        if not isinstance(messaging, list):
            continue
        for event in messaging:
            if isinstance(event, dict):
                yield event


def classify_event(raw: dict[str, Any]) -> InboundEvent:
    """Turn one messaging event into a typed InboundEvent.

    First present field wins: ``optin``, then ``message``, then
    ``postback``, even when its value is an empty object.
    Anything else is an UnknownEvent.
    """
    common = {
        "sender_id": _id_of(raw.get("sender")),
        "recipient_id": _id_of(raw.get("recipient")),
        "timestamp": _int_or_zero(raw.get("timestamp")),
        "raw": raw,
    }

    if raw.get("optin") is not None:
        optin = raw["optin"] if isinstance(raw["optin"], dict) else {}
        return AuthenticationEvent(**common, ref=optin.get("ref"))

    if raw.get("message") is not None:
        return _message_event(raw["message"], common)

    if raw.get("postback") is not None:
        postback = raw["postback"] if isinstance(raw["postback"], dict) else {}
        return PostbackEvent(
            **common,
            payload=postback.get("payload"),
            title=postback.get("title"),
        )

    logger.info("Webhook received unknown messaging event: %s", raw)
    return UnknownEvent(**common)


def _message_event(message: Any, common: dict[str, Any]) -> MessageEvent:
    if not isinstance(message, dict):
        message = {}
    quick_reply = message.get("quick_reply")
    attachments = message.get("attachments")
    app_id = message.get("app_id")
    return MessageEvent(
        **common,
        text=message.get("text"),
        attachments=list(attachments) if isinstance(attachments, list) else [],
        is_quick_reply=quick_reply is not None,
        quick_reply_payload=quick_reply.get("payload") if isinstance(quick_reply, dict) else None,
        is_echo=bool(message.get("is_echo", False)),
        message_id=message.get("mid"),
        app_id=str(app_id) if app_id is not None else None,
        metadata=message.get("metadata"),
    )


def _id_of(party: Any) -> str:
    if isinstance(party, dict) and party.get("id") is not None:
        return str(party["id"])
    return ""


def _int_or_zero(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
