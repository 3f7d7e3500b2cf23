"""Reply selection for classified Messenger events.

The responder only decides *what* to send; delivery belongs to the
SendGateway. Each handler returns the replies in the order they must be
sent.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from src.messenger.builder import MessageBuilder
from src.messenger.catalog import MENUS
from src.models import OutboundMessage
from src.webhook.models import (
    AuthenticationEvent,
    InboundEvent,
    MessageEvent,
    PostbackEvent,
)

logger = logging.getLogger(__name__)

FOOD_KEYWORDS = frozenset({
    "hungry", "food", "meal", "snack", "cuisine", "drink",
    "chow", "breakfast", "lunch", "dinner", "brunch", "buffet",
})

AUTH_OK_TEXT = "Authentication successful"
QUICK_REPLY_TEXT = "Quick reply tapped"
ATTACHMENT_TEXT = "Message with attachment received"
NOT_SURE_TEXT = "I'm not sure what you mean"
MENU_INTRO_TEXT = "Want any of these?"
ORDER_OK_TEXT = "We got your order!"
NOT_UNDERSTOOD_TEXT = "Sorry, we couldn't understand your message"

RESTAURANT_PREFIX = "restaurant"
ITEM_PREFIX = "item"


class MalformedPostbackError(ValueError):
    """Raised for an ``item|...`` payload that cannot be turned into an order."""


def mentions_food(text: str) -> bool:
    """Case-insensitive substring match, so "hungryman" counts as "hungry"."""
    lowered = text.lower()
    return any(word in lowered for word in FOOD_KEYWORDS)


def parse_item_payload(payload: str) -> tuple[str, Decimal, str]:
    """Split ``item|<name>|<price>|<image_url>`` into its parts.

    Fields past the fourth are ignored.
    """
    parts = payload.split("|")
    if len(parts) < 4:
        raise MalformedPostbackError(f"Expected 4 fields, got {len(parts)}")
    name, price, image_url = parts[1:4]
    try:
        amount = Decimal(price)
    except InvalidOperation as exc:
        raise MalformedPostbackError(f"Invalid price {price!r}") from exc
    if not amount.is_finite():
        raise MalformedPostbackError(f"Invalid price {price!r}")
    return name, amount, image_url


class MessageResponder:
    """Maps inbound events to the outbound messages that answer them."""

    def __init__(self, builder: MessageBuilder) -> None:
        self._builder = builder

    def respond(self, event: InboundEvent) -> list[OutboundMessage]:
        if isinstance(event, AuthenticationEvent):
            return self._on_authentication(event)
        if isinstance(event, MessageEvent):
            return self._on_message(event)
        if isinstance(event, PostbackEvent):
            return self._on_postback(event)
        return []

    def _on_authentication(self, event: AuthenticationEvent) -> list[OutboundMessage]:
        logger.info(
            "Received authentication for user %s and page %s with pass "
            "through param '%s' at %d",
            event.sender_id, event.recipient_id, event.ref, event.timestamp,
        )
        return [self._builder.text(event.sender_id, AUTH_OK_TEXT)]

    def _on_message(self, event: MessageEvent) -> list[OutboundMessage]:
        logger.info(
            "Received message for user %s and page %s at %d",
            event.sender_id, event.recipient_id, event.timestamp,
        )
        if event.is_echo:
            logger.info(
                "Received echo for message %s and app %s with metadata %s",
                event.message_id, event.app_id, event.metadata,
            )
            return []

        if event.is_quick_reply:
            # Payload is only logged; no per-choice handling yet.
            logger.info(
                "Quick reply for message %s with payload %s",
                event.message_id, event.quick_reply_payload,
            )
            return [self._builder.text(event.sender_id, QUICK_REPLY_TEXT)]

        if event.text:
            if mentions_food(event.text):
                return [self._builder.restaurant_carousel(event.sender_id)]
            return [self._builder.text(event.sender_id, NOT_SURE_TEXT)]

        if event.attachments:
            return [self._builder.text(event.sender_id, ATTACHMENT_TEXT)]

        return []

    def _on_postback(self, event: PostbackEvent) -> list[OutboundMessage]:
        payload = event.payload
        logger.info(
            "Received postback for user %s and page %s with payload '%s' at %d",
            event.sender_id, event.recipient_id, payload, event.timestamp,
        )
        if not payload:
            return []

        sender = event.sender_id
        if payload.startswith(RESTAURANT_PREFIX):
            if payload not in MENUS:
                logger.warning("Postback for unknown restaurant %r", payload)
                return [self._builder.text(sender, NOT_UNDERSTOOD_TEXT)]
            return [
                self._builder.text(sender, MENU_INTRO_TEXT),
                self._builder.menu_carousel(sender, payload),
            ]

        if payload.startswith(ITEM_PREFIX):
            try:
                food, price, image_url = parse_item_payload(payload)
            except MalformedPostbackError as exc:
                logger.warning("Malformed item postback %r: %s", payload, exc)
                return [self._builder.text(sender, NOT_UNDERSTOOD_TEXT)]
            return [
                self._builder.text(sender, ORDER_OK_TEXT),
                self._builder.receipt(sender, food, price, image_url),
            ]

        return [self._builder.text(sender, NOT_UNDERSTOOD_TEXT)]
