"""Construction of Send API messages.

Every method is side-effect free: it returns a fresh OutboundMessage and
touches neither the network nor shared state.
"""

from __future__ import annotations

import secrets
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from src.messenger.catalog import RESTAURANTS, MenuItem, menu_for
from src.models import OutboundKind, OutboundMessage, SenderAction

TAX_RATE = 0.13
TAX_INCLUSIVE_RATE = 1.13
_CENTS = Decimal("0.01")

WANT_THIS = "I want this!"

# Demo customer shown on every receipt.
RECEIPT_CUSTOMER: dict[str, Any] = {
    "recipient_name": "David Dong",
    "payment_method": "Visa 1234",
    "address": {
        "street_1": "208 Sunview St",
        "street_2": "",
        "city": "Waterloo",
        "postal_code": "A1A 1A1",
        "state": "ON",
        "country": "CA",
    },
}

SAMPLE_BUTTONS: tuple[dict[str, str], ...] = (
    {"type": "web_url", "url": "https://www.oculus.com/en-us/rift/", "title": "Open Web URL"},
    {"type": "postback", "title": "Trigger Postback", "payload": "DEVELOPER_DEFINED_PAYLOAD"},
    {"type": "phone_number", "title": "Call Phone Number", "payload": "+16505551234"},
)

SAMPLE_QUICK_REPLIES: tuple[tuple[str, str], ...] = (
    ("Action", "DEVELOPER_DEFINED_PAYLOAD_FOR_PICKING_ACTION"),
    ("Comedy", "DEVELOPER_DEFINED_PAYLOAD_FOR_PICKING_COMEDY"),
    ("Drama", "DEVELOPER_DEFINED_PAYLOAD_FOR_PICKING_DRAMA"),
)


def round_money(amount: Decimal | float) -> Decimal:
    """Round half-up to cents from the shortest repr of the float value.

    Amounts are IEEE-754 doubles, so
    2.5 * 1.13 (2.8249999999999997) rounds to 2.82, not 2.83.
    """
    return Decimal(repr(float(amount))).quantize(_CENTS, rounding=ROUND_HALF_UP)


def receipt_summary(price: Decimal | float) -> dict[str, Decimal]:
    """Subtotal, tax and total for a single item.

    Tax and total are each rounded from the unrounded float product, so
    subtotal + total_tax may differ from total_cost by a cent.
    """
    value = float(price)
    return {
        "subtotal": round_money(value),
        "shipping_cost": Decimal("0.00"),
        "total_tax": round_money(value * TAX_RATE),
        "total_cost": round_money(value * TAX_INCLUSIVE_RATE),
    }


def new_order_number() -> str:
    return f"order{secrets.randbelow(1000)}"


class MessageBuilder:
    """Builds outbound messages whose asset links point at ``server_url``."""

    def __init__(
        self, server_url: str, currency: str = "USD", item_currency: str = "CAD",
    ) -> None:
        self._server_url = server_url.rstrip("/")
        self._currency = currency
        self._item_currency = item_currency

    def asset_url(self, path: str) -> str:
        return f"{self._server_url}/{path.lstrip('/')}"

    # --- Plain messages ---

    def text(self, recipient_id: str, text: str) -> OutboundMessage:
        return OutboundMessage(
            kind=OutboundKind.TEXT,
            recipient_id=recipient_id,
            message={"text": text},
        )

    def quick_reply(
        self,
        recipient_id: str,
        text: str = "What's your favorite movie genre?",
        options: tuple[tuple[str, str], ...] = SAMPLE_QUICK_REPLIES,
    ) -> OutboundMessage:
        """Text with tappable chips; ``options`` are (title, payload) pairs."""
        return OutboundMessage(
            kind=OutboundKind.QUICK_REPLY,
            recipient_id=recipient_id,
            message={
                "text": text,
                "quick_replies": [
                    {"content_type": "text", "title": title, "payload": payload}
                    for title, payload in options
                ],
            },
        )

    def sender_action(self, recipient_id: str, action: SenderAction) -> OutboundMessage:
        return OutboundMessage(
            kind=OutboundKind.SENDER_ACTION,
            recipient_id=recipient_id,
            sender_action=action,
        )

    def typing_on(self, recipient_id: str) -> OutboundMessage:
        return self.sender_action(recipient_id, SenderAction.TYPING_ON)

    def typing_off(self, recipient_id: str) -> OutboundMessage:
        return self.sender_action(recipient_id, SenderAction.TYPING_OFF)

    def mark_seen(self, recipient_id: str) -> OutboundMessage:
        return self.sender_action(recipient_id, SenderAction.MARK_SEEN)

    # --- Templates ---

    def button_template(
        self,
        recipient_id: str,
        text: str = "This is test text",
        buttons: tuple[dict[str, str], ...] = SAMPLE_BUTTONS,
    ) -> OutboundMessage:
        return OutboundMessage(
            kind=OutboundKind.BUTTON_TEMPLATE,
            recipient_id=recipient_id,
            message=_template({
                "template_type": "button",
                "text": text,
                "buttons": [dict(b) for b in buttons],
            }),
        )

    def account_linking(self, recipient_id: str) -> OutboundMessage:
        return self.button_template(
            recipient_id,
            text="Welcome. Link your account.",
            buttons=({"type": "account_link", "url": f"{self._server_url}/authorize"},),
        )

    def generic_template(
        self, recipient_id: str, elements: list[dict[str, Any]],
    ) -> OutboundMessage:
        return OutboundMessage(
            kind=OutboundKind.GENERIC_TEMPLATE,
            recipient_id=recipient_id,
            message=_template({"template_type": "generic", "elements": elements}),
        )

    def restaurant_carousel(self, recipient_id: str) -> OutboundMessage:
        """One bubble per restaurant, each offering its menu via postback."""
        elements = [
            {
                "title": r.title,
                "subtitle": r.subtitle,
                "item_url": r.website,
                "image_url": self.asset_url(r.image_path),
                "buttons": [
                    {"type": "web_url", "url": r.website, "title": "Open Web URL"},
                    {"type": "postback", "title": WANT_THIS, "payload": r.key},
                ],
            }
            for r in RESTAURANTS
        ]
        return self.generic_template(recipient_id, elements)

    def menu_carousel(self, recipient_id: str, restaurant_key: str) -> OutboundMessage:
        """Carousel of a restaurant's menu; KeyError for an unknown restaurant."""
        items = menu_for(restaurant_key)
        return self.generic_template(
            recipient_id, [self._menu_element(item) for item in items],
        )

    def _menu_element(self, item: MenuItem) -> dict[str, Any]:
        image_url = self.asset_url(item.image_path)
        return {
            "title": item.title,
            "subtitle": item.price,
            "image_url": image_url,
            "buttons": [{
                "type": "postback",
                "title": WANT_THIS,
                "payload": f"item|{item.title}|{item.price}|{image_url}",
            }],
        }

    def receipt(
        self,
        recipient_id: str,
        food: str,
        price: Decimal,
        image_url: str,
        order_number: str | None = None,
    ) -> OutboundMessage:
        """Receipt for a single ordered item, tax included."""
        summary = receipt_summary(price)
        payload = {
            "template_type": "receipt",
            "recipient_name": RECEIPT_CUSTOMER["recipient_name"],
            "order_number": order_number or new_order_number(),
            "currency": self._currency,
            "payment_method": RECEIPT_CUSTOMER["payment_method"],
            "elements": [{
                "title": food,
                "quantity": 1,
                "price": float(summary["subtotal"]),
                "currency": self._item_currency,
                "image_url": image_url,
            }],
            "address": dict(RECEIPT_CUSTOMER["address"]),
            "summary": {key: float(value) for key, value in summary.items()},
        }
        return OutboundMessage(
            kind=OutboundKind.RECEIPT_TEMPLATE,
            recipient_id=recipient_id,
            message=_template(payload),
        )


def _template(payload: dict[str, Any]) -> dict[str, Any]:
    return {"attachment": {"type": "template", "payload": payload}}
