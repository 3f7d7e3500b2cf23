"""Messenger Platform webhook handling.

Covers the subscription handshake (GET), signature checks on callbacks
(POST) and the classify-and-respond loop over a callback batch. Sending
the resulting replies is left to the caller so the HTTP acknowledgement
never waits on the Send API.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.messenger.responder import MessageResponder
from src.models import OutboundMessage
from src.webhook.classifier import classify_event, iter_messaging_events
from src.webhook.models import EventKind
from src.webhook.signature import SignatureVerifier

logger = logging.getLogger(__name__)

PAGE_OBJECT = "page"


@dataclass
class BatchResult:
    """Outcome of one webhook callback."""

    events: list[EventKind] = field(default_factory=list)
    replies: list[OutboundMessage] = field(default_factory=list)


class MessengerWebhook:
    """Handles Messenger webhook verification and event batches."""

    def __init__(
        self,
        validation_token: str,
        verifier: SignatureVerifier,
        responder: MessageResponder,
    ) -> None:
        self._validation_token = validation_token
        self._verifier = verifier
        self._responder = responder

    def handle_verification(self, params: Mapping[str, str]) -> dict[str, Any]:
        """Answer the platform's subscription challenge.

        Returns the challenge with status 200 only for ``hub.mode=subscribe``
        and a matching token; every other request gets 403.
        """
        mode = params.get("hub.mode")
        token = params.get("hub.verify_token", "")
        if mode == "subscribe" and hmac.compare_digest(
            token.encode(), self._validation_token.encode(),
        ):
            logger.info("Validating webhook")
            return {"status_code": 200, "content": params.get("hub.challenge", "")}

        logger.error("Failed validation. Make sure the validation tokens match.")
        return {"status_code": 403, "error": "Invalid verify token"}

    def verify_signature(self, headers: Mapping[str, str], body: bytes) -> None:
        """Raise a SignatureError unless the raw body is correctly signed."""
        self._verifier.verify_headers(headers, body)

    def is_page_subscription(self, payload: Any) -> bool:
        return isinstance(payload, dict) and payload.get("object") == PAGE_OBJECT

    def process(self, payload: dict[str, Any]) -> BatchResult:
        """Classify and answer every messaging event in array order."""
        result = BatchResult()
        for raw in iter_messaging_events(payload):
            event = classify_event(raw)
            result.events.append(event.kind)
            try:
                result.replies.extend(self._responder.respond(event))
            except Exception:
                # One bad event must not cost the rest of the batch its replies.
                logger.exception(
                    "Failed to handle %s event from %s", event.kind.value, event.sender_id,
                )
        logger.debug(
            "Processed %d messaging events, %d replies queued",
            len(result.events), len(result.replies),
        )
        return result
