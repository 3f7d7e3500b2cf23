"""Delivery of outbound messages through the Messenger Send API.

Sends are fire-and-forget from the webhook's point of view: the outcome
is logged and returned as a SendResult, never raised and never retried.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import httpx

from src.bot.config import DEFAULT_SEND_API_URL
from src.models import OutboundMessage, SendResult

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 15.0


class SendGateway:
    """POSTs OutboundMessages to the Send API with a page access token."""

    def __init__(
        self,
        access_token: str,
        api_url: str = DEFAULT_SEND_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._access_token = access_token
        self._api_url = api_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            verify=True, timeout=httpx.Timeout(timeout, connect=5.0),
        )

    async def send(self, message: OutboundMessage) -> SendResult:
        try:
            resp = await self._client.post(
                self._api_url,
                params={"access_token": self._access_token},
                json=message.to_payload(),
            )
        except httpx.HTTPError as exc:
            logger.error(
                "Failed calling Send API for recipient %s: %s",
                message.recipient_id, exc,
            )
            return SendResult(ok=False, recipient_id=message.recipient_id)

        body = _json_body(resp)
        if resp.status_code != 200:
            error = body.get("error") if isinstance(body.get("error"), dict) else None
            logger.error(
                "Failed calling Send API: status=%d error=%s",
                resp.status_code, error or resp.text,
            )
            return SendResult(
                ok=False,
                status_code=resp.status_code,
                recipient_id=message.recipient_id,
                error=error,
            )

        recipient_id = body.get("recipient_id") or message.recipient_id
        message_id = body.get("message_id")
        if message_id:
            logger.info(
                "Successfully sent message with id %s to recipient %s",
                message_id, recipient_id,
            )
        else:
            logger.info("Successfully called Send API for recipient %s", recipient_id)
        return SendResult(
            ok=True,
            status_code=resp.status_code,
            recipient_id=str(recipient_id),
            message_id=message_id,
        )

    async def deliver(self, messages: Iterable[OutboundMessage]) -> list[SendResult]:
        """Send ``messages`` one after another, preserving their order."""
        return [await self.send(message) for message in messages]

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _json_body(resp: httpx.Response) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
