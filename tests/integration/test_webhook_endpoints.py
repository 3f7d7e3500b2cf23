"""Integration tests for the /webhook endpoints."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from src.bot.app import create_app
from src.bot.config import BotConfig
from src.messenger.send_api import SendGateway
from tests.conftest import (
    PAGE_TOKEN,
    SEND_API_URL,
    USER_ID,
    VALIDATION_TOKEN,
    make_callback,
    make_optin_event,
    make_postback_event,
    make_text_event,
    sign_body,
)


class SendApiRecorder:
    """Fake Send API that records every request body it receives."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.bodies: list[dict[str, Any]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(json.loads(request.content))
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": {"message": "nope"}})
        return httpx.Response(200, json={"recipient_id": USER_ID, "message_id": "mid.1"})


@pytest.fixture
def send_api() -> SendApiRecorder:
    return SendApiRecorder()


@pytest.fixture
def app(config: BotConfig, send_api: SendApiRecorder) -> Any:
    client = httpx.AsyncClient(transport=httpx.MockTransport(send_api))
    gateway = SendGateway(PAGE_TOKEN, api_url=SEND_API_URL, client=client)
    return create_app(config, gateway=gateway)


async def _post_callback(
    app: Any, payload: dict[str, Any], signature: str | None = "valid",
) -> httpx.Response:
    body = json.dumps(payload).encode()
    headers = {"content-type": "application/json"}
    if signature == "valid":
        headers["x-hub-signature"] = sign_body(body)
    elif signature is not None:
        headers["x-hub-signature"] = signature
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.post("/webhook", content=body, headers=headers)


class TestVerificationEndpoint:
    @pytest.mark.asyncio
    async def test_returns_challenge(self, app: Any) -> None:
        params = {
            "hub.mode": "subscribe",
            "hub.verify_token": VALIDATION_TOKEN,
            "hub.challenge": "1158201444",
        }
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.get("/webhook", params=params)
        assert resp.status_code == 200
        assert resp.text == "1158201444"

    @pytest.mark.asyncio
    async def test_wrong_token_403(self, app: Any) -> None:
        params = {"hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "c"}
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.get("/webhook", params=params)
        assert resp.status_code == 403
        assert resp.json() == {"error": "Invalid verify token"}


class TestCallbackEndpoint:
    @pytest.mark.asyncio
    async def test_missing_signature_403(self, app: Any, send_api: SendApiRecorder) -> None:
        resp = await _post_callback(app, make_callback([make_optin_event()]), signature=None)
        assert resp.status_code == 403
        assert resp.json()["error"] == "Invalid webhook signature"
        assert send_api.bodies == []

    @pytest.mark.asyncio
    async def test_bad_signature_403(self, app: Any, send_api: SendApiRecorder) -> None:
        resp = await _post_callback(
            app, make_callback([make_optin_event()]), signature="sha1=0000",
        )
        assert resp.status_code == 403
        assert send_api.bodies == []

    @pytest.mark.asyncio
    async def test_invalid_json_400(self, app: Any) -> None:
        body = b"not json"
        headers = {"x-hub-signature": sign_body(body)}
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.post("/webhook", content=body, headers=headers)
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_non_page_object_ignored(self, app: Any, send_api: SendApiRecorder) -> None:
        payload = make_callback([make_optin_event()], object_type="user")
        resp = await _post_callback(app, payload)
        assert resp.status_code == 404
        assert send_api.bodies == []

    @pytest.mark.asyncio
    async def test_food_message_sends_carousel(self, app: Any, send_api: SendApiRecorder) -> None:
        resp = await _post_callback(app, make_callback([make_text_event("I'm HUNGRY now")]))
        assert resp.status_code == 200
        assert len(send_api.bodies) == 1
        body = send_api.bodies[0]
        assert body["recipient"] == {"id": USER_ID}
        assert body["message"]["attachment"]["payload"]["template_type"] == "generic"

    @pytest.mark.asyncio
    async def test_echo_never_sends(self, app: Any, send_api: SendApiRecorder) -> None:
        resp = await _post_callback(app, make_callback([make_text_event("food", is_echo=True)]))
        assert resp.status_code == 200
        assert send_api.bodies == []

    @pytest.mark.asyncio
    async def test_item_postback_sends_ack_then_receipt(
        self, app: Any, send_api: SendApiRecorder,
    ) -> None:
        payload = make_callback([make_postback_event("item|Cheese Pizza|4.99|http://x/img.png")])
        resp = await _post_callback(app, payload)
        assert resp.status_code == 200
        assert send_api.bodies[0]["message"] == {"text": "We got your order!"}
        summary = send_api.bodies[1]["message"]["attachment"]["payload"]["summary"]
        assert summary["subtotal"] == 4.99
        assert summary["total_tax"] == 0.65
        assert summary["total_cost"] == 5.64

    @pytest.mark.asyncio
    async def test_batch_of_four_events_all_processed(
        self, app: Any, send_api: SendApiRecorder,
    ) -> None:
        payload = make_callback(
            [make_text_event("hello"), make_optin_event()],
            [make_text_event("lunch?"), make_postback_event("restaurant_campus_pizza")],
        )
        resp = await _post_callback(app, payload)
        assert resp.status_code == 200
        # not sure, auth ok, restaurant carousel, menu intro + menu carousel
        assert len(send_api.bodies) == 5
        assert send_api.bodies[0]["message"]["text"] == "I'm not sure what you mean"
        assert send_api.bodies[1]["message"]["text"] == "Authentication successful"
        assert send_api.bodies[3]["message"]["text"] == "Want any of these?"

    @pytest.mark.asyncio
    async def test_send_failures_still_200(self, config: BotConfig) -> None:
        failing = SendApiRecorder(status_code=500)
        client = httpx.AsyncClient(transport=httpx.MockTransport(failing))
        app = create_app(config, gateway=SendGateway(PAGE_TOKEN, api_url=SEND_API_URL, client=client))
        payload = make_callback([make_optin_event()], [make_text_event("hi")])
        resp = await _post_callback(app, payload)
        assert resp.status_code == 200
        assert len(failing.bodies) == 2

    @pytest.mark.asyncio
    async def test_malformed_page_batch_still_200(
        self, app: Any, send_api: SendApiRecorder,
    ) -> None:
        payload = {"object": "page", "entry": [{"id": "1", "messaging": 5}]}
        resp = await _post_callback(app, payload)
        assert resp.status_code == 200
        assert send_api.bodies == []


@pytest.mark.asyncio
async def test_health(app: Any) -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}
