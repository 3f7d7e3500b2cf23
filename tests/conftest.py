"""Shared test fixtures for the restaurant messenger bot."""

from __future__ import annotations

import hashlib
import hmac
from typing import Any

import pytest

from src.bot.config import BotConfig
from src.messenger.builder import MessageBuilder
from src.messenger.responder import MessageResponder

APP_SECRET = "test-app-secret"
VALIDATION_TOKEN = "test-validation-token"
PAGE_TOKEN = "test-page-token"
SERVER_URL = "https://bot.example.com"
SEND_API_URL = "https://graph.test/v2.6/me/messages"

PAGE_ID = "PAGE_ID"
USER_ID = "USER_ID"


@pytest.fixture
def config() -> BotConfig:
    return BotConfig(
        app_secret=APP_SECRET,
        validation_token=VALIDATION_TOKEN,
        page_access_token=PAGE_TOKEN,
        server_url=SERVER_URL,
        send_api_url=SEND_API_URL,
    )


@pytest.fixture
def builder() -> MessageBuilder:
    return MessageBuilder(SERVER_URL)


@pytest.fixture
def responder(builder: MessageBuilder) -> MessageResponder:
    return MessageResponder(builder)


def sign_body(body: bytes, secret: str = APP_SECRET, method: str = "sha1") -> str:
    digest = hmac.new(secret.encode(), body, getattr(hashlib, method)).hexdigest()
    return f"{method}={digest}"


# --- Factory functions for messaging events ---


def make_messaging_event(**kwargs: Any) -> dict[str, Any]:
    """Raw messaging event with sender/recipient/timestamp defaults."""
    event: dict[str, Any] = {
        "sender": {"id": USER_ID},
        "recipient": {"id": PAGE_ID},
        "timestamp": 1458692752478,
    }
    event.update(kwargs)
    return event


def make_text_event(text: str = "hello", **message: Any) -> dict[str, Any]:
    return make_messaging_event(message={"mid": "mid.1", "text": text, **message})


def make_postback_event(payload: str | None) -> dict[str, Any]:
    postback = {} if payload is None else {"payload": payload}
    postback["title"] = "I want this!"
    return make_messaging_event(postback=postback)


def make_optin_event(ref: str = "PASS_THROUGH_PARAM") -> dict[str, Any]:
    return make_messaging_event(optin={"ref": ref})


def make_callback(*entries: list[dict[str, Any]], object_type: str = "page") -> dict[str, Any]:
    """Webhook body with one page entry per list of messaging events."""
    return {
        "object": object_type,
        "entry": [
            {"id": PAGE_ID, "time": 1458692752478, "messaging": messaging}
            for messaging in entries
        ],
    }
