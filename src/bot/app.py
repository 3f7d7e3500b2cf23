"""FastAPI application serving the Messenger webhook."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import BackgroundTasks, FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from src.bot.config import BotConfig
from src.bot.logging import setup_logging
from src.messenger.builder import MessageBuilder
from src.messenger.responder import MessageResponder
from src.messenger.send_api import SendGateway
from src.webhook.messenger import MessengerWebhook
from src.webhook.signature import SignatureError, SignatureVerifier

logger = logging.getLogger(__name__)


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    config = BotConfig.from_env()
    setup_logging(config.log_level)
    return create_app(config)


def create_app(config: BotConfig, gateway: SendGateway | None = None) -> FastAPI:
    """Create the bot app; ``gateway`` defaults to one built from ``config``."""
    send_gateway = gateway or SendGateway(
        access_token=config.page_access_token,
        api_url=config.send_api_url,
    )
    webhook = MessengerWebhook(
        validation_token=config.validation_token,
        verifier=SignatureVerifier(config.app_secret),
        responder=MessageResponder(MessageBuilder(config.public_base_url)),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await send_gateway.aclose()

    app = FastAPI(docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.config = config
    app.state.gateway = send_gateway
    app.state.webhook = webhook

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/webhook")
    async def verify_webhook(request: Request) -> Response:
        result = webhook.handle_verification(dict(request.query_params))
        if result["status_code"] == 200:
            return PlainTextResponse(result["content"])
        return JSONResponse({"error": result["error"]}, status_code=result["status_code"])

    @app.post("/webhook")
    async def receive_webhook(request: Request, background_tasks: BackgroundTasks) -> Response:
        body = await request.body()
        try:
            webhook.verify_signature(request.headers, body)
        except SignatureError as exc:
            logger.warning("Rejected webhook callback: %s (body_len=%d)", exc, len(body))
            return JSONResponse({"error": "Invalid webhook signature"}, status_code=403)

        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Webhook callback is not valid JSON (body_len=%d)", len(body))
            return JSONResponse({"error": "Invalid JSON payload"}, status_code=400)

        if not webhook.is_page_subscription(payload):
            object_type = payload.get("object") if isinstance(payload, dict) else None
            logger.info("Ignoring webhook callback for object %r", object_type)
            return JSONResponse({"error": "Unsupported object"}, status_code=404)

        result = webhook.process(payload)
        if result.replies:
            # Runs after the 200 is sent, keeping the ack inside the platform deadline.
            background_tasks.add_task(send_gateway.deliver, result.replies)
        return Response(status_code=200)

    return app
