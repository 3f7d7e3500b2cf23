"""Click CLI for running the bot and poking at the Send API by hand."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable
from decimal import Decimal
from typing import BinaryIO

import click
import uvicorn

from src.bot.config import BotConfig, ConfigMissingError
from src.bot.logging import setup_logging
from src.messenger.builder import MessageBuilder
from src.messenger.catalog import MENUS
from src.messenger.send_api import SendGateway
from src.models import OutboundMessage, SendResult
from src.webhook.signature import SignatureVerifier

SAMPLE_FOOD = ("Cheese Pizza", "4.99", "/assets/cheese_pizza.png")


def _sample_builders(
    builder: MessageBuilder, text: str, restaurant: str,
) -> dict[str, Callable[[str], OutboundMessage]]:
    food, price, image_path = SAMPLE_FOOD
    return {
        "text": lambda rid: builder.text(rid, text),
        "button": builder.button_template,
        "restaurants": builder.restaurant_carousel,
        "menu": lambda rid: builder.menu_carousel(rid, restaurant),
        "receipt": lambda rid: builder.receipt(
            rid, food, Decimal(price), builder.asset_url(image_path),
        ),
        "quick-reply": builder.quick_reply,
        "typing-on": builder.typing_on,
        "typing-off": builder.typing_off,
        "mark-seen": builder.mark_seen,
        "account-linking": builder.account_linking,
    }


SEND_KINDS = (
    "text", "button", "restaurants", "menu", "receipt", "quick-reply",
    "typing-on", "typing-off", "mark-seen", "account-linking",
)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Restaurant messenger bot CLI."""
    ctx.ensure_object(dict)


def _load_config(ctx: click.Context) -> BotConfig:
    """Read config on first use; exit with status 1 if anything is missing."""
    if "config" not in ctx.obj:
        try:
            config = BotConfig.from_env()
        except ConfigMissingError as exc:
            click.echo(str(exc), err=True)
            sys.exit(1)
        setup_logging(config.log_level)
        ctx.obj["config"] = config
    return ctx.obj["config"]


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind.")
@click.option("--port", default=5000, type=int, envvar="PORT", help="Port to listen on.")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Run the webhook server."""
    _load_config(ctx)
    uvicorn.run("src.bot.app:create_app_from_env", factory=True, host=host, port=port)


@cli.command()
@click.argument("body_file", type=click.File("rb"))
@click.option(
    "--method", type=click.Choice(["sha1", "sha256"]), default="sha1",
    help="Digest algorithm for the signature header.",
)
@click.pass_context
def sign(ctx: click.Context, body_file: BinaryIO, method: str) -> None:
    """Print the X-Hub-Signature value for a request body."""
    config = _load_config(ctx)
    click.echo(SignatureVerifier(config.app_secret).sign(body_file.read(), method))


@cli.command()
@click.argument("kind", type=click.Choice(SEND_KINDS))
@click.argument("recipient_id")
@click.option("--text", default="Hello from the bot", help="Body for the 'text' kind.")
@click.option(
    "--restaurant", type=click.Choice(sorted(MENUS)), default="restaurant_campus_pizza",
    help="Restaurant for the 'menu' kind.",
)
@click.pass_context
def send(ctx: click.Context, kind: str, recipient_id: str, text: str, restaurant: str) -> None:
    """Send a sample message of KIND to RECIPIENT_ID."""
    config = _load_config(ctx)
    builder = MessageBuilder(config.public_base_url)
    message = _sample_builders(builder, text, restaurant)[kind](recipient_id)
    result = asyncio.run(_send_once(config, message))
    click.echo(result.model_dump_json(indent=2))
    if not result.ok:
        sys.exit(1)


async def _send_once(config: BotConfig, message: OutboundMessage) -> SendResult:
    gateway = SendGateway(config.page_access_token, api_url=config.send_api_url)
    try:
        return await gateway.send(message)
    finally:
        await gateway.aclose()


if __name__ == "__main__":
    cli()
