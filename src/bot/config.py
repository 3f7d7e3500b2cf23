"""Runtime configuration for the messenger bot, read once at startup."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SEND_API_URL = "https://graph.facebook.com/v2.6/me/messages"

# Environment variable -> BotConfig field, for the values the bot cannot run without.
_REQUIRED_ENV = {
    "MESSENGER_APP_SECRET": "app_secret",
    "MESSENGER_VALIDATION_TOKEN": "validation_token",
    "MESSENGER_PAGE_ACCESS_TOKEN": "page_access_token",
    "SERVER_URL": "server_url",
}


class ConfigMissingError(Exception):
    """Raised when required configuration values are absent."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing config values: {', '.join(missing)}")


class BotConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_secret: str = Field(min_length=1)
    validation_token: str = Field(min_length=1)
    page_access_token: str = Field(min_length=1)
    server_url: str = Field(min_length=1)
    send_api_url: str = DEFAULT_SEND_API_URL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BotConfig:
        """Build the config from environment variables.

        Raises ConfigMissingError listing every required variable that is
        unset or empty.
        """
        env = os.environ if environ is None else environ
        missing = [name for name in _REQUIRED_ENV if not env.get(name)]
        if missing:
            raise ConfigMissingError(missing)

        values = {field: env[name] for name, field in _REQUIRED_ENV.items()}
        return cls(
            **values,
            send_api_url=env.get("SEND_API_URL") or DEFAULT_SEND_API_URL,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def public_base_url(self) -> str:
        return self.server_url.rstrip("/")
