"""Configuration helpers for the bot runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class BotSettings:
    bot_token: str
    bot_username: str
    webhook_secret: str | None
    api_base: str
    host: str
    port: int
    log_level: str

    def require_bot_credentials(self) -> None:
        if not self.bot_token:
            raise RuntimeError("DICEBOT_BOT_TOKEN is not set in environment variables")
        if not self.bot_username:
            raise RuntimeError("DICEBOT_BOT_USERNAME is not set in environment variables")


def load_settings() -> BotSettings:
    port_raw = os.getenv("DICEBOT_PORT", "8000")
    return BotSettings(
        bot_token=os.getenv("DICEBOT_BOT_TOKEN", ""),
        bot_username=os.getenv("DICEBOT_BOT_USERNAME", ""),
        webhook_secret=os.getenv("DICEBOT_WEBHOOK_SECRET") or None,
        api_base=os.getenv("DICEBOT_API_BASE", "https://api.telegram.org"),
        host=os.getenv("DICEBOT_HOST", "127.0.0.1"),
        port=int(port_raw),
        log_level=os.getenv("DICEBOT_LOG_LEVEL", "INFO").upper(),
    )
