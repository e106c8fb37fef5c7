"""Outbound transports: the Telegram Bot API and an in-memory recorder."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import logging
from typing import Any, Callable

import httpx

from dicebot.backend.dice import KEYBOARD_ROWS
from dicebot.backend.errors import DeliveryError, DiceBotError
from dicebot.backend.fanout import SendOptions

logger = logging.getLogger(__name__)


class TelegramApiError(DiceBotError):
    """Raised when a Bot API call fails at the network or API level."""


def dice_keyboard_markup() -> dict[str, Any]:
    return {
        "keyboard": [[{"text": token} for token in row] for row in KEYBOARD_ROWS],
        "resize_keyboard": True,
        "one_time_keyboard": False,
        "selective": True,
    }


class TelegramTransport:
    def __init__(
        self,
        bot_token: str,
        api_base: str = "https://api.telegram.org",
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = f"{api_base.rstrip('/')}/bot{bot_token}"
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def _call(self, method: str, payload: dict[str, Any]) -> Any:
        try:
            response = self._client.post(f"{self._base_url}/{method}", json=payload)
        except httpx.TimeoutException as err:
            raise TelegramApiError(f"{method}: timeout") from err
        except httpx.RequestError as err:
            raise TelegramApiError(f"{method}: network error: {err}") from err

        try:
            body = response.json()
        except ValueError as err:
            raise TelegramApiError(f"{method}: HTTP {response.status_code}") from err

        if response.status_code >= 400 or not body.get("ok", False):
            description = body.get("description", f"HTTP {response.status_code}")
            raise TelegramApiError(f"{method}: {description}")
        return body.get("result")

    def send(self, recipient_id: int, text: str, options: SendOptions = SendOptions.NONE) -> None:
        payload: dict[str, Any] = {"chat_id": recipient_id, "text": text}
        if options is SendOptions.DICE_KEYBOARD:
            payload["reply_markup"] = dice_keyboard_markup()
        elif options is SendOptions.CODE:
            payload["parse_mode"] = "Markdown"

        try:
            self._call("sendMessage", payload)
        except TelegramApiError as err:
            raise DeliveryError(recipient_id, str(err)) from err

    def register_commands(self, commands: Sequence[tuple[str, str]]) -> None:
        self._call(
            "setMyCommands",
            {
                "commands": [{"command": name, "description": description} for name, description in commands],
                "scope": {"type": "default"},
            },
        )
        logger.info("Registered %d bot commands", len(commands))

    def set_webhook(self, url: str, secret_token: str | None = None) -> None:
        payload: dict[str, Any] = {"url": url, "allowed_updates": ["message"]}
        if secret_token:
            payload["secret_token"] = secret_token
        self._call("setWebhook", payload)
        logger.info("Webhook set to %s", url)

    def close(self) -> None:
        self._client.close()


@dataclass(frozen=True)
class SentMessage:
    recipient_id: int
    text: str
    options: SendOptions = SendOptions.NONE


@dataclass
class RecordingTransport:
    """Keeps every outgoing message in memory, optionally echoing it.

    Recipients listed in ``unreachable`` fail with DeliveryError.
    """

    unreachable: set[int] = field(default_factory=set)
    echo: Callable[[SentMessage], None] | None = None

    def __post_init__(self) -> None:
        self.sent: list[SentMessage] = []
        self.commands: list[tuple[str, str]] = []

    def send(self, recipient_id: int, text: str, options: SendOptions = SendOptions.NONE) -> None:
        if recipient_id in self.unreachable:
            raise DeliveryError(recipient_id, "recipient unreachable")
        message = SentMessage(recipient_id=recipient_id, text=text, options=options)
        self.sent.append(message)
        if self.echo is not None:
            self.echo(message)

    def register_commands(self, commands: Sequence[tuple[str, str]]) -> None:
        self.commands = list(commands)

    def messages_for(self, recipient_id: int) -> list[str]:
        return [message.text for message in self.sent if message.recipient_id == recipient_id]

    def clear(self) -> None:
        self.sent.clear()
