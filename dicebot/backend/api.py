"""FastAPI webhook endpoint that feeds Telegram updates to the state machine."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Header, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from .config import BotSettings, load_settings
from .engine import COMMANDS, InteractionStateMachine
from .errors import DiceBotError
from .fanout import NotificationFanout, Transport
from .security import verify_webhook_secret
from .store import InMemorySessionRegistry, SessionRegistry
from .transport import TelegramTransport

logger = logging.getLogger(__name__)


class TelegramUser(BaseModel):
    id: int
    username: str | None = None
    first_name: str | None = None


class TelegramChat(BaseModel):
    id: int
    type: str = "private"


class TelegramMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    from_user: TelegramUser | None = Field(default=None, alias="from")
    chat: TelegramChat
    text: str | None = None


class TelegramUpdate(BaseModel):
    update_id: int
    message: TelegramMessage | None = None


class WebhookResponse(BaseModel):
    ok: bool = True


def dispatch_update(machine: InteractionStateMachine, update: TelegramUpdate) -> bool:
    """Hand one update to the machine; return whether it was processed.

    Failures are logged and the update is dropped so one bad event never
    affects the others.
    """
    message = update.message
    if message is None or message.text is None or message.from_user is None:
        return False
    try:
        machine.handle_text(chat_id=message.chat.id, user_id=message.from_user.id, text=message.text)
    except Exception:
        logger.exception("Failed to handle update %s", update.update_id)
        return False
    return True


def _default_transport(settings: BotSettings) -> Transport:
    settings.require_bot_credentials()
    return TelegramTransport(bot_token=settings.bot_token, api_base=settings.api_base)


def create_app(
    settings: BotSettings | None = None,
    registry: SessionRegistry | None = None,
    transport: Transport | None = None,
) -> FastAPI:
    bot_settings = settings if settings is not None else load_settings()
    session_registry = registry if registry is not None else InMemorySessionRegistry()
    bot_transport = transport if transport is not None else _default_transport(bot_settings)
    machine = InteractionStateMachine(
        registry=session_registry,
        fanout=NotificationFanout(bot_transport),
        bot_username=bot_settings.bot_username,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            bot_transport.register_commands(COMMANDS)
        except DiceBotError as exc:
            logger.warning("Could not register bot commands: %s", exc)
        yield

    app = FastAPI(title="Dice Room Bot", version="0.1.0", lifespan=lifespan)
    app.state.registry = session_registry
    app.state.transport = bot_transport
    app.state.machine = machine

    @app.post("/telegram/webhook", response_model=WebhookResponse)
    def telegram_webhook(
        update: TelegramUpdate,
        x_telegram_bot_api_secret_token: str | None = Header(default=None),
    ) -> WebhookResponse:
        if not verify_webhook_secret(x_telegram_bot_api_secret_token, bot_settings.webhook_secret):
            raise HTTPException(status_code=403, detail="Invalid webhook secret")
        dispatch_update(machine, update)
        return WebhookResponse()

    return app
