"""Best-effort delivery of bot replies to one user or a whole room."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum
import logging
from typing import Protocol

from dicebot.backend.errors import DeliveryError

logger = logging.getLogger(__name__)


class SendOptions(str, Enum):
    NONE = "none"
    DICE_KEYBOARD = "dice_keyboard"
    CODE = "code"


class Transport(Protocol):
    def send(self, recipient_id: int, text: str, options: SendOptions = SendOptions.NONE) -> None:
        """Deliver ``text``; raise DeliveryError when the platform rejects it."""

    def register_commands(self, commands: Sequence[tuple[str, str]]) -> None:
        """Publish the command list shown by the platform client."""


class NotificationFanout:
    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def send(self, recipient_id: int, text: str, options: SendOptions = SendOptions.NONE) -> bool:
        try:
            self._transport.send(recipient_id, text, options)
        except DeliveryError as exc:
            logger.warning("Could not deliver message to %s: %s", recipient_id, exc.reason)
            return False
        return True

    def broadcast(
        self,
        member_ids: Iterable[int],
        text: str,
        exclude_user_id: int | None = None,
        options: SendOptions = SendOptions.NONE,
    ) -> int:
        """Send ``text`` to every member except ``exclude_user_id``.

        ``member_ids`` must be a snapshot taken from the registry, never a
        live view, since sends happen outside the registry lock. A failed
        recipient is logged and skipped. Returns the number delivered.
        """
        delivered = 0
        for member_id in list(member_ids):
            if exclude_user_id is not None and member_id == exclude_user_id:
                continue
            if self.send(member_id, text, options):
                delivered += 1
        return delivered
