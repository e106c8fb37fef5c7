"""Interaction state machine that routes each incoming chat message."""

from __future__ import annotations

import logging
import re
from typing import Callable

from dicebot.backend import dice
from dicebot.backend.dice import DiceKind
from dicebot.backend.errors import CapacityError, NotFoundError, StateError, ValidationError
from dicebot.backend.fanout import NotificationFanout, SendOptions
from dicebot.backend.models import (
    CREATOR_NAME_LIMIT,
    JOIN_NAME_LIMIT,
    MAX_PLAYERS,
    MIN_PLAYERS,
    GameSession,
    Player,
)
from dicebot.backend.state import UserInteractionState, UserState, UserStateStore, build_join_state
from dicebot.backend.store import SessionRegistry

logger = logging.getLogger(__name__)

COMMANDS: tuple[tuple[str, str], ...] = (
    ("start", "Start the bot"),
    ("create", "Create a room"),
    ("join", "Join a room (for example: /join ABC123)"),
    ("stats", "Show the last rolls in your room"),
    ("leave", "Leave the room"),
    ("help", "Show help"),
    ("cancel", "Cancel the current action"),
)

_JOIN_CODE_RE = re.compile(r"^[A-Z0-9]{6}$")
_PLAYER_COUNT_RE = re.compile(r"^[0-9]+$")

WELCOME_TEXT = """🎲 Welcome to the Dice Room Bot! 🎲

Commands:
/start - Start the bot
/create - Create a room
/join [code] - Join a room (for example: /join ABC123)
/stats - Show the last rolls
/leave - Leave the room
/help - Show help
/cancel - Cancel the current action"""

HELP_TEXT = """📖 How to use the bot:

1️⃣ Creating a room:
Send /create, give the number of players and then your name

2️⃣ Joining a room:
Send /join [room code]
Example: /join ABC123
Then enter your name

3️⃣ Rolling dice:
After joining, use the buttons at the bottom of the screen
Tap a die to roll it!
You can roll without a room too, but nothing is kept

4️⃣ Statistics:
/stats - shows the last roll of every player

5️⃣ Leaving a room:
/leave - leave the room

6️⃣ Cancelling:
/cancel - cancel the current command"""

DICE_CONTROLS_TEXT = (
    "🎲 Use the buttons below to roll!\n"
    "Or type a die like: d6\n"
    f"Available dice: {', '.join(dice.DICE_TOKENS)}"
)

ASK_PLAYER_COUNT = f"👥 How many players can join the room ({MIN_PLAYERS} to {MAX_PLAYERS})?"
BAD_PLAYER_COUNT = (
    f"❌ The number of players must be a number from {MIN_PLAYERS} to {MAX_PLAYERS}! "
    "Try again or send /cancel:"
)
ASK_NAME = "👤 Now enter your name:"
EMPTY_NAME = "❌ The name cannot be empty! Enter your name:"


class InteractionStateMachine:
    """Decides what each message means based on what the user was last asked.

    Slash commands win in every state. Otherwise a pending multi-step
    command consumes the text, and only an idle user's text is checked
    for a dice token. Anything left over, unknown commands included, is
    ignored without a reply.

    The registry's user pointer is the only record of which room a user
    is in; this class never caches it.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        fanout: NotificationFanout,
        states: UserStateStore | None = None,
        bot_username: str = "",
    ) -> None:
        self._registry = registry
        self._fanout = fanout
        self._states = states if states is not None else UserStateStore()
        self._bot_username = bot_username.lstrip("@").lower()
        self._commands: dict[str, Callable[[int, int, str], None]] = {
            "start": self._handle_start,
            "help": self._handle_help,
            "create": self._handle_create,
            "join": self._handle_join,
            "cancel": self._handle_cancel,
            "stats": self._handle_stats,
            "leave": self._handle_leave,
        }

    @property
    def states(self) -> UserStateStore:
        return self._states

    def handle_text(self, chat_id: int, user_id: int, text: str) -> None:
        logger.debug("User %s sent %r", user_id, text)
        stripped = text.strip()
        if stripped.startswith("/"):
            command, args = self._split_command(stripped)
            handler = self._commands.get(command)
            if handler is not None:
                handler(chat_id, user_id, args)
            return

        current = self._states.get(user_id)
        if current.state is UserInteractionState.AWAITING_PLAYER_COUNT:
            self._handle_player_count(chat_id, user_id, text)
            return
        if current.state is UserInteractionState.AWAITING_CREATOR_NAME:
            self._handle_creator_name(chat_id, user_id, text)
            return
        if current.state is UserInteractionState.AWAITING_JOIN_NAME:
            self._handle_join_name(chat_id, user_id, text, current)
            return

        kind = dice.parse_token(stripped)
        if kind is not None:
            self._handle_roll(chat_id, user_id, kind)

    def _split_command(self, line: str) -> tuple[str, str]:
        parts = line[1:].split(None, 1)
        if not parts:
            return "", ""
        name, _, addressee = parts[0].lower().partition("@")
        if addressee and self._bot_username and addressee != self._bot_username:
            return "", ""
        args = parts[1] if len(parts) > 1 else ""
        return name, args

    def _reply(self, chat_id: int, text: str, options: SendOptions = SendOptions.NONE) -> None:
        self._fanout.send(chat_id, text, options)

    def _show_dice_controls(self, chat_id: int) -> None:
        self._reply(chat_id, DICE_CONTROLS_TEXT, SendOptions.DICE_KEYBOARD)

    def _handle_start(self, chat_id: int, user_id: int, args: str) -> None:
        self._reply(chat_id, WELCOME_TEXT)
        self._show_dice_controls(chat_id)

    def _handle_help(self, chat_id: int, user_id: int, args: str) -> None:
        self._reply(chat_id, HELP_TEXT)

    def _handle_create(self, chat_id: int, user_id: int, args: str) -> None:
        self._abandon_unnamed_room(user_id)
        self._states.set(user_id, UserInteractionState.AWAITING_PLAYER_COUNT)
        self._reply(chat_id, ASK_PLAYER_COUNT)

    def _handle_player_count(self, chat_id: int, user_id: int, text: str) -> None:
        try:
            max_players = _parse_player_count(text)
        except ValidationError:
            self._reply(chat_id, BAD_PLAYER_COUNT)
            return

        previous = self._registry.get_user_current_session(user_id)
        if previous is not None:
            self._depart(user_id, previous)

        session = self._registry.create_session(user_id, max_players)
        self._states.set(user_id, UserInteractionState.AWAITING_CREATOR_NAME)
        self._reply(
            chat_id,
            "✅ Room created!\n\n"
            f"🔑 Room code: {session.code}\n"
            f"👥 Max players: {session.max_players}\n\n"
            "Send this command to the other players so they can join:",
        )
        self._reply(chat_id, f"`/join {session.code}`", SendOptions.CODE)
        self._reply(chat_id, ASK_NAME)

    def _handle_creator_name(self, chat_id: int, user_id: int, text: str) -> None:
        session = self._registry.get_user_current_session(user_id)
        if session is None:
            self._states.clear(user_id)
            self._reply(chat_id, "❌ Create or join a room first!")
            return

        name = text.strip()[:CREATOR_NAME_LIMIT]
        if not name:
            self._reply(chat_id, EMPTY_NAME)
            return

        self._states.clear(user_id)
        try:
            self._registry.join_session(session.code, user_id, name)
        except NotFoundError:
            self._reply(chat_id, "❌ The room no longer exists!")
            return
        except (CapacityError, StateError):
            self._registry.leave_session(session.code, user_id)
            self._reply(chat_id, "❌ Could not join the room (it may be full)")
            return

        self._reply(chat_id, f"✅ Welcome to the game, {name}!")
        self._show_dice_controls(chat_id)

    def _handle_join(self, chat_id: int, user_id: int, args: str) -> None:
        try:
            code = _parse_join_code(args)
        except ValidationError:
            self._reply(chat_id, "❌ Wrong format! Use: /join [room code]")
            return

        status = self._registry.room_status(code, user_id)
        if status is None:
            self._reply(
                chat_id,
                f"❌ Room `{code}` was not found! Check the code.",
                SendOptions.CODE,
            )
            return
        if not status.is_active:
            self._reply(chat_id, "❌ The room is not active!")
            return
        if status.is_full:
            self._reply(chat_id, "❌ The room is full!")
            return

        # A failed lookup above leaves any pending command untouched.
        self._abandon_unnamed_room(user_id)
        self._states.clear(user_id)
        if status.is_member:
            self._reply(chat_id, "❌ You are already in this room!")
            self._show_dice_controls(chat_id)
            return

        self._states.set(user_id, build_join_state(code))
        self._reply(chat_id, "✅ Room found! 👤 Now enter your name:")

    def _handle_join_name(self, chat_id: int, user_id: int, text: str, current: UserState) -> None:
        try:
            code = current.require_pending_code()
        except StateError:
            logger.warning("User %s is awaiting a join name without a pending room", user_id)
            self._states.clear(user_id)
            self._reply(chat_id, "❌ Something went wrong! Try joining again with /join")
            return

        name = text.strip()[:JOIN_NAME_LIMIT]
        if not name:
            self._reply(chat_id, EMPTY_NAME)
            return

        self._states.clear(user_id)
        previous = self._registry.get_user_current_session(user_id)
        try:
            self._registry.join_session(code, user_id, name)
        except NotFoundError:
            self._reply(chat_id, "❌ The room no longer exists!")
            return
        except (CapacityError, StateError):
            self._reply(chat_id, "❌ Could not join the room (it may be full)")
            return

        if previous is not None and previous.code != code:
            self._depart(user_id, previous)

        self._reply(chat_id, f"✅ You joined the room as {name}!")
        self._show_dice_controls(chat_id)
        self._fanout.broadcast(
            self._registry.list_member_ids(code),
            f"👤 {name} joined the game!",
            exclude_user_id=user_id,
        )

    def _handle_cancel(self, chat_id: int, user_id: int, args: str) -> None:
        self._abandon_unnamed_room(user_id)
        self._states.clear(user_id)
        self._reply(chat_id, "❌ Operation cancelled")
        self._show_dice_controls(chat_id)

    def _handle_roll(self, chat_id: int, user_id: int, kind: DiceKind) -> None:
        session = self._registry.get_user_current_session(user_id)
        if session is not None:
            try:
                result = self._registry.record_roll(session.code, user_id, kind)
            except NotFoundError:
                pass
            else:
                player = _find_player(self._registry.list_players(session.code), user_id)
                roller = player.display_name if player is not None else "Someone"
                self._fanout.broadcast(
                    self._registry.list_member_ids(session.code),
                    f"🎲 {roller} rolled {kind.token} and got: {result.format_result()}",
                )
                return

        self._reply(chat_id, f"🎲 {kind.token}: {dice.roll(kind)}")

    def _handle_stats(self, chat_id: int, user_id: int, args: str) -> None:
        session = self._registry.get_user_current_session(user_id)
        if session is None:
            self._reply(chat_id, "❌ You are not in a room! Join a game with /join")
            return

        lines = ["📊 Last rolls:", ""]
        for player in self._registry.list_players(session.code):
            if player.last_roll is not None:
                roll = player.last_roll
                lines.append(f"👤 {player.display_name}: {roll.kind.token} → {roll.format_result()}")
            else:
                lines.append(f"👤 {player.display_name}: no rolls yet")
        self._reply(chat_id, "\n".join(lines))

    def _handle_leave(self, chat_id: int, user_id: int, args: str) -> None:
        self._states.clear(user_id)
        session = self._registry.get_user_current_session(user_id)
        if session is None:
            self._reply(chat_id, "❌ You are not in a room!")
            return

        self._depart(user_id, session)
        self._reply(chat_id, "✅ You left the room!")

    def _depart(self, user_id: int, session: GameSession) -> None:
        player = _find_player(self._registry.list_players(session.code), user_id)
        self._registry.leave_session(session.code, user_id)
        if player is None:
            return
        self._fanout.broadcast(
            self._registry.list_member_ids(session.code),
            f"👤 {player.display_name} left the room!",
            exclude_user_id=user_id,
        )

    def _abandon_unnamed_room(self, user_id: int) -> None:
        if self._states.get(user_id).state is not UserInteractionState.AWAITING_CREATOR_NAME:
            return
        session = self._registry.get_user_current_session(user_id)
        if session is None:
            return
        status = self._registry.room_status(session.code, user_id)
        if status is not None and not status.is_member:
            self._registry.leave_session(status.code, user_id)
            logger.info("User %s abandoned unnamed session %s", user_id, status.code)


def _parse_player_count(text: str) -> int:
    digits = text.strip()
    if not _PLAYER_COUNT_RE.match(digits):
        raise ValidationError(f"not a number: {text!r}")
    count = int(digits)
    if not MIN_PLAYERS <= count <= MAX_PLAYERS:
        raise ValidationError(f"player count out of range: {count}")
    return count


def _parse_join_code(args: str) -> str:
    code = args.strip().upper()
    if not _JOIN_CODE_RE.match(code):
        raise ValidationError(f"malformed room code: {args!r}")
    return code


def _find_player(players: list[Player], user_id: int) -> Player | None:
    for player in players:
        if player.user_id == user_id:
            return player
    return None
