import logging

from dicebot.backend.fanout import NotificationFanout, SendOptions
from dicebot.backend.transport import RecordingTransport, SentMessage


def test_broadcast_reaches_every_member_except_excluded() -> None:
    transport = RecordingTransport()
    fanout = NotificationFanout(transport)

    delivered = fanout.broadcast([1, 2, 3], "hello", exclude_user_id=2)

    assert delivered == 2
    assert [message.recipient_id for message in transport.sent] == [1, 3]


def test_broadcast_skips_failed_recipients_and_logs(caplog) -> None:
    transport = RecordingTransport(unreachable={2})
    fanout = NotificationFanout(transport)

    with caplog.at_level(logging.WARNING, logger="dicebot.backend.fanout"):
        delivered = fanout.broadcast([1, 2, 3], "roll!")

    assert delivered == 2
    assert transport.messages_for(1) == ["roll!"]
    assert transport.messages_for(3) == ["roll!"]
    assert "Could not deliver message to 2" in caplog.text


def test_send_passes_options_and_reports_failure() -> None:
    transport = RecordingTransport(unreachable={9})
    fanout = NotificationFanout(transport)

    assert fanout.send(1, "`/join ABC123`", SendOptions.CODE) is True
    assert fanout.send(9, "lost") is False
    assert transport.sent == [SentMessage(1, "`/join ABC123`", SendOptions.CODE)]


def test_broadcast_to_empty_room_sends_nothing() -> None:
    transport = RecordingTransport()

    assert NotificationFanout(transport).broadcast([], "anyone?") == 0
    assert transport.sent == []
