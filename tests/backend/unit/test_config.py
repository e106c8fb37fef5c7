import pytest

from dicebot.backend.config import load_settings


def test_load_settings_reads_expected_env(monkeypatch) -> None:
    monkeypatch.setenv("DICEBOT_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("DICEBOT_BOT_USERNAME", "DiceRoomBot")
    monkeypatch.setenv("DICEBOT_WEBHOOK_SECRET", "s3cret")
    monkeypatch.setenv("DICEBOT_API_BASE", "http://localhost:8081")
    monkeypatch.setenv("DICEBOT_HOST", "0.0.0.0")
    monkeypatch.setenv("DICEBOT_PORT", "9000")
    monkeypatch.setenv("DICEBOT_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.bot_token == "123:abc"
    assert settings.bot_username == "DiceRoomBot"
    assert settings.webhook_secret == "s3cret"
    assert settings.api_base == "http://localhost:8081"
    assert settings.host == "0.0.0.0"
    assert settings.port == 9000
    assert settings.log_level == "DEBUG"
    settings.require_bot_credentials()


def test_load_settings_applies_defaults(monkeypatch) -> None:
    for name in (
        "DICEBOT_BOT_TOKEN",
        "DICEBOT_BOT_USERNAME",
        "DICEBOT_WEBHOOK_SECRET",
        "DICEBOT_API_BASE",
        "DICEBOT_HOST",
        "DICEBOT_PORT",
        "DICEBOT_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.bot_token == ""
    assert settings.bot_username == ""
    assert settings.webhook_secret is None
    assert settings.api_base == "https://api.telegram.org"
    assert settings.host == "127.0.0.1"
    assert settings.port == 8000
    assert settings.log_level == "INFO"


def test_require_bot_credentials_names_missing_variable(monkeypatch) -> None:
    monkeypatch.delenv("DICEBOT_BOT_TOKEN", raising=False)
    monkeypatch.setenv("DICEBOT_BOT_USERNAME", "DiceRoomBot")

    with pytest.raises(RuntimeError, match="DICEBOT_BOT_TOKEN"):
        load_settings().require_bot_credentials()
