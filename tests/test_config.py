import pytest

from sheetdiff.config import ConfigError, load_settings

ENV = {
    "SPREADSHEET_ID": "sheet-id",
    "RANGE": "Notas!A2:F",
    "WEBHOOK_URL": "https://discord.com/api/webhooks/1/abc",
}


def test_required_keys_only_gives_defaults() -> None:
    settings = load_settings(ENV)

    assert settings.spreadsheet_id == "sheet-id"
    assert settings.range == "Notas!A2:F"
    assert settings.client_secret_file == "client_secret.json"
    assert settings.token_file == "token.json"
    assert settings.service_account_file is None
    assert settings.ids_file == "ids.txt"
    assert settings.poll_interval_s == 5.0
    assert settings.fetch_timeout_s == 5.0
    assert settings.alert_throttle_s == 600.0
    assert settings.announce_startup is True
    assert settings.log_level == "INFO"


@pytest.mark.parametrize("key", ["SPREADSHEET_ID", "RANGE", "WEBHOOK_URL"])
def test_missing_required_key_is_fatal(key) -> None:
    env = {k: v for k, v in ENV.items() if k != key}

    with pytest.raises(ConfigError, match=key):
        load_settings(env)


def test_overrides() -> None:
    env = dict(
        ENV,
        POLL_INTERVAL_SECONDS="30",
        ALERT_THROTTLE_MINUTES="2",
        ANNOUNCE_STARTUP="no",
        SERVICE_ACCOUNT_FILE=".credentials/sa.json",
        LOG_LEVEL="debug",
    )

    settings = load_settings(env)

    assert settings.poll_interval_s == 30.0
    assert settings.alert_throttle_s == 120.0
    assert settings.announce_startup is False
    assert settings.service_account_file == ".credentials/sa.json"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("value", ["soon", "0", "-5"])
def test_bad_numbers_are_fatal(value) -> None:
    with pytest.raises(ConfigError, match="FETCH_TIMEOUT_SECONDS"):
        load_settings(dict(ENV, FETCH_TIMEOUT_SECONDS=value))


def test_bad_log_level_is_fatal() -> None:
    with pytest.raises(ConfigError, match="LOG_LEVEL"):
        load_settings(dict(ENV, LOG_LEVEL="chatty"))


def test_reads_process_environment(monkeypatch) -> None:
    for key, value in ENV.items():
        monkeypatch.setenv(key, value)

    assert load_settings().webhook_url == ENV["WEBHOOK_URL"]
