"""
Process configuration for sheetdiff.

Settings come from the environment (a local .env file is loaded first):
    - SPREADSHEET_ID: the sheet to watch (required)
    - RANGE: A1 range to read, e.g. "Notas!A2:F" (required)
    - WEBHOOK_URL: Discord webhook that receives notifications (required)
    - everything in DEFAULTS below can be overridden with the same name
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

REQUIRED = ("SPREADSHEET_ID", "RANGE", "WEBHOOK_URL")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULTS = {
    "CLIENT_SECRET_FILE": "client_secret.json",
    "TOKEN_FILE": "token.json",          # oauth2client token cache
    "SERVICE_ACCOUNT_FILE": "",          # set to use a service account instead
    "IDS_FILE": "ids.txt",

    "POLL_INTERVAL_SECONDS": "5",
    "FETCH_TIMEOUT_SECONDS": "5",
    "ALERT_THROTTLE_MINUTES": "10",
    "ANNOUNCE_STARTUP": "true",
    "LOG_LEVEL": "INFO",
}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    spreadsheet_id: str
    range: str
    webhook_url: str

    client_secret_file: str = DEFAULTS["CLIENT_SECRET_FILE"]
    token_file: str = DEFAULTS["TOKEN_FILE"]
    service_account_file: Optional[str] = None
    ids_file: str = DEFAULTS["IDS_FILE"]

    poll_interval_s: float = 5.0
    fetch_timeout_s: float = 5.0
    alert_throttle_s: float = 600.0
    announce_startup: bool = True
    log_level: str = DEFAULTS["LOG_LEVEL"]


def _positive_float(env: Mapping[str, str], key: str) -> float:
    raw = env.get(key) or DEFAULTS[key]
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {raw!r}")
    return value


def _flag(env: Mapping[str, str], key: str) -> bool:
    raw = (env.get(key) or DEFAULTS[key]).strip().lower()
    return raw in ("1", "true", "yes", "on")


def _log_level(env: Mapping[str, str]) -> str:
    raw = (env.get("LOG_LEVEL") or DEFAULTS["LOG_LEVEL"]).strip().upper()
    if raw not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {raw!r}")
    return raw


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    if env is None:
        load_dotenv()
        env = os.environ

    missing = [key for key in REQUIRED if not env.get(key)]
    if missing:
        raise ConfigError(f"{', '.join(missing)} not found in environment variables")

    return Settings(
        spreadsheet_id=env["SPREADSHEET_ID"],
        range=env["RANGE"],
        webhook_url=env["WEBHOOK_URL"],
        client_secret_file=env.get("CLIENT_SECRET_FILE") or DEFAULTS["CLIENT_SECRET_FILE"],
        token_file=env.get("TOKEN_FILE") or DEFAULTS["TOKEN_FILE"],
        service_account_file=env.get("SERVICE_ACCOUNT_FILE") or None,
        ids_file=env.get("IDS_FILE") or DEFAULTS["IDS_FILE"],
        poll_interval_s=_positive_float(env, "POLL_INTERVAL_SECONDS"),
        fetch_timeout_s=_positive_float(env, "FETCH_TIMEOUT_SECONDS"),
        alert_throttle_s=_positive_float(env, "ALERT_THROTTLE_MINUTES") * 60,
        announce_startup=_flag(env, "ANNOUNCE_STARTUP"),
        log_level=_log_level(env),
    )
