"""Configuration loader.

Reads environment variables and `.env` to configure the service.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

# Load variables from a .env file if present (project root).
load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")


class ConfigError(RuntimeError):
    """Raised when required configuration is missing at startup."""


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _parse_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value is not None else default
    except ValueError:
        return default


# ---- Polling -----------------------------------------------------------------

# Product JSON endpoint. The baseline in checker.py belongs to this product.
PRODUCT_URL: str = _get_env(
    "PRODUCT_URL",
    "https://2a2d0e3f-9b06-4381-a183-f2a75519cadf.mysimplestore.com"
    "/api/v2/products/asi-bac4000-plug-and-play-kit-for-surron",
)

# At most one poll per interval (token bucket, capacity 1).
POLL_INTERVAL_SECONDS: int = _parse_int(_get_env("POLL_INTERVAL_SECONDS"), 20)

# Extra sleep after a cycle that produced a notification without terminating.
COOLDOWN_SECONDS: int = _parse_int(_get_env("COOLDOWN_SECONDS"), 120)

REQUEST_TIMEOUT_SECONDS: float = _parse_float(_get_env("REQUEST_TIMEOUT_SECONDS"), 30.0)

USER_AGENT: str = _get_env(
    "USER_AGENT",
    "stock-sms-monitor/1.0 (personal restock alert; contact: owner@example.com; "
    "polls one product at most once every 20 seconds)",
)

# ---- SMS ---------------------------------------------------------------------

TWILIO_API_BASE: str = _get_env("TWILIO_API_BASE", "https://api.twilio.com")

SMS_PREFIX: str = _get_env("SMS_PREFIX", "[stock-monitor]") or ""

# Logging level: DEBUG, INFO, WARNING, ERROR.
LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO")

# ---- Credentials -------------------------------------------------------------

REQUIRED_VARS = (
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "TWILIO_FROM_NUMBER",
    "TWILIO_TO_NUMBER",
)


@dataclass(frozen=True)
class Credentials:
    account_sid: str
    auth_token: str
    from_number: str
    to_number: str

    def __repr__(self) -> str:
        # keep the auth token out of logs and tracebacks
        return (
            f"Credentials(account_sid={self.account_sid!r}, auth_token='***', "
            f"from_number={self.from_number!r}, to_number={self.to_number!r})"
        )


def load_credentials(environ: Optional[Mapping[str, str]] = None) -> Credentials:
    """Build Credentials from the environment.

    Every required variable must be present and non-empty; otherwise a
    ConfigError naming all of the missing ones is raised.
    """
    env = os.environ if environ is None else environ
    missing = [name for name in REQUIRED_VARS if not env.get(name)]
    if missing:
        raise ConfigError(
            f"Missing required environment variables: {', '.join(missing)}. "
            "See .env.example for details."
        )
    return Credentials(
        account_sid=env["TWILIO_ACCOUNT_SID"],
        auth_token=env["TWILIO_AUTH_TOKEN"],
        from_number=env["TWILIO_FROM_NUMBER"],
        to_number=env["TWILIO_TO_NUMBER"],
    )


# ---- Validation --------------------------------------------------------------

def validate() -> Credentials:
    """Validate required configuration parameters and return the credentials."""
    if POLL_INTERVAL_SECONDS <= 0:
        raise ConfigError(
            f"POLL_INTERVAL_SECONDS must be positive, got {POLL_INTERVAL_SECONDS}"
        )
    if REQUEST_TIMEOUT_SECONDS <= 0:
        raise ConfigError(
            f"REQUEST_TIMEOUT_SECONDS must be positive, got {REQUEST_TIMEOUT_SECONDS}"
        )
    if COOLDOWN_SECONDS < 0:
        raise ConfigError(
            f"COOLDOWN_SECONDS must not be negative, got {COOLDOWN_SECONDS}"
        )
    return load_credentials()


__all__ = [
    "PRODUCT_URL",
    "POLL_INTERVAL_SECONDS",
    "COOLDOWN_SECONDS",
    "REQUEST_TIMEOUT_SECONDS",
    "USER_AGENT",
    "TWILIO_API_BASE",
    "SMS_PREFIX",
    "LOG_LEVEL",
    "REQUIRED_VARS",
    "Credentials",
    "ConfigError",
    "load_credentials",
    "validate",
]
