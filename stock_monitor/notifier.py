"""Twilio SMS notifier.

Sends one text message per Notification through the Twilio REST API
using a plain form-encoded POST with HTTP basic auth.
"""
from __future__ import annotations

import logging
from typing import Optional

import requests
from requests.auth import HTTPBasicAuth

from .checker import Notification
from .config import REQUEST_TIMEOUT_SECONDS, SMS_PREFIX, TWILIO_API_BASE, Credentials
from .utils import get_http_session

logger = logging.getLogger(__name__)

# Twilio rejects message bodies longer than this.
MAX_SMS_LENGTH = 1600


class DeliveryError(Exception):
    """Raised when an SMS could not be delivered."""


def _messages_endpoint(account_sid: str, api_base: str = TWILIO_API_BASE) -> str:
    return f"{api_base.rstrip('/')}/2010-04-01/Accounts/{account_sid}/Messages.json"


def _build_body(message: str, prefix: str = SMS_PREFIX) -> str:
    body = f"{prefix} {message}" if prefix else message
    if len(body) > MAX_SMS_LENGTH:
        body = body[: MAX_SMS_LENGTH - 3] + "..."
    return body


def send_sms(
    notification: Notification,
    credentials: Credentials,
    session: Optional[requests.Session] = None,
) -> None:
    """Deliver `notification` as a single SMS.

    Any response that requests does not treat as an error counts as
    delivered; the JSON body Twilio returns is not inspected.  Raises
    DeliveryError on transport failures and 4xx/5xx responses.
    """
    close_session = False
    if session is None:
        session = get_http_session()
        close_session = True

    url = _messages_endpoint(credentials.account_sid)
    data = {
        "Body": _build_body(notification.message),
        "From": credentials.from_number,
        "To": credentials.to_number,
    }
    try:
        logger.info(
            "Sending %s SMS to %s",
            "fatal" if notification.fatal else "non-fatal",
            credentials.to_number,
        )
        resp = session.post(
            url,
            data=data,
            auth=HTTPBasicAuth(credentials.account_sid, credentials.auth_token),
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        raise DeliveryError(f"SMS delivery failed: {e}") from e
    finally:
        if close_session:
            session.close()

    logger.info("SMS sent (HTTP %s)", resp.status_code)


__all__ = ["DeliveryError", "MAX_SMS_LENGTH", "send_sms"]
