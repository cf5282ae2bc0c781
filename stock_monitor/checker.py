"""Product stock checker.

Polls the product JSON endpoint once per call and compares the payload
against a known "out of stock" baseline.  Every abnormal outcome is turned
into a Notification carrying a message and a fatal flag; a payload that
matches the baseline yields None.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Optional

import requests

from .config import PRODUCT_URL, REQUEST_TIMEOUT_SECONDS
from .utils import get_http_session

logger = logging.getLogger(__name__)

# Read chunk size when the server does not declare a Content-Length.
DEFAULT_BUFFER_SIZE = 8192

# Upper bound on the read chunk size taken from a declared Content-Length.
MAX_BUFFER_HINT = 1024 * 1024

_CONTENT_LENGTH_RE = re.compile(r"\+?[0-9]+")


class SchemaError(ValueError):
    """Raised when a payload does not have the expected shape."""


@dataclass(frozen=True)
class Notification:
    message: str
    fatal: bool


@dataclass(frozen=True)
class MasterStock:
    in_stock: bool
    total_on_hand: int


@dataclass(frozen=True)
class ProductStock:
    updated_at: str
    total_on_hand: int
    master: MasterStock

    @classmethod
    def from_dict(cls, data: Any) -> "ProductStock":
        """Strictly decode the JSON object; unknown keys are ignored."""
        if not isinstance(data, dict):
            raise SchemaError(f"expected a JSON object, got {type(data).__name__}")
        master = _require(data, "master", dict)
        return cls(
            updated_at=_require(data, "updated_at", str),
            total_on_hand=_require_int(data, "total_on_hand"),
            master=MasterStock(
                in_stock=_require(master, "in_stock", bool, prefix="master."),
                total_on_hand=_require_int(master, "total_on_hand", prefix="master."),
            ),
        )

    def to_dict(self) -> dict:
        return asdict(self)

    def has_stock_signal(self) -> bool:
        return (
            self.total_on_hand > 0
            or self.master.total_on_hand > 0
            or self.master.in_stock
        )


def _require(data: dict, key: str, kind: type, prefix: str = "") -> Any:
    if key not in data:
        raise SchemaError(f"missing field `{prefix}{key}`")
    value = data[key]
    if not isinstance(value, kind):
        raise SchemaError(
            f"invalid type for `{prefix}{key}`: expected {kind.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


def _require_int(data: dict, key: str, prefix: str = "") -> int:
    value = _require(data, key, int, prefix)
    # bool is a subclass of int
    if isinstance(value, bool):
        raise SchemaError(f"invalid type for `{prefix}{key}`: expected int, got bool")
    return value


# Known "definitely not in stock" payload.  Update by hand when the page
# changes without restocking.
EXPECTED_RESPONSE = ProductStock(
    updated_at="2021-02-10T02:09:37.000Z",
    total_on_hand=0,
    master=MasterStock(in_stock=False, total_on_hand=0),
)


def _parse_content_length(value: str) -> int:
    if not _CONTENT_LENGTH_RE.fullmatch(value):
        raise ValueError(f"invalid Content-Length {value!r}")
    return int(value)


def _read_body(resp: requests.Response, capacity: int) -> bytes:
    buf = bytearray()
    for chunk in resp.iter_content(chunk_size=capacity):
        if chunk:
            buf.extend(chunk)
    return bytes(buf)


def _classify_status(status: int, url: str) -> Optional[Notification]:
    if status == 200:
        return None
    if 400 <= status < 500:
        logger.warning("Client error %d from %s; will retry after cooldown", status, url)
        return Notification(
            message=f"Stock check got client error HTTP {status} from {url}. Will keep retrying.",
            fatal=False,
        )
    logger.error("Unexpected HTTP status %d from %s", status, url)
    return Notification(
        message=f"Stock check got unexpected HTTP {status} from {url}. Monitor stopped.",
        fatal=True,
    )


def _compare(observed: ProductStock, expected: ProductStock, url: str) -> Optional[Notification]:
    if observed == expected:
        logger.info("Payload matches baseline; still out of stock.")
        return None
    if observed.has_stock_signal():
        logger.error("Stock may be available: %r", observed)
        return Notification(
            message=f"Stock may be available! {url} {observed!r}",
            fatal=True,
        )
    logger.error("Payload changed without a stock signal: %r", observed)
    return Notification(
        message=(
            "Product page changed but shows no stock. Update the expected "
            f"baseline to {observed!r} and restart the monitor."
        ),
        fatal=True,
    )


def check_stock(
    session: Optional[requests.Session] = None,
    url: str = PRODUCT_URL,
    expected: ProductStock = EXPECTED_RESPONSE,
) -> Optional[Notification]:
    """Poll the product endpoint once.

    Returns None when the payload equals the baseline, otherwise a
    Notification describing what happened.  Exactly one GET is made.
    """
    close_session = False
    if session is None:
        session = get_http_session()
        close_session = True

    try:
        try:
            resp = session.get(url, timeout=REQUEST_TIMEOUT_SECONDS, stream=True)
        except requests.RequestException as e:
            logger.warning("Request to %s failed: %s", url, e)
            return Notification(message=f"Stock check request failed: {e}", fatal=False)

        with resp:
            outcome = _classify_status(resp.status_code, url)
            if outcome is not None:
                return outcome

            capacity = DEFAULT_BUFFER_SIZE
            declared = resp.headers.get("Content-Length")
            if declared is not None:
                try:
                    declared_size = _parse_content_length(declared)
                except ValueError as e:
                    logger.error("Could not parse Content-Length from %s: %s", url, e)
                    return Notification(
                        message=f"Stock check failed to parse response metadata: {e}",
                        fatal=True,
                    )
                capacity = min(declared_size, MAX_BUFFER_HINT) or DEFAULT_BUFFER_SIZE

            try:
                body = _read_body(resp, capacity)
            except requests.RequestException as e:
                logger.warning("Reading response body from %s failed: %s", url, e)
                return Notification(
                    message=f"Stock check failed reading response body: {e}",
                    fatal=False,
                )

        logger.debug("Read %d bytes from %s", len(body), url)
        try:
            observed = ProductStock.from_dict(json.loads(body))
        except (ValueError, RecursionError) as e:
            # JSONDecodeError, UnicodeDecodeError and SchemaError are all ValueErrors;
            # RecursionError comes from pathologically nested JSON
            logger.error("Could not decode payload from %s: %s", url, e)
            return Notification(
                message=f"Stock check could not decode the product payload: {e}",
                fatal=True,
            )

        return _compare(observed, expected, url)
    finally:
        if close_session:
            session.close()


__all__ = [
    "DEFAULT_BUFFER_SIZE",
    "EXPECTED_RESPONSE",
    "MasterStock",
    "Notification",
    "ProductStock",
    "SchemaError",
    "check_stock",
]
