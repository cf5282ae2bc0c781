from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from . import checker, config, notifier
from .utils import RateLimiter, get_http_session

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run_forever(
    credentials: config.Credentials,
    *,
    check: Callable[[], Optional[checker.Notification]] = checker.check_stock,
    send: Callable[[checker.Notification, config.Credentials], None] = notifier.send_sms,
    limiter: Optional[RateLimiter] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll, notify and back off until a fatal notification is delivered.

    Every poll waits on the rate limiter first.  A cycle that produced a
    notification sleeps for the cooldown unless it was fatal and
    delivered, in which case this returns.
    """
    if limiter is None:
        limiter = RateLimiter(config.POLL_INTERVAL_SECONDS)

    while True:
        limiter.acquire()
        notification = check()
        if notification is None:
            continue

        try:
            send(notification, credentials)
        except notifier.DeliveryError:
            logger.exception("Could not deliver notification: %s", notification.message)
        else:
            if notification.fatal:
                logger.info("Fatal notification delivered; stopping monitor.")
                return

        logger.info("Sleeping for %d seconds before polling again.", config.COOLDOWN_SECONDS)
        sleep(config.COOLDOWN_SECONDS)


def main() -> None:
    """Initialise and run the monitoring loop."""
    credentials = config.validate()
    setup_logging()

    logger.info(
        "Starting stock monitor for %s (poll every %ss, cooldown %ss).",
        config.PRODUCT_URL,
        config.POLL_INTERVAL_SECONDS,
        config.COOLDOWN_SECONDS,
    )

    check_session = get_http_session()
    sms_session = get_http_session()
    try:
        run_forever(
            credentials,
            check=lambda: checker.check_stock(session=check_session),
            send=lambda n, c: notifier.send_sms(n, c, session=sms_session),
        )
    finally:
        check_session.close()
        sms_session.close()


if __name__ == "__main__":
    main()
