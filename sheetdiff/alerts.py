"""
Throttled error alerts.

Google API errors tend to come in bursts (quota, auth refresh, outages), and
the bot polls every few seconds, so only one alert goes out per window no
matter how many errors happen in between.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from sheetdiff.models import NotifyFailure

log = logging.getLogger(__name__)

SOURCE_ERROR_ALERT = "Google API Error happened. Check console for more information"
DEFAULT_WINDOW_S = 10 * 60


class ErrorAlerter:
    """
    Holds the time of the last alert sent. Only the loop driver touches it.
    """
    def __init__(self, notifier, window_s: float = DEFAULT_WINDOW_S,
                 clock: Callable[[], float] = time.monotonic):
        self.notifier = notifier
        self.window_s = window_s
        self.clock = clock
        self.last_alert_at: Optional[float] = None

    def should_alert(self, now: float) -> bool:
        return self.last_alert_at is None or now - self.last_alert_at > self.window_s

    async def alert(self, message: str = SOURCE_ERROR_ALERT) -> bool:
        """
        Sends the alert unless one went out within the window.
        Returns True if a send was attempted. Delivery failures are only logged.
        """
        now = self.clock()
        if not self.should_alert(now):
            log.debug("Alert suppressed (last one %.0fs ago)", now - self.last_alert_at)
            return False

        # recorded before sending: a failed send still starts the window
        self.last_alert_at = now
        try:
            await self.notifier.send(message)
        except NotifyFailure as e:
            log.warning("Could not deliver error alert: %s", e)
        except Exception:
            log.exception("Unexpected error while sending error alert")
        return True
