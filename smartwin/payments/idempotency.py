"""
In-process record of payments the operator has already been told about.

Pesapal repeats an IPN call until it is acknowledged, and a payer landing
page can trigger the same lookup again. Claiming the tracking id before
notifying keeps a warm process from sending the same email twice. The
record is not shared between processes and does not survive a restart.
"""

import threading
from datetime import datetime, timedelta
from typing import Callable, Dict

from smartwin.payments.utils import utcnow


class NotificationLedger:
    """
    Tracking ids claimed for notification, kept for ``retention_seconds``.
    """

    def __init__(self, retention_seconds: int = 86400, clock: Callable[[], datetime] = utcnow):
        self.retention = timedelta(seconds=retention_seconds)
        self.clock = clock
        self._claimed: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def claim(self, tracking_id: str) -> bool:
        """
        Claim a tracking id.

        Returns:
            True if the caller should notify, False if another call already did
        """
        with self._lock:
            now = self.clock()
            self._purge(now)
            if tracking_id in self._claimed:
                return False
            self._claimed[tracking_id] = now
            return True

    def release(self, tracking_id: str):
        """Give a claim back, e.g. after the notification failed."""
        with self._lock:
            self._claimed.pop(tracking_id, None)

    def __contains__(self, tracking_id: str) -> bool:
        with self._lock:
            self._purge(self.clock())
            return tracking_id in self._claimed

    def __len__(self) -> int:
        with self._lock:
            return len(self._claimed)

    def _purge(self, now: datetime):
        cutoff = now - self.retention
        for key in [k for k, at in self._claimed.items() if at <= cutoff]:
            del self._claimed[key]
