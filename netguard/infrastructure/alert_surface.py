"""Alert Surfaces - default sinks for user-visible failure notifications.

Invariants:
    - show_alert(title, message) never raises
    - RecordingAlertSurface keeps alerts in arrival order, bounded by max_alerts
"""

import logging
from collections import deque

logger = logging.getLogger(__name__)


class LoggingAlertSurface:
    """Writes alerts to the log; used when no UI is attached."""

    def show_alert(self, title: str, message: str) -> None:
        logger.warning(f"{title}: {message}")


class RecordingAlertSurface:
    """Keeps recent alerts in memory so the API can expose them."""

    def __init__(self, max_alerts: int = 50):
        self._alerts: deque[dict] = deque(maxlen=max_alerts)

    def show_alert(self, title: str, message: str) -> None:
        logger.warning(f"{title}: {message}")
        self._alerts.append({"title": title, "message": message})

    def recent(self) -> list[dict]:
        return list(self._alerts)
