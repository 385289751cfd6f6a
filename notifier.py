"""
Skyport Climate Agent - Alerts

Lifecycle and failure messages delivered through a Telegram bot. Delivery
problems are logged and never interrupt the control loop.
"""

import logging
import socket
import time
from typing import Callable, Optional

import requests

import config

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


class TelegramNotifier:
    """Posts plain-text messages to one Telegram chat."""

    def __init__(self, bot_token: str = None, chat_id: str = None, session: requests.Session = None):
        self.bot_token = bot_token or config.TELEGRAM_BOT_TOKEN
        self.chat_id = chat_id or config.TELEGRAM_CHAT_ID
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def send(self, text: str) -> bool:
        if not self.enabled:
            return False
        try:
            response = self.session.post(
                f"{TELEGRAM_API}/bot{self.bot_token}/sendMessage",
                json={"chat_id": self.chat_id, "text": text},
                timeout=config.HTTP_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Telegram delivery failed: {e}")
            return False
        return True


class NotificationManager:
    """
    Agent-level alerts.

    Startup and shutdown messages always go out. Error alerts are rate
    limited to one per ALERT_COOLDOWN_SECONDS so a long upstream outage
    produces a single message.
    """

    def __init__(
        self,
        telegram: TelegramNotifier = None,
        cooldown_seconds: int = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.telegram = telegram or TelegramNotifier()
        self.cooldown_seconds = config.ALERT_COOLDOWN_SECONDS if cooldown_seconds is None else cooldown_seconds
        self.clock = clock
        self._last_error_at: Optional[float] = None
        self._host = socket.gethostname()

        if not self.telegram.enabled:
            logger.info("Telegram alerts disabled (no bot token or chat id)")

    def notify_startup(self, window: str) -> bool:
        return self.telegram.send(f"Climate agent started on {self._host}, control window {window}")

    def notify_shutdown(self) -> bool:
        return self.telegram.send(f"Climate agent on {self._host} stopped")

    def notify_error(self, error: str) -> bool:
        now = self.clock()
        if self._last_error_at is not None and now - self._last_error_at < self.cooldown_seconds:
            logger.info("Error alert suppressed, cooldown active")
            return False
        sent = self.telegram.send(f"Climate agent on {self._host} needs attention: {error}")
        if sent:
            self._last_error_at = now
        return sent
