"""Fire-and-forget admin notifications through the Telegram Bot API."""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


class WebhookNotifier:
    def __init__(self, bot_token: Optional[str], chat_id: Optional[str],
                 timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    @property
    def url(self) -> str:
        return f"{TELEGRAM_API}/bot{self.bot_token}/sendMessage"

    def send(self, text: str) -> bool:
        """Post text to the admin chat. Never raises; returns whether it was delivered."""
        if not self.enabled:
            logger.debug("Webhook notifier disabled, dropping notification")
            return False
        try:
            response = self.session.post(
                self.url,
                json={"chat_id": self.chat_id, "text": text, "disable_notification": False},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return True
        except requests.RequestException as e:
            # Don't log self.url, it embeds the bot token
            logger.error(f"Webhook notification failed: {type(e).__name__}")
            return False
