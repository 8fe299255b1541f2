"""Telegram Bot API client for user and operator notices"""

import httpx
from layersplit.domain.exceptions import NotificationError
from layersplit.domain.models import Notice


class TelegramNotifier:
    """Sends plain-text notices through the Telegram Bot API"""

    def __init__(
        self,
        bot_token: str,
        api_base: str = "https://api.telegram.org",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.bot_token = bot_token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def send(self, notice: Notice) -> None:
        """
        Deliver one notice.

        Raises:
            NotificationError: On timeout, HTTP errors, or an API-level failure
        """
        if not self.bot_token:
            raise NotificationError("bot token is not configured")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.api_base}/bot{self.bot_token}/sendMessage",
                    json={
                        "chat_id": notice.chat_id,
                        "text": notice.text,
                        "link_preview_options": {"is_disabled": True},
                    },
                )
                response.raise_for_status()
                data = response.json()

            except httpx.TimeoutException as e:
                raise NotificationError(f"Telegram API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise NotificationError(f"Telegram API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise NotificationError(f"Telegram API unreachable: {e}") from e
            except ValueError as e:
                raise NotificationError(f"Invalid response from Telegram: {e}") from e

        if not data.get("ok", False):
            raise NotificationError(f"Telegram rejected message: {data.get('description', 'unknown error')}")
