"""Report delivery to business owners through the Telegram Bot API."""
import logging
from typing import List, Optional, Protocol

import httpx

from incomebot.config import HTTP_TIMEOUT_SECONDS, TELEGRAM_MESSAGE_LIMIT
from incomebot.errors import DeliveryError

logger = logging.getLogger("incomebot-delivery")

API_BASE = "https://api.telegram.org"


class ReportDelivery(Protocol):
    async def send(self, address: str, text: str) -> None: ...


def split_message(text: str, limit: int = TELEGRAM_MESSAGE_LIMIT) -> List[str]:
    """Chunks of at most ``limit`` characters, broken at line ends where possible."""
    if len(text) <= limit:
        return [text]

    chunks: List[str] = []
    remaining = text
    while len(remaining) > limit:
        cut = remaining.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(remaining[:cut])
        remaining = remaining[cut:].lstrip("\n")
    if remaining:
        chunks.append(remaining)
    return chunks


class TelegramDelivery:
    def __init__(self, token: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.token = token
        self._transport = transport

    async def send(self, address: str, text: str) -> None:
        if not self.token:
            raise DeliveryError(address, "TELEGRAM_BOT_TOKEN is not configured")

        url = f"{API_BASE}/bot{self.token}/sendMessage"
        try:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, transport=self._transport) as client:
                for chunk in split_message(text):
                    resp = await client.post(url, json={"chat_id": address, "text": chunk})
                    resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DeliveryError(address, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise DeliveryError(address, f"{type(e).__name__}: {e}") from e
        logger.debug(f"Delivered {len(text)} characters to {address}")
