"""
WhatsApp delivery over the Cloud API.

Sends a plain text message per call:
    POST {api_url}/{phone_number_id}/messages
    Authorization: Bearer {access_token}

The access token is configured, not negotiated; session lifecycle belongs
to the WhatsApp Business account, not to this client.
"""

import logging
from typing import Optional

import httpx

from message_scheduler import __version__
from message_scheduler.scheduler.errors import TransportError

logger = logging.getLogger(__name__)

# Transport configuration
DEFAULT_API_URL = "https://graph.facebook.com/v19.0"
DEFAULT_TIMEOUT_SECONDS = 30.0


def build_text_payload(number: str, message: str) -> dict:
    """
    Build a Cloud API text message payload.

    Args:
        number: Recipient number including country code, digits only
        message: Message body

    Returns:
        Dictionary payload for the messages endpoint
    """
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": number,
        "type": "text",
        "text": {"body": message},
    }


class WhatsAppClient:
    """
    Async WhatsApp Cloud API client.

    One delivery attempt per call; no retries. Any failure is raised as
    TransportError so the dispatch cycle can record it and move on.
    """

    def __init__(
        self,
        phone_number_id: str,
        access_token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.phone_number_id = phone_number_id
        self.access_token = access_token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    @property
    def messages_url(self) -> str:
        return f"{self.api_url}/{self.phone_number_id}/messages"

    async def deliver(self, address: str, message: str) -> Optional[str]:
        """
        Send `message` to `address`.

        Returns:
            The provider message id, when the response carries one

        Raises:
            TransportError: On non-2xx response, timeout or request error
        """
        payload = build_text_payload(address, message)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.messages_url,
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.access_token}",
                        "Content-Type": "application/json",
                        "User-Agent": f"MessageScheduler/{__version__}",
                    },
                )
        except httpx.TimeoutException as e:
            raise TransportError(address, f"Timeout after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise TransportError(address, f"Request error: {e}") from e

        if response.status_code < 200 or response.status_code >= 300:
            raise TransportError(
                address, f"HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            messages = response.json().get("messages") or []
        except ValueError:
            messages = []
        message_id = messages[0].get("id") if messages else None

        logger.debug(f"WhatsApp accepted message for {address} (id={message_id})")
        return message_id

    async def aclose(self) -> None:
        """Nothing held between calls."""
        return None
