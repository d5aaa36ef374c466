"""
Message transports.

A transport exposes `async deliver(address, message)`, raising
TransportError on failure, and `async aclose()`.
"""

import logging

from message_scheduler.scheduler.dispatcher import TransportClient

from .dry_run import DryRunTransport
from .whatsapp import WhatsAppClient, build_text_payload

logger = logging.getLogger(__name__)


def build_transport(settings) -> TransportClient:
    """
    Build the configured transport.

    WhatsApp delivery requires WHATSAPP_ENABLED plus a phone number id and
    access token; otherwise messages are only logged.
    """
    if not settings.whatsapp_enabled:
        logger.info("WhatsApp delivery disabled, using dry-run transport")
        return DryRunTransport()

    if not settings.whatsapp_phone_number_id or not settings.whatsapp_access_token:
        raise ValueError(
            "WHATSAPP_ENABLED=true requires WHATSAPP_PHONE_NUMBER_ID and WHATSAPP_ACCESS_TOKEN"
        )

    return WhatsAppClient(
        phone_number_id=settings.whatsapp_phone_number_id,
        access_token=settings.whatsapp_access_token,
        api_url=settings.whatsapp_api_url,
        timeout=settings.whatsapp_timeout_seconds,
    )


__all__ = [
    "TransportClient",
    "DryRunTransport",
    "WhatsAppClient",
    "build_text_payload",
    "build_transport",
]
