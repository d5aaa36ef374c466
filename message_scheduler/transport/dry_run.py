"""
Log-only transport used when WhatsApp delivery is disabled.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class DryRunTransport:
    """Logs each delivery instead of sending it. Always succeeds."""

    def __init__(self):
        self.deliveries: list[tuple[str, str]] = []

    async def deliver(self, address: str, message: str) -> Optional[str]:
        self.deliveries.append((address, message))
        logger.info(f"[dry-run] would send {len(message)} chars to {address}")
        return None

    async def aclose(self) -> None:
        return None
