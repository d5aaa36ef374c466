"""
Runtime configuration for the message scheduler.

Values come from environment variables; entry points call load_dotenv()
first so a local .env file is honored.

Environment Variables:
- SCHEDULER_DB_PATH: SQLite database path (default: data/scheduler.db)
- SCHEDULER_TIMEZONE: Zone for naive send times (default: UTC)
- WHATSAPP_ENABLED: Send through WhatsApp instead of logging (default: false)
- WHATSAPP_API_URL: Cloud API base URL
- WHATSAPP_PHONE_NUMBER_ID: Sender phone number id
- WHATSAPP_ACCESS_TOKEN: Bearer token for the Cloud API
- WHATSAPP_TIMEOUT_SECONDS: Per-delivery HTTP timeout (default: 30)
- LOG_LEVEL: Logging level (default: INFO)
- LOG_DIR: Log file directory (default: logs)
- HOST / PORT: API bind address (default: 127.0.0.1:8000)
- API_AUTH_ENABLED / API_KEY: Require an X-API-Key header on the API
"""

import logging
import os
from dataclasses import dataclass
from datetime import timezone, tzinfo as TzInfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from message_scheduler.transport.whatsapp import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


# =============================================================================
# Environment helpers
# =============================================================================

def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    val = os.getenv(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    elif val in ("false", "0", "no", "off"):
        return False
    return default


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return int(val)
        except ValueError:
            logger.warning(f"[Config] Invalid integer for {key}: {val}, using default: {default}")
    return default


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return float(val)
        except ValueError:
            logger.warning(f"[Config] Invalid number for {key}: {val}, using default: {default}")
    return default


def get_project_root() -> Path:
    """Project root (two levels above this file's package)."""
    return Path(__file__).parent.parent.parent.resolve()


# =============================================================================
# Settings
# =============================================================================

@dataclass
class Settings:
    """Resolved configuration for one process."""

    db_path: Path
    timezone: str = "UTC"
    whatsapp_enabled: bool = False
    whatsapp_api_url: str = DEFAULT_API_URL
    whatsapp_phone_number_id: str = ""
    whatsapp_access_token: str = ""
    whatsapp_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"
    log_dir: str = "logs"
    host: str = "127.0.0.1"
    port: int = 8000
    api_auth_enabled: bool = False
    api_key: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment."""
        db_path = os.getenv("SCHEDULER_DB_PATH")
        return cls(
            db_path=Path(db_path) if db_path else get_project_root() / "data" / "scheduler.db",
            timezone=os.getenv("SCHEDULER_TIMEZONE", "UTC"),
            whatsapp_enabled=_get_env_bool("WHATSAPP_ENABLED", False),
            whatsapp_api_url=os.getenv("WHATSAPP_API_URL", DEFAULT_API_URL),
            whatsapp_phone_number_id=os.getenv("WHATSAPP_PHONE_NUMBER_ID", ""),
            whatsapp_access_token=os.getenv("WHATSAPP_ACCESS_TOKEN", ""),
            whatsapp_timeout_seconds=_get_env_float(
                "WHATSAPP_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_dir=os.getenv("LOG_DIR", "logs"),
            host=os.getenv("HOST", "127.0.0.1"),
            port=_get_env_int("PORT", 8000),
            api_auth_enabled=_get_env_bool("API_AUTH_ENABLED", False),
            api_key=os.getenv("API_KEY", ""),
        )

    @property
    def tzinfo(self) -> TzInfo:
        """Zone used to interpret naive send times. Falls back to UTC."""
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"[Config] Unknown timezone {self.timezone!r}, using UTC")
            return timezone.utc
