import logging
import os
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    api_base_url: str = "http://localhost:5000/api"
    api_timeout: float = 15.0
    timezone: str = "local"
    horizon_days: int = 30
    consultation_fee: int = 500
    log_level: str = "INFO"

    @property
    def tz(self) -> tzinfo:
        """Clinic time zone; "local" is the host's current offset."""
        if self.timezone.lower() == "local":
            return datetime.now().astimezone().tzinfo
        if self.timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone)


def load_settings() -> Settings:
    """Read settings from the environment (and .env, if present)."""
    return Settings(
        api_base_url=os.getenv("BOOKING_API_BASE_URL", "http://localhost:5000/api").rstrip("/"),
        api_timeout=float(os.getenv("BOOKING_API_TIMEOUT", "15")),
        timezone=os.getenv("BOOKING_TIMEZONE", "local"),
        horizon_days=int(os.getenv("BOOKING_HORIZON_DAYS", "30")),
        consultation_fee=int(os.getenv("CONSULTATION_FEE", "500")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


settings = load_settings()
