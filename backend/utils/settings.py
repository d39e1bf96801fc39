"""
Process configuration for the bot.
All values come from the environment (backend/.env is loaded first when present).
Missing required credentials raise ConfigurationError; server.main turns that into exit status 1.
"""
import os
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parent.parent

REQUIRED_ENV_VARS = ("TELEGRAM_BOT_TOKEN", "MONGO_URL", "DB_NAME")


class ConfigurationError(Exception):
    """Required startup configuration is missing."""
    pass


class BotSettings(BaseModel):
    telegram_bot_token: str
    mongo_url: str
    db_name: str
    physical_provider_token: Optional[str] = None
    log_level: str = "INFO"


def _env(name: str) -> str:
    return (os.environ.get(name) or "").strip()


def load_settings(env_file: Optional[Path] = None) -> BotSettings:
    load_dotenv(env_file or BACKEND_DIR / ".env", override=False)

    missing = [name for name in REQUIRED_ENV_VARS if not _env(name)]
    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    physical_provider_token = _env("TELEGRAM_PHYSICAL_PROVIDER_TOKEN") or None
    if physical_provider_token is None:
        logger.warning("TELEGRAM_PHYSICAL_PROVIDER_TOKEN is not set. Physical goods cannot be invoiced.")

    return BotSettings(
        telegram_bot_token=_env("TELEGRAM_BOT_TOKEN"),
        mongo_url=_env("MONGO_URL"),
        db_name=_env("DB_NAME"),
        physical_provider_token=physical_provider_token,
        log_level=_env("LOG_LEVEL").upper() or "INFO",
    )
