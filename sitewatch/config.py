import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    def __init__(self) -> None:
        self.SITES_CONFIG_PATH: str = os.getenv("SITES_CONFIG_PATH", "config/sites.json")
        self.SITES_CONFIG_URL: str | None = os.getenv("SITES_CONFIG_URL") or None
        self.GITHUB_TOKEN: str | None = os.getenv("GITHUB_TOKEN") or None
        self.CONFIG_FETCH_TIMEOUT_SECONDS: float = float(
            os.getenv("CONFIG_FETCH_TIMEOUT_SECONDS", "15")
        )
        self.TELEGRAM_TOKEN: str | None = os.getenv("TELEGRAM_TOKEN") or None
        self.TELEGRAM_CHAT_ID: str | None = os.getenv("TELEGRAM_CHAT_ID") or None
        self.NTFY_URL: str | None = os.getenv("NTFY_URL") or None
        self.NTFY_TOPIC: str | None = os.getenv("NTFY_TOPIC") or None
        self.POOL_SIZE: int = int(os.getenv("POOL_SIZE", 8))
        self.FAIL_ON_INCIDENT: bool = _env_bool("FAIL_ON_INCIDENT")
        self.ALERT_TIMEZONE: str = os.getenv("ALERT_TIMEZONE", "Europe/Paris")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
