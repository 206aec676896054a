import os
from dataclasses import dataclass


@dataclass
class Settings:
    DB_PATH: str = os.getenv("DB_PATH", "./tally.db")
    # сколько секунд ждать блокировку SQLite, прежде чем сдаться
    DB_TIMEOUT_SECONDS: float = float(os.getenv("DB_TIMEOUT_SECONDS", "5"))

    GRACE_PERIOD_SECONDS: int = int(os.getenv("GRACE_PERIOD_SECONDS", "120"))

    CURRENCY_SYMBOL: str = os.getenv("CURRENCY_SYMBOL", "€")
    DECIMAL_SEPARATOR: str = os.getenv("DECIMAL_SEPARATOR", ",")

    TRANSACTIONS_DEFAULT_LIMIT: int = int(os.getenv("TRANSACTIONS_DEFAULT_LIMIT", "10"))
    TRANSACTIONS_MAX_LIMIT: int = int(os.getenv("TRANSACTIONS_MAX_LIMIT", "100"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_JSON: bool = os.getenv("LOG_JSON", "0").lower() in {"1", "true", "yes"}

settings = Settings()
