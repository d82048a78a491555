import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
    database_echo: bool = os.getenv("DATABASE_ECHO", "False").lower() == "true"

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Upper bound on waiting for a single item's lock
    lock_timeout_seconds: float = float(os.getenv("LOCK_TIMEOUT_SECONDS", "5"))

    order_number_prefix: str = os.getenv("ORDER_NUMBER_PREFIX", "ORD")


settings = Settings()
