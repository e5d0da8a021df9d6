import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel


class Settings(BaseModel):
    database_url: str = "sqlite:///./storefront.db"

    jwt_secret: str = "dev-secret-change-me"
    jwt_alg: str = "HS256"
    jwt_expires_minutes: int = 60 * 24

    gateway_key_id: Optional[str] = None
    gateway_key_secret: Optional[str] = None
    gateway_base_url: str = "https://api.razorpay.com/v1"
    gateway_timeout: float = 10.0
    default_currency: str = "INR"

    # Checkout pricing rule
    tax_rate: float = 0.05
    free_shipping_threshold: float = 1000
    shipping_fee: float = 50

    stats_window_days: int = 7

    api_host: str = "localhost"
    api_port: int = 8000
    log_level: str = "INFO"

    @property
    def gateway_configured(self) -> bool:
        return bool(self.gateway_key_id and self.gateway_key_secret)


@lru_cache
def get_settings() -> Settings:
    """Builds settings from the environment, loading .env first."""
    load_dotenv()
    env = {
        "database_url": os.getenv("DATABASE_URL"),
        "jwt_secret": os.getenv("JWT_SECRET"),
        "jwt_alg": os.getenv("JWT_ALG"),
        "jwt_expires_minutes": os.getenv("JWT_EXPIRES_MINUTES"),
        "gateway_key_id": os.getenv("GATEWAY_KEY_ID"),
        "gateway_key_secret": os.getenv("GATEWAY_KEY_SECRET"),
        "gateway_base_url": os.getenv("GATEWAY_BASE_URL"),
        "gateway_timeout": os.getenv("GATEWAY_TIMEOUT"),
        "default_currency": os.getenv("DEFAULT_CURRENCY"),
        "tax_rate": os.getenv("TAX_RATE"),
        "free_shipping_threshold": os.getenv("FREE_SHIPPING_THRESHOLD"),
        "shipping_fee": os.getenv("SHIPPING_FEE"),
        "stats_window_days": os.getenv("STATS_WINDOW_DAYS"),
        "api_host": os.getenv("API_HOST"),
        "api_port": os.getenv("API_PORT"),
        "log_level": os.getenv("LOG_LEVEL"),
    }
    # Unset variables fall back to the model defaults
    return Settings(**{k: v for k, v in env.items() if v is not None})
