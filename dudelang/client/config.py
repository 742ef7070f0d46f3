from typing import Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    # Backend
    DUDELANG_SERVER_URL: str = "http://localhost:3000"
    DUDELANG_REQUEST_TIMEOUT_SECONDS: float = 15.0

    # Local key-value storage (the installation's durable state)
    DUDELANG_STORAGE_FILE: str = "~/.dudelang/storage.json"

    # Stripe prices offered on the settings view
    STRIPE_PRICE_MONTHLY: Optional[str] = None
    STRIPE_PRICE_ANNUAL: Optional[str] = None

    # Translation
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.1-8b-instant"
    TRANSLATION_DEBOUNCE_SECONDS: float = 0.5

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def price_for_plan(self, plan: str) -> Optional[str]:
        return {
            "monthly": self.STRIPE_PRICE_MONTHLY,
            "annual": self.STRIPE_PRICE_ANNUAL,
        }.get(plan)
