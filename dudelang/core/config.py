import logging
from typing import List, Optional, Set

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

# Checked by validate_config(); the server runs without them but cannot sell.
REQUIRED_KEYS = ("STRIPE_SECRET_KEY", "CLIENT_URL", "ENTITLEMENTS_FILE")


class Settings(BaseSettings):
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Stripe; the secret key never leaves this process
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_PRICE_MONTHLY: Optional[str] = None
    STRIPE_PRICE_ANNUAL: Optional[str] = None
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # Where checkout and portal send the browser back to
    CLIENT_URL: str = "http://localhost:5173"
    CORS_ORIGINS: str = "http://localhost:5173"  # comma-separated
    PORT: int = 3000

    # Entitlement store: one JSON document
    ENTITLEMENTS_FILE: str = "data/users.json"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def allowed_price_ids(self) -> Set[str]:
        """Configured price ids; empty means any price is accepted."""
        return {p for p in (self.STRIPE_PRICE_MONTHLY, self.STRIPE_PRICE_ANNUAL) if p}

    def cors_origins(self) -> List[str]:
        origins = {o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()}
        origins.add(self.CLIENT_URL.rstrip("/"))
        return sorted(origins)


settings = Settings()


def missing_config(cfg) -> List[str]:
    return [key for key in REQUIRED_KEYS if not getattr(cfg, key, None)]


def validate_config(
    strict: Optional[bool] = None,
    settings_obj: Optional[Settings] = None,
    logger: Optional[logging.Logger] = None,
) -> bool:
    """Report missing required keys by name (never by value).

    Raises RuntimeError in strict mode, otherwise logs a warning.
    """
    cfg = settings_obj or settings
    if strict is None:
        strict = bool(getattr(cfg, "CONFIG_STRICT", False))

    missing = missing_config(cfg)
    if not missing:
        return True

    message = f"Missing required configuration: {', '.join(missing)}"
    if strict:
        raise RuntimeError(message)
    (logger or logging.getLogger("dudelang")).warning(message)
    return True
