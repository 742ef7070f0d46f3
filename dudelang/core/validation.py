"""
Startup environment checks.

The server refuses to start on a configuration that would sell
subscriptions it cannot honour. Set SKIP_ENV_VALIDATION=1 to bypass (tests).
"""

import os
from typing import Optional
from urllib.parse import urlparse

from dudelang.core.config import settings


class EnvValidationError(RuntimeError):
    """Configuration is unusable for the selected ENV."""


def _is_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _check_common(cfg) -> None:
    client_url = getattr(cfg, "CLIENT_URL", None)
    if client_url and not _is_http_url(client_url):
        raise EnvValidationError("CLIENT_URL must be an absolute http(s) URL (e.g. https://app.example.com)")

    timeout = getattr(cfg, "PROVIDER_TIMEOUT_SECONDS", None)
    if timeout is not None and timeout <= 0:
        raise EnvValidationError("PROVIDER_TIMEOUT_SECONDS must be positive")


def _check_production(cfg) -> None:
    for key in ("STRIPE_SECRET_KEY", "CLIENT_URL"):
        if not getattr(cfg, key, None):
            raise EnvValidationError(f"{key} is required in production")
    if cfg.STRIPE_SECRET_KEY.startswith("sk_test_"):
        raise EnvValidationError("STRIPE_SECRET_KEY must be a live key in production")


def validate_env(env: Optional[str] = None, settings_obj=None) -> bool:
    """Run the checks for env (default: settings.ENV).

    Returns True or raises EnvValidationError.
    """
    if os.getenv("SKIP_ENV_VALIDATION") == "1":
        return True

    cfg = settings_obj or settings
    _check_common(cfg)
    if (env or getattr(cfg, "ENV", None) or "development").lower() == "production":
        _check_production(cfg)
    return True
