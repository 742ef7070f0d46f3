"""
Payment broker.

Thin async mediator between the entitlement service and the hosted payment
provider. Blocking SDK calls run in a worker thread under a bounded
wall-clock timeout; every failure surfaces as ProviderError.

All Stripe-specific code is in stripe_provider.py.
"""
import asyncio
import logging
import os
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

from dudelang.core.config import settings
from dudelang.core.errors import ProviderError
from dudelang.features.billing.provider import (
    BillingProvider,
    BillingProviderError,
    CheckoutSessionInfo,
    CheckoutSessionLink,
)
from dudelang.features.billing.stripe_provider import StripeProvider

logger = logging.getLogger("dudelang")

# Stripe expands this placeholder with the real session id on redirect.
CHECKOUT_SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


def billing_enabled() -> bool:
    """Check if billing is enabled (Stripe configured)."""
    return bool(os.getenv("STRIPE_SECRET_KEY") or settings.STRIPE_SECRET_KEY)


def get_provider() -> Optional[BillingProvider]:
    """Get billing provider if billing is enabled."""
    if not billing_enabled():
        return None
    try:
        return StripeProvider(os.getenv("STRIPE_SECRET_KEY") or settings.STRIPE_SECRET_KEY)
    except BillingProviderError:
        return None


def _base(client_url: str) -> str:
    return client_url.rstrip("/")


def build_success_url(client_url: str, anonymous_id: str) -> str:
    """Success URL carrying the provider placeholder and the literal anonymous id."""
    return (
        f"{_base(client_url)}/success"
        f"?session_id={CHECKOUT_SESSION_PLACEHOLDER}"
        f"&anonymous_id={quote(anonymous_id, safe='')}"
    )


def build_cancel_url(client_url: str) -> str:
    return f"{_base(client_url)}/cancel"


def build_portal_return_url(client_url: str) -> str:
    return f"{_base(client_url)}/success"


class BillingBroker:
    """Async facade over a BillingProvider with timeouts."""

    def __init__(self, provider: Optional[BillingProvider], timeout_seconds: float = 10.0):
        self.provider = provider
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, cfg=None) -> "BillingBroker":
        cfg = cfg or settings
        return cls(get_provider(), timeout_seconds=cfg.PROVIDER_TIMEOUT_SECONDS)

    async def _call(self, operation: str, fn: Callable[..., Any], *args, **kwargs) -> Any:
        if self.provider is None:
            raise ProviderError("Billing is not configured.")
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, *args, **kwargs),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                "billing.provider_timeout",
                extra={"event_type": operation, "error_code": "provider_timeout"},
            )
            raise ProviderError(f"Payment provider timed out during {operation}.")
        except BillingProviderError as e:
            logger.error(
                "billing.provider_error",
                extra={"event_type": operation, "error_code": "provider_error", "error_message": str(e)},
            )
            raise ProviderError(f"Payment provider error during {operation}.") from e

    async def create_checkout_session(
        self,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> CheckoutSessionLink:
        return await self._call(
            "create_checkout_session",
            self.provider.create_checkout_session if self.provider else None,
            price_id,
            success_url,
            cancel_url,
            metadata,
        )

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSessionInfo:
        return await self._call(
            "retrieve_checkout_session",
            self.provider.retrieve_checkout_session if self.provider else None,
            session_id,
        )

    async def create_portal_session(self, customer_id: str, return_url: str) -> str:
        return await self._call(
            "create_portal_session",
            self.provider.create_portal_session if self.provider else None,
            customer_id,
            return_url,
        )
