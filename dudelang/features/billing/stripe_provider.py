"""
Stripe implementation of BillingProvider.

Uses hosted Checkout in subscription mode and the hosted billing portal.
The secret key is read from the server environment only.
"""
import os
from typing import Any, Dict, Optional

import stripe

from dudelang.features.billing.provider import (
    BillingProviderError,
    CheckoutSessionInfo,
    CheckoutSessionLink,
)


def _ref_id(value: Any) -> Optional[str]:
    """Customer/subscription fields are ids, or objects when expanded."""
    if value is None or isinstance(value, str):
        return value
    return getattr(value, "id", None)


def _as_dict(obj: Any) -> Dict[str, Any]:
    for name in ("to_dict", "to_dict_recursive"):
        converter = getattr(obj, name, None)
        if callable(converter):
            return converter()
    return dict(obj)


class StripeProvider:
    def __init__(self, secret_key: Optional[str] = None):
        key = secret_key or os.getenv("STRIPE_SECRET_KEY")
        if not key:
            raise BillingProviderError("Stripe is not configured (STRIPE_SECRET_KEY is empty)")
        self.secret_key = key
        stripe.api_key = key

    def create_checkout_session(
        self,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> CheckoutSessionLink:
        try:
            session = stripe.checkout.Session.create(
                mode="subscription",
                payment_method_types=["card"],
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=dict(metadata or {}),
            )
        except stripe.StripeError as e:
            raise BillingProviderError(f"checkout.Session.create failed: {e}") from e
        return CheckoutSessionLink(session_id=session.id, url=session.url)

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSessionInfo:
        try:
            session = stripe.checkout.Session.retrieve(session_id)
        except stripe.StripeError as e:
            raise BillingProviderError(f"checkout.Session.retrieve failed: {e}") from e

        return CheckoutSessionInfo(
            session_id=session.id,
            payment_status=getattr(session, "payment_status", None),
            status=getattr(session, "status", None),
            customer_id=_ref_id(getattr(session, "customer", None)),
            subscription_id=_ref_id(getattr(session, "subscription", None)),
            url=getattr(session, "url", None),
            metadata=dict(getattr(session, "metadata", None) or {}),
            raw=_as_dict(session),
        )

    def create_portal_session(self, customer_id: str, return_url: str) -> str:
        try:
            portal = stripe.billing_portal.Session.create(customer=customer_id, return_url=return_url)
        except stripe.StripeError as e:
            raise BillingProviderError(f"billing_portal.Session.create failed: {e}") from e
        return portal.url
