"""
Hosted-payment provider seam.

The entitlement service only ever sees these value types and the
BillingProvider protocol; stripe_provider.py is the one implementation.
Provider calls are blocking and may raise BillingProviderError.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol


class BillingProviderError(Exception):
    """The provider rejected a call or could not be reached."""


@dataclass
class CheckoutSessionLink:
    """A freshly created hosted checkout session."""
    session_id: str
    url: str


@dataclass
class CheckoutSessionInfo:
    """Checkout session as observed by this server."""
    session_id: str
    payment_status: Optional[str]  # paid, unpaid, no_payment_required
    status: Optional[str]  # open, complete, expired
    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    url: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_paid_and_complete(self) -> bool:
        """The only state in which an installation may be upgraded."""
        return self.payment_status == "paid" and self.status == "complete"


class BillingProvider(Protocol):
    def create_checkout_session(
        self,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> CheckoutSessionLink:
        """Open a subscription-mode checkout for one unit of price_id.

        success_url may carry the provider's session id placeholder; metadata
        is stored on the session and returned by retrieve_checkout_session.
        """
        ...

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSessionInfo:
        ...

    def create_portal_session(self, customer_id: str, return_url: str) -> str:
        """Return the URL of a self-service portal session for customer_id."""
        ...
