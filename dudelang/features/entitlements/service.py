"""
Entitlement service.

Coordinates the payment broker and the entitlement store:
- Subscription status reads (fail-closed)
- Checkout session creation with the success/cancel redirect protocol
- Checkout verification (idempotent) and entitlement upgrade
- Customer portal sessions

The store lock is never held across a broker call: sessions are retrieved
first, then the store is mutated.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dudelang.core.config import settings
from dudelang.core.errors import BadRequestError, PaymentIncompleteError
from dudelang.core.logging import log_event
from dudelang.features.billing.service import (
    BillingBroker,
    build_cancel_url,
    build_portal_return_url,
    build_success_url,
)
from dudelang.features.entitlements.store import EntitlementStore
from dudelang.models.entitlement import EntitlementRecord, is_valid_anonymous_id

logger = logging.getLogger("dudelang")


@dataclass
class VerificationResult:
    success: bool
    customer_id: Optional[str] = None


def _require_anonymous_id(anonymous_id: Optional[str]) -> str:
    if not anonymous_id:
        raise BadRequestError("Anonymous ID is missing.")
    if not is_valid_anonymous_id(anonymous_id):
        raise BadRequestError("Anonymous ID is not a valid identifier.")
    return anonymous_id


class EntitlementService:
    """Server-side owner of entitlement state."""

    def __init__(self, store: EntitlementStore, broker: BillingBroker, cfg=None):
        self.store = store
        self.broker = broker
        self.settings = cfg or settings

    async def get_subscription_status(self, anonymous_id: Optional[str]) -> bool:
        """
        Return whether anonymous_id is entitled.

        Raises:
            BadRequestError: id missing or malformed
            StorageError: store unreadable
        """
        anonymous_id = _require_anonymous_id(anonymous_id)
        record = await self.store.get(anonymous_id)
        return bool(record and record.is_subscribed)

    async def create_checkout_session(self, price_id: Optional[str], anonymous_id: Optional[str]) -> str:
        """
        Start a subscription checkout and return the hosted checkout URL.

        Raises:
            BadRequestError: missing inputs or unknown price
            ProviderError: broker failure
        """
        if not price_id:
            raise BadRequestError("Price ID is missing.")
        anonymous_id = _require_anonymous_id(anonymous_id)

        allowed = self.settings.allowed_price_ids()
        if allowed and price_id not in allowed:
            raise BadRequestError(f"Unknown price: {price_id}")

        link = await self.broker.create_checkout_session(
            price_id=price_id,
            success_url=build_success_url(self.settings.CLIENT_URL, anonymous_id),
            cancel_url=build_cancel_url(self.settings.CLIENT_URL),
            metadata={"anonymous_id": anonymous_id},
        )
        log_event(
            "info",
            "checkout.created",
            anonymous_id=anonymous_id,
            session_id=link.session_id,
            event_type="checkout_created",
        )
        return link.url

    async def retrieve_checkout_session(self, session_id: Optional[str]) -> Dict[str, Any]:
        """Pass-through lookup used by the client to learn its customer ref early."""
        if not session_id:
            raise BadRequestError("Session ID is missing.")
        session = await self.broker.retrieve_checkout_session(session_id)
        return session.raw

    async def verify_checkout_session(
        self, session_id: Optional[str], anonymous_id: Optional[str]
    ) -> VerificationResult:
        """
        Verify a checkout session and upgrade anonymous_id on success.

        Idempotent: re-verifying a verified pair rewrites nothing and
        returns success again.

        Raises:
            BadRequestError: missing/invalid parameters, or the session was
                opened for a different installation
            PaymentIncompleteError: session not paid, not complete, or
                without a customer
            ProviderError: broker failure
            StorageError: store failure
        """
        if not session_id or not anonymous_id:
            raise BadRequestError("Session ID or Anonymous ID is missing.")
        anonymous_id = _require_anonymous_id(anonymous_id)

        session = await self.broker.retrieve_checkout_session(session_id)

        owner = session.metadata.get("anonymous_id")
        if owner and owner != anonymous_id:
            log_event(
                "warning",
                "checkout.owner_mismatch",
                anonymous_id=anonymous_id,
                session_id=session_id,
                error_code="owner_mismatch",
            )
            raise BadRequestError("Checkout session does not belong to this installation.")

        if not session.is_paid_and_complete:
            log_event(
                "warning",
                "checkout.incomplete",
                anonymous_id=anonymous_id,
                session_id=session_id,
                error_code="payment_incomplete",
                extra={"payment_status": session.payment_status, "session_status": session.status},
            )
            raise PaymentIncompleteError("Payment not successful or session not complete.")

        if not session.customer_id:
            raise PaymentIncompleteError("Checkout session has no customer.")

        record = EntitlementRecord(
            anonymous_id=anonymous_id,
            is_subscribed=True,
            stripe_customer_id=session.customer_id,
            stripe_subscription_id=session.subscription_id,
        )
        changed = await self.store.save(record)
        log_event(
            "info",
            "checkout.verified",
            anonymous_id=anonymous_id,
            session_id=session_id,
            event_type="checkout_verified",
            extra={"changed": changed},
        )
        return VerificationResult(success=True, customer_id=session.customer_id)

    async def create_customer_portal_session(
        self, customer_id: Optional[str] = None, anonymous_id: Optional[str] = None
    ) -> str:
        """
        Open the provider's self-service portal.

        The customer ref is resolved from the entitlement store when an
        anonymous id is given; an explicit customer_id is the fallback.

        Raises:
            BadRequestError: no customer ref can be determined
            ProviderError: broker failure
        """
        resolved = None
        if anonymous_id:
            anonymous_id = _require_anonymous_id(anonymous_id)
            record = await self.store.get(anonymous_id)
            resolved = record.stripe_customer_id if record else None
        resolved = resolved or customer_id
        if not resolved:
            raise BadRequestError("Customer ID is missing.")

        return await self.broker.create_portal_session(
            customer_id=resolved,
            return_url=build_portal_return_url(self.settings.CLIENT_URL),
        )


_service: Optional[EntitlementService] = None


def get_entitlement_service() -> EntitlementService:
    """Process-wide service instance (one store, one writer lock)."""
    global _service
    if _service is None:
        _service = EntitlementService(
            store=EntitlementStore(settings.ENTITLEMENTS_FILE),
            broker=BillingBroker.from_settings(),
        )
    return _service
