"""
Subscription API routes.

Surface consumed by the client:
- POST /api/create-checkout-session: Start hosted checkout
- GET  /api/verify-checkout-session: Verify a returned session and upgrade
- GET  /api/get-subscription-status: Entitlement for an anonymous id
- POST /api/retrieve-checkout-session: Raw session lookup
- POST /api/create-customer-portal-session: Hosted self-service portal

Errors are answered with minimal JSON bodies; provider and storage details
are logged, never returned.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from dudelang.core.errors import AppError
from dudelang.features.entitlements.service import EntitlementService, get_entitlement_service

logger = logging.getLogger("dudelang")

router = APIRouter(tags=["billing"])


class CheckoutRequest(BaseModel):
    """Request to create checkout session."""
    model_config = ConfigDict(populate_by_name=True)

    price_id: Optional[str] = Field(default=None, alias="priceId")
    anonymous_id: Optional[str] = Field(default=None, alias="anonymousId")


class RetrieveSessionRequest(BaseModel):
    """Request to look up a checkout session."""
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")


class PortalRequest(BaseModel):
    """Request to create portal session."""
    model_config = ConfigDict(populate_by_name=True)

    customer_id: Optional[str] = Field(default=None, alias="customerId")
    anonymous_id: Optional[str] = Field(default=None, alias="anonymousId")


def _failure(exc: AppError, operation: str, internal_message: str, **fields) -> JSONResponse:
    """Log at the boundary and build the endpoint's minimal error body."""
    status = exc.status_code
    level = logging.ERROR if status >= 500 else logging.WARNING
    logger.log(
        level,
        f"billing.{operation}.failed",
        extra={"error_code": exc.code, "status": status, "error_message": exc.message},
    )
    message = exc.message if status < 500 else internal_message
    return JSONResponse(status_code=status, content={**fields, "error": message})


@router.post("/create-checkout-session")
async def create_checkout_session(
    request: CheckoutRequest,
    service: EntitlementService = Depends(get_entitlement_service),
):
    """
    Create a subscription checkout session.

    Returns:
        {"url": "https://checkout.stripe.com/..."}

    Errors:
        400: priceId or anonymousId missing/invalid
        500: provider error or timeout
    """
    try:
        url = await service.create_checkout_session(request.price_id, request.anonymous_id)
    except AppError as e:
        return _failure(e, "checkout", "Failed to create checkout session.")
    return {"url": url}


@router.get("/verify-checkout-session")
async def verify_checkout_session(
    session_id: Optional[str] = Query(None),
    anonymous_id: Optional[str] = Query(None),
    service: EntitlementService = Depends(get_entitlement_service),
):
    """
    Verify a checkout session and record the entitlement.

    Returns:
        {"success": true, "customerId": "cus_..."}

    Errors:
        400: missing params, or payment not paid/complete
        500: provider or storage error
    """
    try:
        result = await service.verify_checkout_session(session_id, anonymous_id)
    except AppError as e:
        return _failure(e, "verify", "Failed to verify checkout session.", success=False)
    return {"success": result.success, "customerId": result.customer_id}


@router.get("/get-subscription-status")
async def get_subscription_status(
    anonymous_id: Optional[str] = Query(None),
    service: EntitlementService = Depends(get_entitlement_service),
):
    """
    Get entitlement for an anonymous id.

    Unknown ids are not subscribed. Every failure still answers
    isSubscribed=false so the client stays on the free tier.
    """
    try:
        is_subscribed = await service.get_subscription_status(anonymous_id)
    except AppError as e:
        return _failure(e, "status", "Failed to fetch subscription status.", isSubscribed=False)
    return {"isSubscribed": is_subscribed}


@router.post("/retrieve-checkout-session")
async def retrieve_checkout_session(
    request: RetrieveSessionRequest,
    service: EntitlementService = Depends(get_entitlement_service),
):
    """Return the provider's checkout session object. No side effects."""
    try:
        session = await service.retrieve_checkout_session(request.session_id)
    except AppError as e:
        return _failure(e, "retrieve", "Failed to retrieve checkout session.")
    return {"session": session}


@router.post("/create-customer-portal-session")
async def create_customer_portal_session(
    request: PortalRequest,
    service: EntitlementService = Depends(get_entitlement_service),
):
    """
    Create a billing portal session.

    The customer is looked up by anonymousId when given; customerId is
    accepted as a fallback.
    """
    try:
        url = await service.create_customer_portal_session(
            customer_id=request.customer_id,
            anonymous_id=request.anonymous_id,
        )
    except AppError as e:
        return _failure(e, "portal", "Failed to create customer portal session.")
    return {"url": url}
