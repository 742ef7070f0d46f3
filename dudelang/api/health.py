"""
Health endpoints for the dudelang server.

Lightweight probes for operational monitoring without exposing secrets.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dudelang.core.logging import get_request_id
from dudelang.features.billing.service import billing_enabled
from dudelang.features.entitlements.service import EntitlementService, get_entitlement_service

logger = logging.getLogger("dudelang")

root_router = APIRouter(tags=["health"])


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz(service: EntitlementService = Depends(get_entitlement_service)):
    """Readiness check: entitlement store writable. Billing state is reported, not required."""
    if not service.store.is_writable():
        logger.warning("[readyz] entitlement store not writable", extra={"request_id": get_request_id()})
        return JSONResponse(status_code=503, content={"status": "error", "detail": "entitlement store not writable"})
    return {"status": "ok", "billing_enabled": billing_enabled()}
