"""
HTTP client for the subscription server.

One surface for every payment-related call the client makes. Any non-2xx
response or transport failure raises ApiError; callers keep the UI in its
last safe state.
"""

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger("dudelang")


class ApiError(Exception):
    """Server answered non-2xx, or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code >= 500


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or fallback
    return error or fallback


def _require_url(data: Dict[str, Any], fallback: str) -> str:
    url = data.get("url")
    if not isinstance(url, str) or not url:
        raise ApiError(fallback)
    return url


class SubscriptionApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> "SubscriptionApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, fallback: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"[api] {method} {path} failed: {e}")
            raise ApiError(f"{fallback} Please try again.") from e

        if response.is_success:
            try:
                data = response.json()
            except ValueError:
                data = None
            if not isinstance(data, dict):
                logger.warning(f"[api] {method} {path} -> {response.status_code}: body is not a JSON object")
                raise ApiError(fallback, status_code=response.status_code)
            return data

        message = _error_message(response, fallback)
        logger.warning(f"[api] {method} {path} -> {response.status_code}: {message}")
        raise ApiError(message, status_code=response.status_code)

    async def get_subscription_status(self, anonymous_id: str) -> bool:
        data = await self._request(
            "GET",
            "/api/get-subscription-status",
            "Failed to fetch subscription status.",
            params={"anonymous_id": anonymous_id},
        )
        return data.get("isSubscribed") is True

    async def create_checkout_session(self, price_id: str, anonymous_id: str) -> str:
        data = await self._request(
            "POST",
            "/api/create-checkout-session",
            "Payment initiation failed.",
            json={"priceId": price_id, "anonymousId": anonymous_id},
        )
        return _require_url(data, "Payment initiation failed.")

    async def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        data = await self._request(
            "POST",
            "/api/retrieve-checkout-session",
            "Failed to retrieve checkout session.",
            json={"sessionId": session_id},
        )
        return data.get("session") or {}

    async def verify_checkout_session(self, session_id: str, anonymous_id: str) -> Optional[str]:
        """Returns the customer id on success."""
        data = await self._request(
            "GET",
            "/api/verify-checkout-session",
            "Payment verification failed.",
            params={"session_id": session_id, "anonymous_id": anonymous_id},
        )
        if not data.get("success"):
            raise ApiError(data.get("error") or "Payment verification failed.", status_code=400)
        return data.get("customerId")

    async def create_customer_portal_session(
        self, anonymous_id: Optional[str] = None, customer_id: Optional[str] = None
    ) -> str:
        payload = {}
        if anonymous_id:
            payload["anonymousId"] = anonymous_id
        if customer_id:
            payload["customerId"] = customer_id
        data = await self._request(
            "POST",
            "/api/create-customer-portal-session",
            "Failed to create customer portal session.",
            json=payload,
        )
        return _require_url(data, "Failed to create customer portal session.")
