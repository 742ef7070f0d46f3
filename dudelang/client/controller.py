"""
Client entitlement controller.

Owns the installation's subscription journey: resolves identity, asks the
server whether we are Pro, decides what the current URL means, and drives
the checkout return and portal hand-off. Pro features are shown only after
the server has said so; every failure falls back to the last confirmed
state.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
from urllib.parse import parse_qsl, urlsplit

from dudelang.client.api_client import ApiError, SubscriptionApiClient
from dudelang.client.config import ClientSettings
from dudelang.client.identity import get_or_create_anonymous_id
from dudelang.client.storage import CUSTOMER_ID_KEY, LocalStorage

logger = logging.getLogger("dudelang")

HOME_PATH = "/"
SUCCESS_PATH = "/success"
CANCEL_PATH = "/cancel"


class SubscriptionState(str, Enum):
    UNKNOWN = "unknown"
    FREE = "free"
    PRO = "pro"
    AWAITING_CHECKOUT = "awaiting_checkout"
    RETURNED_SUCCESS = "returned_success"
    VERIFYING = "verifying"
    AWAITING_PORTAL = "awaiting_portal"


class View(str, Enum):
    HOME = "home"
    SAVED = "saved"
    SETTINGS = "settings"
    SUCCESS = "success"


_TRANSITIONS = {
    SubscriptionState.UNKNOWN: {SubscriptionState.FREE, SubscriptionState.PRO},
    SubscriptionState.FREE: {
        SubscriptionState.FREE,
        SubscriptionState.PRO,
        SubscriptionState.AWAITING_CHECKOUT,
        SubscriptionState.RETURNED_SUCCESS,
    },
    SubscriptionState.PRO: {
        SubscriptionState.PRO,
        SubscriptionState.FREE,
        SubscriptionState.AWAITING_PORTAL,
        SubscriptionState.RETURNED_SUCCESS,
    },
    SubscriptionState.AWAITING_CHECKOUT: {SubscriptionState.FREE},
    SubscriptionState.RETURNED_SUCCESS: {
        SubscriptionState.VERIFYING,
        SubscriptionState.FREE,
        SubscriptionState.PRO,
    },
    SubscriptionState.VERIFYING: {SubscriptionState.FREE, SubscriptionState.PRO},
    SubscriptionState.AWAITING_PORTAL: {SubscriptionState.PRO},
}


class InvalidTransitionError(RuntimeError):
    def __init__(self, current: SubscriptionState, target: SubscriptionState):
        super().__init__(f"Cannot move from {current.value} to {target.value}")
        self.current = current
        self.target = target


@dataclass
class Location:
    """The client's current URL plus replace-only history."""

    path: str = HOME_PATH
    query: Dict[str, str] = field(default_factory=dict)
    history: List[str] = field(default_factory=list)

    @classmethod
    def from_url(cls, url: str) -> "Location":
        parts = urlsplit(url)
        return cls(path=parts.path or HOME_PATH, query=dict(parse_qsl(parts.query)))

    def replace(self, path: str) -> None:
        # Drops the query string: checkout refs never survive a replace.
        self.path = path
        self.query = {}
        self.history.append(path)


@dataclass(frozen=True)
class FeatureGate:
    is_subscribed: bool = False

    @property
    def show_explanation(self) -> bool:
        return self.is_subscribed

    @property
    def show_examples(self) -> bool:
        return self.is_subscribed

    @property
    def show_ads(self) -> bool:
        return not self.is_subscribed

    def visible_explanation(self, explanation: str) -> str:
        return explanation if self.show_explanation else ""


class EntitlementController:
    def __init__(
        self,
        api: SubscriptionApiClient,
        storage: LocalStorage,
        location: Optional[Location] = None,
        settings: Optional[ClientSettings] = None,
    ):
        self.api = api
        self.storage = storage
        self.location = location or Location()
        self.settings = settings or ClientSettings()

        self.anonymous_id: Optional[str] = None
        self.is_subscribed = False
        self.state = SubscriptionState.UNKNOWN
        self.view = View.HOME
        self.error: Optional[str] = None

    @property
    def gate(self) -> FeatureGate:
        return FeatureGate(is_subscribed=self.is_subscribed)

    def _transition(self, target: SubscriptionState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.state, target)
        logger.debug(f"[entitlement] {self.state.value} -> {target.value}")
        self.state = target

    def _settle(self) -> None:
        self._transition(SubscriptionState.PRO if self.is_subscribed else SubscriptionState.FREE)

    async def boot(self, auto_verify: bool = True) -> View:
        """Resolve identity, then status, then route.

        Route arbitration waits for both so a success URL is only honoured
        once we know who we are.
        """
        self.anonymous_id = get_or_create_anonymous_id(self.storage)
        await self.refresh_status()
        view = self.arbitrate_route()
        if view == View.SUCCESS and auto_verify:
            await self.complete_checkout()
        return self.view

    async def refresh_status(self, on_error: Optional[bool] = None) -> bool:
        """Ask the server for the entitlement.

        On failure keeps ``on_error`` if given, else the last confirmed value.
        """
        if self.anonymous_id is None:
            raise RuntimeError("anonymous id not resolved; call boot() first")
        try:
            subscribed = await self.api.get_subscription_status(self.anonymous_id)
        except ApiError as e:
            logger.warning(f"[entitlement] status check failed: {e.message}")
            subscribed = self.is_subscribed if on_error is None else on_error

        self.is_subscribed = subscribed
        if self.state in (
            SubscriptionState.UNKNOWN,
            SubscriptionState.FREE,
            SubscriptionState.PRO,
        ):
            self._settle()
        return subscribed

    def arbitrate_route(self) -> View:
        if self.anonymous_id is None:
            raise RuntimeError("anonymous id not resolved; call boot() first")

        path = self.location.path
        if path == SUCCESS_PATH:
            self._transition(SubscriptionState.RETURNED_SUCCESS)
            session_id = self.location.query.get("session_id")
            received = self.location.query.get("anonymous_id")
            if session_id and received == self.anonymous_id:
                self.view = View.SUCCESS
                return self.view
            logger.warning("[entitlement] success URL missing refs or for another installation")
            self._settle()
            self.location.replace(HOME_PATH)
        elif path == CANCEL_PATH:
            self.location.replace(HOME_PATH)

        self.view = View.HOME
        return self.view

    async def complete_checkout(self) -> bool:
        """Confirm the returned checkout with the server.

        The server's verify is the only thing that grants Pro here.
        """
        if self.state != SubscriptionState.RETURNED_SUCCESS:
            raise InvalidTransitionError(self.state, SubscriptionState.VERIFYING)

        session_id = self.location.query.get("session_id", "")
        anonymous_id = self.location.query.get("anonymous_id", "")
        self._transition(SubscriptionState.VERIFYING)
        self.error = None

        try:
            session = await self.api.retrieve_checkout_session(session_id)
        except ApiError as e:
            logger.warning(f"[entitlement] could not retrieve session: {e.message}")
        else:
            customer = session.get("customer")
            if isinstance(customer, str) and customer:
                self.storage.set_item(CUSTOMER_ID_KEY, customer)

        try:
            customer_id = await self.api.verify_checkout_session(session_id, anonymous_id)
        except ApiError as e:
            self.error = e.message or "Payment verification failed."
            logger.warning(f"[entitlement] verification failed: {self.error}")
            self._settle()
            return False

        if customer_id:
            self.storage.set_item(CUSTOMER_ID_KEY, customer_id)

        # Verified; a failed refetch must not undo that.
        self.is_subscribed = True
        self._transition(SubscriptionState.PRO)
        await self.refresh_status(on_error=True)
        self.location.replace(HOME_PATH)
        self.view = View.HOME
        return True

    def return_home(self) -> None:
        self.error = None
        self.location.replace(HOME_PATH)
        self.view = View.HOME

    def navigate(self, view: View) -> None:
        if view == View.SUCCESS:
            raise ValueError("The success view is only reachable from a checkout return.")
        self.view = view

    async def subscribe(self, plan: str) -> str:
        """Start checkout for ``plan`` and return the provider redirect URL."""
        price_id = self.settings.price_for_plan(plan)
        if not price_id:
            raise ValueError(f"No price configured for plan {plan!r}")
        if self.anonymous_id is None:
            raise RuntimeError("anonymous id not resolved; call boot() first")

        self._transition(SubscriptionState.AWAITING_CHECKOUT)
        try:
            url = await self.api.create_checkout_session(price_id, self.anonymous_id)
        except ApiError as e:
            self.error = e.message
            self._settle()
            raise
        return url

    async def manage_subscription(self) -> str:
        self._transition(SubscriptionState.AWAITING_PORTAL)
        try:
            url = await self.api.create_customer_portal_session(
                anonymous_id=self.anonymous_id,
                customer_id=self.storage.get_item(CUSTOMER_ID_KEY),
            )
        except ApiError as e:
            self.error = e.message
            self._settle()
            raise
        return url
