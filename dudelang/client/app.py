"""
Client composition root.

Wires local storage, the subscription API client, the entitlement
controller, the translation session and saved translations from
ClientSettings.
"""

import logging
from typing import Any, Dict, List, Optional

from dudelang.client.api_client import SubscriptionApiClient
from dudelang.client.config import ClientSettings
from dudelang.client.controller import EntitlementController, Location, View
from dudelang.client.saved import SavedTranslationsStore
from dudelang.client.storage import LocalStorage
from dudelang.client.translation_session import TranslationSession
from dudelang.features.translation.service import SlangTranslator

logger = logging.getLogger("dudelang")


class ClientApp:
    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        location: Optional[Location] = None,
        api: Optional[SubscriptionApiClient] = None,
        translator: Optional[SlangTranslator] = None,
    ):
        self.settings = settings or ClientSettings()
        self.storage = LocalStorage(self.settings.DUDELANG_STORAGE_FILE)
        self.api = api or SubscriptionApiClient(
            self.settings.DUDELANG_SERVER_URL,
            timeout=self.settings.DUDELANG_REQUEST_TIMEOUT_SECONDS,
        )
        self.controller = EntitlementController(self.api, self.storage, location, self.settings)
        self.translator = translator or SlangTranslator(
            api_key=self.settings.GROQ_API_KEY,
            model=self.settings.GROQ_MODEL,
        )
        self.session = TranslationSession(
            self.translator,
            self.controller,
            debounce_seconds=self.settings.TRANSLATION_DEBOUNCE_SECONDS,
        )
        self.saved = SavedTranslationsStore(self.storage)

    async def __aenter__(self) -> "ClientApp":
        await self.controller.boot()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.api.aclose()

    def open_saved(self) -> List[Dict[str, Any]]:
        """Switch to the saved view and return its entries, newest first."""
        self.controller.navigate(View.SAVED)
        return self.saved.list()

    def open_settings(self) -> Dict[str, str]:
        """Switch to the settings view and return the plans on offer."""
        self.controller.navigate(View.SETTINGS)
        plans = {}
        for plan in ("monthly", "annual"):
            price_id = self.settings.price_for_plan(plan)
            if price_id:
                plans[plan] = price_id
        return plans

    def save_current(self) -> bool:
        """Toggle the session's current translation in the saved list."""
        return self.saved.toggle(
            self.session.input_text,
            self.session.translation,
            self.session.source,
            self.session.target,
        )
