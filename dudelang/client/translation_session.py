"""
Debounced translation for the text-entry view.

Input settles for a trailing window before a translation is requested. Each
committed input gets a token; a result is applied only if its token is still
the latest, so a slow earlier request can never overwrite a newer one.
"""

import asyncio
import logging
from typing import List, Optional

from dudelang.client.controller import EntitlementController
from dudelang.client.languages import DEFAULT_SOURCE, DEFAULT_TARGET
from dudelang.features.translation.service import (
    SlangTranslator,
    TranslationError,
    TranslationResult,
)
from dudelang.models.language import Language

logger = logging.getLogger("dudelang")

DEFAULT_DEBOUNCE_SECONDS = 0.5


class FeatureLockedError(Exception):
    """A Pro-only feature was requested without an entitlement."""


class TranslationSession:
    def __init__(
        self,
        translator: SlangTranslator,
        controller: EntitlementController,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        source: Language = DEFAULT_SOURCE,
        target: Language = DEFAULT_TARGET,
    ):
        self.translator = translator
        self.controller = controller
        self.debounce_seconds = debounce_seconds
        self.source = source
        self.target = target

        self.input_text = ""
        self.error: Optional[str] = None
        self.is_loading = False
        self._result = TranslationResult(translation="")
        self._token = 0
        self._pending: Optional[asyncio.Task] = None

    @property
    def token(self) -> int:
        return self._token

    @property
    def translation(self) -> str:
        return self._result.translation

    @property
    def explanation(self) -> str:
        return self.controller.gate.visible_explanation(self._result.explanation)

    def set_input(self, text: str) -> None:
        """Record new input and (re)start the debounce window.

        Must be called from inside the running event loop.
        """
        self.input_text = text
        self._schedule()

    def set_languages(self, source: Language, target: Language) -> None:
        self.source = source
        self.target = target
        self._schedule()

    def swap_languages(self) -> None:
        self.set_languages(self.target, self.source)

    def _schedule(self) -> None:
        self._token += 1
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = asyncio.get_running_loop().create_task(
            self._debounced(self._token, self.input_text, self.source, self.target)
        )

    async def wait(self) -> None:
        """Wait for the latest scheduled translation to settle."""
        pending = self._pending
        if pending is None:
            return
        try:
            await pending
        except asyncio.CancelledError:
            if pending is self._pending:
                raise

    async def _debounced(self, token: int, text: str, source: Language, target: Language) -> None:
        await asyncio.sleep(self.debounce_seconds)
        await self._run(token, text, source, target)

    async def _run(self, token: int, text: str, source: Language, target: Language) -> None:
        if not text.strip():
            self._result = TranslationResult(translation="")
            self.error = None
            if token == self._token:
                self.is_loading = False
            return

        self.is_loading = True
        self.error = None
        try:
            result = await asyncio.to_thread(self.translator.translate, text, source, target)
        except TranslationError as e:
            if token != self._token:
                return
            logger.warning(f"[translation] failed: {e}")
            self.error = str(e)
            self._result = TranslationResult(translation="")
        else:
            if token != self._token:
                logger.debug(f"[translation] discarding stale result {token} (latest {self._token})")
                return
            self._result = result
        finally:
            if token == self._token:
                self.is_loading = False

    async def show_examples(self) -> List[str]:
        if not self.controller.gate.show_examples:
            raise FeatureLockedError("Example sentences are a Pro feature.")
        if not self.input_text.strip() or not self.translation.strip():
            return []
        return await asyncio.to_thread(self.translator.examples, self.translation, self.target)
