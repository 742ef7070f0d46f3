"""Saved translations, kept in local storage newest first."""

import logging
import time
from typing import Any, Dict, List
from uuid import uuid4

from dudelang.client.storage import SAVED_TRANSLATIONS_KEY, LocalStorage
from dudelang.models.language import Language

logger = logging.getLogger("dudelang")


def _same(entry: Dict[str, Any], input_text: str, output_text: str, source: str, target: str) -> bool:
    return (
        entry.get("inputText") == input_text
        and entry.get("outputText") == output_text
        and entry.get("sourceLanguage") == source
        and entry.get("targetLanguage") == target
    )


class SavedTranslationsStore:
    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def list(self) -> List[Dict[str, Any]]:
        items = self.storage.get_item(SAVED_TRANSLATIONS_KEY, [])
        if not isinstance(items, list):
            logger.warning("[saved] ignoring malformed saved translations")
            return []
        return [item for item in items if isinstance(item, dict)]

    def _write(self, items: List[Dict[str, Any]]) -> None:
        self.storage.set_item(SAVED_TRANSLATIONS_KEY, items)

    def is_saved(self, input_text: str, output_text: str, source: Language, target: Language) -> bool:
        return any(
            _same(item, input_text, output_text, source.code, target.code) for item in self.list()
        )

    def toggle(self, input_text: str, output_text: str, source: Language, target: Language) -> bool:
        """Save the pair, or remove it if already saved. Returns True when saved."""
        if not input_text.strip() or not output_text.strip():
            return False

        items = self.list()
        remaining = [
            item for item in items if not _same(item, input_text, output_text, source.code, target.code)
        ]
        if len(remaining) != len(items):
            self._write(remaining)
            return False

        entry = {
            "id": str(uuid4()),
            "inputText": input_text,
            "outputText": output_text,
            "sourceLanguage": source.code,
            "targetLanguage": target.code,
            "timestamp": int(time.time() * 1000),
        }
        self._write([entry] + items)
        return True

    def remove(self, entry_id: str) -> None:
        self._write([item for item in self.list() if item.get("id") != entry_id])

    def clear(self) -> None:
        self.storage.remove_item(SAVED_TRANSLATIONS_KEY)
