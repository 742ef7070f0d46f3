"""
dudelang/features/entitlements/store.py

JSON-document entitlement store.

One file maps anonymousId -> record. The file is created lazily on first
write; a missing file reads as an empty mapping. Every read-modify-write
cycle goes through a single asyncio.Lock, and writes are published
atomically (temp file + os.replace), so readers never take the lock.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from dudelang.core.errors import StorageError
from dudelang.models.entitlement import EntitlementRecord

logger = logging.getLogger("dudelang")


class EntitlementStore:
    """File-backed mapping of anonymous id to EntitlementRecord."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------
    def _read_document(self) -> Dict[str, dict]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"Failed to read entitlement store: {e}") from e

        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Entitlement store is corrupt: {e}") from e
        if not isinstance(data, dict):
            raise StorageError("Entitlement store must contain a JSON object")
        return data

    def _write_document(self, data: Dict[str, dict]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, indent=2, ensure_ascii=False)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write entitlement store: {e}") from e

    @staticmethod
    def _parse(anonymous_id: str, raw: dict) -> EntitlementRecord:
        try:
            return EntitlementRecord.model_validate(raw)
        except PydanticValidationError as e:
            raise StorageError(f"Invalid entitlement record for {anonymous_id}") from e

    # ------------------------------------------------------------------
    # async API
    # ------------------------------------------------------------------
    async def get(self, anonymous_id: str) -> Optional[EntitlementRecord]:
        """Return the record for anonymous_id, or None when absent."""
        data = await asyncio.to_thread(self._read_document)
        raw = data.get(anonymous_id)
        if raw is None:
            return None
        return self._parse(anonymous_id, raw)

    async def get_all(self) -> Dict[str, EntitlementRecord]:
        data = await asyncio.to_thread(self._read_document)
        return {key: self._parse(key, raw) for key, raw in data.items()}

    async def save(self, record: EntitlementRecord) -> bool:
        """
        Insert or replace a record.

        Returns:
            True if the document changed, False if the stored record was
            already identical (no write happens).
        """
        async with self._write_lock:
            data = await asyncio.to_thread(self._read_document)
            document = record.to_document()
            if data.get(record.anonymous_id) == document:
                return False
            data[record.anonymous_id] = document
            await asyncio.to_thread(self._write_document, data)

        logger.info(
            "entitlements.saved",
            extra={"anonymous_id": record.anonymous_id, "event_type": "entitlement_saved"},
        )
        return True

    def is_writable(self) -> bool:
        """Readiness probe: the store directory exists (or can be created) and is writable."""
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(directory, os.W_OK)
