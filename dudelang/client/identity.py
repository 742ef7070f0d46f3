"""Anonymous per-installation identity."""

import logging
from uuid import uuid4

from dudelang.client.storage import ANONYMOUS_ID_KEY, LocalStorage
from dudelang.models.entitlement import is_valid_anonymous_id

logger = logging.getLogger("dudelang")


def get_or_create_anonymous_id(storage: LocalStorage) -> str:
    """
    Return the installation's AnonymousId, minting it on first use.

    Synchronous on purpose: the read and the write-through happen before the
    caller reaches any await, so concurrent first callers on one event loop
    see the same value.
    """
    stored = storage.get_item(ANONYMOUS_ID_KEY)
    if is_valid_anonymous_id(stored):
        return stored

    if stored is not None:
        logger.warning("[identity] discarding malformed anonymous id")
    anonymous_id = str(uuid4())
    storage.set_item(ANONYMOUS_ID_KEY, anonymous_id)
    return anonymous_id
