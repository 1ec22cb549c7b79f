"""Key-protected wipe of the transcode cache."""

import logging
import secrets

from ..core.cache_store import CacheStore
from ..core.errors import ForbiddenError

logger = logging.getLogger(__name__)


def clear_cache(store: CacheStore, configured_key: str, supplied_key: str) -> None:
    """
    Delete every cached entry if ``supplied_key`` matches the configured key.

    A wrong key touches nothing on disk. The cache directory is recreated
    lazily by the next write.
    """
    if not secrets.compare_digest(supplied_key.encode("utf-8"), configured_key.encode("utf-8")):
        logger.warning("[cache_clear] rejected clear request with invalid key")
        raise ForbiddenError()
    store.clear()
