import logging
import uuid
from contextlib import contextmanager

from django.conf import settings
from django.core.cache import cache

from shopsync.exceptions import SyncInProgressError

logger = logging.getLogger(__name__)


@contextmanager
def sync_lock(name, ttl=None):
    """Allow one run per target. The TTL frees the lock if a worker dies mid-run."""
    key = f'shopsync:lock:{name}'
    token = uuid.uuid4().hex
    if not cache.add(key, token, ttl or settings.SHOPSYNC_LOCK_TTL):
        raise SyncInProgressError(f"A {name} sync is already in progress")
    logger.debug("Acquired %s", key)
    try:
        yield token
    finally:
        # Only release our own lock; after a TTL expiry it may belong to another run.
        if cache.get(key) == token:
            cache.delete(key)
