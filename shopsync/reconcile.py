import logging
import time

from django.conf import settings
from django.db import DatabaseError, InterfaceError, OperationalError

from shopsync.backoff import backoff_delay
from shopsync.exceptions import ReconciliationError
from shopsync.transforms import deduplicate

logger = logging.getLogger(__name__)

FULL = 'full'
DELTA = 'delta'

WRITE_MAX_ATTEMPTS = getattr(settings, 'SHOPSYNC_WRITE_MAX_ATTEMPTS', 3)
RETRY_BASE_DELAY = getattr(settings, 'SHOPSYNC_RETRY_BASE_DELAY', 0.5)

# Connection-level failures are worth another try, constraint violations are not.
TRANSIENT_DB_ERRORS = (OperationalError, InterfaceError)


def _chunks(items, size):
    for start in range(0, len(items), size):
        yield items[start:start + size]


class CacheReconciler:
    """Applies one run's records to the cache.

    Delta runs only upsert. Full runs upsert and then evict every cached key
    that the run did not observe. Upserts go first so that a failed write
    never leaves the cache with deletions but without the new data.
    """

    def __init__(self, store, target, batch_size=None):
        self.store = store
        self.target = target
        self.batch_size = batch_size or settings.SHOPSYNC_WRITE_BATCH_SIZE

    def reconcile(self, records, mode, observed_keys=None):
        records = deduplicate(records)

        upserted = 0
        for batch in _chunks(records, self.batch_size):
            upserted += self._write(self.store.upsert, batch, 'upsert')
        logger.info("Upserted %d %s records into the cache", upserted, self.target)

        deleted = 0
        if mode == FULL:
            if observed_keys is None:
                observed_keys = {record['key'] for record in records}
            stale = sorted(self._existing_keys() - set(observed_keys))
            for batch in _chunks(stale, self.batch_size):
                deleted += self._write(self.store.delete, batch, 'delete')
            if deleted:
                logger.info("Evicted %d stale %s records from the cache", deleted, self.target)

        return {'upserted': upserted, 'deleted': deleted}

    def _existing_keys(self):
        try:
            return self.store.existing_keys(self.target)
        except DatabaseError as exc:
            raise ReconciliationError(f"Could not list cached {self.target} keys: {exc}") from exc

    def _write(self, operation, batch, label):
        for attempt in range(WRITE_MAX_ATTEMPTS):
            try:
                return operation(self.target, batch)
            except TRANSIENT_DB_ERRORS as exc:
                if attempt + 1 >= WRITE_MAX_ATTEMPTS:
                    raise ReconciliationError(
                        f"{label} batch of {len(batch)} {self.target} records failed "
                        f"after {WRITE_MAX_ATTEMPTS} attempts: {exc}"
                    ) from exc
                delay = backoff_delay(attempt, RETRY_BASE_DELAY)
                logger.warning(
                    "%s batch for %s failed (%s), attempt %d/%d, waiting %.1fs",
                    label, self.target, exc, attempt + 1, WRITE_MAX_ATTEMPTS, delay,
                )
                time.sleep(delay)
            except DatabaseError as exc:
                raise ReconciliationError(
                    f"{label} batch of {len(batch)} {self.target} records failed: {exc}"
                ) from exc
