import logging

from django.conf import settings
from django.utils import timezone

from shopsync.exceptions import ConfigurationError, SyncError
from shopsync.reconcile import DELTA, FULL, CacheReconciler
from shopsync.state import SyncStateStore

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Runs one sync of one target: decide the mode, page through the remote
    API, reconcile the cache, then commit the sync state.

    Nothing is committed to the sync state unless every step before it
    succeeded, so a failed or killed run is simply repeated next time.
    """

    def __init__(self, target, client, store, state_store=None, page_size=None):
        self.target = target
        self.client = client
        self.store = store
        self.state_store = state_store or SyncStateStore(target.name)
        self.page_size = page_size or settings.SHOPSYNC_PAGE_SIZE
        self.reconciler = CacheReconciler(store, target.name)

    def run(self, sync_type=DELTA, force_full_sync=False, limit=0):
        if sync_type not in (FULL, DELTA):
            raise ConfigurationError(f"Unknown sync type {sync_type!r}")

        details = []
        state = self.state_store.load()
        mode, modified_since = self._decide_mode(state, sync_type, force_full_sync, details)

        started_at = timezone.now()
        logger.info(
            "Starting %s sync of %s (modified since %s)",
            mode, self.target.name, modified_since.isoformat() if modified_since else 'beginning',
        )

        records = []
        observed_keys = set()
        cursor = None
        has_next_page = True
        truncated = False
        pages = 0
        fetched = 0

        try:
            with self.client.make_session() as session:
                while has_next_page:
                    cap = self._cap_reached(pages, fetched, len(records), limit)
                    if cap:
                        truncated = True
                        logger.warning("Stopping %s pagination early: %s", self.target.name, cap)
                        details.append(f"Stopped early: {cap}.")
                        break

                    page_size = min(self.page_size, limit - fetched) if limit else self.page_size
                    page = self.client.fetch_page(
                        session, cursor=cursor, modified_since=modified_since, page_size=page_size,
                    )
                    pages += 1
                    fetched += len(page.records)

                    flat, skipped = self.target.flatten(page.records)
                    records.extend(flat)
                    observed_keys.update(record['key'] for record in flat)
                    details.extend(f"Skipped {reason}" for reason in skipped)
                    details.append(
                        f"Page {pages}: {len(page.records)} {self.target.name} fetched, {len(flat)} records."
                    )
                    logger.debug(
                        "Fetched page %d of %s: %d entities, %d records, has next: %s",
                        pages, self.target.name, len(page.records), len(flat), page.has_next_page,
                    )

                    has_next_page = page.has_next_page
                    cursor = page.next_cursor

            # A capped run has not seen the whole remote set, so it must not evict.
            counts = self.reconciler.reconcile(
                records, DELTA if truncated else mode, observed_keys=observed_keys,
            )
            details.append(f"Cache: {counts['upserted']} upserted, {counts['deleted']} deleted.")

            if truncated:
                self.state_store.commit(cursor=cursor)
            elif mode == FULL:
                self.state_store.commit(started_at, full_sync_completed_at=timezone.now(), cursor=cursor)
            else:
                self.state_store.commit(started_at)
        except SyncError as exc:
            exc.details = details + [f"Error: {exc}"] + exc.details
            exc.sync_type = mode
            raise

        logger.info(
            "%s sync of %s complete: %d pages, %d records, %d upserted, %d deleted",
            mode.capitalize(), self.target.name, pages, len(records), counts['upserted'], counts['deleted'],
        )
        return {
            'success': True,
            'target': self.target.name,
            'sync_type_used': mode,
            'fetched_count': fetched,
            'upserted_count': counts['upserted'],
            'deleted_count': counts['deleted'],
            'pages': pages,
            'truncated': truncated,
            'started_at': started_at.isoformat(),
            'details': details,
        }

    def _decide_mode(self, state, sync_type, force_full_sync, details):
        if force_full_sync:
            reason = 'forced by parameter'
        elif not state.last_full_sync_completion_timestamp:
            reason = 'no previous full sync recorded'
        elif sync_type == FULL:
            reason = 'requested'
        elif not state.last_sync_timestamp:
            reason = 'no last sync timestamp to filter on'
        else:
            details.append(
                f"Performing delta sync of {self.target.name} modified after "
                f"{state.last_sync_timestamp.isoformat()}."
            )
            return DELTA, state.last_sync_timestamp

        details.append(f"Performing full sync of {self.target.name}. Reason: {reason}.")
        return FULL, None

    def _cap_reached(self, pages, fetched, record_count, limit):
        max_pages = settings.SHOPSYNC_MAX_PAGES
        max_records = settings.SHOPSYNC_MAX_RECORDS
        if limit and fetched >= limit:
            return f"reached fetch limit of {limit} {self.target.name}"
        if max_pages and pages >= max_pages:
            return f"reached page cap of {max_pages}"
        if max_records and record_count >= max_records:
            return f"reached record cap of {max_records}"
        return None
