import logging

from django.db import DatabaseError, transaction

from shopsync.exceptions import TransportError
from shopsync.models import SyncState

logger = logging.getLogger(__name__)

_UNSET = object()


class SyncStateStore:
    def __init__(self, target):
        self.target = target

    def load(self) -> SyncState:
        """Current state, or an unsaved blank one before the first successful run."""
        try:
            return SyncState.objects.get(pk=self.target)
        except SyncState.DoesNotExist:
            logger.info("No sync state for %s yet, the next run will be a full sync", self.target)
            return SyncState(target=self.target)
        except DatabaseError as exc:
            raise TransportError(f"Failed to fetch {self.target} sync state: {exc}") from exc

    def commit(self, last_sync_timestamp=None, full_sync_completed_at=None, cursor=_UNSET) -> SyncState:
        """Persist the outcome of a successful run. Fields left out keep their value."""
        fields = {}
        if last_sync_timestamp is not None:
            fields['last_sync_timestamp'] = last_sync_timestamp
        if full_sync_completed_at is not None:
            fields['last_full_sync_completion_timestamp'] = full_sync_completed_at
        if cursor is not _UNSET:
            fields['last_cursor'] = cursor

        try:
            with transaction.atomic():
                state, _ = SyncState.objects.update_or_create(target=self.target, defaults=fields)
        except DatabaseError as exc:
            raise TransportError(f"Failed to update {self.target} sync state: {exc}") from exc

        logger.info("Sync state for %s updated: %s", self.target, state.as_dict())
        return state
