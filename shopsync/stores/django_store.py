from django.db import transaction
from django.utils import timezone

from shopsync.models import CachedRecord

from .base import BaseCacheStore


class DjangoCacheStore(BaseCacheStore):
    def existing_keys(self, target) -> set:
        return set(CachedRecord.objects.filter(target=target).values_list('key', flat=True))

    def upsert(self, target, records) -> int:
        now = timezone.now()
        objs = [
            CachedRecord(target=target, key=record['key'], data=record, synced_at=now)
            for record in records
        ]
        with transaction.atomic():
            CachedRecord.objects.bulk_create(
                objs,
                update_conflicts=True,
                unique_fields=['target', 'key'],
                update_fields=['data', 'synced_at'],
            )
        return len(objs)

    def delete(self, target, keys) -> int:
        with transaction.atomic():
            deleted, _ = CachedRecord.objects.filter(target=target, key__in=list(keys)).delete()
        return deleted

    def count(self, target) -> int:
        return CachedRecord.objects.filter(target=target).count()
