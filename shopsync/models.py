from django.db import models
from django.utils import timezone


class SyncState(models.Model):
    """Where the engine left off for one sync target."""

    target = models.CharField(max_length=50, primary_key=True)
    last_cursor = models.TextField(null=True, blank=True)
    last_sync_timestamp = models.DateTimeField(null=True, blank=True)
    last_full_sync_completion_timestamp = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.target} (last sync {self.last_sync_timestamp or 'never'})"

    def as_dict(self):
        return {
            'target': self.target,
            'last_cursor': self.last_cursor,
            'last_sync_timestamp': _isoformat(self.last_sync_timestamp),
            'last_full_sync_completion_timestamp': _isoformat(self.last_full_sync_completion_timestamp),
        }


class CachedRecord(models.Model):
    target = models.CharField(max_length=50)
    key = models.CharField(max_length=32)
    data = models.JSONField()
    synced_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['target', 'key'], name='uniq_cached_record_target_key'),
        ]

    def __str__(self):
        return f"{self.target}:{self.key}"


def _isoformat(value):
    return value.isoformat() if value else None
