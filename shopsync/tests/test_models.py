from django.db import IntegrityError, transaction
from django.test import TestCase

from shopsync.models import CachedRecord, SyncState


class TestSyncStateModel(TestCase):
    def test_str(self):
        state = SyncState.objects.create(target='products')
        self.assertIn('products', str(state))
        self.assertIn('never', str(state))


class TestCachedRecordModel(TestCase):
    def test_str(self):
        record = CachedRecord.objects.create(target='orders', key='1001', data={'key': '1001'})
        self.assertEqual(str(record), 'orders:1001')

    def test_same_key_allowed_across_targets(self):
        CachedRecord.objects.create(target='orders', key='42', data={})
        CachedRecord.objects.create(target='products', key='42', data={})
        self.assertEqual(CachedRecord.objects.filter(key='42').count(), 2)

    def test_key_unique_within_target(self):
        CachedRecord.objects.create(target='orders', key='42', data={})
        with self.assertRaises(IntegrityError), transaction.atomic():
            CachedRecord.objects.create(target='orders', key='42', data={})
