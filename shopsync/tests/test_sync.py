from datetime import datetime, timezone
from unittest.mock import patch

from django.test import TestCase, override_settings

from shopsync.exceptions import ConfigurationError, TransportError
from shopsync.models import CachedRecord, SyncState
from shopsync.stores.django_store import DjangoCacheStore
from shopsync.sync import SyncOrchestrator
from shopsync.targets import get_target
from shopsync.tests.fakes import FakeShopifyClient, catalog, order_node

T1 = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
T2 = datetime(2024, 6, 1, 12, 30, tzinfo=timezone.utc)
T3 = datetime(2024, 6, 1, 13, 0, tzinfo=timezone.utc)


def _make_orchestrator(nodes, fail_on_page=None):
    client = FakeShopifyClient(nodes, fail_on_page=fail_on_page)
    orchestrator = SyncOrchestrator(target=get_target('products'), client=client, store=DjangoCacheStore())
    return orchestrator, client


def _sync(nodes, now, **kwargs):
    orchestrator, client = _make_orchestrator(nodes)
    with patch('shopsync.sync.timezone.now', return_value=now):
        result = orchestrator.run(**kwargs)
    return result, client


def _cache():
    return {r.key: r.data for r in CachedRecord.objects.filter(target='products')}


def _state():
    return SyncState.objects.get(pk='products').as_dict()


@override_settings(SHOPSYNC_MAX_PAGES=0, SHOPSYNC_MAX_RECORDS=0, SHOPSYNC_PAGE_SIZE=50)
class TestFullSync(TestCase):
    def test_first_run_is_full_and_pages_through_everything(self):
        result, client = _sync(catalog(120), T1, sync_type='delta')

        self.assertTrue(result['success'])
        self.assertEqual(result['sync_type_used'], 'full')
        self.assertEqual(result['pages'], 3)
        self.assertEqual(result['upserted_count'], 120)
        self.assertEqual(result['deleted_count'], 0)
        self.assertEqual([c['cursor'] for c in client.calls], [None, '50', '100'])
        self.assertTrue(all(c['modified_since'] is None for c in client.calls))
        self.assertTrue(all(c['page_size'] == 50 for c in client.calls))
        self.assertEqual(len(_cache()), 120)

        state = _state()
        self.assertEqual(state['last_sync_timestamp'], T1.isoformat())
        self.assertEqual(state['last_full_sync_completion_timestamp'], T1.isoformat())
        self.assertEqual(state['last_cursor'], '120')

    def test_removed_entities_are_evicted(self):
        nodes = catalog(120)
        _sync(nodes, T1)

        result, _ = _sync(nodes[5:], T2, sync_type='full')

        self.assertEqual(result['deleted_count'], 5)
        self.assertEqual(len(_cache()), 115)

    def test_cache_converges_to_observed_keys(self):
        CachedRecord.objects.create(target='products', key='999999', data={'key': '999999'})
        nodes = catalog(30)

        _sync(nodes, T1, force_full_sync=True)

        expected = {str(n * 1000) for n in range(1, 31)}
        self.assertEqual(set(_cache()), expected)

    def test_second_full_sync_is_idempotent(self):
        nodes = catalog(75)
        _sync(nodes, T1, sync_type='full')
        first = _cache()

        result, _ = _sync(nodes, T2, sync_type='full', force_full_sync=True)

        self.assertEqual(result['deleted_count'], 0)
        self.assertEqual(_cache(), first)

    def test_empty_remote_catalog_empties_the_cache(self):
        _sync(catalog(10), T1)

        result, _ = _sync([], T2, sync_type='full')

        self.assertEqual(result['deleted_count'], 10)
        self.assertEqual(_cache(), {})

    def test_invalid_sync_type(self):
        orchestrator, _ = _make_orchestrator([])
        with self.assertRaises(ConfigurationError):
            orchestrator.run(sync_type='partial')


@override_settings(SHOPSYNC_MAX_PAGES=0, SHOPSYNC_MAX_RECORDS=0, SHOPSYNC_PAGE_SIZE=50)
class TestDeltaSync(TestCase):
    def setUp(self):
        _sync(catalog(120), T1)

    def test_no_remote_changes(self):
        result, client = _sync(catalog(120), T2)

        self.assertEqual(result['sync_type_used'], 'delta')
        self.assertEqual(result['fetched_count'], 0)
        self.assertEqual(result['upserted_count'], 0)
        self.assertEqual(result['deleted_count'], 0)
        self.assertEqual(client.calls[0]['modified_since'], T1)
        self.assertEqual(len(_cache()), 120)

        state = _state()
        self.assertEqual(state['last_sync_timestamp'], T2.isoformat())
        self.assertEqual(state['last_full_sync_completion_timestamp'], T1.isoformat())

    def test_only_modified_entities_are_fetched(self):
        nodes = catalog(120)
        for node in nodes[:7]:
            node['updatedAt'] = '2024-06-01T12:10:00Z'
            node['title'] = 'Renamed'

        result, _ = _sync(nodes, T2)

        self.assertEqual(result['upserted_count'], 7)
        self.assertEqual(_cache()['1000']['product_title'], 'Renamed')

    def test_never_loses_cached_keys(self):
        before = set(_cache())
        survivors = catalog(10, updated_at='2024-06-01T12:10:00Z')

        result, _ = _sync(survivors, T2)

        self.assertEqual(result['deleted_count'], 0)
        self.assertTrue(before <= set(_cache()))

    def test_requested_full_overrides_delta(self):
        result, client = _sync(catalog(120), T2, sync_type='full')

        self.assertEqual(result['sync_type_used'], 'full')
        self.assertIsNone(client.calls[0]['modified_since'])

    def test_next_delta_filters_from_previous_start(self):
        _sync(catalog(120), T2)

        _, client = _sync(catalog(120), T3)

        self.assertEqual(client.calls[0]['modified_since'], T2)


@override_settings(SHOPSYNC_MAX_PAGES=0, SHOPSYNC_MAX_RECORDS=0, SHOPSYNC_PAGE_SIZE=50)
class TestFailedRuns(TestCase):
    def test_failed_delta_leaves_state_and_cache_untouched(self):
        _sync(catalog(120), T1)
        state_before = _state()
        cache_before = _cache()
        changed = catalog(150, updated_at='2024-06-01T12:10:00Z')

        orchestrator, client = _make_orchestrator(changed, fail_on_page=2)
        with patch('shopsync.sync.timezone.now', return_value=T2):
            with self.assertRaises(TransportError) as ctx:
                orchestrator.run(sync_type='delta')

        self.assertEqual(len(client.calls), 2)
        self.assertEqual(_state(), state_before)
        self.assertEqual(_cache(), cache_before)
        self.assertTrue(any(d.startswith('Page 1:') for d in ctx.exception.details))
        self.assertEqual(ctx.exception.sync_type, 'delta')

    def test_interrupted_first_run_still_forces_full(self):
        orchestrator, _ = _make_orchestrator(catalog(120), fail_on_page=3)
        with self.assertRaises(TransportError):
            orchestrator.run(sync_type='full')
        self.assertFalse(SyncState.objects.filter(pk='products').exists())

        result, _ = _sync(catalog(120), T2, sync_type='delta', force_full_sync=False)

        self.assertEqual(result['sync_type_used'], 'full')
        self.assertEqual(len(_cache()), 120)

    def test_failed_full_sync_deletes_nothing(self):
        _sync(catalog(120), T1)

        orchestrator, _ = _make_orchestrator(catalog(40), fail_on_page=1)
        with self.assertRaises(TransportError):
            orchestrator.run(force_full_sync=True)

        self.assertEqual(len(_cache()), 120)


@override_settings(SHOPSYNC_MAX_PAGES=2, SHOPSYNC_MAX_RECORDS=0, SHOPSYNC_PAGE_SIZE=50)
class TestSafetyCaps(TestCase):
    def test_page_cap_truncates_without_evicting(self):
        CachedRecord.objects.create(target='products', key='999999', data={'key': '999999'})

        result, client = _sync(catalog(120), T1)

        self.assertTrue(result['truncated'])
        self.assertEqual(result['sync_type_used'], 'full')
        self.assertEqual(len(client.calls), 2)
        self.assertEqual(result['upserted_count'], 100)
        self.assertEqual(result['deleted_count'], 0)
        self.assertIn('999999', _cache())

        state = _state()
        self.assertIsNone(state['last_full_sync_completion_timestamp'])
        self.assertIsNone(state['last_sync_timestamp'])
        self.assertEqual(state['last_cursor'], '100')

    @override_settings(SHOPSYNC_MAX_PAGES=0)
    def test_fetch_limit(self):
        result, client = _sync(catalog(120), T1, limit=60)

        self.assertTrue(result['truncated'])
        self.assertEqual([c['page_size'] for c in client.calls], [50, 10])
        self.assertEqual(result['fetched_count'], 60)
        self.assertEqual(result['upserted_count'], 60)
        self.assertEqual(_state()['last_cursor'], '60')

    @override_settings(SHOPSYNC_MAX_PAGES=0)
    def test_limit_smaller_than_a_page(self):
        orders = [order_node(n) for n in range(1, 121)]
        client = FakeShopifyClient(orders)
        orchestrator = SyncOrchestrator(target=get_target('orders'), client=client, store=DjangoCacheStore())

        with patch('shopsync.sync.timezone.now', return_value=T1):
            result = orchestrator.run(limit=10)

        self.assertEqual([c['page_size'] for c in client.calls], [10])
        self.assertEqual(result['upserted_count'], 10)
        self.assertEqual(CachedRecord.objects.filter(target='orders').count(), 10)


@override_settings(SHOPSYNC_MAX_PAGES=0, SHOPSYNC_MAX_RECORDS=0, SHOPSYNC_PAGE_SIZE=50)
class TestOrdersTarget(TestCase):
    def test_orders_share_the_table_without_colliding(self):
        _sync(catalog(3), T1)
        orders = [order_node(n) for n in (1000, 2000, 4000)]
        client = FakeShopifyClient(orders)
        orchestrator = SyncOrchestrator(target=get_target('orders'), client=client, store=DjangoCacheStore())

        with patch('shopsync.sync.timezone.now', return_value=T1):
            result = orchestrator.run(sync_type='full')

        self.assertEqual(result['upserted_count'], 3)
        self.assertEqual(result['deleted_count'], 0)
        self.assertEqual(set(_cache()), {'1000', '2000', '3000'})
        cached_orders = CachedRecord.objects.filter(target='orders')
        self.assertEqual({r.key for r in cached_orders}, {'1000', '2000', '4000'})
        self.assertEqual(cached_orders.get(key='2000').data['name'], '#3000')
        self.assertTrue(SyncState.objects.filter(pk='orders').exists())
