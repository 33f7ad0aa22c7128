import logging

from celery import shared_task
from django.conf import settings
from django.utils.module_loading import import_string

from shopsync.clients.shopify_client import ShopifyClient
from shopsync.exceptions import SyncError
from shopsync.locks import sync_lock
from shopsync.reconcile import DELTA
from shopsync.sync import SyncOrchestrator
from shopsync.targets import get_target

logger = logging.getLogger(__name__)


def build_orchestrator(target_name):
    target = get_target(target_name)
    store = import_string(settings.SHOPSYNC_CACHE_STORE_CLASS)()
    client = ShopifyClient(target)
    return SyncOrchestrator(target=target, client=client, store=store)


def run_sync(target, sync_type=DELTA, force_full_sync=False, limit=0):
    """Run one sync and report the outcome as a plain dict.

    Sync failures come back as {'success': False, 'error': ...}; the caller
    decides how to present them.
    """
    try:
        get_target(target)
        with sync_lock(target):
            orchestrator = build_orchestrator(target)
            return orchestrator.run(sync_type=sync_type, force_full_sync=force_full_sync, limit=limit)
    except SyncError as exc:
        logger.error("%s sync failed (%s): %s", target, type(exc).__name__, exc)
        return {
            'success': False,
            'target': target,
            'sync_type_used': getattr(exc, 'sync_type', None),
            'upserted_count': 0,
            'deleted_count': 0,
            'error': str(exc),
            'error_type': type(exc).__name__,
            'details': exc.details,
        }
    except Exception:
        logger.exception("Unexpected error during %s sync", target)
        raise


@shared_task
def sync_products(sync_type=DELTA, force_full_sync=False, limit=0):
    return run_sync('products', sync_type=sync_type, force_full_sync=force_full_sync, limit=limit)


@shared_task
def sync_orders(sync_type=DELTA, force_full_sync=False, limit=0):
    return run_sync('orders', sync_type=sync_type, force_full_sync=force_full_sync, limit=limit)
