from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

CELERY_TASK_ALWAYS_EAGER = True

SHOPIFY_STORE_DOMAIN = 'test-shop.myshopify.com'
SHOPIFY_ADMIN_API_ACCESS_TOKEN = 'shpat_test_token'
SHOPIFY_API_VERSION = '2024-07'

SHOPSYNC_RETRY_BASE_DELAY = 0.0
SHOPSYNC_MAX_PAGES = 0
SHOPSYNC_MAX_RECORDS = 0
