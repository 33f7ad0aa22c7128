from .base import *  # noqa: F401,F403
from .base import env

DEBUG = True

ALLOWED_HOSTS = ['localhost', '127.0.0.1']

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

# Keep local runs against a real shop short
SHOPSYNC_MAX_PAGES = env.int('SHOPSYNC_MAX_PAGES', 5)
SHOPSYNC_MAX_RECORDS = env.int('SHOPSYNC_MAX_RECORDS', 250)
