from pathlib import Path

from environs import Env

env = Env()
env.read_env(recurse=False)

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = env.str('SECRET_KEY', 'django-insecure-4n@w3l!0c4l-sh0ps7nc-k3y-ch4ng3-m3-1n-pr0d')

DEBUG = env.bool('DEBUG', False)

ALLOWED_HOSTS = env.list('ALLOWED_HOSTS', [])

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'shopsync',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'core.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'core.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

# The run lock and the circuit breaker live here, so every worker must share it.
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.redis.RedisCache',
        'LOCATION': env.str('CACHE_URL', 'redis://localhost:6379/1'),
    }
}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'shopsync': {
            'handlers': ['console'],
            'level': env.str('SHOPSYNC_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}

# Celery
CELERY_BROKER_URL = env.str('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = CELERY_BROKER_URL
CELERY_BEAT_SCHEDULE = {
    'sync-shopify-products-every-15-min': {
        'task': 'shopsync.tasks.sync_products',
        'schedule': 900,
    },
    'sync-shopify-orders-every-10-min': {
        'task': 'shopsync.tasks.sync_orders',
        'schedule': 600,
    },
}

# Shopify Admin API
SHOPIFY_STORE_DOMAIN = env.str('SHOPIFY_STORE_DOMAIN', '')
SHOPIFY_ADMIN_API_ACCESS_TOKEN = env.str('SHOPIFY_ADMIN_API_ACCESS_TOKEN', '')
SHOPIFY_API_VERSION = env.str('SHOPIFY_API_VERSION', '2024-07')

# Sync engine
SHOPSYNC_PAGE_SIZE = env.int('SHOPSYNC_PAGE_SIZE', 50)
SHOPSYNC_WRITE_BATCH_SIZE = env.int('SHOPSYNC_WRITE_BATCH_SIZE', 500)
SHOPSYNC_FETCH_MAX_ATTEMPTS = env.int('SHOPSYNC_FETCH_MAX_ATTEMPTS', 3)
SHOPSYNC_WRITE_MAX_ATTEMPTS = env.int('SHOPSYNC_WRITE_MAX_ATTEMPTS', 3)
SHOPSYNC_RETRY_BASE_DELAY = env.float('SHOPSYNC_RETRY_BASE_DELAY', 0.5)
SHOPSYNC_REQUEST_TIMEOUT = env.float('SHOPSYNC_REQUEST_TIMEOUT', 30.0)
SHOPSYNC_CIRCUIT_THRESHOLD = env.int('SHOPSYNC_CIRCUIT_THRESHOLD', 5)
SHOPSYNC_CIRCUIT_COOLDOWN = env.int('SHOPSYNC_CIRCUIT_COOLDOWN', 300)
SHOPSYNC_LOCK_TTL = env.int('SHOPSYNC_LOCK_TTL', 3600)

# Safety caps for non-production profiles; 0 means unlimited.
SHOPSYNC_MAX_PAGES = env.int('SHOPSYNC_MAX_PAGES', 0)
SHOPSYNC_MAX_RECORDS = env.int('SHOPSYNC_MAX_RECORDS', 0)

# Cache store provider, swappable via env or override in dev.py/prod.py
SHOPSYNC_CACHE_STORE_CLASS = env.str(
    'SHOPSYNC_CACHE_STORE_CLASS', 'shopsync.stores.django_store.DjangoCacheStore'
)
