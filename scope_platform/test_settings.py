"""
Test settings - uses SQLite database
"""

from .settings import *

# Override database settings to use SQLite
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'test_db.sqlite3',
    }
}

# Keep cached aggregation results local to the test process
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'scope-platform-test-default',
    },
    'aggregation': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'scope-platform-test-aggregation',
    },
}

SCOPE_AGGREGATION = {
    'MAX_WORKERS': 2,
    'CACHE_ALIAS': 'aggregation',
    'CACHE_TIMEOUT': 60,
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
