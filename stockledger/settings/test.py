"""
Test settings.
In-memory SQLite shared between threads, quiet logging.

Usage:
    pytest  (DJANGO_SETTINGS_MODULE is set in pyproject.toml)
"""

from .base import *

DEPLOYMENT_MODE = 'test'

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        # Test runs use a shared-cache in-memory database, so worker threads
        # opened by the concurrency tests see the same tables.
        'NAME': ':memory:',
        'OPTIONS': {
            'timeout': 20,
        },
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

# Short enough that a stuck test fails fast
INVENTORY_LOCK_TIMEOUT = 5.0

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'loggers': {
        'inventory': {
            'handlers': ['null'],
            'level': 'DEBUG',
            'propagate': True,
        },
    },
}
