"""
Test settings: in-memory SQLite, fast password hashing.
SELECT ... FOR UPDATE is a no-op on SQLite; commit paths still go through
the compare-and-swap checks in the services.
"""
from .base import *

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

DEFAULT_CURRENCY = 'PLN'
LEDGER_CONFLICT_RETRIES = 3

LOGGING['root']['level'] = 'WARNING'
