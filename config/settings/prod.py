"""
Production settings
"""
from .base import *

DEBUG = False

SECURE_SSL_REDIRECT = env.bool('SECURE_SSL_REDIRECT', default=True)
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_HSTS_SECONDS = env.int('SECURE_HSTS_SECONDS', default=3600)
X_FRAME_OPTIONS = 'DENY'

# Ledger writes rely on SELECT ... FOR UPDATE, so production runs on PostgreSQL only.
_default_db = env.db('DATABASE_URL')
_default_db.setdefault('CONN_MAX_AGE', 60)
_default_db.setdefault('ATOMIC_REQUESTS', False)
DATABASES = {'default': _default_db}
