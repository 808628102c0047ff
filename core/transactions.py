"""
Transaction helpers for read-modify-write commits.
"""
import functools
import logging

from django.conf import settings
from django.db import transaction

from core.errors import ConflictError, ConsistencyViolation

logger = logging.getLogger(__name__)


def retry_on_conflict(label):
    """
    Run the wrapped function inside transaction.atomic(). If it raises
    ConsistencyViolation the attempt is rolled back and the function runs
    again from scratch (fresh reads). After LEDGER_CONFLICT_RETRIES attempts
    the caller gets ConflictError.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempts = max(1, getattr(settings, 'LEDGER_CONFLICT_RETRIES', 3))
            last_exc = None
            for attempt in range(1, attempts + 1):
                try:
                    with transaction.atomic():
                        return func(*args, **kwargs)
                except ConsistencyViolation as exc:
                    last_exc = exc
                    logger.warning(f"[{label}] Conflict on attempt {attempt}/{attempts}: {exc.message}")
            raise ConflictError(
                f"{label}: concurrent modification, gave up after {attempts} attempts"
            ) from last_exc
        return wrapper
    return decorator
