"""
Domain errors raised by the finance services.
config.exceptions.custom_exception_handler maps them to HTTP responses.
"""


class FinanceError(Exception):
    """Base class for balance / settlement / payout errors."""
    code = 'error'

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class NotFoundError(FinanceError):
    """Requested record not found."""
    code = 'not_found'


class InvalidOperationError(FinanceError):
    """Operation not allowed in the current state."""
    code = 'invalid_operation'


class EmptyBatchError(InvalidOperationError):
    """No qualified lessons for payout in this period."""
    code = 'empty_batch'


class ConsistencyViolation(FinanceError):
    """
    A concurrent change invalidated what this transaction read.
    Internal: retry_on_conflict retries the whole transaction.
    """
    code = 'consistency_violation'


class ConflictError(FinanceError):
    """The record was modified concurrently, please retry."""
    code = 'conflict'
