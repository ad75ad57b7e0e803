"""
Errors raised by the emission aggregation services.

Validation errors describe a bad request and are never retried. Source errors
wrap a failure of the storage layer; the caller decides whether to retry.
"""


class ScopeAggregationError(Exception):
    """Base class for aggregation errors."""
    code = "aggregation_error"


class ScopeValidationError(ScopeAggregationError, ValueError):
    code = "validation_error"


class InvalidContextError(ScopeValidationError):
    """The organization context is incomplete or inconsistent."""
    code = "invalid_context"


class InvalidPeriodError(ScopeValidationError):
    """The reporting period (or an identifier) could not be parsed or is out of range."""
    code = "invalid_period"


class SourceUnavailableError(ScopeAggregationError):
    """The raw aggregate source failed while answering a query."""
    code = "source_unavailable"

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause
