"""Exception hierarchy for the quote matching engine.

Every failure the engine can hit maps onto one of these. The batch
orchestrator decides per type whether to recover locally, record a
per-quote error, or reject the call up front.
"""
from typing import Any, Optional


class QuoteEngineError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class InvalidInputError(QuoteEngineError):
    """Malformed quote id or option value, raised before any I/O."""


class QuoteNotFoundError(QuoteEngineError):
    def __init__(self, quote_id: int):
        super().__init__(f"Quote {quote_id} not found", {"quote_id": quote_id})
        self.quote_id = quote_id


class OracleUnavailableError(QuoteEngineError):
    """Pricing oracle could not be reached or timed out."""


class OracleResponseError(QuoteEngineError):
    """Pricing oracle answered with a payload that failed validation."""


class PersistenceError(QuoteEngineError):
    """A storage write failed for a single quote."""
