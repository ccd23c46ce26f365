"""
Core exception hierarchy for BiteBoard.

Provides standardized exception types for the enrichment pipeline. Most of
these never reach an HTTP caller: the analyze flow degrades collaborator
failures to null recommendations and only logs them.
"""

from typing import Any, Optional


# =============================================================================
# Base Exceptions
# =============================================================================


class BiteBoardError(Exception):
    """Base exception for all BiteBoard errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RetryableError(BiteBoardError):
    """
    Transient errors.

    Examples: Rate limits, timeouts, temporary network issues.
    """

    pass


class PermanentError(BiteBoardError):
    """
    Errors that won't be fixed by trying again.

    Examples: Invalid input, missing required data, authentication failures.
    """

    pass


# =============================================================================
# Collector Errors
# =============================================================================


class CollectorError(BiteBoardError):
    """Base exception for place provider errors."""

    def __init__(
        self,
        collector_type: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.collector_type = collector_type
        super().__init__(f"[{collector_type}] {message}", details)


class CollectorRateLimitError(CollectorError, RetryableError):
    """Raised when the provider rejects a request with 429."""

    pass


class CollectorTimeoutError(CollectorError, RetryableError):
    """Raised when a provider request times out."""

    pass


class CollectorAuthError(CollectorError, PermanentError):
    """Raised when provider authentication fails."""

    pass


class CollectorNotFoundError(CollectorError, PermanentError):
    """Raised when requested resource is not found."""

    pass


class CollectorUnavailableError(CollectorError, RetryableError):
    """Raised when the provider is short-circuited or temporarily unavailable."""

    pass


# =============================================================================
# Analysis Cache Errors
# =============================================================================


class AnalysisCacheError(BiteBoardError):
    """Raised when the analysis cache cannot be read or written."""

    def __init__(
        self,
        operation: str,
        place_id: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.operation = operation
        self.place_id = place_id
        super().__init__(f"[cache:{operation}] {place_id}: {message}", details)


# =============================================================================
# Generation Errors
# =============================================================================


class GenerationError(RetryableError):
    """Raised when the generative model call fails or times out."""

    pass


class BatchParseError(PermanentError):
    """Raised when model output is not a JSON object after fence stripping."""

    def __init__(self, message: str, raw_text: str = ""):
        self.raw_text = raw_text
        super().__init__(message, {"preview": raw_text[:200]} if raw_text else None)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PermanentError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details)


# =============================================================================
# Circuit Breaker
# =============================================================================


class CircuitBreakerOpenError(RetryableError):
    """Raised when circuit breaker is open and blocking requests."""

    def __init__(self, service: str, recovery_time: float):
        self.service = service
        self.recovery_time = recovery_time
        super().__init__(
            f"Circuit breaker open for {service}. Recovery in {recovery_time:.1f}s",
            {"service": service, "recovery_time": recovery_time},
        )
