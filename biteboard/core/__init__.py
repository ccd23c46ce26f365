"""
Core infrastructure modules for BiteBoard.

- exceptions: Standardized exception hierarchy
- circuit_breaker: Fail-fast guard for the places provider
"""

from biteboard.core.exceptions import (
    BiteBoardError,
    RetryableError,
    PermanentError,
    CollectorError,
    CollectorRateLimitError,
    CollectorTimeoutError,
    CollectorAuthError,
    CollectorNotFoundError,
    CollectorUnavailableError,
    AnalysisCacheError,
    GenerationError,
    BatchParseError,
    ConfigurationError,
    CircuitBreakerOpenError,
)

from biteboard.core.circuit_breaker import (
    CircuitBreaker,
    CircuitState,
    get_circuit_breaker,
    get_all_circuit_breakers,
    reset_all_circuit_breakers,
)

__all__ = [
    # Exceptions
    "BiteBoardError",
    "RetryableError",
    "PermanentError",
    "CollectorError",
    "CollectorRateLimitError",
    "CollectorTimeoutError",
    "CollectorAuthError",
    "CollectorNotFoundError",
    "CollectorUnavailableError",
    "AnalysisCacheError",
    "GenerationError",
    "BatchParseError",
    "ConfigurationError",
    "CircuitBreakerOpenError",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitState",
    "get_circuit_breaker",
    "get_all_circuit_breakers",
    "reset_all_circuit_breakers",
]
