"""
Utilities Module

Provides shared utilities across the application:
- Logging configuration
- Custom exceptions
- Request throttling
"""

from .logging import get_logger, setup_logging, log_learning_outcome
from .exceptions import (
    VoicePersonalizationError,
    AuthenticationError,
    RateLimitedError,
    InvalidInputError,
    StorageUnavailableError,
)
from .rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    RATE_LIMITS,
    limit_auth,
    limit_corrections,
)

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    "log_learning_outcome",
    # Exceptions
    "VoicePersonalizationError",
    "AuthenticationError",
    "RateLimitedError",
    "InvalidInputError",
    "StorageUnavailableError",
    # Request Throttling
    "limiter",
    "rate_limit_exceeded_handler",
    "RATE_LIMITS",
    "limit_auth",
    "limit_corrections",
]
