"""
Custom Exceptions Module

Defines application-specific exceptions for clearer error handling.
All exceptions inherit from a base VoicePersonalizationError for easy catching.

Each exception carries a coarse error code that is reported to the caller
unchanged (Unauthorized, RateLimited, InvalidInput, StorageUnavailable).

Usage:
    from utils.exceptions import RateLimitedError, StorageUnavailableError

    try:
        await service.record_corrections(db, user_id, corrections)
    except StorageUnavailableError as e:
        logger.error(f"Profile write failed: {e}")
"""

from typing import Optional, Dict, Any


class VoicePersonalizationError(Exception):
    """
    Base exception for all voice personalization errors.

    Attributes:
        message: Human-readable error message
        details: Additional error details (optional)
        status_code: HTTP status code to return (optional)
        error_code: Coarse error code reported to the caller
    """

    error_code = "InternalError"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


# =============================================================================
# Authentication Exceptions
# =============================================================================

class AuthenticationError(VoicePersonalizationError):
    """
    Raised when the caller identity cannot be established.

    Common causes:
        - Missing or malformed Authorization header
        - Invalid or expired token
        - Token subject does not match a user
    """

    error_code = "Unauthorized"

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            details=details,
            status_code=401
        )


# =============================================================================
# Correction Ingestion Exceptions
# =============================================================================

class RateLimitedError(VoicePersonalizationError):
    """
    Raised when a user exceeds the correction quota for the rate window.

    No mutation is performed; the caller is expected to retry later.
    """

    error_code = "RateLimited"

    def __init__(
        self,
        message: str = "Rate limit exceeded. Try again later.",
        user_id: Optional[str] = None,
        retry_after_seconds: int = 0,
        details: Optional[Dict[str, Any]] = None
    ):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            message=message,
            details={"user_id": user_id, "retry_after_seconds": retry_after_seconds, **(details or {})},
            status_code=429
        )


class InvalidInputError(VoicePersonalizationError):
    """
    Raised when a correction batch is missing, empty, or not a list.

    Malformed individual corrections are not errors; they are skipped.
    """

    error_code = "InvalidInput"

    def __init__(
        self,
        message: str = "Invalid request: corrections array required",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            details=details,
            status_code=400
        )


class StorageUnavailableError(VoicePersonalizationError):
    """
    Raised when the voice profile cannot be read or written.

    Audit rows already written for the batch are not rolled back.
    """

    error_code = "StorageUnavailable"

    def __init__(
        self,
        message: str = "Profile storage unavailable",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            details={"operation": operation, **(details or {})},
            status_code=500
        )
