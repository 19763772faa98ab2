"""
Exception hierarchy for the benchmarking engine.

Only two of these are ever allowed to escape an engine operation:
NotFoundError (the user's progress snapshot is missing) and
UpstreamUnavailableError raised by the user-progress fetch. Everything
else is translated into "comparison unavailable" (None / empty list)
by the engine itself.
"""

from typing import Any, Dict, Optional


class BenchmarkEngineError(Exception):
    """
    Base exception for all engine errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code (e.g. "USER_PROGRESS_NOT_FOUND")
        status_code: HTTP status code the API layer should return
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": {"code": self.error_code, "message": self.message, "details": self.details}
        }


class NotFoundError(BenchmarkEngineError):
    """Raised when a user's skill progress snapshot does not exist."""

    def __init__(self, user_id: str):
        super().__init__(
            message="User progress not found",
            error_code="USER_PROGRESS_NOT_FOUND",
            status_code=404,
            details={"user_id": user_id},
        )


class InsufficientDataError(BenchmarkEngineError):
    """Raised when a cohort or sample is below the minimum group size."""

    def __init__(self, size: int, minimum: int):
        super().__init__(
            message=f"Group of {size} is below the minimum size of {minimum}",
            error_code="INSUFFICIENT_DATA",
            status_code=422,
            details={"size": size, "minimum": minimum},
        )


class UpstreamUnavailableError(BenchmarkEngineError):
    """Raised when an external collaborator fails or times out."""

    def __init__(self, source: str, reason: str = ""):
        super().__init__(
            message=f"{source} is unavailable" + (f": {reason}" if reason else ""),
            error_code="UPSTREAM_UNAVAILABLE",
            status_code=503,
            details={"source": source},
        )


class InvalidExperienceLevelError(BenchmarkEngineError, ValueError):
    """Raised when an experience level string is not a known level."""

    def __init__(self, value: str):
        super().__init__(
            message=f"Unknown experience level '{value}'",
            error_code="INVALID_EXPERIENCE_LEVEL",
            status_code=422,
            details={"value": value},
        )


class ReferenceDataError(BenchmarkEngineError):
    """Raised when a reference dataset file cannot be loaded or is malformed."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Invalid reference dataset '{path}': {reason}",
            error_code="REFERENCE_DATA_INVALID",
            status_code=500,
            details={"path": path},
        )
