"""Error types for the query result cache and its data-source wiring."""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Standardized error codes for the application."""

    CONFIGURATION_ERROR = "configuration_error"
    QUERY_EXECUTION_FAILED = "query_execution_failed"


class AppError(Exception):
    """
    Structured application error.

    Attributes:
        code: Error code from ErrorCode enum
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(AppError):
    """Error for unreadable or ill-typed instance settings."""

    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=f"Invalid data source configuration: {reason}",
            details=details,
        )


class QueryExecutionError(AppError):
    """Error reported for a single query of a batch whose execution failed."""

    def __init__(self, ref_id: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.QUERY_EXECUTION_FAILED,
            message=f"Query {ref_id} failed: {reason}",
            details={"ref_id": ref_id},
        )
