"""Tests for application error types."""

from query_range_cache.errors import (
    AppError,
    ConfigurationError,
    ErrorCode,
    QueryExecutionError,
)


def test_error_codes_are_stable() -> None:
    assert {code.value for code in ErrorCode} == {
        "configuration_error",
        "query_execution_failed",
    }


def test_query_execution_error_carries_ref_id() -> None:
    error = QueryExecutionError("B", "warehouse unavailable")

    assert isinstance(error, AppError)
    assert error.code == ErrorCode.QUERY_EXECUTION_FAILED
    assert error.message == "Query B failed: warehouse unavailable"
    assert error.details == {"ref_id": "B"}
    assert str(error) == error.message


def test_configuration_error_defaults_details() -> None:
    error = ConfigurationError("settings must be valid JSON")

    assert error.code == ErrorCode.CONFIGURATION_ERROR
    assert error.details == {}
    assert "settings must be valid JSON" in error.message
