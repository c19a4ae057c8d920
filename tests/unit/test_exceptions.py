"""Tests for exception hierarchy."""

import pytest


def test_exception_hierarchy():
    """All exceptions inherit from SarufiError."""
    from sarufi.core.exceptions import (
        SarufiError,
        ConfigurationError,
        ValidationError,
        StrategyError,
        StrategyNotFoundError,
        SessionError,
        SessionNotFoundError,
        SessionNotActiveError,
        ContextUpdateError,
        LLMError,
        LLMTimeoutError,
        LLMRateLimitError,
        LLMResponseParseError,
        LLMInvalidResponseError,
        DecisionMissingError,
    )

    assert issubclass(ConfigurationError, SarufiError)
    assert issubclass(ValidationError, SarufiError)
    assert issubclass(StrategyNotFoundError, StrategyError)
    assert issubclass(SessionNotFoundError, SessionError)
    assert issubclass(SessionNotActiveError, SessionError)
    assert issubclass(ContextUpdateError, SessionError)
    assert issubclass(LLMTimeoutError, LLMError)
    assert issubclass(LLMRateLimitError, LLMError)
    assert issubclass(LLMResponseParseError, LLMError)
    assert issubclass(DecisionMissingError, LLMInvalidResponseError)
    assert issubclass(DecisionMissingError, LLMError)


def test_exceptions_can_be_raised():
    """Exceptions can be raised and caught."""
    from sarufi.core.exceptions import SessionNotFoundError

    with pytest.raises(SessionNotFoundError):
        raise SessionNotFoundError("Session test-123 not found")


def test_exception_message():
    """Exceptions preserve message."""
    from sarufi.core.exceptions import DecisionMissingError

    exc = DecisionMissingError("no answer call")
    assert exc.message == "no answer call"
    assert str(exc) == "no answer call"


def test_validation_error_is_not_pydantic():
    """The application ValidationError is distinct from pydantic's."""
    import pydantic
    from sarufi.core.exceptions import ValidationError

    assert not issubclass(ValidationError, pydantic.ValidationError)


@pytest.mark.parametrize(
    "exc_name,status_code",
    [
        ("SessionNotFoundError", 404),
        ("StrategyNotFoundError", 404),
        ("ValidationError", 400),
        ("ContextUpdateError", 400),
        ("SessionNotActiveError", 409),
        ("LLMTimeoutError", 504),
        ("LLMRateLimitError", 429),
        ("DecisionMissingError", 500),
    ],
)
def test_http_status_mapping(exc_name, status_code):
    """API errors map to HTTP status codes."""
    from sarufi.api.exception_handlers import status_code_for
    from sarufi.core import exceptions

    exc = getattr(exceptions, exc_name)("boom")
    assert status_code_for(exc) == status_code
