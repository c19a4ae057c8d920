"""
Custom exception hierarchy for the conversation orchestrator.

All application exceptions inherit from SarufiError.
"""


class SarufiError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(SarufiError):
    """Invalid or missing configuration."""

    pass


class ValidationError(SarufiError):
    """Strategy or input validation failed."""

    pass


# =============================================================================
# Strategy Errors
# =============================================================================


class StrategyError(SarufiError):
    """Strategy-related error."""

    pass


class StrategyNotFoundError(StrategyError):
    """Strategy is not registered."""

    pass


# =============================================================================
# Session Errors
# =============================================================================


class SessionError(SarufiError):
    """Session-related error."""

    pass


class SessionNotFoundError(SessionError):
    """Session does not exist."""

    pass


class SessionNotActiveError(SessionError):
    """Attempted a turn on a session that is not active."""

    pass


class ContextUpdateError(SessionError):
    """A context delta does not match the registered key schema."""

    pass


# =============================================================================
# LLM Errors
# =============================================================================


class LLMError(SarufiError):
    """Base for LLM-related errors."""

    pass


class LLMTimeoutError(LLMError):
    """LLM call timed out."""

    pass


class LLMRateLimitError(LLMError):
    """LLM rate limit exceeded."""

    pass


class LLMResponseParseError(LLMError):
    """Failed to parse LLM response."""

    pass


class LLMInvalidResponseError(LLMError):
    """LLM returned invalid or unexpected response."""

    pass


class DecisionMissingError(LLMInvalidResponseError):
    """Oracle round finished without calling the decision tool.

    Treated as a recoverable turn failure: the session stays active and
    the caller receives the degraded response.
    """

    pass
