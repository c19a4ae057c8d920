"""
LLM client abstraction for the decision oracle.

Provides an async tool-calling interface with:
- Structured logging of requests/responses
- Timeout handling with one retry on timeout / rate limit
- Usage tracking (tokens)
- Per-strategy provider and model selection

Supported providers:
- anthropic: Claude models (Messages API, tool use)
- openai: GPT models (chat completions, function calling)
- google: Gemini models (OpenAI-compatible endpoint)
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple, TYPE_CHECKING

import httpx
import structlog

from sarufi.core.config import settings
from sarufi.core.exceptions import (
    LLMRateLimitError,
    LLMResponseParseError,
    LLMTimeoutError,
)

if TYPE_CHECKING:
    from sarufi.domain.models.strategy import Strategy
    from sarufi.llm.tools import Tool

log = structlog.get_logger(__name__)


ToolChoice = Literal["required", "auto"]


# =============================================================================
# Model tables
# =============================================================================

# Known model ids per provider. An unknown id falls back to the provider
# default; an unknown provider falls back to the Google default.

MODEL_CONFIGS: Dict[str, Dict[str, Any]] = {
    "anthropic": {
        "models": {
            "claude-sonnet-4-6",
            "claude-3-5-sonnet-20241022",
            "claude-3-5-haiku-20241022",
            "claude-3-opus-20240229",
        },
        "default": "claude-sonnet-4-6",
    },
    "openai": {
        "models": {"gpt-4o", "gpt-4o-mini", "gpt-4-turbo", "gpt-4"},
        "default": "gpt-4o",
    },
    "google": {
        "models": {"gemini-2.5-flash", "gemini-2.5-pro", "gemini-1.5-pro-latest"},
        "default": "gemini-2.5-flash",
    },
}

FALLBACK_PROVIDER = "google"


def resolve_model(provider: Optional[str], model: Optional[str]) -> Tuple[str, str]:
    """Map a (provider, model) selector onto a supported pair.

    Args:
        provider: Provider name; None uses settings.default_llm_provider
        model: Model id; None or unknown uses the provider default

    Returns:
        (provider, model) tuple that get_llm_client accepts
    """
    provider = provider or settings.default_llm_provider
    config = MODEL_CONFIGS.get(provider)
    if config is None:
        log.warning(
            "unknown_llm_provider",
            provider=provider,
            falling_back_to=FALLBACK_PROVIDER,
        )
        return FALLBACK_PROVIDER, MODEL_CONFIGS[FALLBACK_PROVIDER]["default"]

    if model and model in config["models"]:
        return provider, model
    return provider, config["default"]


# =============================================================================
# Message, tool call and response types
# =============================================================================


@dataclass
class ToolCall:
    """A single tool invocation requested by the oracle."""

    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass
class OracleMessage:
    """Provider-neutral conversation entry.

    For tool results set role="tool" and fill tool_call_id/name.
    For assistant tool requests fill tool_calls.
    """

    role: Literal["user", "assistant", "tool"]
    content: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)
    tool_call_id: Optional[str] = None
    name: Optional[str] = None
    is_error: bool = False


@dataclass
class LLMResponse:
    """Standardized LLM response."""

    content: str
    model: str
    tool_calls: List[ToolCall] = field(default_factory=list)
    usage: Dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0
    stop_reason: Optional[str] = None
    raw_response: Optional[Dict[str, Any]] = None


# =============================================================================
# Base Class
# =============================================================================


class LLMClient(ABC):
    """Abstract base for oracle providers."""

    provider: str = ""
    model: str = ""
    timeout: float = 30.0

    @abstractmethod
    async def generate(
        self,
        system: str,
        messages: Sequence[OracleMessage],
        tools: Sequence["Tool"],
        tool_choice: ToolChoice = "required",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """
        Run one oracle round.

        Args:
            system: System prompt
            messages: Turn-ordered conversation
            tools: Tools the model may call
            tool_choice: "required" forces at least one tool call
            temperature: Sampling temperature (defaults to init value)
            max_tokens: Max tokens (defaults to init value)
            timeout: Optional timeout override in seconds

        Returns:
            LLMResponse with text content and tool calls
        """
        pass

    async def _post_json(
        self,
        url: str,
        headers: Dict[str, str],
        payload: Dict[str, Any],
        timeout: float,
    ) -> Tuple[Dict[str, Any], float]:
        """POST with one retry on timeout or HTTP 429.

        Returns:
            (response json, latency in ms) of the successful attempt

        Raises:
            LLMTimeoutError: After all retries exhausted on timeout
            LLMRateLimitError: After all retries exhausted on rate limit (429)
            httpx.HTTPStatusError: On other API errors (no retry)
            LLMResponseParseError: If a successful response body is not JSON
        """
        max_retries = 1  # 2 total attempts
        base_delay = 1.0  # seconds

        for attempt in range(max_retries + 1):
            start = time.perf_counter()

            log.debug(
                "llm_call_start",
                provider=self.provider,
                model=self.model,
                message_count=len(payload.get("messages", [])),
                tool_count=len(payload.get("tools", [])),
                attempt=attempt + 1,
                max_retries=max_retries,
            )

            try:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(url, headers=headers, json=payload)
                    response.raise_for_status()
                    try:
                        data = response.json()
                    except ValueError as e:
                        log.error(
                            "llm_response_not_json",
                            provider=self.provider,
                            status_code=response.status_code,
                        )
                        raise LLMResponseParseError(
                            f"{self.provider} returned a non-JSON body: {e}"
                        ) from e

                return data, (time.perf_counter() - start) * 1000

            except httpx.TimeoutException as e:
                log.warning(
                    "llm_timeout",
                    provider=self.provider,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    timeout_seconds=timeout,
                )
                if attempt < max_retries:
                    delay = base_delay * (2**attempt)
                    log.info(
                        "llm_retry_after_timeout",
                        delay_seconds=delay,
                        next_attempt=attempt + 2,
                    )
                    await asyncio.sleep(delay)
                else:
                    raise LLMTimeoutError(
                        f"LLM call timed out after {max_retries + 1} attempts "
                        f"(timeout={timeout}s)"
                    ) from e

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if status_code == 429:
                    log.warning(
                        "llm_rate_limit",
                        provider=self.provider,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                    )
                    if attempt < max_retries:
                        delay = base_delay * (2**attempt)
                        log.info(
                            "llm_retry_after_rate_limit",
                            delay_seconds=delay,
                            next_attempt=attempt + 2,
                        )
                        await asyncio.sleep(delay)
                    else:
                        raise LLMRateLimitError(
                            f"Rate limit exceeded after {max_retries + 1} attempts"
                        ) from e
                else:
                    # Don't retry other 4xx/5xx errors
                    log.error(
                        "llm_http_error",
                        provider=self.provider,
                        status_code=status_code,
                    )
                    raise

        # Unreachable: loop either returns or raises
        assert False, "unreachable"

    def _log_complete(self, response: LLMResponse) -> None:
        log.info(
            "llm_call_complete",
            provider=self.provider,
            model=response.model,
            latency_ms=round(response.latency_ms, 2),
            input_tokens=response.usage.get("input_tokens", 0),
            output_tokens=response.usage.get("output_tokens", 0),
            tool_calls=[call.name for call in response.tool_calls],
        )


# =============================================================================
# Anthropic Client
# =============================================================================


class AnthropicClient(LLMClient):
    """Anthropic Claude API client.

    Uses httpx for async HTTP calls to the Messages API with tool use.
    """

    provider = "anthropic"

    def __init__(
        self,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
        api_key: Optional[str] = None,
    ):
        """
        Initialize Anthropic client.

        Raises:
            ValueError: If API key is not configured
        """
        self.api_key = api_key or settings.anthropic_api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.base_url = "https://api.anthropic.com/v1"

        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY not configured. Set it in .env.")

        log.info(
            "anthropic_client_initialized",
            model=self.model,
            timeout=self.timeout,
        )

    async def generate(
        self,
        system: str,
        messages: Sequence[OracleMessage],
        tools: Sequence["Tool"],
        tool_choice: ToolChoice = "required",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        headers = {
            "x-api-key": self.api_key,
            "content-type": "application/json",
            "anthropic-version": "2023-06-01",
        }

        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens if max_tokens is not None else self.max_tokens,
            "temperature": temperature if temperature is not None else self.temperature,
            "system": system,
            "messages": self._to_provider_messages(messages),
            "tools": [
                {
                    "name": t.name,
                    "description": t.description,
                    "input_schema": t.input_schema,
                }
                for t in tools
            ],
            "tool_choice": {"type": "any" if tool_choice == "required" else "auto"},
        }

        data, latency_ms = await self._post_json(
            f"{self.base_url}/messages",
            headers,
            payload,
            timeout if timeout is not None else self.timeout,
        )

        text_parts: List[str] = []
        tool_calls: List[ToolCall] = []
        for block in data.get("content", []):
            if block.get("type") == "text":
                text_parts.append(block.get("text", ""))
            elif block.get("type") == "tool_use":
                arguments = block.get("input")
                tool_calls.append(
                    ToolCall(
                        id=block.get("id", ""),
                        name=block.get("name", ""),
                        arguments=arguments if isinstance(arguments, dict) else {},
                    )
                )

        response = LLMResponse(
            content="".join(text_parts),
            model=data.get("model", self.model),
            tool_calls=tool_calls,
            usage={
                "input_tokens": data.get("usage", {}).get("input_tokens", 0),
                "output_tokens": data.get("usage", {}).get("output_tokens", 0),
            },
            latency_ms=latency_ms,
            stop_reason=data.get("stop_reason"),
            raw_response=data,
        )
        self._log_complete(response)
        return response

    def _to_provider_messages(
        self, messages: Sequence[OracleMessage]
    ) -> List[Dict[str, Any]]:
        """Translate OracleMessages into Anthropic content-block messages.

        Consecutive entries with the same Anthropic role are merged into one
        message, since tool results and retried user turns must not produce
        two user messages in a row.
        """
        result: List[Dict[str, Any]] = []

        for msg in messages:
            if msg.role == "user":
                role = "user"
                blocks = [{"type": "text", "text": msg.content}]
            elif msg.role == "assistant":
                role = "assistant"
                blocks = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                for call in msg.tool_calls:
                    blocks.append(
                        {
                            "type": "tool_use",
                            "id": call.id,
                            "name": call.name,
                            "input": call.arguments,
                        }
                    )
            else:
                # Tool results travel in a user message
                role = "user"
                blocks = [
                    {
                        "type": "tool_result",
                        "tool_use_id": msg.tool_call_id,
                        "content": msg.content,
                        "is_error": msg.is_error,
                    }
                ]

            if result and result[-1]["role"] == role:
                result[-1]["content"].extend(blocks)
            else:
                result.append({"role": role, "content": blocks})

        return result


# =============================================================================
# OpenAI-Compatible Client Base
# =============================================================================


class OpenAICompatibleClient(LLMClient):
    """
    Base class for OpenAI-compatible chat completion clients.

    Used by providers that follow the OpenAI function-calling format:
    - OpenAI: https://api.openai.com/v1
    - Google Gemini: https://generativelanguage.googleapis.com/v1beta/openai
    """

    def __init__(
        self,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
        base_url: str,
        provider_name: str,
        api_key: str,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.base_url = base_url
        self.provider = provider_name
        self.api_key = api_key

        log.info(
            "openai_compatible_client_initialized",
            provider=self.provider,
            model=self.model,
            timeout=self.timeout,
        )

    async def generate(
        self,
        system: str,
        messages: Sequence[OracleMessage],
        tools: Sequence["Tool"],
        tool_choice: ToolChoice = "required",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "system", "content": system}]
            + self._to_provider_messages(messages),
            "temperature": temperature if temperature is not None else self.temperature,
            "max_tokens": max_tokens if max_tokens is not None else self.max_tokens,
            "tools": [
                {
                    "type": "function",
                    "function": {
                        "name": t.name,
                        "description": t.description,
                        "parameters": t.input_schema,
                    },
                }
                for t in tools
            ],
            "tool_choice": tool_choice,
        }

        data, latency_ms = await self._post_json(
            f"{self.base_url}/chat/completions",
            headers,
            payload,
            timeout if timeout is not None else self.timeout,
        )

        content = ""
        stop_reason = None
        tool_calls: List[ToolCall] = []
        if data.get("choices"):
            choice = data["choices"][0]
            stop_reason = choice.get("finish_reason")
            message = choice.get("message", {})
            content = message.get("content") or ""
            for call in message.get("tool_calls") or []:
                function = call.get("function", {})
                raw_arguments = function.get("arguments") or "{}"
                try:
                    arguments = json.loads(raw_arguments)
                except json.JSONDecodeError as e:
                    raise LLMResponseParseError(
                        f"Tool call '{function.get('name')}' has malformed arguments: {e}"
                    ) from e
                tool_calls.append(
                    ToolCall(
                        id=call.get("id", ""),
                        name=function.get("name", ""),
                        arguments=arguments if isinstance(arguments, dict) else {},
                    )
                )

        response = LLMResponse(
            content=content,
            model=data.get("model", self.model),
            tool_calls=tool_calls,
            usage={
                "input_tokens": data.get("usage", {}).get("prompt_tokens", 0),
                "output_tokens": data.get("usage", {}).get("completion_tokens", 0),
            },
            latency_ms=latency_ms,
            stop_reason=stop_reason,
            raw_response=data,
        )
        self._log_complete(response)
        return response

    def _to_provider_messages(
        self, messages: Sequence[OracleMessage]
    ) -> List[Dict[str, Any]]:
        result: List[Dict[str, Any]] = []
        for msg in messages:
            if msg.role == "tool":
                result.append(
                    {
                        "role": "tool",
                        "tool_call_id": msg.tool_call_id,
                        "content": msg.content,
                    }
                )
            elif msg.role == "assistant" and msg.tool_calls:
                result.append(
                    {
                        "role": "assistant",
                        "content": msg.content or None,
                        "tool_calls": [
                            {
                                "id": call.id,
                                "type": "function",
                                "function": {
                                    "name": call.name,
                                    "arguments": json.dumps(call.arguments),
                                },
                            }
                            for call in msg.tool_calls
                        ],
                    }
                )
            else:
                result.append({"role": msg.role, "content": msg.content})
        return result


# =============================================================================
# OpenAI Client
# =============================================================================


class OpenAIClient(OpenAICompatibleClient):
    """OpenAI chat completions client."""

    def __init__(
        self,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
        api_key: Optional[str] = None,
    ):
        api_key = api_key or settings.openai_api_key
        if not api_key:
            raise ValueError("OPENAI_API_KEY not configured. Set it in .env.")

        super().__init__(
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
            base_url="https://api.openai.com/v1",
            provider_name="openai",
            api_key=api_key,
        )


# =============================================================================
# Google Client
# =============================================================================


class GoogleClient(OpenAICompatibleClient):
    """
    Google Gemini client over the OpenAI-compatible endpoint.

    API Docs: https://ai.google.dev/gemini-api/docs/openai
    """

    def __init__(
        self,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
        api_key: Optional[str] = None,
    ):
        api_key = api_key or settings.google_api_key
        if not api_key:
            raise ValueError("GOOGLE_API_KEY not configured. Set it in .env.")

        super().__init__(
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
            base_url="https://generativelanguage.googleapis.com/v1beta/openai",
            provider_name="google",
            api_key=api_key,
        )


# =============================================================================
# Client Factory Functions
# =============================================================================

_CLIENT_CLASSES = {
    "anthropic": AnthropicClient,
    "openai": OpenAIClient,
    "google": GoogleClient,
}


def get_llm_client(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> LLMClient:
    """
    Factory for an oracle client.

    Args:
        provider: Provider name (unknown names fall back to Google)
        model: Model id (unknown ids fall back to the provider default)
        temperature: Defaults to settings.oracle_temperature
        max_tokens: Defaults to settings.oracle_max_tokens

    Raises:
        ValueError: If the provider's API key is missing
    """
    provider, model = resolve_model(provider, model)
    client_class = _CLIENT_CLASSES[provider]
    return client_class(
        model=model,
        temperature=temperature if temperature is not None else settings.oracle_temperature,
        max_tokens=max_tokens if max_tokens is not None else settings.oracle_max_tokens,
        timeout=settings.oracle_timeout,
    )


def get_llm_client_for_strategy(strategy: "Strategy") -> LLMClient:
    """Build the oracle client a strategy selects."""
    return get_llm_client(provider=strategy.llm_provider, model=strategy.model)
