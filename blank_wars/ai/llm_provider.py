"""
LLM Provider abstraction for the Blank Wars battle engine.

This module provides a clean interface to LLM services with:
- Support for multiple providers (Anthropic Claude, OpenAI)
- Retry logic
- Response validation against the engine's authority boundary

CRITICAL: The LLM writes flavor text ONLY. It cannot:
- Decide whether a fighter follows the plan
- Decide damage, HP, morale or who wins
- Alter battle state in any way
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
import logging
import os
import re
import time

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    MOCK = "mock"  # For testing


class LLMRole(str, Enum):
    """Roles for messages in conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class LLMMessage:
    """A message in an LLM conversation."""

    role: LLMRole
    content: str


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str
    model: str
    provider: LLMProvider
    usage: dict[str, int] = field(default_factory=dict)
    raw_response: Optional[Any] = None

    # Validation flags
    authority_violations: list[str] = field(default_factory=list)
    sanitized: bool = False

    @property
    def ok(self) -> bool:
        return not self.authority_violations


@dataclass
class LLMConfig:
    """Configuration for LLM provider."""

    provider: LLMProvider = LLMProvider.ANTHROPIC
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 200
    temperature: float = 0.9
    api_key: Optional[str] = None

    # Per-request network budget handed to the SDK client
    request_timeout: float = 10.0

    # Retries stay short: a round will not wait long for flavor text
    max_retries: int = 2
    retry_delay: float = 0.25

    # Flavor lines are one or two sentences
    max_response_length: int = 400


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    def __init__(self, config: LLMConfig):
        self.config = config

    @abstractmethod
    def complete(
        self,
        messages: list[LLMMessage],
        system_prompt: Optional[str] = None,
    ) -> LLMResponse:
        """Generate a completion from the LLM."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is available."""
        pass


class AnthropicClient(BaseLLMClient):
    """Client for Anthropic Claude API."""

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client = None
        self._initialize_client()

    def _initialize_client(self) -> None:
        """Initialize the Anthropic client."""
        try:
            import anthropic

            api_key = self.config.api_key or os.getenv("ANTHROPIC_API_KEY")
            if api_key:
                self._client = anthropic.Anthropic(
                    api_key=api_key, timeout=self.config.request_timeout
                )
            else:
                logger.warning(
                    "ANTHROPIC_API_KEY not set. Set the environment variable or pass api_key in config."
                )
        except ImportError:
            logger.warning(
                "anthropic package not installed. Install with: pip install blank-wars-battle-engine"
            )
        except Exception as e:
            logger.error(f"Failed to initialize Anthropic client: {e}")

    def is_available(self) -> bool:
        return self._client is not None

    def complete(
        self,
        messages: list[LLMMessage],
        system_prompt: Optional[str] = None,
    ) -> LLMResponse:
        """Generate completion using Claude."""
        if not self._client:
            return LLMResponse(
                content="",
                model=self.config.model,
                provider=LLMProvider.ANTHROPIC,
                authority_violations=["client_unavailable"],
            )

        anthropic_messages = [
            {"role": msg.role.value, "content": msg.content}
            for msg in messages
            if msg.role != LLMRole.SYSTEM
        ]

        for attempt in range(self.config.max_retries):
            try:
                response = self._client.messages.create(
                    model=self.config.model,
                    max_tokens=self.config.max_tokens,
                    temperature=self.config.temperature,
                    system=system_prompt or "",
                    messages=anthropic_messages,
                )

                content = response.content[0].text if response.content else ""

                return LLMResponse(
                    content=content,
                    model=self.config.model,
                    provider=LLMProvider.ANTHROPIC,
                    usage={
                        "input_tokens": response.usage.input_tokens,
                        "output_tokens": response.usage.output_tokens,
                    },
                    raw_response=response,
                )
            except Exception as e:
                logger.warning(f"Anthropic API attempt {attempt + 1} failed: {e}")
                if attempt < self.config.max_retries - 1:
                    time.sleep(self.config.retry_delay * (attempt + 1))

        return LLMResponse(
            content="",
            model=self.config.model,
            provider=LLMProvider.ANTHROPIC,
            authority_violations=["request_failed"],
        )


class OpenAIClient(BaseLLMClient):
    """Client for OpenAI API."""

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client = None
        self._initialize_client()

    def _initialize_client(self) -> None:
        """Initialize the OpenAI client."""
        try:
            import openai

            api_key = self.config.api_key or os.getenv("OPENAI_API_KEY")
            if api_key:
                self._client = openai.OpenAI(api_key=api_key, timeout=self.config.request_timeout)
            else:
                logger.warning(
                    "OPENAI_API_KEY not set. Set the environment variable or pass api_key in config."
                )
        except ImportError:
            logger.warning(
                "openai package not installed. Install with: pip install blank-wars-battle-engine"
            )
        except Exception as e:
            logger.error(f"Failed to initialize OpenAI client: {e}")

    def is_available(self) -> bool:
        return self._client is not None

    def complete(
        self,
        messages: list[LLMMessage],
        system_prompt: Optional[str] = None,
    ) -> LLMResponse:
        """Generate completion using OpenAI."""
        if not self._client:
            return LLMResponse(
                content="",
                model=self.config.model,
                provider=LLMProvider.OPENAI,
                authority_violations=["client_unavailable"],
            )

        openai_messages = []
        if system_prompt:
            openai_messages.append({"role": "system", "content": system_prompt})
        for msg in messages:
            openai_messages.append({"role": msg.role.value, "content": msg.content})

        for attempt in range(self.config.max_retries):
            try:
                response = self._client.chat.completions.create(
                    model=self.config.model,
                    messages=openai_messages,
                    max_tokens=self.config.max_tokens,
                    temperature=self.config.temperature,
                )

                content = response.choices[0].message.content or ""

                return LLMResponse(
                    content=content,
                    model=self.config.model,
                    provider=LLMProvider.OPENAI,
                    usage={
                        "prompt_tokens": response.usage.prompt_tokens,
                        "completion_tokens": response.usage.completion_tokens,
                    },
                    raw_response=response,
                )
            except Exception as e:
                logger.warning(f"OpenAI API attempt {attempt + 1} failed: {e}")
                if attempt < self.config.max_retries - 1:
                    time.sleep(self.config.retry_delay * (attempt + 1))

        return LLMResponse(
            content="",
            model=self.config.model,
            provider=LLMProvider.OPENAI,
            authority_violations=["request_failed"],
        )


class MockLLMClient(BaseLLMClient):
    """Mock LLM client for testing and offline play."""

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._responses: list[str] = []
        self._response_index = 0
        self._available = True

    def set_responses(self, responses: list[str]) -> None:
        """Set canned responses for testing."""
        self._responses = responses
        self._response_index = 0

    def set_available(self, available: bool) -> None:
        """Simulate an outage."""
        self._available = available

    def is_available(self) -> bool:
        return self._available

    def complete(
        self,
        messages: list[LLMMessage],
        system_prompt: Optional[str] = None,
    ) -> LLMResponse:
        """Return the next canned response."""
        if self._responses:
            content = self._responses[self._response_index % len(self._responses)]
            self._response_index += 1
        else:
            content = "The arena holds its breath."

        return LLMResponse(
            content=content,
            model="mock",
            provider=LLMProvider.MOCK,
            usage={"tokens": len(content.split())},
        )


class LLMManager:
    """
    Central manager for LLM interactions.

    Provides:
    - Client initialization
    - Response validation and truncation
    - Authority boundary enforcement
    """

    # Flavor text may not state mechanical numbers
    _NUMERIC_PATTERNS = re.compile(
        r"""
        \b\d+\s*(?:points?\s+of\s+)?damage\b   # "25 damage", "25 points of damage"
        | \b\d+\s*hp\b                          # "40 hp"
        | \b\d+\s*hit\s*points?\b               # "40 hit points"
        | \bmorale\s*[+-]\s*\d+                 # "morale -10"
        | [+-]\d+\s*morale\b                    # "+10 morale"
        """,
        re.VERBOSE | re.IGNORECASE,
    )

    # Flavor text may not decide outcomes the engine has not decided
    _OUTCOME_PATTERNS = re.compile(
        r"""
        \bwins?\s+the\s+(?:battle|match|fight)\b
        | \bloses?\s+the\s+(?:battle|match|fight)\b
        | \bis\s+knocked\s+out\b
        | \bthe\s+judge\s+rules\b
        | \bdisqualified\b
        """,
        re.VERBOSE | re.IGNORECASE,
    )

    def __init__(self, config: Optional[LLMConfig] = None):
        """
        Initialize the LLM manager.

        Args:
            config: LLM configuration. If None, uses defaults.
        """
        self.config = config or LLMConfig()
        self._client: Optional[BaseLLMClient] = None
        self._initialize_client()

    def _initialize_client(self) -> None:
        if self.config.provider == LLMProvider.ANTHROPIC:
            self._client = AnthropicClient(self.config)
        elif self.config.provider == LLMProvider.OPENAI:
            self._client = OpenAIClient(self.config)
        elif self.config.provider == LLMProvider.MOCK:
            self._client = MockLLMClient(self.config)

    @property
    def client(self) -> Optional[BaseLLMClient]:
        return self._client

    def is_available(self) -> bool:
        return self._client is not None and self._client.is_available()

    def complete(
        self,
        messages: list[LLMMessage],
        system_prompt: Optional[str] = None,
    ) -> LLMResponse:
        """
        Generate an LLM completion with validation.

        Args:
            messages: Conversation messages
            system_prompt: System prompt to prepend

        Returns:
            Validated and potentially truncated LLMResponse
        """
        if not self.is_available():
            return LLMResponse(
                content="",
                model="none",
                provider=self.config.provider,
                authority_violations=["no_provider_available"],
            )

        response = self._client.complete(messages, system_prompt)
        return self.validate_response(response)

    def validate_response(self, response: LLMResponse) -> LLMResponse:
        """
        Flag authority violations and truncate overlong output.

        The LLM MUST NOT state damage, HP or morale numbers, or declare a
        battle outcome.
        """
        violations = []
        content = response.content

        if not content.strip() and not response.authority_violations:
            violations.append("empty_response")

        for match in self._NUMERIC_PATTERNS.finditer(content):
            violations.append(f"mechanical_number_violation:{match.group(0).strip()}")

        for match in self._OUTCOME_PATTERNS.finditer(content):
            violations.append(f"outcome_determination_violation:{match.group(0).strip()}")

        if violations:
            response.authority_violations.extend(violations)
            logger.warning(f"LLM authority violations detected: {violations}")

        if len(response.content) > self.config.max_response_length:
            response.content = response.content[: self.config.max_response_length] + "..."
            response.sanitized = True

        return response


def get_llm_manager(config: Optional[LLMConfig] = None) -> LLMManager:
    """Factory function to get an LLM manager instance."""
    return LLMManager(config)
