"""
Unit tests for the LLM authority boundary.

Flavor text may colour a round but never state mechanical numbers or decide
an outcome the engine has not decided.
"""

import pytest

from blank_wars.ai.llm_provider import (
    LLMConfig,
    LLMManager,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    LLMRole,
    MockLLMClient,
)


@pytest.fixture
def mock_llm_manager():
    """LLM manager backed by the mock client."""
    return LLMManager(LLMConfig(provider=LLMProvider.MOCK))


def complete_with(manager, text):
    manager.client.set_responses([text])
    return manager.complete([LLMMessage(LLMRole.USER, "Say something")])


class TestAuthorityViolationDetection:
    """Tests for authority violation detection."""

    @pytest.mark.parametrize(
        "text",
        [
            "Take 25 damage, fiend!",
            "That was 12 points of damage!",
            "I still have 40 HP left.",
            "Our morale +10 after that!",
        ],
    )
    def test_detects_mechanical_numbers(self, mock_llm_manager, text):
        """Test that damage, HP and morale numbers are flagged."""
        response = complete_with(mock_llm_manager, text)
        assert not response.ok
        assert any(v.startswith("mechanical_number_violation") for v in response.authority_violations)

    @pytest.mark.parametrize(
        "text",
        [
            "I win the battle right here!",
            "Erik is knocked out cold!",
            "The judge rules in my favour.",
        ],
    )
    def test_detects_outcome_determination(self, mock_llm_manager, text):
        """Test that declared outcomes are flagged."""
        response = complete_with(mock_llm_manager, text)
        assert any(v.startswith("outcome_determination_violation") for v in response.authority_violations)

    def test_clean_line_passes(self, mock_llm_manager):
        """Test an ordinary in-character line."""
        response = complete_with(mock_llm_manager, '"The game is afoot!"')
        assert response.ok
        assert response.content == '"The game is afoot!"'

    def test_empty_line_flagged(self, mock_llm_manager):
        """Test an empty response."""
        response = complete_with(mock_llm_manager, "   ")
        assert "empty_response" in response.authority_violations

    def test_overlong_line_truncated(self):
        """Test responses are cut to the configured length."""
        manager = LLMManager(LLMConfig(provider=LLMProvider.MOCK, max_response_length=20))
        response = complete_with(manager, "a" * 50)
        assert response.sanitized
        assert response.content == "a" * 20 + "..."


class TestProviders:
    """Tests for provider selection and availability."""

    def test_mock_default_line(self):
        """Test the mock client's default response."""
        client = MockLLMClient(LLMConfig(provider=LLMProvider.MOCK))
        response = client.complete([LLMMessage(LLMRole.USER, "hi")])
        assert response.content == "The arena holds its breath."
        assert response.provider == LLMProvider.MOCK

    def test_mock_responses_cycle(self, mock_llm_manager):
        """Test canned responses are returned in order and repeat."""
        mock_llm_manager.client.set_responses(["one", "two"])
        contents = [
            mock_llm_manager.complete([LLMMessage(LLMRole.USER, "x")]).content for _ in range(3)
        ]
        assert contents == ["one", "two", "one"]

    def test_outage(self, mock_llm_manager):
        """Test a provider outage is reported, not raised."""
        mock_llm_manager.client.set_available(False)
        response = mock_llm_manager.complete([LLMMessage(LLMRole.USER, "x")])
        assert response.authority_violations == ["no_provider_available"]

    @pytest.mark.parametrize(
        "provider,env_var",
        [(LLMProvider.ANTHROPIC, "ANTHROPIC_API_KEY"), (LLMProvider.OPENAI, "OPENAI_API_KEY")],
    )
    def test_missing_api_key(self, monkeypatch, provider, env_var):
        """Test a real provider without credentials is simply unavailable."""
        monkeypatch.delenv(env_var, raising=False)
        manager = LLMManager(LLMConfig(provider=provider))
        assert not manager.is_available()
        assert manager.complete([LLMMessage(LLMRole.USER, "x")]).authority_violations == [
            "no_provider_available"
        ]

    @pytest.mark.parametrize("provider", [LLMProvider.ANTHROPIC, LLMProvider.OPENAI])
    def test_sdk_client_gets_request_timeout(self, provider):
        """Test the SDK client is built with the configured per-request timeout."""
        manager = LLMManager(LLMConfig(provider=provider, api_key="test-key", request_timeout=1.5))
        assert manager.is_available()
        assert manager.client._client.timeout == 1.5

    def test_response_ok_property(self):
        """Test LLMResponse.ok mirrors the violation list."""
        response = LLMResponse(content="x", model="m", provider=LLMProvider.MOCK)
        assert response.ok
        response.authority_violations.append("bad")
        assert not response.ok
