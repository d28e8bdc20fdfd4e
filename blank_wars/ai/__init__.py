"""
LLM-backed flavor text for the Blank Wars battle engine.

Everything here is advisory. No module in this package can change a
battle's outcome.
"""

from blank_wars.ai.llm_provider import (
    LLMProvider,
    LLMRole,
    LLMMessage,
    LLMResponse,
    LLMConfig,
    BaseLLMClient,
    AnthropicClient,
    OpenAIClient,
    MockLLMClient,
    LLMManager,
    get_llm_manager,
)
from blank_wars.ai.prompt_schemas import (
    PromptSchemaType,
    PromptSchema,
    CharacterLineInputs,
    CharacterLineSchema,
)
from blank_wars.ai.dialogue_generator import (
    DialogueGenerator,
    DialogueGeneratorConfig,
    DialogueUnavailableError,
    FlavorContext,
    LLMDialogueGenerator,
    NullDialogueGenerator,
)

__all__ = [
    "LLMProvider",
    "LLMRole",
    "LLMMessage",
    "LLMResponse",
    "LLMConfig",
    "BaseLLMClient",
    "AnthropicClient",
    "OpenAIClient",
    "MockLLMClient",
    "LLMManager",
    "get_llm_manager",
    "PromptSchemaType",
    "PromptSchema",
    "CharacterLineInputs",
    "CharacterLineSchema",
    "DialogueGenerator",
    "DialogueGeneratorConfig",
    "DialogueUnavailableError",
    "FlavorContext",
    "LLMDialogueGenerator",
    "NullDialogueGenerator",
]
