"""
Dialogue generation boundary for the Blank Wars battle engine.

The engine asks for a single line of flavor text per round through the
DialogueGenerator protocol. Implementations may be slow or fail; the engine
never waits on them to commit a round and falls back to procedural text.

Implementations:
- LLMDialogueGenerator: Anthropic / OpenAI / mock via LLMManager
- NullDialogueGenerator: always unavailable (offline play)
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable
import logging

from blank_wars.ai.llm_provider import (
    LLMConfig,
    LLMManager,
    LLMMessage,
    LLMProvider,
    LLMRole,
    get_llm_manager,
)
from blank_wars.ai.prompt_schemas import CharacterLineInputs, CharacterLineSchema

logger = logging.getLogger(__name__)


class DialogueUnavailableError(Exception):
    """Raised when a dialogue generator cannot produce a usable line."""

    pass


@dataclass(frozen=True)
class FlavorContext:
    """What a dialogue generator is told about a resolved round."""
    round_number: int
    character_id: str
    character_name: str
    archetype: str
    opponent_name: str
    outcome: str
    action_label: str
    mood: str = ""
    rogue_action: str = ""
    judge_name: str = ""
    hints: tuple[str, ...] = field(default_factory=tuple)


@runtime_checkable
class DialogueGenerator(Protocol):
    """
    Protocol for flavor-line generators.

    generate_line may block, raise, or return junk; callers treat it as
    untrusted and time-limited.
    """

    def generate_line(self, context: FlavorContext) -> str:
        """Return one in-character line for the context."""
        ...


class NullDialogueGenerator:
    """A generator that is never available."""

    def generate_line(self, context: FlavorContext) -> str:
        raise DialogueUnavailableError("No dialogue generator configured")


@dataclass
class DialogueGeneratorConfig:
    """Configuration for the LLM-backed generator."""
    llm_provider: LLMProvider = LLMProvider.MOCK
    llm_model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 120
    temperature: float = 0.9
    request_timeout: float = 10.0
    verbose_logging: bool = False


class LLMDialogueGenerator:
    """
    In-character lines from an LLM.

    STRICTLY ADVISORY: the prompt states the already-resolved outcome and
    the response is rejected if it tries to state numbers or call results.
    """

    def __init__(
        self,
        config: Optional[DialogueGeneratorConfig] = None,
        llm_manager: Optional[LLMManager] = None,
    ):
        """
        Args:
            config: Generator configuration. If None, uses defaults (mock provider).
            llm_manager: Pre-built manager; overrides the provider in config.
        """
        self.config = config or DialogueGeneratorConfig()
        if llm_manager is None:
            llm_manager = get_llm_manager(
                LLMConfig(
                    provider=self.config.llm_provider,
                    model=self.config.llm_model,
                    max_tokens=self.config.max_tokens,
                    temperature=self.config.temperature,
                    request_timeout=self.config.request_timeout,
                )
            )
        self._llm = llm_manager
        self._recent_lines: list[str] = []
        self._max_recent = 5

    @property
    def llm(self) -> LLMManager:
        return self._llm

    def is_available(self) -> bool:
        return self._llm.is_available()

    def generate_line(self, context: FlavorContext) -> str:
        """
        Generate a line for a resolved round.

        Raises:
            DialogueUnavailableError: If the inputs are incomplete, the provider is
                down, or the response crosses the authority boundary
        """
        schema = CharacterLineSchema(
            CharacterLineInputs(
                character_name=context.character_name,
                archetype=context.archetype,
                outcome=context.outcome,
                action_label=context.action_label,
                opponent_name=context.opponent_name,
                mood=context.mood,
                rogue_action=context.rogue_action,
                judge_name=context.judge_name,
                personality_hints=list(context.hints),
            )
        )
        errors = schema.validate_inputs()
        if errors:
            raise DialogueUnavailableError(f"Invalid flavor context: {errors}")

        response = self._llm.complete(
            messages=[LLMMessage(role=LLMRole.USER, content=schema.build_prompt())],
            system_prompt=schema.get_system_prompt(),
        )
        if response.authority_violations:
            raise DialogueUnavailableError(
                f"Dialogue rejected: {', '.join(response.authority_violations)}"
            )

        line = response.content.strip()
        self._recent_lines.append(line)
        if len(self._recent_lines) > self._max_recent:
            self._recent_lines.pop(0)

        if self.config.verbose_logging:
            logger.info(f"Dialogue for {context.character_id} round {context.round_number}: {line}")
        return line

    def get_recent_lines(self) -> list[str]:
        return self._recent_lines.copy()
