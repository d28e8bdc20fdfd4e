"""
Prompt Schemas for the Blank Wars battle engine.

Each schema defines:
- Required inputs with validation
- Strict instructions keeping the LLM to flavor text

CRITICAL: These schemas enforce that the LLM is ADVISORY ONLY. Everything it
is told has already happened; it may colour it but not change it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PromptSchemaType(str, Enum):
    """Types of prompt schemas."""
    CHARACTER_LINE = "character_line"


# =============================================================================
# BASE SCHEMA
# =============================================================================


@dataclass
class PromptSchema:
    """Base class for prompt schemas."""
    schema_type: PromptSchemaType
    inputs: dict[str, Any]
    instructions: str = ""

    def validate_inputs(self) -> list[str]:
        """Validate that all required inputs are present."""
        errors = []
        for key in self.get_required_inputs():
            if key not in self.inputs or self.inputs[key] in (None, ""):
                errors.append(f"Missing required input: {key}")
        return errors

    def get_required_inputs(self) -> dict[str, type]:
        """Return dict of required input names and their types."""
        return {}

    def build_prompt(self) -> str:
        raise NotImplementedError

    def get_system_prompt(self) -> str:
        return self._get_base_system_prompt()

    def _get_base_system_prompt(self) -> str:
        """Base system prompt enforcing authority boundaries."""
        return """You write short, vivid flavor text for a televised battle show where
legendary characters fight under a human coach.

CRITICAL CONSTRAINTS - You MUST follow these rules:
1. Everything you are told has ALREADY happened; describe it, never change it
2. NEVER state damage, hit points or morale as numbers
3. NEVER declare who wins or loses the battle
4. NEVER invent new actions, injuries or rulings
5. Stay in character and keep it to one or two sentences"""


# =============================================================================
# SCHEMA 1: CHARACTER LINE
# =============================================================================


@dataclass
class CharacterLineInputs:
    """Inputs for an in-character line."""
    character_name: str
    archetype: str
    outcome: str  # follows_plan / improvises / goes_rogue
    action_label: str
    opponent_name: str
    mood: str = ""
    rogue_action: str = ""
    judge_name: str = ""
    personality_hints: list[str] = field(default_factory=list)


class CharacterLineSchema(PromptSchema):
    """
    Schema for a fighter's spoken line after their action resolves.

    Used when:
    - A fighter hits as planned (a confident line)
    - A fighter goes rogue (a defiant, panicked or boastful line)
    """

    def __init__(self, inputs: CharacterLineInputs):
        super().__init__(
            schema_type=PromptSchemaType.CHARACTER_LINE,
            inputs=inputs.__dict__,
        )
        self.typed_inputs = inputs

    def get_required_inputs(self) -> dict[str, type]:
        return {
            "character_name": str,
            "archetype": str,
            "outcome": str,
            "opponent_name": str,
        }

    def get_system_prompt(self) -> str:
        base = self._get_base_system_prompt()
        return f"""{base}

CHARACTER LINE TASK:
Write ONE line of dialogue spoken by the character, in quotation marks,
reflecting their archetype and mood. No narration outside the quote."""

    def build_prompt(self) -> str:
        inputs = self.typed_inputs
        lines = [
            f"Character: {inputs.character_name} ({inputs.archetype})",
            f"Opponent: {inputs.opponent_name}",
            f"What they did: {inputs.action_label}",
            f"Did they follow the coach's plan: {inputs.outcome}",
        ]
        if inputs.rogue_action:
            lines.append(f"They went rogue with: {inputs.rogue_action}")
        if inputs.judge_name:
            lines.append(f"Presiding judge: {inputs.judge_name}")
        if inputs.mood:
            lines.append(f"Current mood: {inputs.mood}")
        if inputs.personality_hints:
            lines.append(f"Personality: {', '.join(inputs.personality_hints)}")
        lines.append("")
        lines.append("Write the character's line.")
        return "\n".join(lines)

