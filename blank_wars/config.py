"""
Tunable configuration for the Blank Wars battle engine.

Every weight, threshold and delay the engine uses lives here as a named
dataclass field so it can be tuned from a JSON file without touching code.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Optional, Union
import json
import logging

logger = logging.getLogger(__name__)


@dataclass
class RiskWeights:
    """
    Weights for the deviation-risk formula.

    risk = base + stress*w_stress + ego*w_ego + fatigue*w_fatigue
           - trust*w_trust - coaching_influence*w_coaching

    with stress/ego/fatigue/trust normalised to 0-1. Stress, ego and fatigue
    weights must stay non-negative, as must trust and coaching weights, so
    risk is non-decreasing in stress and non-increasing in coaching influence.
    """
    base: float = 0.0
    stress: float = 0.45
    ego: float = 0.25
    fatigue: float = 0.10
    trust: float = 0.40
    coaching: float = 0.30


@dataclass
class AdherenceThresholds:
    """
    Partition of the adherence roll.

    With r uniform in [0, 1): r < 1 - risk*(1 + improvise_ratio) follows the
    plan, r >= 1 - risk goes rogue, anything between improvises.
    """
    improvise_ratio: float = 0.5


@dataclass
class CombatTuning:
    """Damage, morale and termination tuning."""
    round_cap: int = 10
    damage_variance: int = 10  # plan damage adds 0..variance
    defense_variance: int = 5
    defense_factor: float = 0.5
    improvise_damage_factor: float = 0.75
    defend_damage_factor: float = 0.5
    starting_morale: float = 50.0
    chemistry_morale_weight: float = 0.5
    hit_morale_gain: float = 2.0
    knockout_morale_loss: float = 15.0
    chemistry_win_delta: float = 3.0
    chemistry_loss_delta: float = -3.0


@dataclass
class PacingConfig:
    """Non-blocking delays between phases (seconds on the scheduler's clock)."""
    huddle_seconds: float = 3.0
    strategy_seconds: float = 15.0
    round_delay_seconds: float = 1.0
    narration_delay_seconds: float = 3.0
    dialogue_timeout_seconds: float = 2.0


@dataclass
class BattleConfig:
    """Top-level engine configuration."""
    risk_weights: RiskWeights = field(default_factory=RiskWeights)
    adherence: AdherenceThresholds = field(default_factory=AdherenceThresholds)
    combat: CombatTuning = field(default_factory=CombatTuning)
    pacing: PacingConfig = field(default_factory=PacingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BattleConfig":
        """
        Build a config from a nested dictionary of overrides.

        Unknown sections and keys are logged and ignored.
        """
        config = cls()
        for section_name, overrides in data.items():
            section = getattr(config, section_name, None)
            if section is None or not is_dataclass(section):
                logger.warning(f"Ignoring unknown config section: {section_name}")
                continue
            if not isinstance(overrides, dict):
                logger.warning(f"Config section {section_name} must be an object")
                continue
            known = {f.name: f for f in fields(section)}
            for key, value in overrides.items():
                if key not in known:
                    logger.warning(f"Ignoring unknown config key: {section_name}.{key}")
                    continue
                current = getattr(section, key)
                setattr(section, key, type(current)(value))
        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            section.name: {
                f.name: getattr(getattr(self, section.name), f.name)
                for f in fields(getattr(self, section.name))
            }
            for section in fields(self)
        }


def load_battle_config(path: Optional[Union[str, Path]] = None) -> BattleConfig:
    """
    Load engine configuration from a JSON file.

    Args:
        path: JSON file of overrides. None returns the defaults.

    Returns:
        BattleConfig
    """
    if path is None:
        return BattleConfig()
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    logger.info(f"Loaded battle config from {path}")
    return BattleConfig.from_dict(data)
