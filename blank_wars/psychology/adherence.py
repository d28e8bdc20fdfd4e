"""
Gameplan adherence for the Blank Wars battle engine.

Each round, before anything else happens, the acting fighter's psychology and
the coach's PlannedAction are turned into a deviation risk in [0, 1]. A single
uniform draw against two ordered thresholds then decides whether the fighter
follows the plan, improvises, or goes rogue.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
import logging

from blank_wars.config import AdherenceThresholds, RiskWeights
from blank_wars.data_models import DeviationOutcome, DiceRoller, PlannedAction, clamp

if TYPE_CHECKING:
    from blank_wars.psychology.psychology_manager import PsychologyState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdherenceResult:
    """Outcome of one adherence check."""
    outcome: DeviationOutcome
    risk_used: float
    roll: float
    follow_threshold: float
    rogue_threshold: float


def compute_deviation_risk(
    stress: float,
    ego: float,
    fatigue: float,
    trust: float,
    coaching_influence: float = 0.0,
    weights: Optional[RiskWeights] = None,
) -> float:
    """
    Combine psychology factors into a deviation risk.

    Args:
        stress: 0-100
        ego: 0-100
        fatigue: 0-100
        trust: trust in coach, 0-100
        coaching_influence: 0-1
        weights: Formula weights (defaults if None)

    Returns:
        Risk clamped to [0, 1]
    """
    w = weights or RiskWeights()
    raw = (
        w.base
        + w.stress * clamp(stress, 0, 100) / 100
        + w.ego * clamp(ego, 0, 100) / 100
        + w.fatigue * clamp(fatigue, 0, 100) / 100
        - w.trust * clamp(trust, 0, 100) / 100
        - w.coaching * clamp(coaching_influence, 0, 1)
    )
    return clamp(raw, 0.0, 1.0)


def adherence_thresholds(risk: float, improvise_ratio: float) -> tuple[float, float]:
    """
    Ordered (follow, rogue) thresholds for a given risk.

    A roll below the follow threshold keeps to the plan; a roll at or above
    the rogue threshold goes rogue. P(goes_rogue) equals the risk.
    """
    risk = clamp(risk, 0.0, 1.0)
    rogue_threshold = 1.0 - risk
    follow_threshold = max(0.0, 1.0 - risk * (1.0 + max(0.0, improvise_ratio)))
    return follow_threshold, rogue_threshold


def classify_roll(roll: float, follow_threshold: float, rogue_threshold: float) -> DeviationOutcome:
    """Map a roll in [0, 1) onto an outcome."""
    if roll < follow_threshold:
        return DeviationOutcome.FOLLOWS_PLAN
    if roll < rogue_threshold:
        return DeviationOutcome.IMPROVISES
    return DeviationOutcome.GOES_ROGUE


class AdherenceEvaluator:
    """
    Decides, per round, whether a fighter does what the coach asked.

    Holds no battle state. Deterministic for an identical psychology state,
    planned action and dice seed.
    """

    def __init__(
        self,
        dice: DiceRoller,
        weights: Optional[RiskWeights] = None,
        thresholds: Optional[AdherenceThresholds] = None,
    ):
        self.dice = dice
        self.weights = weights or RiskWeights()
        self.thresholds = thresholds or AdherenceThresholds()

    def compute_risk(self, state: "PsychologyState", planned_action: PlannedAction) -> float:
        """Deviation risk for this fighter under this plan."""
        return compute_deviation_risk(
            stress=state.stress,
            ego=state.ego,
            fatigue=state.fatigue,
            trust=state.trust_in_coach,
            coaching_influence=planned_action.coaching_influence,
            weights=self.weights,
        )

    def evaluate(self, state: "PsychologyState", planned_action: PlannedAction) -> AdherenceResult:
        """
        Run the adherence check for one round.

        Args:
            state: Acting fighter's current psychology
            planned_action: The coach's instruction

        Returns:
            AdherenceResult with the outcome and the risk that produced it
        """
        risk = self.compute_risk(state, planned_action)
        follow_threshold, rogue_threshold = adherence_thresholds(
            risk, self.thresholds.improvise_ratio
        )
        roll = self.dice.random(reason=f"adherence check for {state.character_id}")
        outcome = classify_roll(roll, follow_threshold, rogue_threshold)

        logger.debug(
            f"Adherence {state.character_id}: risk={risk:.3f} roll={roll:.3f} -> {outcome.value}"
        )
        return AdherenceResult(
            outcome=outcome,
            risk_used=risk,
            roll=roll,
            follow_threshold=follow_threshold,
            rogue_threshold=rogue_threshold,
        )
