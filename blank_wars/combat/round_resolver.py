"""
Round resolution for the Blank Wars battle engine.

One round, in order:
1. Adherence check for the acting fighter against the coach's PlannedAction
2. follows_plan / improvises -> stat-based damage with bounded variance
   goes_rogue -> RogueActionGenerator + JudgeAdjudicator decide the numbers
3. Procedural narrative built from the resolved numbers
4. commit() folds the RoundResult into a new BattleState version

resolve_round() never mutates its input; commit() is a pure reducer.
"""

from dataclasses import replace
from fractions import Fraction
from typing import Optional
import logging

from blank_wars.combat.battle_state import BattleState
from blank_wars.config import BattleConfig
from blank_wars.data_models import (
    AbilityKind,
    ActionKind,
    BattleEndReason,
    BattleMode,
    BattleOutcome,
    BattleSide,
    Character,
    DeviationOutcome,
    DiceRoller,
    Momentum,
    PlannedAction,
    RoundResult,
    Team,
    get_morale_modifier,
)
from blank_wars.judge.judge_adjudicator import JUDGE_ROSTER, JudgeAdjudicator
from blank_wars.judge.rogue_actions import RogueActionGenerator
from blank_wars.narrative.fallback_narration import FallbackNarrator
from blank_wars.psychology.adherence import AdherenceEvaluator
from blank_wars.psychology.psychology_manager import PsychologyStateManager

logger = logging.getLogger(__name__)


MOMENTUM_MARGIN = 0.1


# =============================================================================
# HELPERS
# =============================================================================


def default_plan(character: Character) -> PlannedAction:
    """The plan used when the coach gave none: strongest attack ability, else a basic attack."""
    ability = character.strongest_attack_ability()
    if ability is not None:
        return PlannedAction(
            character_id=character.character_id,
            kind=ActionKind.ABILITY,
            ability_id=ability.ability_id,
        )
    return PlannedAction(character_id=character.character_id, kind=ActionKind.BASIC_ATTACK)


def side_hp_fraction(state: BattleState, side: BattleSide) -> Fraction:
    """
    Remaining HP fraction of a side as an exact rational.

    ACTIVE_FIGHTER mode looks at the active fighter only; TEAM_TOTAL mode at
    the whole roster.
    """
    if state.setup.mode == BattleMode.TEAM_TOTAL:
        team = state.team_for(side)
        return Fraction(team.total_hp, max(1, team.total_max_hp))
    fighter = state.fighter_for(side)
    return Fraction(fighter.current_hp, fighter.max_hp)


def compute_momentum(own_fraction: float, other_fraction: float) -> Momentum:
    """Which way the battle is going for a side, from both sides' HP fractions."""
    diff = float(own_fraction) - float(other_fraction)
    if diff > MOMENTUM_MARGIN:
        return Momentum.WINNING
    if diff < -MOMENTUM_MARGIN:
        return Momentum.LOSING
    return Momentum.EVEN


def _side_is_down(state: BattleState, side: BattleSide) -> bool:
    if state.setup.mode == BattleMode.TEAM_TOTAL:
        return state.team_for(side).total_hp == 0
    return not state.fighter_for(side).is_conscious


def check_termination(
    state: BattleState, config: Optional[BattleConfig] = None
) -> Optional[tuple[BattleOutcome, BattleEndReason]]:
    """
    Decide whether the battle is over.

    Returns:
        (outcome, reason), or None if the battle continues
    """
    config = config or BattleConfig()
    player_down = _side_is_down(state, BattleSide.PLAYER)
    opponent_down = _side_is_down(state, BattleSide.OPPONENT)

    if player_down and opponent_down:
        return BattleOutcome.DRAW, BattleEndReason.MUTUAL_DESTRUCTION
    if opponent_down:
        return BattleOutcome.PLAYER, BattleEndReason.TOTAL_VICTORY
    if player_down:
        return BattleOutcome.OPPONENT, BattleEndReason.TOTAL_VICTORY

    if state.current_round >= config.combat.round_cap:
        player_fraction = side_hp_fraction(state, BattleSide.PLAYER)
        opponent_fraction = side_hp_fraction(state, BattleSide.OPPONENT)
        if player_fraction > opponent_fraction:
            return BattleOutcome.PLAYER, BattleEndReason.TIME_LIMIT
        if opponent_fraction > player_fraction:
            return BattleOutcome.OPPONENT, BattleEndReason.TIME_LIMIT
        return BattleOutcome.DRAW, BattleEndReason.TIME_LIMIT

    return None


def _next_conscious(team: Team, current_id: str) -> str:
    """Next conscious fighter after current_id in roster order (current_id if none)."""
    ids = [c.character_id for c in team.characters]
    start = ids.index(current_id) if current_id in ids else -1
    for offset in range(1, len(ids) + 1):
        candidate = team.characters[(start + offset) % len(ids)]
        if candidate.is_conscious:
            return candidate.character_id
    return current_id


# =============================================================================
# ROUND RESOLVER
# =============================================================================


class RoundResolver:
    """
    Resolves exactly one round at a time.

    Holds no battle state of its own; every call reads the BattleState it is
    given. All randomness comes from the injected DiceRoller.
    """

    def __init__(
        self,
        dice: DiceRoller,
        config: Optional[BattleConfig] = None,
        psychology_manager: Optional[PsychologyStateManager] = None,
        adherence: Optional[AdherenceEvaluator] = None,
        rogue_generator: Optional[RogueActionGenerator] = None,
        narrator: Optional[FallbackNarrator] = None,
    ):
        self.dice = dice
        self.config = config or BattleConfig()
        self.psychology_manager = psychology_manager or PsychologyStateManager(
            risk_weights=self.config.risk_weights
        )
        self.adherence = adherence or AdherenceEvaluator(
            dice, weights=self.config.risk_weights, thresholds=self.config.adherence
        )
        self.rogue_generator = rogue_generator or RogueActionGenerator(dice)
        self.narrator = narrator or FallbackNarrator()

    def resolve_round(
        self, state: BattleState, planned_action: Optional[PlannedAction] = None
    ) -> RoundResult:
        """
        Resolve the next round for the side due to act.

        Args:
            state: Current battle state (not modified)
            planned_action: The coach's plan for the acting fighter; None or a
                plan for someone else is replaced by the default plan

        Returns:
            RoundResult for round state.current_round + 1
        """
        side = state.next_attacker
        attacker = state.fighter_for(side)
        defender = state.fighter_for(side.other)
        round_number = state.current_round + 1

        plan = self._validated_plan(attacker, defender, planned_action)
        psychology = state.psychology.get(attacker.character_id)
        if psychology is None:
            logger.warning(f"No psychology for {attacker.character_id}; initializing neutral state")
            psychology = self.psychology_manager.initialize(
                attacker, state.team_for(side), stakes=state.setup.stakes
            )

        adherence = self.adherence.evaluate(psychology, plan)

        rogue_action = None
        ruling = None
        if adherence.outcome == DeviationOutcome.GOES_ROGUE:
            morale = state.morale_for(side)
            momentum = compute_momentum(
                side_hp_fraction(state, side), side_hp_fraction(state, side.other)
            )
            rogue_action = self.rogue_generator.generate(
                attacker, defender, morale, momentum, psychology
            )
            judge = state.judge
            if judge is None:
                judge = JUDGE_ROSTER[0]
                logger.warning(f"No judge selected for {state.battle_id}; using {judge.name}")
            ruling = JudgeAdjudicator(judge, self.dice).rule(rogue_action, attacker, defender, morale)

            damage = ruling.damage_to_opponent
            backlash = ruling.backlash_damage
            morale_change = ruling.morale_change
            action_taken = f"rogue:{rogue_action.action_type.value}"
        else:
            damage = self._plan_damage(attacker, defender, plan, state.morale_for(side).current)
            if adherence.outcome == DeviationOutcome.IMPROVISES:
                damage = max(1, int(damage * self.config.combat.improvise_damage_factor))
            backlash = 0
            morale_change = self.config.combat.hit_morale_gain
            action_taken = plan.label

        result = RoundResult(
            round_number=round_number,
            attacker_id=attacker.character_id,
            defender_id=defender.character_id,
            attacker_side=side,
            action_taken=action_taken,
            outcome=adherence.outcome,
            damage=damage,
            backlash_damage=backlash,
            was_plan_adherent=adherence.outcome == DeviationOutcome.FOLLOWS_PLAN,
            attacker_hp_after=max(0, attacker.current_hp - backlash),
            defender_hp_after=max(0, defender.current_hp - damage),
            morale_change=morale_change,
            risk_used=adherence.risk_used,
            narrative_description="",
            rogue_action=rogue_action,
            judge_ruling=ruling,
        )
        result = replace(
            result, narrative_description=self.narrator.describe_round(result, attacker, defender)
        )
        logger.info(
            f"Round {round_number}: {attacker.name} {adherence.outcome.value} "
            f"({action_taken}) -> {damage} dmg, {backlash} backlash"
        )
        return result

    def commit(self, state: BattleState, result: RoundResult) -> BattleState:
        """
        Fold a resolved round into a new BattleState version.

        Applies HP, morale and psychology updates, rotates knocked-out
        fighters in TEAM_TOTAL mode and hands the next round to the other side.
        """
        side = result.attacker_side
        combat = self.config.combat
        attacker = state.fighter_for(side)
        defender = state.fighter_for(side.other)

        damaged_attacker = attacker.with_hp(result.attacker_hp_after)
        damaged_defender = defender.with_hp(result.defender_hp_after)
        new_state = state.with_team(side, state.team_for(side).with_character(damaged_attacker))
        new_state = new_state.with_team(
            side.other, new_state.team_for(side.other).with_character(damaged_defender)
        )

        # Morale
        event = (
            f"rogue:{result.rogue_action.action_type.value}"
            if result.rogue_action is not None
            else f"{result.outcome.value} hit"
        )
        acting_morale = new_state.morale_for(side).apply(
            result.morale_change, result.round_number, event
        )
        defending_morale = new_state.morale_for(side.other)
        if defender.is_conscious and not damaged_defender.is_conscious:
            defending_morale = defending_morale.apply(
                -combat.knockout_morale_loss, result.round_number, f"{defender.name} down"
            )
        if attacker.is_conscious and not damaged_attacker.is_conscious:
            acting_morale = acting_morale.apply(
                -combat.knockout_morale_loss, result.round_number, f"{attacker.name} down"
            )
        new_state = new_state.with_morale(side, acting_morale)
        new_state = new_state.with_morale(side.other, defending_morale)

        # Psychology for both fighters
        psychology = dict(new_state.psychology)
        for fighter in (attacker, defender):
            current = psychology.get(fighter.character_id)
            if current is not None:
                psychology[fighter.character_id] = self.psychology_manager.update(
                    current, result, max_hp=fighter.max_hp
                )

        # Rotation
        if new_state.setup.mode == BattleMode.TEAM_TOTAL:
            for each_side in (side, side.other):
                fighter = new_state.fighter_for(each_side)
                if not fighter.is_conscious:
                    replacement = _next_conscious(new_state.team_for(each_side), fighter.character_id)
                    if replacement != fighter.character_id:
                        logger.info(f"{fighter.name} is down; {replacement} steps in")
                        new_state = new_state.with_fighter(each_side, replacement)

        return new_state.bumped(
            current_round=result.round_number,
            round_results=new_state.round_results + (result,),
            psychology=psychology,
            pending_plans={},
            next_attacker=side.other,
            latest_narrative=result.narrative_description,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _validated_plan(
        self, attacker: Character, defender: Character, planned_action: Optional[PlannedAction]
    ) -> PlannedAction:
        if planned_action is None or planned_action.character_id != attacker.character_id:
            if planned_action is not None:
                logger.warning(
                    f"Plan for {planned_action.character_id} ignored; {attacker.character_id} is acting"
                )
            else:
                logger.warning(f"No plan for {attacker.character_id}; using default")
            return default_plan(attacker)

        plan = planned_action
        if plan.kind == ActionKind.ABILITY and attacker.get_ability(plan.ability_id) is None:
            logger.warning(
                f"{attacker.character_id} has no ability {plan.ability_id!r}; using basic attack"
            )
            plan = replace(plan, kind=ActionKind.BASIC_ATTACK, ability_id=None)
        if plan.target_id is not None and plan.target_id != defender.character_id:
            logger.warning(
                f"Target {plan.target_id!r} is not the active opponent; targeting {defender.character_id}"
            )
            plan = replace(plan, target_id=defender.character_id)
        return plan

    def _variance(self, size: int, reason: str) -> int:
        """A draw in [0, size]."""
        if size <= 0:
            return 0
        return self.dice.roll(f"1d{size + 1}", reason).total - 1

    def _plan_damage(
        self, attacker: Character, defender: Character, plan: PlannedAction, morale: float
    ) -> int:
        combat = self.config.combat
        ability = attacker.get_ability(plan.ability_id) if plan.kind == ActionKind.ABILITY else None
        power = ability.power if ability is not None else 0

        attack_roll = self._variance(combat.damage_variance, f"{attacker.character_id} damage variance")
        defense_roll = self._variance(combat.defense_variance, f"{defender.character_id} defense variance")

        raw = (attacker.attack + power + attack_roll) * get_morale_modifier(morale) - (
            defender.defense + defense_roll
        ) * combat.defense_factor
        damage = max(1, int(raw))

        defensive = plan.kind == ActionKind.DEFEND or (
            ability is not None and ability.kind == AbilityKind.DEFENSE
        )
        if defensive:
            damage = max(1, int(damage * combat.defend_damage_factor))
        return damage
