"""
Battle State Machine for the Blank Wars battle engine.

Drives one battle from setup to a guaranteed terminal outcome:

    pre_battle -> pre_battle_huddle -> strategy_selection -> combat
        -> round_resolution -> (combat | battle_complete)

The machine is the only writer of BattleState. Every delay is a callback on
the injected Scheduler, wrapped in a generation guard so that callbacks
scheduled before a reset or abandon never touch the new battle. Dialogue is
requested after a round is committed and collected when the narration step
fires; it never decides anything.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Optional
import itertools
import logging

from blank_wars.ai.dialogue_generator import DialogueGenerator, FlavorContext
from blank_wars.combat.battle_state import BattleState
from blank_wars.combat.round_resolver import RoundResolver, check_termination, default_plan
from blank_wars.config import BattleConfig
from blank_wars.data_models import (
    Archetype,
    BattleEndReason,
    BattleOutcome,
    BattlePhase,
    BattleSetup,
    BattleSide,
    BattleType,
    Character,
    DiceRoller,
    PlannedAction,
    RoundResult,
    Team,
    TeamMorale,
    clamp_percent,
)
from blank_wars.game_state.scheduler import ManualScheduler, ScheduledHandle, Scheduler
from blank_wars.game_state.state_machine import (
    BattleEngineError,
    BattleNotActiveError,
    PhaseMachine,
)
from blank_wars.judge.judge_adjudicator import select_persona
from blank_wars.narrative.fallback_narration import FallbackNarrator
from blank_wars.narrative.narration_service import NarrationService, PendingNarration
from blank_wars.observability.run_log import RunLog
from blank_wars.psychology.psychology_manager import EnvironmentModifiers, PsychologyStateManager

logger = logging.getLogger(__name__)


# Chemistry adjustment multiplier per battle format
CHEMISTRY_SCALE: dict[BattleType, float] = {
    BattleType.FRIENDLY: 1.0,
    BattleType.RANKED: 1.5,
    BattleType.TOURNAMENT: 2.0,
}


# =============================================================================
# OUTBOUND VIEWS
# =============================================================================


@dataclass(frozen=True)
class BattleEvent:
    """An announcement for the presentation layer. Advisory only."""
    kind: str
    text: str
    round_number: int = 0
    degraded: bool = False


@dataclass(frozen=True)
class FighterView:
    """Read-only view of one fighter."""
    character_id: str
    name: str
    current_hp: int
    max_hp: int


@dataclass(frozen=True)
class BattleSnapshot:
    """Read-only view of the battle after a transition."""
    phase: BattlePhase
    battle_id: str = ""
    current_round: int = 0
    round_cap: int = 0
    player_fighter: Optional[FighterView] = None
    opponent_fighter: Optional[FighterView] = None
    player_morale: float = 0.0
    opponent_morale: float = 0.0
    judge_name: str = ""
    latest_result: Optional[RoundResult] = None
    narrative: str = ""
    dialogue_degraded: bool = False
    winner: Optional[BattleOutcome] = None
    end_reason: Optional[BattleEndReason] = None


@dataclass(frozen=True)
class BattleReport:
    """Final outcome of a completed battle."""
    battle_id: str
    outcome: BattleOutcome
    end_reason: BattleEndReason
    rounds: int
    player_team: Team
    opponent_team: Team
    player_chemistry_change: float
    opponent_chemistry_change: float
    round_results: tuple[RoundResult, ...]
    judge_name: str
    summary: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "battle_id": self.battle_id,
            "outcome": self.outcome.value,
            "end_reason": self.end_reason.value,
            "rounds": self.rounds,
            "player_team": self.player_team.name,
            "opponent_team": self.opponent_team.name,
            "player_chemistry": self.player_team.team_chemistry,
            "opponent_chemistry": self.opponent_team.team_chemistry,
            "player_chemistry_change": self.player_chemistry_change,
            "opponent_chemistry_change": self.opponent_chemistry_change,
            "judge": self.judge_name,
            "summary": self.summary,
            "round_results": [r.to_dict() for r in self.round_results],
        }


# =============================================================================
# BATTLE STATE MACHINE
# =============================================================================


class BattleStateMachine:
    """
    Runs one battle at a time.

    All collaborators are injected; nothing here is shared between instances.
    """

    def __init__(
        self,
        config: Optional[BattleConfig] = None,
        scheduler: Optional[Scheduler] = None,
        seed: Optional[int] = None,
        dice: Optional[DiceRoller] = None,
        dialogue_generator: Optional[DialogueGenerator] = None,
        psychology_manager: Optional[PsychologyStateManager] = None,
        run_log: Optional[RunLog] = None,
    ):
        """
        Args:
            config: Engine configuration (defaults if None)
            scheduler: Clock for all pacing delays (ManualScheduler if None)
            seed: Dice seed, ignored when dice is given
            dice: Randomization source
            dialogue_generator: Optional flavor-line source
            psychology_manager: Psychology rules (defaults if None)
            run_log: Event log (a fresh RunLog if None)
        """
        self.config = config or BattleConfig()
        self.scheduler = scheduler or ManualScheduler()
        self.run_log = run_log or RunLog()

        if dice is None:
            dice = DiceRoller(seed=seed, run_log=self.run_log)
        else:
            dice.attach_run_log(self.run_log)
        self.dice = dice
        if self.dice.seed is not None:
            self.run_log.set_seed(self.dice.seed)

        self.psychology_manager = psychology_manager or PsychologyStateManager(
            risk_weights=self.config.risk_weights
        )
        self.narrator = FallbackNarrator()
        self.resolver = RoundResolver(
            self.dice,
            config=self.config,
            psychology_manager=self.psychology_manager,
            narrator=self.narrator,
        )
        self.narration = NarrationService(
            generator=dialogue_generator,
            timeout_seconds=self.config.pacing.dialogue_timeout_seconds,
            narrator=self.narrator,
        )
        self.phases = PhaseMachine(run_log=self.run_log)
        self.run_log.set_round_provider(self._current_round)

        self._state: Optional[BattleState] = None
        self._setup: Optional[BattleSetup] = None
        self._environment: Optional[Any] = None
        self._report: Optional[BattleReport] = None
        self._generation = 0
        self._handles: list[ScheduledHandle] = []
        self._strategy_handle: Optional[ScheduledHandle] = None
        self._pending_narration: Optional[PendingNarration] = None
        self._listeners: list[Callable[[BattleEvent], None]] = []
        self._battle_ids = itertools.count(1)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def phase(self) -> BattlePhase:
        return self.phases.current_state

    @property
    def state(self) -> Optional[BattleState]:
        """The current BattleState version (read-only value)."""
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def report(self) -> Optional[BattleReport]:
        """The report of the last completed battle, if any."""
        return self._report

    def _current_round(self) -> Optional[int]:
        return self._state.current_round if self._state is not None else None

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Callable[[BattleEvent], None]) -> Callable[[], None]:
        """
        Receive BattleEvents as they happen.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: str, text: str, degraded: bool = False) -> None:
        event = BattleEvent(
            kind=kind,
            text=text,
            round_number=self._current_round() or 0,
            degraded=degraded,
        )
        logger.debug(f"[{kind}] {text}")
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Battle event listener error: {e}")

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def _schedule(self, delay: float, step: Callable[[], None]) -> ScheduledHandle:
        """Schedule a step that only runs if the battle generation is unchanged."""
        generation = self._generation

        def guarded() -> None:
            if generation != self._generation or self._state is None:
                logger.debug(f"Ignoring stale callback {step.__name__} (generation {generation})")
                return
            step()

        handle = self.scheduler.schedule(delay, guarded)
        self._handles.append(handle)
        return handle

    def _cancel_all(self) -> None:
        for handle in self._handles:
            handle.cancel()
        self._handles = []
        self._strategy_handle = None
        if self._pending_narration is not None and self._pending_narration.future is not None:
            self._pending_narration.future.cancel()
        self._pending_narration = None

    # -------------------------------------------------------------------------
    # Inbound operations
    # -------------------------------------------------------------------------

    def start_battle(
        self, setup: BattleSetup, environment_modifiers: Optional[Any] = None
    ) -> BattleSnapshot:
        """
        Accept a BattleSetup and begin the pre-battle huddle.

        Args:
            setup: Both teams and the battle format
            environment_modifiers: Home-team modifiers (mapping, provider
                callable or EnvironmentModifiers); applied to the player team only

        Returns:
            Snapshot in the pre_battle_huddle phase

        Raises:
            BattleEngineError: If a battle is already running on this machine
        """
        if self.phases.is_in_battle():
            raise BattleEngineError(
                f"Battle {self._state.battle_id if self._state else '?'} is still in progress"
            )

        self.phases.transition("start_battle", {"battle_type": setup.battle_type.value})
        self._generation += 1
        self._setup = setup
        self._environment = environment_modifiers
        self._report = None

        battle_id = f"battle-{next(self._battle_ids)}"
        self._state = self._build_initial_state(battle_id, setup, environment_modifiers)
        logger.info(
            f"Starting {battle_id}: {self._state.player_team.name} vs "
            f"{self._state.opponent_team.name} ({setup.mode.value}, judge {self._state.judge.name})"
        )
        self._enter_huddle()
        return self.snapshot()

    def submit_planned_action(self, action: PlannedAction) -> bool:
        """
        Hand the engine a coach's plan.

        Plans submitted before combat stand for every round; plans submitted
        during combat apply to the fighter's next round only. Plans for
        unknown characters are ignored.

        Returns:
            True if the plan was accepted

        Raises:
            BattleNotActiveError: If no battle is running
        """
        state = self._require_active()
        if state.side_of(action.character_id) is None:
            logger.warning(f"Ignoring plan for unknown character {action.character_id}")
            return False

        if self.phase in (
            BattlePhase.PRE_BATTLE,
            BattlePhase.PRE_BATTLE_HUDDLE,
            BattlePhase.STRATEGY_SELECTION,
        ):
            plans = dict(state.standing_plans)
            plans[action.character_id] = action
            self._state = state.bumped(standing_plans=plans)
        else:
            plans = dict(state.pending_plans)
            plans[action.character_id] = action
            self._state = state.bumped(pending_plans=plans)
        logger.debug(f"Plan accepted for {action.character_id}: {action.label}")
        return True

    def confirm_strategy(self) -> bool:
        """
        End strategy selection early.

        Returns:
            True if strategy was locked, False if not in strategy selection
        """
        self._require_active()
        if self.phase != BattlePhase.STRATEGY_SELECTION:
            logger.warning(f"confirm_strategy ignored in phase {self.phase.value}")
            return False
        if self._strategy_handle is not None:
            self._strategy_handle.cancel()
            self._strategy_handle = None
        self._lock_strategy()
        return True

    def reset_battle(self) -> BattleSnapshot:
        """
        Rebuild the battle from its original setup and return to the huddle.

        Every callback scheduled for the old battle is cancelled, and the
        generation bump turns any that still fire into no-ops.

        Raises:
            BattleNotActiveError: If no battle has been started
        """
        if self._setup is None or self._state is None:
            raise BattleNotActiveError("No battle to reset")

        self._cancel_all()
        self._generation += 1
        self.phases.transition("reset", {"generation": self._generation})
        battle_id = self._state.battle_id
        self._report = None
        self._state = self._build_initial_state(battle_id, self._setup, self._environment)
        logger.info(f"Reset {battle_id} (generation {self._generation})")
        self._emit("reset", f"{battle_id} has been reset.")
        self._enter_huddle()
        return self.snapshot()

    def abandon_battle(self) -> None:
        """
        Drop the current battle without an outcome.

        Raises:
            BattleNotActiveError: If no battle has been started
        """
        if self._state is None:
            raise BattleNotActiveError("No battle to abandon")
        battle_id = self._state.battle_id
        self._cancel_all()
        self._generation += 1
        self.phases.transition("abandon")
        self.run_log.log_custom(
            "battle_abandoned",
            {"battle_id": battle_id, "reason": BattleEndReason.ABANDONED.value},
        )
        self._state = None
        self._setup = None
        self._environment = None
        logger.info(f"Abandoned {battle_id}")
        self._emit("abandoned", f"{battle_id} was abandoned.")

    def run_until_complete(self) -> Optional[BattleReport]:
        """
        Drive a ManualScheduler until the battle settles.

        Raises:
            BattleEngineError: If the scheduler is not a ManualScheduler
        """
        if not isinstance(self.scheduler, ManualScheduler):
            raise BattleEngineError("run_until_complete needs a ManualScheduler")
        self.scheduler.run_until_idle()
        return self._report

    # -------------------------------------------------------------------------
    # Outbound view
    # -------------------------------------------------------------------------

    def snapshot(self) -> BattleSnapshot:
        """Read-only view of the current battle."""
        state = self._state
        if state is None:
            return BattleSnapshot(phase=self.phase)

        def view(side: BattleSide) -> FighterView:
            fighter = state.fighter_for(side)
            return FighterView(
                character_id=fighter.character_id,
                name=fighter.name,
                current_hp=fighter.current_hp,
                max_hp=fighter.max_hp,
            )

        judge_name = state.judge.name if state.judge else (
            self._report.judge_name if self._report else ""
        )
        return BattleSnapshot(
            phase=self.phase,
            battle_id=state.battle_id,
            current_round=state.current_round,
            round_cap=self.config.combat.round_cap,
            player_fighter=view(BattleSide.PLAYER),
            opponent_fighter=view(BattleSide.OPPONENT),
            player_morale=state.player_morale.current,
            opponent_morale=state.opponent_morale.current,
            judge_name=judge_name,
            latest_result=state.latest_result,
            narrative=state.latest_narrative,
            dialogue_degraded=state.dialogue_degraded,
            winner=state.winner,
            end_reason=state.end_reason,
        )

    # -------------------------------------------------------------------------
    # Phase steps
    # -------------------------------------------------------------------------

    def _enter_huddle(self) -> None:
        self.phases.transition("begin_huddle")
        self._state = self._state.bumped(phase=BattlePhase.PRE_BATTLE_HUDDLE)
        self._emit(
            "huddle",
            f"{self._state.judge.name} presides. "
            f"{self._state.player_team.coach_name} gathers {self._state.player_team.name} for the huddle.",
        )
        self._schedule(self.config.pacing.huddle_seconds, self._end_huddle)

    def _end_huddle(self) -> None:
        self.phases.transition("huddle_complete")
        self._state = self._state.bumped(phase=BattlePhase.STRATEGY_SELECTION)
        self._emit("strategy", "Coaches, lock in your strategies!")
        self._strategy_handle = self._schedule(
            self.config.pacing.strategy_seconds, self._lock_strategy
        )

    def _lock_strategy(self) -> None:
        self._strategy_handle = None
        state = self._state
        plans = dict(state.standing_plans)
        for side in (BattleSide.PLAYER, BattleSide.OPPONENT):
            fighter = state.fighter_for(side)
            if fighter.character_id not in plans:
                plans[fighter.character_id] = default_plan(fighter)
                logger.warning(
                    f"No strategy for {fighter.character_id}; defaulting to "
                    f"{plans[fighter.character_id].label}"
                )

        self.phases.transition("strategy_locked")
        self._state = state.bumped(phase=BattlePhase.COMBAT, standing_plans=plans)
        first = self._state.fighter_for(self._state.next_attacker)
        self._emit("combat", f"Fight! {first.name} moves first.")
        self._schedule(self.config.pacing.round_delay_seconds, self._run_round)

    def _run_round(self) -> None:
        self.phases.transition("round_started")
        state = replace(self._state, phase=BattlePhase.ROUND_RESOLUTION)

        side = state.next_attacker
        attacker = state.fighter_for(side)
        plan = state.pending_plans.get(attacker.character_id) or state.standing_plans.get(
            attacker.character_id
        )
        if plan is None:
            plan = default_plan(attacker)
            logger.warning(f"No plan for {attacker.character_id}; defaulting to {plan.label}")

        result = self.resolver.resolve_round(state, plan)
        self._state = self.resolver.commit(state, result)

        self.run_log.log_round(result)
        if result.judge_ruling is not None:
            self.run_log.log_ruling(result.judge_ruling, round_number=result.round_number)

        self._emit("round", result.narrative_description)
        if result.rogue_action is not None and result.judge_ruling is not None:
            self._announce_rogue(result, attacker, side)

        self._pending_narration = self.narration.request(self._flavor_context(result, attacker))
        self._schedule(self.config.pacing.narration_delay_seconds, self._narrate_round)

    def _announce_rogue(self, result: RoundResult, attacker: Character, side: BattleSide) -> None:
        ruling = result.judge_ruling
        coach = self._state.team_for(side).coach_name
        self._emit("judge", ruling.coach_explanation)
        self._emit(
            "coach",
            self.narrator.coach_reaction(result.rogue_action, attacker, coach, result.round_number),
        )
        psychology = self._state.psychology.get(attacker.character_id)
        self._emit(
            "character",
            self.narrator.character_response(
                attacker, ruling, stress=psychology.stress if psychology else None
            ),
        )

    def _flavor_context(self, result: RoundResult, attacker: Character) -> FlavorContext:
        defender_side = result.attacker_side.other
        defender = self._state.team_for(defender_side).get_character(result.defender_id)
        psychology = self._state.psychology.get(attacker.character_id)
        return FlavorContext(
            round_number=result.round_number,
            character_id=attacker.character_id,
            character_name=attacker.name,
            archetype=attacker.archetype.value,
            opponent_name=defender.name if defender else result.defender_id,
            outcome=result.outcome.value,
            action_label=result.action_taken,
            mood=psychology.mood.value if psychology else "",
            rogue_action=result.rogue_action.action_type.value if result.rogue_action else "",
            judge_name=result.judge_ruling.persona_name if result.judge_ruling else "",
        )

    def _narrate_round(self) -> None:
        pending = self._pending_narration
        self._pending_narration = None
        if pending is not None:
            narration = self.narration.resolve(pending)
            self.run_log.log_narration(
                round_number=pending.context.round_number,
                source=narration.source,
                degraded=narration.degraded,
                detail=narration.detail,
            )
            self._state = self._state.bumped(dialogue_degraded=narration.degraded)
            self._emit("dialogue", narration.text, degraded=narration.degraded)

        verdict = check_termination(self._state, self.config)
        if verdict is not None:
            self._complete(*verdict)
            return

        self.phases.transition("next_round")
        self._state = self._state.bumped(phase=BattlePhase.COMBAT)
        self._schedule(self.config.pacing.round_delay_seconds, self._run_round)

    def _complete(self, outcome: BattleOutcome, reason: BattleEndReason) -> None:
        self.phases.transition("battle_ended", {"outcome": outcome.value, "reason": reason.value})
        state = self._state
        combat = self.config.combat
        scale = CHEMISTRY_SCALE.get(state.setup.battle_type, 1.0)

        if outcome == BattleOutcome.PLAYER:
            player_delta, opponent_delta = combat.chemistry_win_delta, combat.chemistry_loss_delta
        elif outcome == BattleOutcome.OPPONENT:
            player_delta, opponent_delta = combat.chemistry_loss_delta, combat.chemistry_win_delta
        else:
            player_delta = opponent_delta = 0.0

        player_team = state.player_team.with_chemistry(
            state.player_team.team_chemistry + player_delta * scale
        )
        opponent_team = state.opponent_team.with_chemistry(
            state.opponent_team.team_chemistry + opponent_delta * scale
        )

        summary = self.narrator.battle_summary(
            outcome, reason, player_team, opponent_team, state.current_round
        )
        self._report = BattleReport(
            battle_id=state.battle_id,
            outcome=outcome,
            end_reason=reason,
            rounds=state.current_round,
            player_team=player_team,
            opponent_team=opponent_team,
            player_chemistry_change=player_team.team_chemistry - state.player_team.team_chemistry,
            opponent_chemistry_change=(
                opponent_team.team_chemistry - state.opponent_team.team_chemistry
            ),
            round_results=state.round_results,
            judge_name=state.judge.name if state.judge else "",
            summary=summary,
        )

        # Release battle-scoped state
        self._cancel_all()
        self._state = state.bumped(
            phase=BattlePhase.BATTLE_COMPLETE,
            player_team=player_team,
            opponent_team=opponent_team,
            winner=outcome,
            end_reason=reason,
            psychology={},
            judge=None,
            standing_plans={},
            pending_plans={},
        )
        self.run_log.log_custom("battle_complete", self._report.to_dict())
        logger.info(f"{state.battle_id} complete: {outcome.value} ({reason.value})")
        self._emit("battle_complete", summary)

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def _require_active(self) -> BattleState:
        if self._state is None or not self.phases.is_in_battle():
            raise BattleNotActiveError("No battle in progress")
        return self._state

    def _validated_team(self, team: Team, label: str) -> Team:
        if team.characters:
            return team
        logger.warning(f"{label} team {team.team_id} is empty; fielding a stand-in")
        stand_in = Character(
            character_id=f"{team.team_id}_stand_in",
            name="Stand-in",
            archetype=Archetype.WARRIOR,
            attack=40,
            defense=40,
            speed=40,
            current_hp=100,
            max_hp=100,
        )
        return replace(team, characters=(stand_in,))

    @staticmethod
    def _distinct_ids(opponent_team: Team, player_team: Team) -> Team:
        """Re-key opponent fighters whose ids collide with the player roster."""
        player_ids = {c.character_id for c in player_team.characters}
        taken = player_ids | {c.character_id for c in opponent_team.characters}
        characters = []
        for character in opponent_team.characters:
            if character.character_id not in player_ids:
                characters.append(character)
                continue
            new_id = f"{opponent_team.team_id}:{character.character_id}"
            suffix = 2
            while new_id in taken:
                new_id = f"{opponent_team.team_id}:{character.character_id}:{suffix}"
                suffix += 1
            taken.add(new_id)
            logger.warning(
                f"Opponent fighter id {character.character_id} is also on the player team; "
                f"using {new_id}"
            )
            characters.append(replace(character, character_id=new_id))
        return replace(opponent_team, characters=tuple(characters))

    @staticmethod
    def _first_fighter(team: Team) -> Character:
        conscious = team.conscious_characters
        return conscious[0] if conscious else team.characters[0]

    def _build_initial_state(
        self, battle_id: str, setup: BattleSetup, environment_modifiers: Optional[Any]
    ) -> BattleState:
        player_team = self._validated_team(setup.player_team, "Player")
        opponent_team = self._validated_team(setup.opponent_team, "Opponent")
        opponent_team = self._distinct_ids(opponent_team, player_team)
        setup = replace(setup, player_team=player_team, opponent_team=opponent_team)

        environment = EnvironmentModifiers.coerce(environment_modifiers)
        unknown = environment.unknown_keys()
        if unknown:
            logger.warning(f"Ignoring unknown environment modifiers: {unknown}")

        psychology = {}
        for character in player_team.characters:
            psychology[character.character_id] = self.psychology_manager.initialize(
                character, player_team, environment_modifiers=environment, stakes=setup.stakes
            )
        for character in opponent_team.characters:
            psychology[character.character_id] = self.psychology_manager.initialize(
                character, opponent_team, stakes=setup.stakes
            )

        combat = self.config.combat
        player_morale = TeamMorale(
            current=clamp_percent(
                combat.starting_morale
                + (player_team.team_chemistry - 50) * combat.chemistry_morale_weight
                + environment.morale_shift
            )
        )
        opponent_morale = TeamMorale(
            current=clamp_percent(
                combat.starting_morale
                + (opponent_team.team_chemistry - 50) * combat.chemistry_morale_weight
            )
        )

        player_fighter = self._first_fighter(player_team)
        opponent_fighter = self._first_fighter(opponent_team)
        first = (
            BattleSide.PLAYER
            if player_fighter.speed >= opponent_fighter.speed
            else BattleSide.OPPONENT
        )

        return BattleState(
            battle_id=battle_id,
            setup=setup,
            player_team=player_team,
            opponent_team=opponent_team,
            player_fighter_id=player_fighter.character_id,
            opponent_fighter_id=opponent_fighter.character_id,
            generation=self._generation,
            phase=BattlePhase.PRE_BATTLE,
            player_morale=player_morale,
            opponent_morale=opponent_morale,
            psychology=psychology,
            judge=select_persona(self.dice),
            next_attacker=first,
        )

    def __repr__(self) -> str:
        battle = self._state.battle_id if self._state else None
        return f"BattleStateMachine(battle={battle}, phase={self.phase.value}, generation={self._generation})"
