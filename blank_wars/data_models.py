"""
Shared data structures for the Blank Wars battle engine.

Every battle-domain record here is a frozen dataclass. Components never mutate
a record in place; they return a new value built with dataclasses.replace and
the BattleStateMachine decides when that value becomes the current one.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Sequence, TypeVar
import logging
import random

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# ENUMS
# =============================================================================


class Archetype(str, Enum):
    """Closed set of character archetypes. Drives psychology and rogue tables."""
    WARRIOR = "warrior"
    MAGE = "mage"
    TRICKSTER = "trickster"
    BEAST = "beast"
    LEADER = "leader"
    DETECTIVE = "detective"
    MONSTER = "monster"
    ALIEN = "alien"
    MERCENARY = "mercenary"
    COWBOY = "cowboy"
    BIKER = "biker"


class ActionKind(str, Enum):
    """What a coach can ask a fighter to do in a round."""
    BASIC_ATTACK = "basic_attack"
    ABILITY = "ability"
    DEFEND = "defend"


class AbilityKind(str, Enum):
    """Ability categories."""
    ATTACK = "attack"
    DEFENSE = "defense"
    SPECIAL = "special"


class DeviationOutcome(str, Enum):
    """Result of the per-round adherence check."""
    FOLLOWS_PLAN = "follows_plan"
    IMPROVISES = "improvises"
    GOES_ROGUE = "goes_rogue"


class RogueActionType(str, Enum):
    """Archetype-flavored deviations a fighter can commit."""
    RECKLESS_ATTACK = "reckless_attack"
    BERSERKER_RAGE = "berserker_rage"
    GRANDSTANDING = "grandstanding"
    CREATIVE_STRATEGY = "creative_strategy"
    EVASIVE_RETREAT = "evasive_retreat"
    SELF_SABOTAGE = "self_sabotage"
    REFUSE_FIGHT = "refuse_fight"
    PANIC_FLEE = "panic_flee"
    PROTECTIVE_SACRIFICE = "protective_sacrifice"


class RogueTarget(str, Enum):
    """Who a rogue action is aimed at."""
    OPPONENT = "opponent"
    SELF = "self"
    ARENA = "arena"


class Severity(str, Enum):
    """Severity bands for rogue actions."""
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    EXTREME = "extreme"


class Momentum(str, Enum):
    """Which way the battle is going for the acting side."""
    WINNING = "winning"
    EVEN = "even"
    LOSING = "losing"


class BattleSide(str, Enum):
    """The two sides of a battle."""
    PLAYER = "player"
    OPPONENT = "opponent"

    @property
    def other(self) -> "BattleSide":
        return BattleSide.OPPONENT if self == BattleSide.PLAYER else BattleSide.PLAYER


class BattleOutcome(str, Enum):
    """Final result of a battle."""
    PLAYER = "player"
    OPPONENT = "opponent"
    DRAW = "draw"


class BattleEndReason(str, Enum):
    """Why a battle ended."""
    TOTAL_VICTORY = "total_victory"
    TIME_LIMIT = "time_limit"
    MUTUAL_DESTRUCTION = "mutual_destruction"
    ABANDONED = "abandoned"


class BattleType(str, Enum):
    """Battle formats."""
    FRIENDLY = "friendly"
    RANKED = "ranked"
    TOURNAMENT = "tournament"


class WeightClass(str, Enum):
    """Competitive weight classes."""
    ROOKIE = "rookie"
    AMATEUR = "amateur"
    PRO = "pro"
    CHAMPIONSHIP = "championship"


class Stakes(str, Enum):
    """How much is riding on the battle."""
    NORMAL = "normal"
    HIGH = "high"
    DEATH_MATCH = "death_match"


class BattleMode(str, Enum):
    """
    How knockouts are counted.

    ACTIVE_FIGHTER ends the battle when a side's active fighter hits 0 HP.
    TEAM_TOTAL rotates the next conscious teammate in and ends the battle
    only when a side's total HP reaches 0.
    """
    ACTIVE_FIGHTER = "active_fighter"
    TEAM_TOTAL = "team_total"


class BattlePhase(str, Enum):
    """Battle phases. Only ONE phase is active at any time."""
    IDLE = "idle"
    PRE_BATTLE = "pre_battle"
    PRE_BATTLE_HUDDLE = "pre_battle_huddle"
    STRATEGY_SELECTION = "strategy_selection"
    COMBAT = "combat"
    ROUND_RESOLUTION = "round_resolution"
    BATTLE_COMPLETE = "battle_complete"


class MentalHealthLevel(str, Enum):
    """Coarse mental health bands used in narration."""
    STABLE = "stable"
    STRESSED = "stressed"
    TROUBLED = "troubled"
    CRISIS = "crisis"


# =============================================================================
# NUMERIC HELPERS
# =============================================================================


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def clamp_percent(value: float) -> float:
    """Clamp a 0-100 stat."""
    return clamp(value, 0.0, 100.0)


def get_morale_modifier(morale: float) -> float:
    """Performance multiplier for a team's current morale."""
    if morale >= 80:
        return 1.2
    if morale >= 60:
        return 1.1
    if morale >= 40:
        return 0.9
    if morale >= 20:
        return 0.8
    return 0.7


def get_mental_health_level(mental_health: float) -> MentalHealthLevel:
    """Map a 0-100 mental health score to a band."""
    if mental_health >= 80:
        return MentalHealthLevel.STABLE
    if mental_health >= 50:
        return MentalHealthLevel.STRESSED
    if mental_health >= 25:
        return MentalHealthLevel.TROUBLED
    return MentalHealthLevel.CRISIS


# =============================================================================
# CHARACTERS AND TEAMS
# =============================================================================


@dataclass(frozen=True)
class PsychProfile:
    """Innate psychological traits of a character (0-100 each)."""
    training: float = 50.0
    team_player: float = 50.0
    ego: float = 50.0
    mental_health: float = 50.0
    communication: float = 50.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PsychProfile":
        return cls(
            training=float(data.get("training", 50)),
            team_player=float(data.get("team_player", 50)),
            ego=float(data.get("ego", 50)),
            mental_health=float(data.get("mental_health", 50)),
            communication=float(data.get("communication", 50)),
        )


@dataclass(frozen=True)
class Ability:
    """A named ability a coach can call for."""
    ability_id: str
    name: str
    power: int
    kind: AbilityKind = AbilityKind.ATTACK
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Ability":
        return cls(
            ability_id=data["ability_id"],
            name=data.get("name", data["ability_id"]),
            power=int(data.get("power", 0)),
            kind=AbilityKind(data.get("kind", AbilityKind.ATTACK.value)),
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class Character:
    """
    A fighter on a team roster.

    current_hp is always kept inside [0, max_hp]; use with_hp() to build a
    damaged or healed copy.
    """
    character_id: str
    name: str
    archetype: Archetype
    attack: int
    defense: int
    speed: int
    current_hp: int
    max_hp: int
    abilities: tuple[Ability, ...] = ()
    psych: PsychProfile = field(default_factory=PsychProfile)

    def __post_init__(self):
        if self.max_hp <= 0:
            raise ValueError(f"Character {self.character_id} must have positive max_hp")
        bounded = int(clamp(self.current_hp, 0, self.max_hp))
        if bounded != self.current_hp:
            object.__setattr__(self, "current_hp", bounded)

    @property
    def is_conscious(self) -> bool:
        return self.current_hp > 0

    @property
    def hp_fraction(self) -> float:
        return self.current_hp / self.max_hp

    def with_hp(self, hp: float) -> "Character":
        """Return a copy with HP clamped into [0, max_hp]."""
        return replace(self, current_hp=int(clamp(hp, 0, self.max_hp)))

    def get_ability(self, ability_id: Optional[str]) -> Optional[Ability]:
        """Look up an ability by id."""
        if ability_id is None:
            return None
        for ability in self.abilities:
            if ability.ability_id == ability_id:
                return ability
        return None

    def strongest_attack_ability(self) -> Optional[Ability]:
        """The highest-power attack ability, if the character has any."""
        attacks = [a for a in self.abilities if a.kind == AbilityKind.ATTACK]
        if not attacks:
            return None
        return max(attacks, key=lambda a: a.power)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Character":
        max_hp = int(data["max_hp"])
        return cls(
            character_id=data["character_id"],
            name=data.get("name", data["character_id"]),
            archetype=Archetype(data["archetype"]),
            attack=int(data.get("attack", 50)),
            defense=int(data.get("defense", 50)),
            speed=int(data.get("speed", 50)),
            current_hp=int(data.get("current_hp", max_hp)),
            max_hp=max_hp,
            abilities=tuple(Ability.from_dict(a) for a in data.get("abilities", [])),
            psych=PsychProfile.from_dict(data.get("psych", {})),
        )


def calculate_team_chemistry(characters: Sequence[Character]) -> float:
    """
    Derive a team's chemistry from its roster.

    Team players, communicators and stable minds raise chemistry; egos above
    50 drag it down.
    """
    if not characters:
        return 0.0
    count = len(characters)
    avg_team_player = sum(c.psych.team_player for c in characters) / count
    avg_communication = sum(c.psych.communication for c in characters) / count
    avg_mental_health = sum(c.psych.mental_health for c in characters) / count
    avg_ego = sum(c.psych.ego for c in characters) / count

    base = (avg_team_player + avg_communication + avg_mental_health) / 3
    ego_reduction = (avg_ego - 50) * 0.3
    return clamp_percent(base - ego_reduction)


@dataclass(frozen=True)
class Team:
    """An ordered roster with its coach and persistent chemistry."""
    team_id: str
    name: str
    characters: tuple[Character, ...]
    coach_name: str = "Coach"
    team_chemistry: float = 50.0

    def __post_init__(self):
        chemistry = clamp_percent(self.team_chemistry)
        if chemistry != self.team_chemistry:
            object.__setattr__(self, "team_chemistry", chemistry)

    @property
    def total_hp(self) -> int:
        return sum(c.current_hp for c in self.characters)

    @property
    def total_max_hp(self) -> int:
        return sum(c.max_hp for c in self.characters)

    @property
    def conscious_characters(self) -> list[Character]:
        return [c for c in self.characters if c.is_conscious]

    def get_character(self, character_id: str) -> Optional[Character]:
        for character in self.characters:
            if character.character_id == character_id:
                return character
        return None

    def with_character(self, updated: Character) -> "Team":
        """Return a copy with one roster entry replaced (matched by id)."""
        characters = tuple(
            updated if c.character_id == updated.character_id else c for c in self.characters
        )
        return replace(self, characters=characters)

    def with_chemistry(self, chemistry: float) -> "Team":
        return replace(self, team_chemistry=clamp_percent(chemistry))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Team":
        characters = tuple(Character.from_dict(c) for c in data.get("characters", []))
        chemistry = data.get("team_chemistry")
        if chemistry is None:
            chemistry = calculate_team_chemistry(characters)
        return cls(
            team_id=data["team_id"],
            name=data.get("name", data["team_id"]),
            characters=characters,
            coach_name=data.get("coach_name", "Coach"),
            team_chemistry=float(chemistry),
        )


# =============================================================================
# MORALE
# =============================================================================


@dataclass(frozen=True)
class MoraleEvent:
    """One morale swing in a battle."""
    round_number: int
    event: str
    morale_change: float
    resulting_morale: float


@dataclass(frozen=True)
class TeamMorale:
    """Current team morale (0-100) plus the history of swings."""
    current: float = 50.0
    history: tuple[MoraleEvent, ...] = ()

    def __post_init__(self):
        bounded = clamp_percent(self.current)
        if bounded != self.current:
            object.__setattr__(self, "current", bounded)

    def apply(self, change: float, round_number: int, event: str) -> "TeamMorale":
        """Return a copy with the change applied and clamped, and the event recorded."""
        new_value = clamp_percent(self.current + change)
        entry = MoraleEvent(
            round_number=round_number,
            event=event,
            morale_change=new_value - self.current,
            resulting_morale=new_value,
        )
        return TeamMorale(current=new_value, history=self.history + (entry,))


# =============================================================================
# ACTIONS AND ROUND RESULTS
# =============================================================================


@dataclass(frozen=True)
class PlannedAction:
    """
    The coach's instruction for one fighter in one round.

    coaching_influence (0-1) is how hard the coach leaned on the fighter; it
    lowers deviation risk.
    """
    character_id: str
    kind: ActionKind = ActionKind.BASIC_ATTACK
    ability_id: Optional[str] = None
    target_id: Optional[str] = None
    coaching_influence: float = 0.0

    def __post_init__(self):
        bounded = clamp(self.coaching_influence, 0.0, 1.0)
        if bounded != self.coaching_influence:
            object.__setattr__(self, "coaching_influence", bounded)

    @property
    def label(self) -> str:
        if self.kind == ActionKind.ABILITY and self.ability_id:
            return f"ability:{self.ability_id}"
        return self.kind.value


@dataclass(frozen=True)
class RogueAction:
    """A deviation chosen by a fighter instead of the coach's plan. Carries no numbers."""
    action_type: RogueActionType
    character_id: str
    description: str
    target: RogueTarget
    intensity: float
    severity: Severity
    reason: str = ""


@dataclass(frozen=True)
class JudgeRuling:
    """The judge's mechanical and narrative verdict on a rogue action."""
    persona_name: str
    action_type: RogueActionType
    damage_to_opponent: int
    backlash_damage: int
    morale_change: float
    paid_off: bool
    narrative_description: str
    coach_explanation: str


@dataclass(frozen=True)
class RoundResult:
    """
    Immutable record of one resolved round.

    rogue_action and judge_ruling are both set exactly when the outcome is
    GOES_ROGUE, and both None otherwise.
    """
    round_number: int
    attacker_id: str
    defender_id: str
    attacker_side: BattleSide
    action_taken: str
    outcome: DeviationOutcome
    damage: int
    backlash_damage: int
    was_plan_adherent: bool
    attacker_hp_after: int
    defender_hp_after: int
    morale_change: float
    risk_used: float
    narrative_description: str
    rogue_action: Optional[RogueAction] = None
    judge_ruling: Optional[JudgeRuling] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and export."""
        return {
            "round_number": self.round_number,
            "attacker_id": self.attacker_id,
            "defender_id": self.defender_id,
            "attacker_side": self.attacker_side.value,
            "action_taken": self.action_taken,
            "outcome": self.outcome.value,
            "damage": self.damage,
            "backlash_damage": self.backlash_damage,
            "was_plan_adherent": self.was_plan_adherent,
            "attacker_hp_after": self.attacker_hp_after,
            "defender_hp_after": self.defender_hp_after,
            "morale_change": self.morale_change,
            "risk_used": round(self.risk_used, 4),
            "rogue_action": self.rogue_action.action_type.value if self.rogue_action else None,
            "judge": self.judge_ruling.persona_name if self.judge_ruling else None,
            "narrative": self.narrative_description,
        }


# =============================================================================
# BATTLE SETUP
# =============================================================================


@dataclass(frozen=True)
class BattleSetup:
    """Everything needed to start a battle."""
    player_team: Team
    opponent_team: Team
    battle_type: BattleType = BattleType.FRIENDLY
    weight_class: WeightClass = WeightClass.AMATEUR
    stakes: Stakes = Stakes.NORMAL
    mode: BattleMode = BattleMode.ACTIVE_FIGHTER


# =============================================================================
# DICE AND RANDOMIZATION
# =============================================================================


@dataclass
class DiceResult:
    """Result of a dice roll with full information."""
    notation: str
    rolls: list[int]
    modifier: int
    total: int
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.notation}: {self.rolls} + {self.modifier} = {self.total}"
        elif self.modifier < 0:
            return f"{self.notation}: {self.rolls} - {abs(self.modifier)} = {self.total}"
        return f"{self.notation}: {self.rolls} = {self.total}"


class DiceRoller:
    """
    Randomization source for one battle.

    Every random draw in the engine goes through an instance of this class so
    that a seed fully determines a battle. Each instance owns its own
    random.Random; nothing touches the global random module.
    """

    def __init__(self, seed: Optional[int] = None, run_log: Optional[Any] = None):
        """
        Args:
            seed: RNG seed (None = nondeterministic)
            run_log: Optional RunLog receiving every roll and draw
        """
        self._seed = seed
        self._rng = random.Random(seed)
        self._roll_log: list[DiceResult] = []
        self._run_log = run_log

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def set_seed(self, seed: Optional[int]) -> None:
        """Reseed the roller and clear its roll log."""
        self._seed = seed
        self._rng = random.Random(seed)
        self._roll_log = []
        if self._run_log is not None and seed is not None:
            self._run_log.set_seed(seed)

    def attach_run_log(self, run_log: Any) -> None:
        self._run_log = run_log

    def roll(self, dice: str, reason: str = "") -> DiceResult:
        """
        Roll dice using standard notation (e.g., '2d6', '1d20+5', '3d6-2').

        Args:
            dice: Dice notation string
            reason: Why this roll is being made (for logging)

        Returns:
            DiceResult with individual rolls and total
        """
        modifier = 0
        if "+" in dice:
            dice_part, mod_part = dice.split("+")
            modifier = int(mod_part)
        elif "-" in dice:
            dice_part, mod_part = dice.split("-")
            modifier = -int(mod_part)
        else:
            dice_part = dice

        num_dice, die_size = dice_part.lower().split("d")
        num_dice = int(num_dice) if num_dice else 1
        die_size = int(die_size)

        rolls = [self._rng.randint(1, die_size) for _ in range(num_dice)]
        total = sum(rolls) + modifier

        result = DiceResult(
            notation=dice,
            rolls=rolls,
            modifier=modifier,
            total=total,
            reason=reason,
        )
        self._roll_log.append(result)
        if self._run_log is not None:
            self._run_log.log_roll(
                notation=dice, rolls=rolls, modifier=modifier, total=total, reason=reason
            )
        return result

    def random(self, reason: str = "") -> float:
        """Uniform float in [0, 1)."""
        value = self._rng.random()
        self._log_draw("random", value, reason)
        return value

    def uniform(self, low: float, high: float, reason: str = "") -> float:
        """Uniform float in [low, high]."""
        value = self._rng.uniform(low, high)
        self._log_draw(f"uniform({low}, {high})", value, reason)
        return value

    def choice(self, options: Sequence[T], reason: str = "") -> T:
        """Pick one option uniformly."""
        if not options:
            raise ValueError("Cannot choose from an empty sequence")
        index = self._rng.randrange(len(options))
        self._log_draw(f"choice(n={len(options)})", index, reason)
        return options[index]

    def weighted_choice(
        self, options: Sequence[T], weights: Sequence[float], reason: str = ""
    ) -> T:
        """
        Pick one option with probability proportional to its weight.

        Raises:
            ValueError: If options is empty or the weights do not sum to a positive value
        """
        if not options or len(options) != len(weights):
            raise ValueError("weighted_choice needs one weight per option")
        total = sum(max(0.0, w) for w in weights)
        if total <= 0:
            raise ValueError("weighted_choice needs at least one positive weight")

        point = self._rng.random() * total
        cumulative = 0.0
        chosen = options[-1]
        for option, weight in zip(options, weights):
            cumulative += max(0.0, weight)
            if point < cumulative:
                chosen = option
                break
        self._log_draw(f"weighted_choice(n={len(options)})", point / total, reason)
        return chosen

    def get_roll_log(self) -> list[DiceResult]:
        """Get the notation rolls made so far."""
        return self._roll_log.copy()

    def _log_draw(self, method: str, value: float, reason: str) -> None:
        if self._run_log is not None:
            self._run_log.log_draw(method=method, value=value, reason=reason)


# =============================================================================
# STATE TRANSITION LOG
# =============================================================================


@dataclass
class TransitionLog:
    """Log entry for a battle phase transition."""
    timestamp: datetime
    from_state: str
    to_state: str
    trigger: str
    context: dict[str, Any] = field(default_factory=dict)
