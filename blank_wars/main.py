"""
Blank Wars Battle Engine - Main Entry Point

Runs one coached battle on a virtual clock and prints the announcements and
the final report. Useful for watching the engine, replaying a seed, or
exporting a run log.
"""

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from blank_wars.ai.dialogue_generator import (
    DialogueGenerator,
    DialogueGeneratorConfig,
    LLMDialogueGenerator,
)
from blank_wars.ai.llm_provider import LLMProvider
from blank_wars.config import load_battle_config
from blank_wars.content.rosters import (
    DEMO_RELATIONSHIPS,
    create_demo_opponent_team,
    create_demo_player_team,
    load_team,
)
from blank_wars.data_models import BattleMode, BattleSetup, BattleType, Stakes
from blank_wars.game_state.battle_state_machine import BattleEvent, BattleStateMachine
from blank_wars.game_state.scheduler import ManualScheduler
from blank_wars.psychology.psychology_manager import PsychologyStateManager


# Configure logging
def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class GameConfig:
    """Configuration for one CLI battle."""

    seed: Optional[int] = None
    mode: str = "active_fighter"
    battle_type: str = "friendly"
    stakes: str = "normal"

    player_team: Optional[Path] = None
    opponent_team: Optional[Path] = None
    config_file: Optional[Path] = None

    # LLM Configuration
    llm_provider: str = "mock"  # mock, anthropic, openai, none
    llm_model: Optional[str] = None

    export_log: Optional[Path] = None
    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects."""
        for name in ("player_team", "opponent_team", "config_file", "export_log"):
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, Path(value))


def build_dialogue_generator(
    config: GameConfig, request_timeout: Optional[float] = None
) -> Optional[DialogueGenerator]:
    """
    The dialogue generator for the chosen provider, or None for procedural lines only.

    request_timeout caps each provider call; a line that arrives after the
    narration deadline is never shown.
    """
    if config.llm_provider == "none":
        return None
    generator_config = DialogueGeneratorConfig(llm_provider=LLMProvider(config.llm_provider))
    if config.llm_model:
        generator_config.llm_model = config.llm_model
    if request_timeout is not None:
        generator_config.request_timeout = request_timeout
    return LLMDialogueGenerator(generator_config)


def create_machine(config: GameConfig) -> tuple[BattleStateMachine, BattleSetup]:
    """Build a machine on a ManualScheduler and the setup it will run."""
    battle_config = load_battle_config(config.config_file)
    player_team = load_team(config.player_team) if config.player_team else create_demo_player_team()
    opponent_team = (
        load_team(config.opponent_team) if config.opponent_team else create_demo_opponent_team()
    )

    machine = BattleStateMachine(
        config=battle_config,
        scheduler=ManualScheduler(),
        seed=config.seed,
        dialogue_generator=build_dialogue_generator(
            config, request_timeout=battle_config.pacing.dialogue_timeout_seconds
        ),
        psychology_manager=PsychologyStateManager(
            risk_weights=battle_config.risk_weights,
            relationship_pairs=DEMO_RELATIONSHIPS,
        ),
    )
    setup = BattleSetup(
        player_team=player_team,
        opponent_team=opponent_team,
        battle_type=BattleType(config.battle_type),
        stakes=Stakes(config.stakes),
        mode=BattleMode(config.mode),
    )
    return machine, setup


def print_event(event: BattleEvent) -> None:
    prefix = f"[R{event.round_number}] " if event.round_number else ""
    marker = " (dialogue degraded)" if event.degraded else ""
    print(f"{prefix}{event.text}{marker}")


# =============================================================================
# ARGUMENTS
# =============================================================================

def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Blank Wars - coached battles between legendary characters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m blank_wars.main                          # Demo battle, mock dialogue
  python -m blank_wars.main --seed 42                # Replayable battle
  python -m blank_wars.main --mode team_total        # Whole roster fights
  python -m blank_wars.main --llm-provider anthropic # Claude-written flavor lines
  python -m blank_wars.main --export-log run.json    # Save the event log
        """
    )

    parser.add_argument(
        "--seed",
        type=int,
        help="Dice seed for a replayable battle",
    )
    parser.add_argument(
        "--mode",
        type=str,
        default="active_fighter",
        choices=[m.value for m in BattleMode],
        help="Knockout rule (default: active_fighter)",
    )
    parser.add_argument(
        "--battle-type",
        type=str,
        default="friendly",
        choices=[t.value for t in BattleType],
        help="Battle format (default: friendly)",
    )
    parser.add_argument(
        "--stakes",
        type=str,
        default="normal",
        choices=[s.value for s in Stakes],
        help="Battle stakes (default: normal)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    content_group = parser.add_argument_group("Content Options")
    content_group.add_argument(
        "--player-team",
        type=Path,
        help="JSON roster for the player team (default: demo team)",
    )
    content_group.add_argument(
        "--opponent-team",
        type=Path,
        help="JSON roster for the opponent team (default: demo team)",
    )
    content_group.add_argument(
        "--config",
        type=Path,
        dest="config_file",
        help="JSON file of engine tuning overrides",
    )

    llm_group = parser.add_argument_group("LLM Options")
    llm_group.add_argument(
        "--llm-provider",
        type=str,
        default="mock",
        choices=["mock", "anthropic", "openai", "none"],
        help="Provider for flavor lines (default: mock)",
    )
    llm_group.add_argument(
        "--llm-model",
        type=str,
        help="Specific model to use (provider-dependent)",
    )

    parser.add_argument(
        "--export-log",
        type=Path,
        help="Write the run log to this JSON file",
    )

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> GameConfig:
    """Create GameConfig from parsed arguments."""
    return GameConfig(
        seed=args.seed,
        mode=args.mode,
        battle_type=args.battle_type,
        stakes=args.stakes,
        player_team=args.player_team,
        opponent_team=args.opponent_team,
        config_file=args.config_file,
        llm_provider=args.llm_provider,
        llm_model=args.llm_model,
        export_log=args.export_log,
        verbose=args.verbose,
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)
    config = create_config_from_args(args)

    print("=" * 60)
    print("BLANK WARS BATTLE ENGINE v0.1.0")
    print("=" * 60)

    machine, setup = create_machine(config)
    machine.subscribe(print_event)
    machine.start_battle(setup)
    report = machine.run_until_complete()
    machine.narration.shutdown()

    print("=" * 60)
    if report is None:
        print("Battle did not complete.")
        return 1

    print(report.summary)
    print(f"Judge: {report.judge_name}")
    print(f"Outcome: {report.outcome.value} ({report.end_reason.value}) after {report.rounds} rounds")
    print(
        f"Chemistry: {report.player_team.name} {report.player_team.team_chemistry:.1f} "
        f"({report.player_chemistry_change:+.1f}), "
        f"{report.opponent_team.name} {report.opponent_team.team_chemistry:.1f} "
        f"({report.opponent_chemistry_change:+.1f})"
    )
    if machine.run_log.get_seed() is not None:
        print(f"Seed: {machine.run_log.get_seed()}")

    if config.export_log:
        machine.run_log.save(str(config.export_log))
        print(f"Run log written to {config.export_log}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
