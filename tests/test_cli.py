"""
Tests for the command line entry point.
"""

import json

import pytest

from blank_wars.main import create_config_from_args, create_machine, main, parse_arguments


class TestParseArguments:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test the default battle."""
        args = parse_arguments([])
        assert args.seed is None
        assert args.mode == "active_fighter"
        assert args.battle_type == "friendly"
        assert args.stakes == "normal"
        assert args.llm_provider == "mock"

    def test_options(self, tmp_path):
        """Test explicit options reach the GameConfig."""
        args = parse_arguments(
            [
                "--seed", "42",
                "--mode", "team_total",
                "--battle-type", "tournament",
                "--stakes", "high",
                "--llm-provider", "none",
                "--export-log", str(tmp_path / "log.json"),
            ]
        )
        config = create_config_from_args(args)
        assert config.seed == 42
        assert config.mode == "team_total"
        assert config.battle_type == "tournament"
        assert config.export_log == tmp_path / "log.json"

    def test_rejects_unknown_mode(self):
        """Test argparse rejects invalid choices."""
        with pytest.raises(SystemExit):
            parse_arguments(["--mode", "sudden_death"])


class TestMain:
    """Tests for running a battle from the CLI."""

    def test_runs_demo_battle(self, capsys):
        """Test a seeded demo battle completes and prints a report."""
        assert main(["--seed", "7", "--llm-provider", "none"]) == 0
        out = capsys.readouterr().out
        assert "BLANK WARS BATTLE ENGINE" in out
        assert "Outcome:" in out
        assert "Seed: 7" in out

    def test_mock_dialogue(self, capsys):
        """Test the offline mock provider."""
        assert main(["--seed", "3"]) == 0
        assert "The arena holds its breath." in capsys.readouterr().out

    def test_export_log(self, tmp_path, capsys):
        """Test the run log is written as JSON."""
        path = tmp_path / "run.json"
        assert main(["--seed", "7", "--llm-provider", "none", "--export-log", str(path)]) == 0
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["seed"] == 7
        assert any(e["event_type"] == "round" for e in data["events"])

    def test_config_file(self, tmp_path):
        """Test tuning overrides from a file reach the machine."""
        path = tmp_path / "tuning.json"
        path.write_text(json.dumps({"combat": {"round_cap": 3}}), encoding="utf-8")
        config = create_config_from_args(parse_arguments(["--config", str(path), "--llm-provider", "none"]))
        machine, setup = create_machine(config)
        try:
            assert machine.config.combat.round_cap == 3
            assert setup.player_team.name == "Legendary Squad"
        finally:
            machine.narration.shutdown()

    def test_provider_timeout_follows_dialogue_deadline(self, tmp_path):
        """Test provider calls are capped at the narration deadline."""
        path = tmp_path / "pacing.json"
        path.write_text(json.dumps({"pacing": {"dialogue_timeout_seconds": 0.75}}), encoding="utf-8")
        config = create_config_from_args(parse_arguments(["--config", str(path)]))
        machine, _ = create_machine(config)
        try:
            assert machine.narration.generator.llm.config.request_timeout == 0.75
        finally:
            machine.narration.shutdown()
