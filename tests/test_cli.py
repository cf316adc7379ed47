import json

import pytest
from click.testing import CliRunner

from craps_agents.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_simulate_quiet(runner):
    result = runner.invoke(cli, ["simulate", "--rounds", "5", "--seed", "1", "--quiet"])
    assert result.exit_code == 0, result.output
    assert "Bot Results" in result.output
    assert "LP Leaderboard" in result.output


def test_simulate_verbose_shows_rounds(runner):
    result = runner.invoke(cli, ["simulate", "--rounds", "3", "--seed", "2", "--series-end", "come_out"])
    assert result.exit_code == 0, result.output
    assert "Round 3" in result.output


def test_bots_lists_house_roster(runner):
    result = runner.invoke(cli, ["bots"])
    assert result.exit_code == 0
    assert "alice" in result.output
    assert "julia" in result.output


def test_custom_roster(runner, tmp_path):
    roster = tmp_path / "roster.json"
    roster.write_text(json.dumps({"participants": [
        {"id": "zed", "name": "Zed", "bankroll": "300",
         "personality": {"aggressiveness": 10, "risk_tolerance": 0},
         "strategy": {"base_bet_size": "10", "max_bet_size": "10"}},
    ]}))
    result = runner.invoke(cli, ["simulate", "--rounds", "2", "--seed", "4", "--quiet", "--roster", str(roster)])
    assert result.exit_code == 0, result.output
    assert "Zed" in result.output


def test_bad_roster(runner, tmp_path):
    roster = tmp_path / "broken.json"
    roster.write_text("{not json")
    result = runner.invoke(cli, ["bots", "--roster", str(roster)])
    assert result.exit_code == 1
    assert "Bad roster" in result.output


def test_rules_and_config(runner):
    rules = runner.invoke(cli, ["rules"])
    assert rules.exit_code == 0
    assert "Bet Catalog" in rules.output

    config = runner.invoke(cli, ["config"])
    assert config.exit_code == 0
    assert "Table Configuration" in config.output
