"""Tests for the command line entry point."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from aimtrainer.cli import main


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("AIMTRAINER_DATA_DIR", str(tmp_path / "data"))
    return CliRunner()


def test_pattern_lists_targets(runner):
    result = runner.invoke(main, ["pattern", "cardinal", "--tier", "gold", "--seed", "3"])
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0].startswith("Cardinal")
    assert "[gold]" in lines[0]
    assert len(lines) == 5


def test_pattern_seed_is_reproducible(runner):
    args = ["pattern", "random", "--count", "5", "--seed", "11"]
    assert runner.invoke(main, args).output == runner.invoke(main, args).output


def test_pattern_rejects_unknown_family(runner):
    result = runner.invoke(main, ["pattern", "zigzag"])
    assert result.exit_code != 0
    assert "Unknown pattern family" in result.output


def test_analyze_then_show_profile(runner, tmp_path):
    good = {
        "score": 900, "accuracy": 88, "reactionTime": 280, "hits": 44, "misses": 6,
        "streak": 15, "gameMode": "flick", "difficulty": "medium", "duration": 60,
        "consistency": 70,
    }
    sessions = tmp_path / "sessions.json"
    sessions.write_text(json.dumps([good, {"accuracy": "bad"}, good]))

    result = runner.invoke(main, ["analyze", str(sessions)])
    assert result.exit_code == 0, result.output
    assert "session 0: target" in result.output
    assert "session 1: skipped" in result.output
    assert "Recommended modes:" in result.output

    result = runner.invoke(main, ["profile", "show"])
    assert "sessions_analyzed: 2" in result.output


def test_profile_reset(runner):
    result = runner.invoke(main, ["profile", "reset", "--yes"])
    assert result.exit_code == 0
    assert "Profile reset." in result.output


def test_profile_list_and_delete(runner, tmp_path):
    sessions = tmp_path / "one.json"
    sessions.write_text(json.dumps({
        "score": 700, "accuracy": 75, "reactionTime": 350, "hits": 30, "misses": 10,
        "streak": 6, "gameMode": "tracking", "difficulty": "easy", "duration": 60,
        "consistency": 65,
    }))
    assert "No stored profiles." in runner.invoke(main, ["profile", "list"]).output

    runner.invoke(main, ["--player", "kai", "analyze", str(sessions)])
    runner.invoke(main, ["--player", "ana", "analyze", str(sessions)])
    result = runner.invoke(main, ["profile", "list"])
    assert result.output.split() == ["ana", "kai"]

    result = runner.invoke(main, ["--player", "kai", "profile", "delete", "--yes"])
    assert result.exit_code == 0
    assert "Deleted profile for kai." in result.output
    assert runner.invoke(main, ["profile", "list"]).output.split() == ["ana"]
