"""
Test suite for the game runner and the CLI config loader.

A ConsolePlayer with a scripted reader stands in for the human, and a
mocked LiteLLM for the model, so every turn is deterministic.
"""

import asyncio
import json
from unittest.mock import AsyncMock, Mock, patch

import pytest
from src.engine import BridgePlayer, ConsolePlayer, GameRunner, RunConfig
from src.main import load_config
from src.words import Puzzle


HEART_SPACE = Puzzle(start_word="HEART", end_word="SPACE")


class AnyWord:
    """Dictionary that knows every word."""

    async def is_valid_word(self, word):
        return True


def bridge_for(puzzle: Puzzle) -> str:
    start, end = puzzle.start_word, puzzle.end_word
    for word in (start[:3] + end[:2], end[:2] + start[:3], start[:2] + end[:3]):
        if word not in (start, end):
            return word
    raise AssertionError(f"No bridge for {puzzle}")


class ScriptedConsole:
    """
    Feeds a ConsolePlayer one scripted line per turn.

    "BRIDGE" answers the current puzzle and "START" repeats its start word
    (always rejected); anything else is typed as-is.
    """

    def __init__(self, *lines):
        self.lines = list(lines)
        self.runner = None
        self.prompts = []

    def read(self, _prompt):
        line = self.lines.pop(0)
        puzzle = self.runner.engine.current_round.puzzle
        if line == "BRIDGE":
            return bridge_for(puzzle)
        if line == "START":
            return puzzle.start_word
        return line


def make_runner(*lines, **config_kwargs):
    config_kwargs.setdefault("game", {"seed": 5})
    script = ScriptedConsole(*lines)
    player = ConsolePlayer(reader=script.read, writer=script.prompts.append)
    runner = GameRunner.create(
        config=RunConfig(**config_kwargs),
        player=player,
        dictionary=AnyWord(),
        auto_tick=False,
    )
    script.runner = runner
    runner.setup(HEART_SPACE)
    return runner, script


def llm_response(content: str) -> Mock:
    return Mock(
        choices=[Mock(message=Mock(content=content, role="assistant"))],
        usage=Mock(prompt_tokens=100, completion_tokens=20, total_tokens=120),
    )


class TestStep:
    """Test cases for single turns."""

    def test_step_requires_setup(self):
        runner = GameRunner.create(player=ConsolePlayer(), dictionary=AnyWord(), auto_tick=False)
        with pytest.raises(ValueError):
            asyncio.run(runner.step())

    def test_solve(self):
        runner, script = make_runner("BRIDGE")
        turn = asyncio.run(runner.step())

        assert turn.action == "GUESS"
        assert turn.word == "HEASP"
        assert turn.accepted is True
        assert turn.points > 0
        assert turn.outcome == "solved"
        assert turn.score_after == turn.points
        assert turn.speed == "SUPER FAST"
        assert turn.streak_after == 1
        assert turn.phase_after == "round_active"
        assert runner.current_turn == 1
        assert runner.engine.current_round.puzzle.start_word == "HEASP"
        assert "START: HEART" in script.prompts[0]

    def test_rejected_guess_feeds_back(self):
        runner, script = make_runner("START", "BRIDGE")
        turn = asyncio.run(runner.step())

        assert turn.accepted is False
        assert turn.validation.reason == "equals_endpoint"
        assert turn.outcome is None
        assert runner.engine.current_round.index == 0

        asyncio.run(runner.step())
        second_prompt = script.prompts[1]
        assert "Your guess HEART" in second_prompt
        assert "Already rejected: HEART" in second_prompt

    def test_skip(self):
        runner, script = make_runner("skip", "BRIDGE")
        turn = asyncio.run(runner.step())

        assert turn.action == "SKIP"
        assert turn.outcome == "skipped"
        assert turn.score_after == 0
        assert runner.engine.session.rounds_remaining == 9

        asyncio.run(runner.step())
        assert "You skipped the last round" in script.prompts[1]

    def test_blank_input(self):
        runner, _ = make_runner("")
        turn = asyncio.run(runner.step())
        assert turn.action == "NONE"
        assert turn.error == "No word given"
        assert runner.engine.current_round.is_pending

    def test_timeout_between_turns(self):
        runner, script = make_runner("BRIDGE")
        runner.engine.tick(30)
        asyncio.run(runner.step())
        assert runner.engine.history[0].outcome == "timed_out"
        assert "Time ran out" not in script.prompts[0]
        assert runner.turn_history[0].round_index == 1

    def test_max_turns(self):
        runner, _ = make_runner("", "", max_turns=2)
        asyncio.run(runner.step())
        assert runner.is_complete is False
        asyncio.run(runner.step())

        assert runner.is_complete is True
        assert runner.end_reason == "Max turns (2) reached"
        assert runner.engine.is_over
        with pytest.raises(ValueError):
            asyncio.run(runner.step())


class TestRun:
    """Test cases for full games."""

    def test_bonus_miss_ends_game(self):
        runner, _ = make_runner("BRIDGE", "SKIP", "START", game={"seed": 5, "total_rounds": 1})
        turns = []
        result = asyncio.run(runner.run(on_turn=turns.append))

        assert [t.action for t in turns] == ["GUESS", "SKIP", "GUESS"]
        assert turns[0].phase_after == "bonus_active"
        assert turns[1].error == "SKIP not allowed now"
        assert turns[2].outcome == "failed"
        assert result.reached_bonus is True
        assert result.solved == 1
        assert result.total_turns == 3
        assert result.end_reason == "Missed a bonus round"
        assert [r.outcome for r in result.rounds] == ["solved", "failed"]

    def test_all_rounds_skipped(self):
        runner, _ = make_runner("SKIP", "SKIP", game={"seed": 5, "total_rounds": 2})
        result = asyncio.run(runner.run())
        assert result.final_score == 0
        assert result.end_reason == "All rounds played"
        assert result.reached_bonus is False

    def test_run_sets_up_when_needed(self):
        script = ScriptedConsole("START")
        runner = GameRunner.create(
            player=ConsolePlayer(reader=script.read, writer=script.prompts.append),
            dictionary=AnyWord(),
            auto_tick=False,
            max_turns=1,
        )
        script.runner = runner
        result = asyncio.run(runner.run())
        assert result.total_turns == 1
        assert result.end_reason == "Max turns (1) reached"


class TestLLMRun:
    """Test cases for a game played by a mocked model."""

    @patch('litellm.acompletion', new_callable=AsyncMock)
    def test_token_totals(self, mock_acompletion):
        runner = GameRunner.create(
            config=RunConfig(game={"seed": 5, "total_rounds": 1}, player={"model": "gpt-4o-mini"}),
            dictionary=AnyWord(),
            auto_tick=False,
        )
        runner.setup(HEART_SPACE)

        def reply(*args, **kwargs):
            puzzle = runner.engine.current_round.puzzle
            if runner.engine.session.bonus_phase_active:
                return llm_response(f"<word>{puzzle.start_word}</word>")
            return llm_response(f"<game_plan>easy</game_plan><word>{bridge_for(puzzle)}</word>")

        mock_acompletion.side_effect = reply
        result = asyncio.run(runner.run())

        assert isinstance(runner.player, BridgePlayer)
        assert result.total_turns == 2
        assert result.total_tokens == 240
        assert result.total_prompt_tokens == 200
        assert result.total_completion_tokens == 40
        assert result.turn_history[0].thinking == "easy"
        assert result.conversation_history[0]["role"] == "system"
        assert result.player_name == "Player p1 (gpt-4o-mini)"

    @patch('litellm.acompletion', new_callable=AsyncMock)
    def test_llm_error_costs_a_turn(self, mock_acompletion):
        mock_acompletion.side_effect = RuntimeError("overloaded")
        runner = GameRunner.create(
            config=RunConfig(player={"model": "gpt-4o-mini"}, max_turns=1),
            dictionary=AnyWord(),
            auto_tick=False,
        )
        runner.setup(HEART_SPACE)
        turn = asyncio.run(runner.step())
        assert turn.action == "NONE"
        assert "overloaded" in turn.error
        assert runner.is_complete


class TestResults:
    """Test cases for result export."""

    def test_save_result(self, tmp_path):
        runner, _ = make_runner("BRIDGE", "SKIP")
        asyncio.run(runner.step())
        asyncio.run(runner.step())

        path = tmp_path / "out" / "run.json"
        runner.save_result(path)

        data = json.loads(path.read_text())
        assert data["final_score"] == runner.engine.session.score
        assert data["total_turns"] == 2
        assert [r["outcome"] for r in data["rounds"]][:2] == ["solved", "skipped"]
        assert data["events"][0]["type"] == "round_started"
        assert data["session"]["solved"] == 1
        assert "recent_words" not in data["session"]


class TestCreate:
    """Test cases for building a runner from configuration."""

    def test_console_player(self):
        runner = GameRunner.create(config=RunConfig(player={"kind": "console", "name": "Ada"}))
        assert isinstance(runner.player, ConsolePlayer)
        assert runner.player.name == "Ada"

    def test_llm_player_extra_params(self):
        runner = GameRunner.create(
            config=RunConfig(player={"model": "gpt-4o-mini", "temperature": 0.2, "top_p": 0.5})
        )
        client = runner.player.llm_client
        assert client.model == "gpt-4o-mini"
        assert client.temperature == 0.2
        assert client.additional_params == {"top_p": 0.5}

    def test_engine_follows_game_config(self):
        runner = GameRunner.create(game={"total_rounds": 3, "offline": True})
        assert runner.engine.config.total_rounds == 3
        assert runner.engine.phase == "not_started"


class TestLoadConfig:
    """Test cases for YAML config loading."""

    def test_load(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "max_turns: 40\n"
            "game:\n"
            "  total_rounds: 4\n"
            "  seed: 7\n"
            "player:\n"
            "  model: gpt-4o-mini\n"
            "  reasoning_effort: low\n"
        )
        config = load_config(str(path))
        assert config.max_turns == 40
        assert config.game.total_rounds == 4
        assert config.game.seed == 7
        assert config.player.__pydantic_extra__ == {"reasoning_effort": "low"}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(str(path)) == RunConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))
