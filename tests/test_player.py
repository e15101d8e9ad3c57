import asyncio
from unittest.mock import AsyncMock, Mock, patch

from src.engine import BridgePlayer, ConsolePlayer
from src.engine.prompts import SYSTEM_PROMPT, build_player_prompt, format_feedback


def llm_response(content: str) -> Mock:
    return Mock(
        choices=[Mock(message=Mock(content=content, role="assistant"))],
        usage=Mock(prompt_tokens=120, completion_tokens=30, total_tokens=150),
    )


class TestParseResponse:
    """Test cases for parsing LLM replies."""

    def test_word(self):
        parsed = BridgePlayer.parse_response(
            "<game_plan>Reuse E, A, R from HEART</game_plan>\n<word> tears </word>"
        )
        assert parsed.action == "GUESS"
        assert parsed.word == "TEARS"
        assert parsed.thinking == "Reuse E, A, R from HEART"

    def test_skip(self):
        parsed = BridgePlayer.parse_response("<game_plan>No idea</game_plan><action>skip</action>")
        assert parsed.action == "SKIP"
        assert parsed.word is None

    def test_word_wins_over_skip(self):
        parsed = BridgePlayer.parse_response("<action>SKIP</action><word>TEARS</word>")
        assert parsed.action == "GUESS"
        assert parsed.word == "TEARS"

    def test_no_tags(self):
        parsed = BridgePlayer.parse_response("I think TEARS works")
        assert parsed.action == "NONE"
        assert parsed.word is None
        assert parsed.raw_response == "I think TEARS works"

    def test_empty_word_tag(self):
        assert BridgePlayer.parse_response("<word>  </word>").action == "NONE"

    def test_multiline_plan(self):
        parsed = BridgePlayer.parse_response("<game_plan>\nline one\nline two\n</game_plan><word>MATCH</word>")
        assert parsed.thinking == "line one\nline two"


class TestBridgePlayer:
    """Test cases for the LLM player."""

    def test_create(self):
        player = BridgePlayer.create(model="gpt-4o-mini", temperature=0.3, top_p=0.8)
        assert player.name == "Player p1 (gpt-4o-mini)"
        assert player.llm_client.temperature == 0.3
        assert player.llm_client.additional_params == {"top_p": 0.8}

    def test_custom_name(self):
        assert BridgePlayer.create(model="gpt-4o-mini", name="Bridger").name == "Bridger"

    @patch('litellm.acompletion', new_callable=AsyncMock)
    def test_propose(self, mock_acompletion):
        mock_acompletion.return_value = llm_response("<game_plan>plan</game_plan><word>TEARS</word>")
        player = BridgePlayer.create(model="gpt-4o-mini")

        guess = asyncio.run(player.propose("HEART -> SPACE"))

        assert guess.action == "GUESS"
        assert guess.word == "TEARS"
        assert guess.thinking == "plan"
        assert guess.total_tokens == 150
        assert guess.error is None
        roles = [m["role"] for m in player.get_messages()]
        assert roles == ["system", "user", "assistant"]
        assert player.get_messages()[0]["content"] == SYSTEM_PROMPT
        assert player.turn_count == 1

    @patch('litellm.acompletion', new_callable=AsyncMock)
    def test_system_prompt_added_once(self, mock_acompletion):
        mock_acompletion.return_value = llm_response("<word>TEARS</word>")
        player = BridgePlayer.create(model="gpt-4o-mini")

        async def two_turns():
            await player.propose("turn 1")
            await player.propose("turn 2")

        asyncio.run(two_turns())
        roles = [m["role"] for m in player.get_messages()]
        assert roles == ["system", "user", "assistant", "user", "assistant"]

    @patch('litellm.acompletion', new_callable=AsyncMock)
    def test_llm_error_returned(self, mock_acompletion):
        mock_acompletion.side_effect = RuntimeError("provider down")
        player = BridgePlayer.create(model="gpt-4o-mini")

        guess = asyncio.run(player.propose("HEART -> SPACE"))

        assert guess.action == "NONE"
        assert "provider down" in guess.error
        assert [m["role"] for m in player.get_messages()] == ["system", "user"]

    @patch('litellm.acompletion', new_callable=AsyncMock)
    def test_empty_content(self, mock_acompletion):
        mock_acompletion.return_value = llm_response(None)
        player = BridgePlayer.create(model="gpt-4o-mini")
        guess = asyncio.run(player.propose("HEART -> SPACE"))
        assert guess.action == "NONE"
        assert guess.raw_response == ""


class TestConsolePlayer:
    """Test cases for the terminal player."""

    def make_player(self, line: str):
        shown = []
        player = ConsolePlayer(reader=lambda prompt: line, writer=shown.append)
        return player, shown

    def test_guess(self):
        player, shown = self.make_player("tears\n")
        guess = asyncio.run(player.propose("HEART -> SPACE"))
        assert guess.action == "GUESS"
        assert guess.word == "TEARS"
        assert shown == ["HEART -> SPACE"]

    def test_skip(self):
        player, _ = self.make_player("!skip")
        assert asyncio.run(player.propose("p")).action == "SKIP"

    def test_blank_line(self):
        player, _ = self.make_player("   ")
        assert asyncio.run(player.propose("p")).action == "NONE"

    def test_no_conversation(self):
        assert ConsolePlayer().get_messages() == []


class TestPrompts:
    """Test cases for prompt rendering."""

    def test_player_prompt(self):
        prompt = build_player_prompt(
            start_word="HEART",
            end_word="SPACE",
            turn_number=3,
            round_number=2,
            remaining_time=21.5,
            score=505,
            streak=1,
            level=1,
            rounds_remaining=9,
            tried_words=["GHOST"],
        )
        assert "## Turn 3" in prompt
        assert "### Round 2" in prompt
        assert "START: HEART" in prompt
        assert "END: SPACE" in prompt
        assert "Time left: 21.5s" in prompt
        assert "Already rejected: GHOST" in prompt
        assert "Rounds remaining: 9" in prompt
        assert "Feedback" not in prompt

    def test_bonus_prompt(self):
        prompt = build_player_prompt(
            start_word="TEARS", end_word="BEACH", turn_number=12, round_number=11,
            remaining_time=30, score=9000, streak=10, level=3, rounds_remaining=0,
            bonus_phase=True,
        )
        assert "(BONUS)" in prompt
        assert "SKIP is not allowed" in prompt
        assert "Rounds remaining" not in prompt

    def test_feedback(self):
        feedback = format_feedback(
            last_word="GHOST",
            last_message="'GHOST' shares only 1 letter(s) with SPACE (need 2)",
            last_outcome="timed_out",
        )
        assert "Your guess GHOST" in feedback
        assert "Time ran out" in feedback

    def test_no_feedback(self):
        assert format_feedback() == ""
