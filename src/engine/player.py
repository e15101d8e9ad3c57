"""
Players that propose bridge words for the current puzzle.

Both player kinds take the rendered turn prompt and return a Guess; the
GameRunner decides what to do with it.
"""

import asyncio
import logging
import re
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict

from .llm_client import LLMClient
from .models import Guess, ParsedResponse
from .prompts import SYSTEM_PROMPT


logger = logging.getLogger(__name__)

SKIP_COMMANDS = ("SKIP", "!SKIP", "/SKIP")


class BridgePlayer(BaseModel):
    """
    LLM-backed player.

    Attributes:
        player_id: Unique identifier for the player
        name: Display name for the player
        llm_client: LLM client for generating guesses
        turn_count: Number of turns taken
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    player_id: str = "p1"
    name: str = ""
    llm_client: Optional[LLMClient] = None
    turn_count: int = 0

    def model_post_init(self, __context) -> None:
        """Set default name if not provided."""
        if not self.name:
            model = self.llm_client.model if self.llm_client else "llm"
            self.name = f"Player {self.player_id} ({model})"

    @classmethod
    def create(
        cls,
        model: str,
        player_id: str = "p1",
        name: Optional[str] = None,
        temperature: float = 1.0,
        max_tokens: Optional[int] = None,
        **llm_kwargs: Any
    ) -> "BridgePlayer":
        """
        Factory method to create a player with an LLM client.

        Args:
            model: LLM model name (e.g., "gpt-4o", "claude-3-opus")
            player_id: Unique identifier for the player
            name: Optional display name
            temperature: LLM temperature setting
            max_tokens: Optional max tokens for responses
            **llm_kwargs: Additional arguments for the LLM client

        Returns:
            A new BridgePlayer with a configured LLM client
        """
        llm_client = LLMClient(
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            **llm_kwargs
        )
        return cls(player_id=player_id, name=name or "", llm_client=llm_client)

    @staticmethod
    def parse_response(response: str) -> ParsedResponse:
        """
        Parse an LLM response for its plan and its move.

        Expected format:
        <game_plan>reasoning here</game_plan>
        <word>BRIDGE</word>   or   <action>SKIP</action>

        A <word> tag wins over a SKIP action when both are present.

        Args:
            response: Raw LLM response text

        Returns:
            ParsedResponse with extracted components
        """
        result = ParsedResponse(raw_response=response)

        plan_match = re.search(r'<game_plan>(.*?)</game_plan>', response, re.DOTALL)
        if plan_match:
            result.thinking = plan_match.group(1).strip()

        word_match = re.search(r'<word>(.*?)</word>', response, re.DOTALL)
        if word_match and word_match.group(1).strip():
            result.action = "GUESS"
            result.word = word_match.group(1).strip().upper()
            return result

        action_match = re.search(r'<action>(.*?)</action>', response, re.DOTALL)
        if action_match and action_match.group(1).strip().upper() == "SKIP":
            result.action = "SKIP"

        return result

    async def propose(self, prompt: str) -> Guess:
        """
        Ask the LLM for a move on the current puzzle.

        LLM failures are returned on the Guess rather than raised, so a flaky
        provider costs a turn instead of the game.

        Args:
            prompt: The rendered turn prompt

        Returns:
            Guess with the parsed move and token usage
        """
        if self.llm_client is None:
            raise ValueError(f"Player {self.player_id} has no LLM client")

        if not self.llm_client.messages:
            self.llm_client.add_message("system", SYSTEM_PROMPT)
        self.llm_client.add_message("user", prompt)
        self.turn_count += 1

        try:
            response = await self.llm_client.acompletion()
            raw_response = response.choices[0].message.content or ""
        except Exception as e:
            logger.warning("LLM call failed for %s: %s", self.name, e)
            return Guess(error=f"LLM error: {str(e)}")

        self.llm_client.add_message("assistant", raw_response)
        parsed = self.parse_response(raw_response)

        usage = getattr(response, "usage", None)
        return Guess(
            action=parsed.action,
            word=parsed.word,
            thinking=parsed.thinking,
            raw_response=raw_response,
            prompt_tokens=getattr(usage, "prompt_tokens", None) if usage else None,
            completion_tokens=getattr(usage, "completion_tokens", None) if usage else None,
            total_tokens=getattr(usage, "total_tokens", None) if usage else None,
        )

    def get_messages(self):
        return self.llm_client.get_messages() if self.llm_client else []

    def get_state(self) -> Dict:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "model": self.llm_client.model if self.llm_client else None,
            "turn_count": self.turn_count,
        }


class ConsolePlayer(BaseModel):
    """
    Human player reading guesses from the terminal.

    `SKIP` (or `!skip`) gives up on the round. Input is read in a worker
    thread so the round clock keeps running while the player types.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    player_id: str = "p1"
    name: str = "You"
    turn_count: int = 0
    reader: Callable[[str], str] = input
    writer: Callable[[str], None] = print

    @staticmethod
    def parse_input(line: str) -> Guess:
        text = line.strip()
        if not text:
            return Guess(raw_response=line)
        if text.upper() in SKIP_COMMANDS:
            return Guess(action="SKIP", raw_response=line)
        return Guess(action="GUESS", word=text.upper(), raw_response=line)

    async def propose(self, prompt: str) -> Guess:
        self.writer(prompt)
        self.turn_count += 1
        line = await asyncio.to_thread(self.reader, "Bridge word (or SKIP): ")
        return self.parse_input(line)

    def get_messages(self):
        return []

    def get_state(self) -> Dict:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "turn_count": self.turn_count,
        }
