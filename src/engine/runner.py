import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .models import GameResult, RunConfig, TurnResult
from .player import BridgePlayer, ConsolePlayer
from .prompts import build_player_prompt
from .round_engine import RoundEngine
from .scoring import speed_label
from ..words.models import Puzzle


logger = logging.getLogger(__name__)

Player = Union[BridgePlayer, ConsolePlayer]


class GameRunner(BaseModel):
    """
    Drives one RoundEngine with one player until the game ends.

    Each turn asks the player for a move on the current puzzle, applies it
    to the engine and records a TurnResult.

    Attributes:
        engine: The round engine
        player: The player proposing words
        config: Run configuration
        turn_history: History of all turns
        current_turn: Number of turns taken
        is_complete: Whether the run has finished
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    engine: RoundEngine
    player: Player
    config: RunConfig = Field(default_factory=RunConfig)
    turn_history: List[TurnResult] = Field(default_factory=list)
    current_turn: int = 0
    is_complete: bool = False
    end_reason: str = ""
    started_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        config: Optional[RunConfig] = None,
        player: Optional[Player] = None,
        dictionary: Optional[Any] = None,
        auto_tick: bool = True,
        **config_kwargs: Any
    ) -> "GameRunner":
        """
        Factory method to create a runner with its engine and player.

        Args:
            config: Optional RunConfig instance
            player: Player to use instead of the one described by config.player
            dictionary: Lookup backend passed to the engine
            auto_tick: Run the round clock on the event loop
            **config_kwargs: Config parameters if config not provided

        Returns:
            Configured GameRunner instance
        """
        if config is None:
            config = RunConfig(**config_kwargs)

        engine = RoundEngine.create(config=config.game, dictionary=dictionary, auto_tick=auto_tick)

        if player is None:
            player_config = config.player
            if player_config.kind == "console":
                player = ConsolePlayer(name=player_config.name or "You")
            else:
                llm_kwargs = {
                    "temperature": player_config.temperature,
                    "max_tokens": player_config.max_tokens,
                }
                # Extra keys (thinking params, api_base, ...) go straight to LiteLLM
                if player_config.__pydantic_extra__:
                    llm_kwargs.update(player_config.__pydantic_extra__)
                player = BridgePlayer.create(
                    model=player_config.model,
                    name=player_config.name,
                    **llm_kwargs
                )

        return cls(engine=engine, player=player, config=config)

    def setup(self, puzzle: Optional[Puzzle] = None) -> None:
        """
        Start a fresh game on the engine.

        Must run inside the event loop when the engine's timer drives itself.
        """
        self.engine.start(puzzle)
        self.started_at = datetime.now()
        self.current_turn = 0
        self.is_complete = False
        self.end_reason = ""
        self.turn_history = []

    def check_max_turns(self) -> bool:
        """End the game once the turn limit is reached."""
        if self.current_turn >= self.config.max_turns:
            logger.info("Turn limit reached after %d turns", self.current_turn)
            self.engine.end(f"Max turns ({self.config.max_turns}) reached")
            return True
        return False

    def _sync_completion(self) -> None:
        if self.engine.is_over:
            self.is_complete = True
            self.end_reason = self.engine.session.end_reason

    def record_turn(self, turn_result: TurnResult) -> None:
        self.turn_history.append(turn_result)
        self.current_turn += 1

    def _get_last_turn_feedback(self) -> Dict[str, Any]:
        """Feedback from the previous turn, and how its round ended if it was missed."""
        if not self.turn_history:
            return {}

        last = self.turn_history[-1]
        feedback: Dict[str, Any] = {"action_error": last.error}
        if last.validation and not last.validation.valid:
            feedback["last_word"] = last.validation.candidate
            feedback["last_message"] = last.validation.message

        current = self.engine.current_round
        if current is not None and last.round_index != current.index:
            previous = self.engine.history[last.round_index]
            if previous.outcome in ("timed_out", "skipped"):
                feedback["last_outcome"] = previous.outcome
        return feedback

    def build_prompt(self) -> str:
        current = self.engine.current_round
        session = self.engine.session
        tried = [
            a.word for a in current.attempts
            if a.validation is not None and not a.accepted
        ]
        return build_player_prompt(
            start_word=current.puzzle.start_word,
            end_word=current.puzzle.end_word,
            turn_number=self.current_turn + 1,
            round_number=current.index + 1,
            remaining_time=self.engine.remaining_time,
            score=session.score,
            streak=session.streak,
            level=session.level,
            rounds_remaining=session.rounds_remaining,
            bonus_phase=session.bonus_phase_active,
            tried_words=tried,
            **self._get_last_turn_feedback()
        )

    async def step(self) -> TurnResult:
        """
        Execute a single turn: prompt the player and apply its move.

        Returns:
            TurnResult containing the turn outcome
        """
        if self.engine.phase == "not_started":
            raise ValueError("Game not started. Call setup() first.")
        if self.is_complete or self.engine.is_over:
            raise ValueError("Game is already complete")

        current = self.engine.current_round
        turn_number = self.current_turn + 1
        guess = await self.player.propose(self.build_prompt())

        turn_result = TurnResult(
            turn_number=turn_number,
            round_index=current.index,
            puzzle=current.puzzle,
            action=guess.action,
            word=guess.word,
            thinking=guess.thinking,
            raw_response=guess.raw_response,
            error=guess.error,
            prompt_tokens=guess.prompt_tokens,
            completion_tokens=guess.completion_tokens,
            total_tokens=guess.total_tokens,
        )

        if guess.action == "GUESS" and guess.word:
            attempt = await self.engine.submit(guess.word, current.index)
            turn_result.validation = attempt.validation
            turn_result.accepted = attempt.accepted
            turn_result.discarded = attempt.discarded
            turn_result.points = attempt.points
            if attempt.accepted:
                turn_result.speed = speed_label(attempt.remaining_time, current.time_budget_seconds)
            if attempt.error:
                turn_result.error = attempt.error
        elif guess.action == "SKIP":
            if not self.engine.skip():
                turn_result.error = "SKIP not allowed now"
        elif guess.error is None:
            turn_result.error = "No word given"

        turn_result.outcome = current.outcome
        turn_result.score_after = self.engine.session.score
        turn_result.streak_after = self.engine.session.streak
        turn_result.phase_after = self.engine.phase

        self.record_turn(turn_result)
        self.check_max_turns()
        self._sync_completion()
        return turn_result

    async def run(
        self,
        on_turn: Optional[Callable[[TurnResult], None]] = None,
        verbose: bool = False,
    ) -> GameResult:
        """
        Run the game until it ends.

        Args:
            on_turn: Optional callback called after each turn
            verbose: If True, print progress to stdout

        Returns:
            GameResult containing the full run data
        """
        if self.engine.phase == "not_started" or self.started_at is None:
            self.setup()

        if verbose:
            print(f"Starting ChainLink with {self.player.name}")
            print(f"Rounds: {self.config.game.total_rounds}, max turns: {self.config.max_turns}")
            print("-" * 40)

        while not self.is_complete:
            current = self.engine.current_round

            if verbose:
                session = self.engine.session
                label = "BONUS round" if session.bonus_phase_active else "Round"
                print(f"\n{'='*60}")
                print(f"Turn {self.current_turn + 1}: {label} {current.index + 1}")
                print(f"{current.puzzle.start_word} -> ????? -> {current.puzzle.end_word}")
                print(f"Time: {self.engine.remaining_time:.1f}s  Score: {session.score}  Streak: {session.streak}")
                print("-" * 60)
                print("Waiting for player...", end=" ", flush=True)

            turn_result = await self.step()

            if verbose:
                print("done.\n")
                if turn_result.thinking:
                    print("Game Plan:")
                    print(turn_result.thinking)
                    print()

                action_str = f"Action: {turn_result.action}"
                if turn_result.word:
                    action_str += f" {turn_result.word}"
                print(action_str)

                if turn_result.accepted:
                    speed = f" {turn_result.speed}!" if turn_result.speed else ""
                    print(f"✓ Solved!{speed} +{turn_result.points} (score {turn_result.score_after})")
                elif turn_result.validation and not turn_result.validation.valid:
                    print(f"✗ {turn_result.validation.message}")
                if turn_result.error:
                    print(f"❌ ERROR: {turn_result.error}")
                if turn_result.outcome in ("timed_out", "skipped"):
                    print(f"Round {turn_result.round_index + 1} {turn_result.outcome.replace('_', ' ')}")

            if on_turn:
                on_turn(turn_result)

        if verbose:
            session = self.engine.session
            print("-" * 40)
            print(f"Game over: {self.end_reason}")
            print(f"Final score: {session.score}")
            print(f"Solved: {session.solved}  Best streak: {session.best_streak}  Level: {session.level}")

        return self.get_result()

    def get_result(self) -> GameResult:
        """
        Get the final game result.

        Returns:
            GameResult containing full run data
        """
        ended_at = datetime.now()
        duration = (ended_at - self.started_at).total_seconds() if self.started_at else 0.0
        session = self.engine.session

        total_prompt_tokens = sum(t.prompt_tokens or 0 for t in self.turn_history)
        total_completion_tokens = sum(t.completion_tokens or 0 for t in self.turn_history)
        total_tokens = sum(t.total_tokens or 0 for t in self.turn_history)

        return GameResult(
            config=self.config,
            player_name=self.player.name,
            final_score=session.score,
            best_streak=session.best_streak,
            solved=session.solved,
            level=session.level,
            reached_bonus=session.bonus_phase_active,
            total_turns=self.current_turn,
            end_reason=self.end_reason or session.end_reason,
            session=session.summary(),
            rounds=self.engine.history,
            turn_history=self.turn_history,
            events=self.engine.events.history,
            conversation_history=self.player.get_messages(),
            started_at=self.started_at.isoformat() if self.started_at else "",
            ended_at=ended_at.isoformat(),
            duration_seconds=duration,
            total_prompt_tokens=total_prompt_tokens,
            total_completion_tokens=total_completion_tokens,
            total_tokens=total_tokens,
        )

    def save_result(self, path: Union[str, Path]) -> None:
        """
        Save the game result to a JSON file.

        Args:
            path: Path to save the result file
        """
        result = self.get_result()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            json.dump(result.model_dump(), f, indent=2, default=str)
