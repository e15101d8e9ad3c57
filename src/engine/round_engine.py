"""
The round engine: a single state machine that runs a ChainLink game.

Phases::

    not_started -> round_active <-> round_resolving
                        |
                        v (final regular round won)
                   bonus_active <-> bonus_resolving
                        |
                        v
                    game_over

Each Round commits exactly one outcome. A submission freezes the clock
before its (asynchronous) dictionary lookup starts, and the timer callback
carries the round index it was armed for, so a late expiry or a submission
stamped for an earlier round is discarded instead of being applied twice.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .events import EventBus
from .models import Attempt, GameConfig, GameEvent, Outcome, Phase, Round, Session
from .scoring import score, timer_duration
from .timer import CountdownTimer
from ..words.bridge import BridgeValidator, normalize
from ..words.dictionary import DictionaryClient, StaticDictionary
from ..words.models import Puzzle
from ..words.selector import WordSelector


logger = logging.getLogger(__name__)

ACTIVE_PHASES = ("round_active", "bonus_active")
RESOLVING_PHASES = ("round_resolving", "bonus_resolving")


class RoundEngine(BaseModel):
    """
    Sequences rounds, races submissions against the clock, chains endpoints,
    scores solves and decides when the game enters bonus play or ends.

    Attributes:
        config: Game rules
        validator: Bridge-word validator (owns the dictionary)
        selector: Endpoint word selector
        timer: Round countdown
        events: Bus for semantic events
        synchronized: Take next endpoints from queue_endpoint() (multiplayer)
        phase: Current state-machine phase
        session: Totals for the current play-through
        current_round: The round being played, None before start
        history: Every round of the current session, in order
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    config: GameConfig = Field(default_factory=GameConfig)
    validator: BridgeValidator
    selector: WordSelector = Field(default_factory=WordSelector)
    timer: CountdownTimer = Field(default_factory=CountdownTimer)
    events: EventBus = Field(default_factory=EventBus)
    synchronized: bool = False
    phase: Phase = "not_started"
    session: Session = Field(default_factory=Session)
    current_round: Optional[Round] = None
    history: List[Round] = Field(default_factory=list)
    _external_endpoints: Dict[int, str] = None

    def model_post_init(self, __context) -> None:
        """Initialize the external endpoint queue."""
        self._external_endpoints = {}

    @classmethod
    def create(
        cls,
        config: Optional[GameConfig] = None,
        dictionary: Optional[Any] = None,
        auto_tick: bool = True,
        synchronized: bool = False,
        events: Optional[EventBus] = None,
        **config_kwargs: Any
    ) -> "RoundEngine":
        """
        Factory method to create an engine with its collaborators wired up.

        Args:
            config: Optional GameConfig instance
            dictionary: Lookup backend; defaults to the HTTP dictionary, or the
                corpus-backed one when config.offline is set
            auto_tick: Let the timer drive itself on the asyncio loop
            synchronized: Take endpoints from an external source
            events: Optional shared event bus
            **config_kwargs: Config parameters if config not provided

        Returns:
            A RoundEngine in the not_started phase
        """
        if config is None:
            config = GameConfig(**config_kwargs)

        if dictionary is None:
            if config.offline:
                dictionary = StaticDictionary.from_words()
            else:
                dictionary = DictionaryClient(
                    base_url=config.dictionary_url,
                    timeout=config.lookup_timeout,
                )

        return cls(
            config=config,
            validator=BridgeValidator(
                dictionary=dictionary,
                min_shared_letters=config.min_shared_letters,
                lookup_timeout=config.lookup_timeout,
            ),
            selector=WordSelector(seed=config.seed),
            timer=CountdownTimer(tick_interval=config.tick_interval, auto_tick=auto_tick),
            events=events or EventBus(),
            synchronized=synchronized,
        )

    @property
    def is_active(self) -> bool:
        """True while a round is waiting for input."""
        return self.phase in ACTIVE_PHASES

    @property
    def is_over(self) -> bool:
        return self.phase == "game_over"

    @property
    def remaining_time(self) -> float:
        return self.timer.remaining

    def start(self, puzzle: Optional[Puzzle] = None) -> Round:
        """
        Begin a new session.

        Args:
            puzzle: Opening puzzle; drawn from the selector when omitted

        Returns:
            The first round

        Raises:
            ValueError: If a game is already in progress
        """
        if self.phase not in ("not_started", "game_over"):
            raise ValueError(f"Cannot start: game already in progress ({self.phase})")

        self.timer.cancel()
        self.session = Session.fresh(self.config)
        self.history = []
        self.events.clear()
        self._external_endpoints = {}

        if puzzle is None:
            puzzle = self.selector.generate_puzzle(1, [])

        logger.info("Game started: %s", puzzle)
        self.phase = "round_active"
        return self._begin_round(0, puzzle)

    def end(self, reason: str = "Game ended") -> None:
        """Stop the game from outside (match over, turn limit, interrupt)."""
        if self.phase in ("not_started", "game_over"):
            return
        self._end_game(reason)

    def tick(self, dt: Optional[float] = None) -> None:
        """Advance the round clock by hand (when the timer is not self-driving)."""
        self.timer.tick(dt)

    async def submit(self, word: str, round_index: Optional[int] = None) -> Attempt:
        """
        Submit a bridge word for the current round.

        The clock is frozen before the dictionary lookup starts. Invalid
        guesses outside bonus play leave the round open and restart the clock
        from the frozen time.

        Args:
            word: The guess
            round_index: Round the guess was made against; defaults to the
                current round. A guess for any other round is discarded.

        Returns:
            The Attempt, with `discarded` set if it could not be applied
        """
        guess = normalize(word)
        current = self.current_round
        ticket = round_index if round_index is not None else (current.index if current else -1)

        if current is None or current.index != ticket:
            return self._discard(guess, ticket, "Round already finished")
        if self.phase not in ACTIVE_PHASES or not current.is_pending:
            return self._discard(guess, ticket, f"Not accepting guesses ({self.phase})")
        if not self.timer.is_running:
            return self._discard(guess, ticket, "Time already expired")

        remaining = self.timer.cancel()
        self.phase = "bonus_resolving" if self.session.bonus_phase_active else "round_resolving"

        try:
            validation = await self.validator.validate(
                guess, current.puzzle.start_word, current.puzzle.end_word
            )
        except asyncio.CancelledError:
            if self.current_round is current and self.phase in RESOLVING_PHASES:
                # Hand the round back to the player with the clock it had
                self.phase = "bonus_active" if self.session.bonus_phase_active else "round_active"
                self.timer.reset(remaining)
            raise

        if self.current_round is not current or self.phase not in RESOLVING_PHASES:
            # The game was ended while the lookup was in flight
            return self._discard(guess, ticket, "Game ended during validation")

        attempt = Attempt(
            word=guess,
            round_index=ticket,
            validation=validation,
            remaining_time=remaining,
        )
        current.attempts.append(attempt)
        session = self.session

        if validation.valid:
            session.solved += 1
            session.streak += 1
            session.best_streak = max(session.best_streak, session.streak)
            points = score(
                remaining,
                current.time_budget_seconds,
                session.streak,
                session.level,
                self.config.max_streak_multiplier,
            )
            session.score += points
            if session.solved % self.config.level_up_threshold == 0:
                session.level += 1
                logger.info("Level up: %d", session.level)

            attempt.accepted = True
            attempt.points = points
            current.points = points
            logger.info("Round %d solved with %s (+%d)", current.index, guess, points)
            self._resolve("solved", answer=guess, points=points)
            return attempt

        session.streak = 0
        logger.info("Round %d rejected %s: %s", current.index, guess, validation.reason)

        if session.bonus_phase_active:
            self._resolve("failed", reason=validation.reason)
            return attempt

        self.phase = "round_active"
        self._emit("puzzle_failed", word=guess, reason=validation.reason)
        self.timer.reset(remaining)
        return attempt

    def skip(self) -> bool:
        """
        Give up on the current round for a score penalty.

        Not allowed during bonus play or while a guess is being validated.

        Returns:
            True if the round was skipped
        """
        current = self.current_round
        if self.phase != "round_active" or current is None or not current.is_pending:
            return False
        if self.session.bonus_phase_active:
            return False

        self.timer.cancel()
        self.session.score = max(0, self.session.score + self.config.skip_penalty)
        self.session.streak = 0
        logger.info("Round %d skipped", current.index)
        self._resolve("skipped")
        return True

    def concede(self, word: Optional[str] = None) -> bool:
        """
        Close the current round because it was decided elsewhere (synchronized mode).

        Args:
            word: The opponent's winning word, which becomes the next start
                word; None when the round expired with no winner

        Returns:
            True if a pending round was closed
        """
        current = self.current_round
        if current is None or not current.is_pending or self.phase == "game_over":
            return False

        self.timer.cancel()
        self.session.streak = 0
        if word is None:
            logger.info("Round %d expired remotely", current.index)
            self._resolve("timed_out")
        else:
            logger.info("Round %d won by opponent with %s", current.index, word)
            self._resolve("failed", answer=normalize(word), reason="opponent_won")
        return True

    def reseat(self, puzzle: Puzzle) -> bool:
        """
        Replace the current round's puzzle and restart its clock (synchronized mode).

        Used when the authoritative puzzle differs from the one chained locally.

        Returns:
            True if the round was reseated
        """
        current = self.current_round
        if current is None or not current.is_pending or self.phase not in ACTIVE_PHASES:
            return False
        if current.puzzle == puzzle:
            return False

        logger.info("Round %d reseated: %s -> %s", current.index, current.puzzle, puzzle)
        current.puzzle = puzzle
        current.attempts = []
        self.session.remember(puzzle.start_word, puzzle.end_word)
        self.timer.start(current.time_budget_seconds, lambda: self._on_timer_expired(current.index))
        self._emit("round_started", puzzle=puzzle)
        return True

    def queue_endpoint(self, round_index: int, word: str) -> None:
        """
        Supply the end word for a future round (synchronized mode).

        Args:
            round_index: 0-based index of the round the word is for
            word: The end word
        """
        if self.current_round is not None and round_index <= self.current_round.index:
            logger.debug("Ignoring endpoint %s for past round %d", word, round_index)
            return
        self._external_endpoints[round_index] = normalize(word)

    def get_state(self) -> Dict:
        """
        Get the current engine state as a dictionary.

        Returns:
            Dictionary containing engine state
        """
        current = self.current_round
        return {
            "phase": self.phase,
            "round_index": current.index if current else None,
            "puzzle": current.puzzle.model_dump() if current else None,
            "remaining_time": self.timer.remaining,
            "time_budget": current.time_budget_seconds if current else None,
            "session": self.session.summary(),
        }

    def _begin_round(self, index: int, puzzle: Puzzle) -> Round:
        budget = timer_duration(self.session.level, self.config.base_time, self.config.min_time)
        current = Round(index=index, puzzle=puzzle, time_budget_seconds=budget)
        self.current_round = current
        self.history.append(current)
        self.session.remember(puzzle.start_word, puzzle.end_word)

        self.timer.start(budget, lambda: self._on_timer_expired(index))
        self._emit("round_started", puzzle=puzzle)
        return current

    def _on_timer_expired(self, round_index: int) -> None:
        current = self.current_round
        if (
            current is None
            or current.index != round_index
            or not current.is_pending
            or self.phase not in ACTIVE_PHASES
        ):
            logger.debug("Ignoring stale expiry for round %d", round_index)
            return

        logger.info("Round %d timed out", round_index)
        self.session.streak = 0
        self._resolve("timed_out")

    def _resolve(
        self,
        outcome: Outcome,
        answer: Optional[str] = None,
        points: int = 0,
        reason: Optional[str] = None,
    ) -> None:
        """Commit the current round's outcome, then advance or end the game."""
        current = self.current_round
        current.outcome = outcome
        current.answer = answer
        self.timer.cancel()

        session = self.session
        success = outcome == "solved"
        if success:
            self._emit("puzzle_solved", word=answer, points=points)
        else:
            self._emit("puzzle_failed", word=answer, reason=reason or outcome)

        if session.bonus_phase_active:
            if not success:
                self._end_game("Missed a bonus round")
                return
        elif session.rounds_remaining > 1:
            session.rounds_remaining -= 1
        elif session.rounds_remaining == 1:
            session.rounds_remaining = 0
            if not success:
                self._end_game("All rounds played")
                return
            session.bonus_phase_active = True
            logger.info("Final round won: entering bonus rounds")
            self._emit("bonus_started")
        else:
            self._end_game("No rounds remaining")
            return

        # The winning word carries forward; a missed round repeats its start word
        next_start = answer or current.puzzle.start_word
        next_end = self._next_endpoint(current.index + 1, next_start)
        self.phase = "bonus_active" if session.bonus_phase_active else "round_active"
        self._begin_round(current.index + 1, Puzzle(start_word=next_start, end_word=next_end))

    def _next_endpoint(self, round_index: int, start_word: str) -> str:
        if self.synchronized:
            word = self._external_endpoints.pop(round_index, None)
            if word and word != start_word:
                return word
            logger.warning("No usable external endpoint for round %d; drawing locally", round_index)

        previous = list(self.session.recent_words)
        if start_word not in previous:
            previous.append(start_word)
        return self.selector.next_endpoint(round_index + 1, previous)

    def _end_game(self, reason: str) -> None:
        self.timer.cancel()
        self.session.terminal = True
        self.session.end_reason = reason
        self.phase = "game_over"
        logger.info("Game over: %s (score %d)", reason, self.session.score)
        self._emit("game_over", reason=reason)

    def _discard(self, word: str, round_index: int, reason: str) -> Attempt:
        logger.debug("Discarded %s for round %d: %s", word, round_index, reason)
        return Attempt(word=word, round_index=round_index, discarded=True, error=reason)

    def _emit(self, event_type: str, **fields: Any) -> None:
        current = self.current_round
        session = self.session
        self.events.emit(GameEvent(
            type=event_type,
            round_index=current.index if current else None,
            score=session.score,
            streak=session.streak,
            best_streak=session.best_streak,
            level=session.level,
            solved=session.solved,
            **fields,
        ))
