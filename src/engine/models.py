"""
Pydantic models for the engine layer.

This module contains the data models (configurations, session state, results,
parsed responses) used throughout the engine layer. The logic classes
(RoundEngine, CountdownTimer, BridgePlayer, GameRunner, MatchRelay) live in
their own files.
"""

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..words.models import Puzzle, ValidationResult
from ..words.dictionary import DEFAULT_DICTIONARY_URL


# Type aliases
Role = Literal["system", "user", "assistant"]
Phase = Literal[
    "not_started",
    "round_active",
    "round_resolving",
    "bonus_active",
    "bonus_resolving",
    "game_over",
]
Outcome = Literal["solved", "timed_out", "skipped", "failed"]
GuessAction = Literal["GUESS", "SKIP", "NONE"]
EventType = Literal[
    "round_started",
    "puzzle_solved",
    "puzzle_failed",
    "bonus_started",
    "game_over",
]
PlayerKind = Literal["llm", "console"]


class Message(BaseModel):
    """Represents a single message in the conversation."""
    role: Role
    content: str


class GameConfig(BaseModel):
    """Tunable rules of a game."""
    total_rounds: int = Field(default=10, ge=1)
    min_shared_letters: int = Field(default=2, ge=1)
    max_streak_multiplier: int = Field(default=10, ge=1)
    level_up_threshold: int = Field(default=5, ge=1)
    skip_penalty: int = -50
    base_time: float = Field(default=30.0, gt=0)
    min_time: float = Field(default=15.0, gt=0)
    tick_interval: float = Field(default=0.1, gt=0)
    lookup_timeout: float = Field(default=3.0, gt=0)
    recent_words_window: int = Field(default=8, ge=2)
    seed: Optional[int] = None
    dictionary_url: str = DEFAULT_DICTIONARY_URL
    offline: bool = False


class Session(BaseModel):
    """Game-wide totals for one play-through."""
    score: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    best_streak: int = Field(default=0, ge=0)
    solved: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    rounds_remaining: int = Field(default=10, ge=0)
    bonus_phase_active: bool = False
    terminal: bool = False
    end_reason: str = ""
    recent_words: List[str] = Field(default_factory=list)
    recent_window: int = Field(default=8, ge=1)

    @classmethod
    def fresh(cls, config: GameConfig) -> "Session":
        """Default session for a new game under `config`."""
        return cls(
            rounds_remaining=config.total_rounds,
            recent_window=config.recent_words_window,
        )

    def remember(self, *words: str) -> None:
        """Record words as recently used, oldest dropping off first."""
        for word in words:
            if word in self.recent_words:
                self.recent_words.remove(word)
            self.recent_words.append(word)
        del self.recent_words[:-self.recent_window]

    def summary(self) -> Dict[str, Any]:
        """Session totals as a plain dictionary."""
        return self.model_dump(exclude={"recent_words", "recent_window"})


class Attempt(BaseModel):
    """One submitted guess and what happened to it."""
    word: str
    round_index: int
    validation: Optional[ValidationResult] = None
    accepted: bool = False
    discarded: bool = False
    points: int = 0
    remaining_time: float = 0.0
    error: Optional[str] = None


class Round(BaseModel):
    """A single puzzle played against the clock."""
    index: int = Field(..., ge=0)
    puzzle: Puzzle
    time_budget_seconds: float
    outcome: Optional[Outcome] = None
    answer: Optional[str] = None
    points: int = 0
    attempts: List[Attempt] = Field(default_factory=list)

    @property
    def is_pending(self) -> bool:
        return self.outcome is None


class GameEvent(BaseModel):
    """Semantic event emitted by the engine for outside subscribers."""
    type: EventType
    round_index: Optional[int] = None
    word: Optional[str] = None
    reason: Optional[str] = None
    points: int = 0
    score: int = 0
    streak: int = 0
    best_streak: int = 0
    level: int = 1
    solved: int = 0
    puzzle: Optional[Puzzle] = None


class ParsedResponse(BaseModel):
    """Parsed components from an LLM response."""
    thinking: Optional[str] = None
    action: GuessAction = "NONE"
    word: Optional[str] = None
    raw_response: str = ""


class Guess(BaseModel):
    """What a player decided to do with the current puzzle."""
    action: GuessAction = "NONE"
    word: Optional[str] = None
    thinking: Optional[str] = None
    raw_response: str = ""
    error: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class TurnResult(BaseModel):
    """Result of a single player turn."""
    turn_number: int
    round_index: int
    puzzle: Puzzle
    action: GuessAction
    word: Optional[str] = None
    validation: Optional[ValidationResult] = None
    accepted: bool = False
    discarded: bool = False
    points: int = 0
    speed: Optional[str] = None
    outcome: Optional[Outcome] = None
    thinking: Optional[str] = None
    raw_response: str = ""
    error: Optional[str] = None
    score_after: int = 0
    streak_after: int = 0
    phase_after: Phase = "round_active"
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class PlayerConfig(BaseModel):
    """Configuration for the player."""
    model_config = ConfigDict(extra='allow')

    kind: PlayerKind = "llm"
    model: str = "gpt-4o"
    name: Optional[str] = None
    temperature: float = 1.0
    max_tokens: Optional[int] = None
    # Additional kwargs are allowed and passed to LiteLLM


class RunConfig(BaseModel):
    """Configuration for a complete run."""
    game: GameConfig = Field(default_factory=GameConfig)
    player: PlayerConfig = Field(default_factory=PlayerConfig)
    max_turns: int = Field(default=100, ge=1)


class GameResult(BaseModel):
    """Result of a complete game."""
    config: RunConfig
    player_name: str = ""
    final_score: int = 0
    best_streak: int = 0
    solved: int = 0
    level: int = 1
    reached_bonus: bool = False
    total_turns: int = 0
    end_reason: str = ""
    session: Dict[str, Any] = Field(default_factory=dict)
    rounds: List[Round] = Field(default_factory=list)
    turn_history: List[TurnResult] = Field(default_factory=list)
    events: List[GameEvent] = Field(default_factory=list)
    conversation_history: List[Dict[str, str]] = Field(default_factory=list)
    started_at: str = ""
    ended_at: str = ""
    duration_seconds: float = 0.0
    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    total_tokens: int = 0
