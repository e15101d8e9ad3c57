"""Game engine for ChainLink: rounds, timing, scoring, players and matches."""

from .models import (
    Message,
    Role,
    Phase,
    Outcome,
    GuessAction,
    EventType,
    GameConfig,
    Session,
    Attempt,
    Round,
    GameEvent,
    ParsedResponse,
    Guess,
    TurnResult,
    PlayerConfig,
    RunConfig,
    GameResult,
)
from .scoring import score, speed_bonus, speed_label, timer_duration
from .timer import CountdownTimer
from .events import EventBus
from .round_engine import RoundEngine
from .llm_client import LLMClient
from .player import BridgePlayer, ConsolePlayer
from .runner import GameRunner
from .match import MatchRelay, MatchClient, MatchMessage, Match, MAX_ROUNDS

__all__ = [
    "Message",
    "Role",
    "Phase",
    "Outcome",
    "GuessAction",
    "EventType",
    "GameConfig",
    "Session",
    "Attempt",
    "Round",
    "GameEvent",
    "ParsedResponse",
    "Guess",
    "TurnResult",
    "PlayerConfig",
    "RunConfig",
    "GameResult",
    "score",
    "speed_bonus",
    "speed_label",
    "timer_duration",
    "CountdownTimer",
    "EventBus",
    "RoundEngine",
    "LLMClient",
    "BridgePlayer",
    "ConsolePlayer",
    "GameRunner",
    "MatchRelay",
    "MatchClient",
    "MatchMessage",
    "Match",
    "MAX_ROUNDS",
]
