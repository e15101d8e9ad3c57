"""
In-process multiplayer relay.

Players register with the relay, queue for a match and are paired two at a
time, first come first served. Both players race on the same chain: the
first reported solve of a round wins it, and its word becomes the next
round's start word. The relay is the authority on round numbers and
puzzles; it trusts each client's own validation of the winning word.

Every message is delivered to a per-player asyncio.Queue inbox.
"""

import asyncio
import itertools
import logging
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import Attempt, GameEvent, Round
from .round_engine import RoundEngine
from ..words.bridge import WORD_LENGTH, normalize
from ..words.models import Puzzle
from ..words.selector import WordSelector


logger = logging.getLogger(__name__)

MAX_ROUNDS = 5

MessageType = Literal[
    "match_found",
    "round_start",
    "round_won",
    "match_completed",
    "opponent_disconnected",
]


class MatchMessage(BaseModel):
    """A message from the relay to one player."""
    type: MessageType
    match_id: str
    round: Optional[int] = None
    start_word: Optional[str] = None
    end_word: Optional[str] = None
    word: Optional[str] = None
    winner: Optional[str] = None
    opponent: Optional[str] = None
    max_rounds: Optional[int] = None
    endpoints: List[str] = Field(default_factory=list)
    scores: Dict[str, int] = Field(default_factory=dict)


class Match(BaseModel):
    """Server-side state of one two-player match."""
    match_id: str
    players: List[str]
    max_rounds: int = MAX_ROUNDS
    current_round: int = 1
    start_word: str
    # End word for each round; endpoints[0] belongs to round 1
    endpoints: List[str]
    scores: Dict[str, int] = Field(default_factory=dict)
    status: Literal["active", "completed", "abandoned"] = "active"

    @property
    def end_word(self) -> str:
        return self.endpoints[self.current_round - 1]

    def opponent_of(self, player_id: str) -> str:
        return next(p for p in self.players if p != player_id)


class PlayerConnection(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    player_id: str
    name: str
    inbox: asyncio.Queue
    match_id: Optional[str] = None


class MatchRelay(BaseModel):
    """
    Matchmaking and round arbitration for two-player matches.

    Attributes:
        max_rounds: Rounds per match
        selector: Draws match puzzles and endpoints
        players: Registered players by id
        queue: Player ids waiting for an opponent, oldest first
        matches: Matches by id (completed ones are kept for inspection)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    max_rounds: int = Field(default=MAX_ROUNDS, ge=1)
    selector: WordSelector = Field(default_factory=WordSelector)
    players: Dict[str, PlayerConnection] = Field(default_factory=dict)
    queue: List[str] = Field(default_factory=list)
    matches: Dict[str, Match] = Field(default_factory=dict)
    _ids: itertools.count = None

    def model_post_init(self, __context) -> None:
        self._ids = itertools.count(1)

    def register(self, player_id: str, name: Optional[str] = None) -> asyncio.Queue:
        """
        Register a player and return the inbox their messages arrive on.

        Raises:
            ValueError: If the id is already registered
        """
        if player_id in self.players:
            raise ValueError(f"Player {player_id} is already registered")

        inbox: asyncio.Queue = asyncio.Queue()
        self.players[player_id] = PlayerConnection(
            player_id=player_id,
            name=name or player_id,
            inbox=inbox,
        )
        logger.info("Player registered: %s", player_id)
        return inbox

    def find_match(self, player_id: str) -> Optional[Match]:
        """
        Join the matchmaking queue.

        Returns:
            The new Match if this player completed a pair, otherwise None

        Raises:
            ValueError: If the player is unknown, already queued or in a match
        """
        connection = self._connection(player_id)
        if player_id in self.queue:
            raise ValueError(f"Player {player_id} is already waiting for a match")
        if connection.match_id is not None:
            raise ValueError(f"Player {player_id} is already in match {connection.match_id}")

        self.queue.append(player_id)
        logger.debug("Queue size: %d", len(self.queue))
        if len(self.queue) < 2:
            return None

        first, second = self.queue.pop(0), self.queue.pop(0)
        return self._create_match(first, second)

    def _create_match(self, first: str, second: str) -> Match:
        puzzle = self.selector.generate_puzzle(1, [])
        endpoints = [puzzle.end_word]
        used = [puzzle.start_word, puzzle.end_word]
        for round_number in range(2, self.max_rounds + 1):
            word = self.selector.next_endpoint(round_number, used)
            endpoints.append(word)
            used.append(word)

        match = Match(
            match_id=f"match_{next(self._ids)}",
            players=[first, second],
            max_rounds=self.max_rounds,
            start_word=puzzle.start_word,
            endpoints=endpoints,
            scores={first: 0, second: 0},
        )
        self.matches[match.match_id] = match
        for player_id in match.players:
            self.players[player_id].match_id = match.match_id

        logger.info("Match %s created: %s vs %s (%s)", match.match_id, first, second, puzzle)
        for player_id in match.players:
            opponent = self.players[match.opponent_of(player_id)]
            self._send(player_id, MatchMessage(
                type="match_found",
                match_id=match.match_id,
                round=1,
                start_word=match.start_word,
                end_word=match.end_word,
                opponent=opponent.name,
                max_rounds=match.max_rounds,
                endpoints=list(endpoints),
                scores=dict(match.scores),
            ))
        return match

    def handle_move(self, player_id: str, word: str, round_number: int) -> bool:
        """
        Report that a player solved a round.

        Only the first report for the match's current round counts.

        Returns:
            True if the player won the round
        """
        match = self._active_match(player_id)
        if match is None:
            logger.debug("Move from %s outside an active match", player_id)
            return False
        if round_number != match.current_round:
            logger.debug("Late move from %s for round %d", player_id, round_number)
            return False

        word = normalize(word)
        if len(word) != WORD_LENGTH or not (word.isascii() and word.isalpha()):
            logger.warning("Malformed winning word from %s: %r", player_id, word)
            return False

        match.scores[player_id] += 1
        logger.info("Round %d of %s won by %s with %s", round_number, match.match_id, player_id, word)
        self._broadcast(match, MatchMessage(
            type="round_won",
            match_id=match.match_id,
            round=round_number,
            word=word,
            winner=player_id,
            scores=dict(match.scores),
        ))
        self._advance(match, start_word=word)
        return True

    def handle_timeout(self, player_id: str, round_number: int) -> bool:
        """
        Report that a player's clock ran out. The first report closes the
        round with no winner; the chain keeps its start word.

        Returns:
            True if the round was closed
        """
        match = self._active_match(player_id)
        if match is None or round_number != match.current_round:
            return False

        logger.info("Round %d of %s expired", round_number, match.match_id)
        self._advance(match, start_word=match.start_word)
        return True

    def disconnect(self, player_id: str) -> None:
        """Remove a player; an active opponent is told and the match is abandoned."""
        connection = self.players.pop(player_id, None)
        if connection is None:
            return
        if player_id in self.queue:
            self.queue.remove(player_id)

        match = self.matches.get(connection.match_id) if connection.match_id else None
        if match is not None and match.status == "active":
            match.status = "abandoned"
            opponent_id = match.opponent_of(player_id)
            logger.info("Player %s left match %s", player_id, match.match_id)
            self._send(opponent_id, MatchMessage(
                type="opponent_disconnected",
                match_id=match.match_id,
                scores=dict(match.scores),
            ))
            self._release(match)
        logger.info("Player disconnected: %s", player_id)

    def _advance(self, match: Match, start_word: str) -> None:
        if match.current_round >= match.max_rounds:
            match.status = "completed"
            logger.info("Match %s completed: %s", match.match_id, match.scores)
            self._broadcast(match, MatchMessage(
                type="match_completed",
                match_id=match.match_id,
                round=match.current_round,
                scores=dict(match.scores),
            ))
            self._release(match)
            return

        match.current_round += 1
        match.start_word = start_word
        if match.end_word == start_word:
            # The winning word collided with the pre-drawn endpoint
            match.endpoints[match.current_round - 1] = self.selector.next_endpoint(
                match.current_round, [start_word] + match.endpoints
            )

        self._broadcast(match, MatchMessage(
            type="round_start",
            match_id=match.match_id,
            round=match.current_round,
            start_word=match.start_word,
            end_word=match.end_word,
            scores=dict(match.scores),
        ))

    def _release(self, match: Match) -> None:
        for player_id in match.players:
            connection = self.players.get(player_id)
            if connection is not None and connection.match_id == match.match_id:
                connection.match_id = None

    def _connection(self, player_id: str) -> PlayerConnection:
        connection = self.players.get(player_id)
        if connection is None:
            raise ValueError(f"Unknown player: {player_id}")
        return connection

    def _active_match(self, player_id: str) -> Optional[Match]:
        connection = self.players.get(player_id)
        if connection is None or connection.match_id is None:
            return None
        match = self.matches.get(connection.match_id)
        if match is None or match.status != "active":
            return None
        return match

    def _send(self, player_id: str, message: MatchMessage) -> None:
        connection = self.players.get(player_id)
        if connection is not None:
            connection.inbox.put_nowait(message)

    def _broadcast(self, match: Match, message: MatchMessage) -> None:
        for player_id in match.players:
            self._send(player_id, message)


class MatchClient(BaseModel):
    """
    Binds a local RoundEngine (synchronized mode) to a relay match.

    The engine plays the shared puzzle with its own clock and validation.
    Local solves and timeouts are reported to the relay through engine
    events; relay messages concede rounds the opponent won and reseat the
    engine onto the relay's puzzle when the two disagree.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    relay: MatchRelay
    player_id: str
    engine: RoundEngine
    inbox: asyncio.Queue
    match_id: Optional[str] = None
    opponent: Optional[str] = None
    round_number: int = 0
    scores: Dict[str, int] = Field(default_factory=dict)
    completed: bool = False
    disconnected: bool = False
    _synced: Optional[Round] = None

    def model_post_init(self, __context) -> None:
        self.engine.events.subscribe(self._on_solved, "puzzle_solved")
        self.engine.events.subscribe(self._on_failed, "puzzle_failed")

    @classmethod
    def create(
        cls,
        relay: MatchRelay,
        player_id: str,
        name: Optional[str] = None,
        engine: Optional[RoundEngine] = None,
        **engine_kwargs
    ) -> "MatchClient":
        """
        Register with the relay and build a synchronized engine for the match.

        Args:
            relay: The relay to play through
            player_id: Unique player id
            name: Display name shown to the opponent
            engine: Engine to bind; created in synchronized mode when omitted
            **engine_kwargs: Passed to RoundEngine.create()
        """
        if engine is None:
            engine_kwargs.setdefault("total_rounds", relay.max_rounds)
            engine = RoundEngine.create(synchronized=True, **engine_kwargs)
        inbox = relay.register(player_id, name)
        return cls(relay=relay, player_id=player_id, engine=engine, inbox=inbox)

    @property
    def in_match(self) -> bool:
        return self.match_id is not None and not (self.completed or self.disconnected)

    def find_match(self) -> None:
        self.relay.find_match(self.player_id)

    async def submit(self, word: str) -> Attempt:
        """Submit a guess for the current round on the local engine."""
        return await self.engine.submit(word)

    def handle(self, message: MatchMessage) -> None:
        """Apply one relay message to the local engine."""
        logger.debug("%s received %s", self.player_id, message.type)
        if message.scores:
            self.scores = dict(message.scores)

        if message.type == "match_found":
            self.match_id = message.match_id
            self.opponent = message.opponent
            self.round_number = 1
            self.completed = False
            self.disconnected = False
            self.engine.start(Puzzle(start_word=message.start_word, end_word=message.end_word))
            self._synced = self.engine.current_round
            for index, word in enumerate(message.endpoints[1:], start=1):
                self.engine.queue_endpoint(index, word)

        elif message.type == "round_won":
            if message.winner != self.player_id and self._on_synced_round():
                self.engine.concede(message.word)

        elif message.type == "round_start":
            if self._on_synced_round():
                # The round closed remotely before the local clock ran out
                self.engine.concede()
            self.round_number = message.round
            self.engine.reseat(Puzzle(start_word=message.start_word, end_word=message.end_word))
            self._synced = self.engine.current_round

        elif message.type == "match_completed":
            self.completed = True
            self.engine.end("Match completed")

        elif message.type == "opponent_disconnected":
            self.disconnected = True
            self.engine.end("Opponent disconnected")

    def drain(self) -> int:
        """Apply every message already waiting in the inbox. Returns how many."""
        handled = 0
        while not self.inbox.empty():
            self.handle(self.inbox.get_nowait())
            handled += 1
        return handled

    async def listen(self) -> None:
        """Apply relay messages until the match ends."""
        while not (self.completed or self.disconnected):
            self.handle(await self.inbox.get())

    def leave(self) -> None:
        self.engine.end("Left match")
        self.relay.disconnect(self.player_id)

    def _on_synced_round(self) -> bool:
        # True while the engine is still playing the relay's current round
        current = self.engine.current_round
        return current is not None and current is self._synced and current.is_pending

    def _on_solved(self, event: GameEvent) -> None:
        if self.in_match:
            self.relay.handle_move(self.player_id, event.word, self.round_number)

    def _on_failed(self, event: GameEvent) -> None:
        if self.in_match and event.reason == "timed_out":
            self.relay.handle_timeout(self.player_id, self.round_number)
