"""
Endpoint word selection.

Words are drawn from the difficulty tiers in proportions that harden as the
round number grows, filtered against recently used words, ranked by how much
new material they bring, then picked with a little randomness among the top
few so the same "best" word does not win every time.
"""

import logging
import math
import random
from typing import Dict, Iterable, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .corpus import WORD_CORPUS, FALLBACK_WORDS
from .models import Puzzle


logger = logging.getLogger(__name__)

UNCOMMON_LETTERS = frozenset("QXZJKVWY")
VOWELS = frozenset("AEIOU")

NEW_LETTER_BONUS = 10
NEW_PATTERN_BONUS = 15
UNCOMMON_LETTER_BONUS = 8
IDEAL_VOWELS = 2
TOP_PICK_WINDOW = 5

# (last round number, easy / medium / hard proportions)
DIFFICULTY_SCHEDULE: List[Tuple[Optional[int], Dict[str, float]]] = [
    (3, {"easy": 0.6, "medium": 0.3, "hard": 0.1}),
    (7, {"easy": 0.3, "medium": 0.5, "hard": 0.2}),
    (None, {"easy": 0.2, "medium": 0.4, "hard": 0.4}),
]


def difficulty_mix(round_number: int) -> Dict[str, float]:
    """Tier proportions for a 1-based round number."""
    for last_round, mix in DIFFICULTY_SCHEDULE:
        if last_round is None or round_number <= last_round:
            return dict(mix)
    raise ValueError("Difficulty schedule has no open-ended bucket")


def score_word(word: str, used_letters: Set[str], used_patterns: Set[str]) -> int:
    """
    Heuristic desirability of a word given what has already been played.

    Rewards letters not seen before, unseen opening/ending letter pairs,
    uncommon letters, and a balanced vowel count.
    """
    score = len(set(word) - used_letters) * NEW_LETTER_BONUS

    if word[:2] not in used_patterns:
        score += NEW_PATTERN_BONUS
    if word[-2:] not in used_patterns:
        score += NEW_PATTERN_BONUS

    score += sum(1 for letter in word if letter in UNCOMMON_LETTERS) * UNCOMMON_LETTER_BONUS

    vowels = sum(1 for letter in word if letter in VOWELS)
    score += 5 - abs(vowels - IDEAL_VOWELS) * 2
    return score


class WordSelector(BaseModel):
    """
    Picks endpoint words from the corpus.

    Deterministic for a fixed seed; uses fresh randomness when seed is None.

    Attributes:
        corpus: Category name -> word list
        fallback_words: Used when the corpus runs short
        seed: Optional random seed for reproducibility
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    corpus: Dict[str, List[str]] = Field(default_factory=lambda: {k: list(v) for k, v in WORD_CORPUS.items()})
    fallback_words: List[str] = Field(default_factory=lambda: list(FALLBACK_WORDS))
    seed: Optional[int] = None
    _rng: random.Random = None

    def model_post_init(self, __context) -> None:
        """Initialize the random generator after model creation."""
        self._rng = random.Random(self.seed)

    def _candidate_pool(self, count: int, round_number: int) -> List[str]:
        candidates: List[str] = []
        for tier, ratio in difficulty_mix(round_number).items():
            words = list(self.corpus.get(tier, []))
            self._rng.shuffle(words)
            candidates.extend(words[:math.ceil(count * ratio * 3)])

        # Occasional letter-mix variety
        if self._rng.random() < 0.3:
            candidates.extend(self._sample("vowel_heavy", 2))
        if self._rng.random() < 0.2:
            candidates.extend(self._sample("consonant_heavy", 2))
        return candidates

    def _sample(self, category: str, k: int) -> List[str]:
        words = self.corpus.get(category, [])
        return self._rng.sample(words, min(k, len(words)))

    def select_words(
        self,
        count: int = 2,
        round_number: int = 1,
        previous_words: Optional[Iterable[str]] = None,
    ) -> List[str]:
        """
        Select `count` distinct words, avoiding `previous_words`.

        Args:
            count: Number of words to return
            round_number: 1-based round number driving the difficulty mix
            previous_words: Recently used words to avoid and diversify from

        Returns:
            Exactly `count` uppercase words

        Raises:
            ValueError: If the corpus and fallback list are both empty
        """
        previous = [w.upper() for w in (previous_words or [])]
        excluded = set(previous)

        used_letters: Set[str] = set()
        used_patterns: Set[str] = set()
        for word in previous:
            used_letters.update(word)
            used_patterns.add(word[:2])
            used_patterns.add(word[-2:])

        scored: List[Tuple[str, int]] = []
        seen: Set[str] = set()
        for word in self._candidate_pool(count, round_number):
            word = word.upper()
            if word in excluded or word in seen:
                continue
            seen.add(word)
            scored.append((word, score_word(word, used_letters, used_patterns)))
        scored.sort(key=lambda item: item[1], reverse=True)

        selected: List[str] = []
        while len(selected) < count and scored:
            idx = self._rng.randrange(min(TOP_PICK_WINDOW, len(scored)))
            selected.append(scored.pop(idx)[0])

        if len(selected) < count:
            selected.extend(self._top_up(count - len(selected), excluded | set(selected)))

        logger.debug("Round %d selection: %s (avoiding %s)", round_number, selected, previous)
        return selected

    def _top_up(self, needed: int, excluded: Set[str]) -> List[str]:
        """Fill a short selection from the fallback list, then the whole corpus."""
        extra: List[str] = []
        for source in (self.fallback_words, self._all_words()):
            pool = [w.upper() for w in source if w.upper() not in excluded]
            self._rng.shuffle(pool)
            for word in pool:
                if len(extra) == needed:
                    return extra
                if word not in extra:
                    extra.append(word)

        if len(extra) < needed:
            # Everything has been used recently; repeats beat an empty puzzle
            pool = [w.upper() for w in self.fallback_words] or self._all_words()
            if not pool:
                raise ValueError("Word corpus is empty")
            while len(extra) < needed:
                extra.append(self._rng.choice(pool))
        return extra

    def _all_words(self) -> List[str]:
        return list(dict.fromkeys(w for words in self.corpus.values() for w in words))

    def generate_puzzle(
        self,
        round_number: int = 1,
        previous_words: Optional[Iterable[str]] = None,
    ) -> Puzzle:
        """Draw a fresh start/end pair."""
        start, end = self.select_words(2, round_number, previous_words)
        return Puzzle(start_word=start, end_word=end)

    def next_endpoint(
        self,
        round_number: int,
        previous_words: Optional[Iterable[str]] = None,
    ) -> str:
        """Draw a single new endpoint for the next link of the chain."""
        return self.select_words(1, round_number, previous_words)[0]
