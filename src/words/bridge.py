"""
Bridge-word validation.

A bridge word is a five-letter word that shares at least MIN_SHARED_LETTERS
letters with both endpoint words. Checks run in order and stop at the first
failure:

1. Length (WORD_LENGTH letters)
2. Distinctness from both endpoints
3. Dictionary membership (the only asynchronous step)
4. Letter overlap with each endpoint
"""

import asyncio
import logging
import re
from collections import Counter
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import ValidationResult


logger = logging.getLogger(__name__)

WORD_LENGTH = 5
MIN_SHARED_LETTERS = 2

_LETTERS = re.compile(r"^[A-Z]+$")


def normalize(word: str) -> str:
    """Uppercase a guess and strip surrounding whitespace."""
    return word.strip().upper()


def shared_letters(word1: str, word2: str) -> int:
    """
    Count letters shared by two words, treating each word as a multiset.

    "HELLO" and "LLAMA" share two letters (both Ls); "SPEED" and "EERIE" share two (both Es).
    """
    counts1 = Counter(normalize(word1))
    counts2 = Counter(normalize(word2))
    return sum((counts1 & counts2).values())


def check_structure(
    candidate: str,
    start_word: str,
    end_word: str,
    word_length: int = WORD_LENGTH,
) -> Optional[ValidationResult]:
    """Run the length and distinctness checks. Returns a rejection, or None if both pass."""
    word = normalize(candidate)

    if len(word) != word_length:
        return ValidationResult(
            valid=False,
            candidate=word,
            reason="wrong_length",
            message=f"'{word}' must be exactly {word_length} letters (got {len(word)})",
        )

    if word in (normalize(start_word), normalize(end_word)):
        return ValidationResult(
            valid=False,
            candidate=word,
            reason="equals_endpoint",
            message=f"'{word}' is one of the endpoint words",
        )

    return None


def check_overlap(
    candidate: str,
    start_word: str,
    end_word: str,
    min_shared: int = MIN_SHARED_LETTERS,
) -> ValidationResult:
    """Check that the candidate shares enough letters with both endpoints."""
    word = normalize(candidate)
    with_start = shared_letters(word, start_word)
    with_end = shared_letters(word, end_word)

    if with_start >= min_shared and with_end >= min_shared:
        return ValidationResult(
            valid=True,
            candidate=word,
            message=f"'{word}' bridges {normalize(start_word)} and {normalize(end_word)}",
            shared_with_start=with_start,
            shared_with_end=with_end,
        )

    weak = normalize(start_word) if with_start < min_shared else normalize(end_word)
    shared = with_start if with_start < min_shared else with_end
    return ValidationResult(
        valid=False,
        candidate=word,
        reason="insufficient_overlap",
        message=f"'{word}' shares only {shared} letter(s) with {weak} (need {min_shared})",
        shared_with_start=with_start,
        shared_with_end=with_end,
    )


class BridgeValidator(BaseModel):
    """
    Validates bridge words against a pair of endpoints.

    Attributes:
        dictionary: Any object with ``async is_valid_word(word) -> bool``
        min_shared_letters: Overlap required with each endpoint
        word_length: Required candidate length
        lookup_timeout: Seconds a dictionary lookup may take before the word
            counts as not found
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    dictionary: Any
    min_shared_letters: int = Field(default=MIN_SHARED_LETTERS, ge=1)
    word_length: int = Field(default=WORD_LENGTH, ge=1)
    lookup_timeout: float = Field(default=3.0, gt=0)

    async def validate(self, candidate: str, start_word: str, end_word: str) -> ValidationResult:
        """
        Validate `candidate` as a bridge between `start_word` and `end_word`.

        Never raises for a bad guess; every rejection is returned as a
        ValidationResult with a reason.
        """
        rejection = check_structure(candidate, start_word, end_word, self.word_length)
        if rejection is not None:
            logger.debug("Rejected %r: %s", rejection.candidate, rejection.reason)
            return rejection

        word = normalize(candidate)
        # Only plain letters can become the next endpoint
        if not _LETTERS.match(word) or not await self.lookup(word):
            logger.debug("Rejected %r: not_a_word", word)
            return ValidationResult(
                valid=False,
                candidate=word,
                reason="not_a_word",
                message=f"'{word}' is not a valid dictionary word",
            )

        result = check_overlap(word, start_word, end_word, self.min_shared_letters)
        logger.debug(
            "Overlap %r: %d with %s, %d with %s",
            word, result.shared_with_start, start_word, result.shared_with_end, end_word,
        )
        return result

    async def lookup(self, word: str) -> bool:
        """
        Ask the dictionary about `word`, bounded by `lookup_timeout`.

        A backend that raises or does not answer in time counts as "not a
        word". Cancellation still propagates to the caller.
        """
        try:
            found = await asyncio.wait_for(
                self.dictionary.is_valid_word(word), timeout=self.lookup_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Dictionary lookup for %r timed out after %.1fs", word, self.lookup_timeout)
            return False
        except Exception as e:
            logger.warning("Dictionary lookup for %r failed: %s", word, e)
            return False
        return bool(found)
