"""
Dictionary lookups for bridge-word validation.

Two interchangeable backends expose ``async is_valid_word(word) -> bool``:

- ``DictionaryClient`` asks the public dictionaryapi.dev service. A single,
  time-bounded request is made per word; any transport failure counts as
  "not a word" so a flaky network never accepts a guess.
- ``StaticDictionary`` checks membership in a fixed word set (the puzzle
  corpus by default) for offline play and tests.
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional, Set

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .corpus import all_words


logger = logging.getLogger(__name__)

DEFAULT_DICTIONARY_URL = "https://api.dictionaryapi.dev/api/v2/entries/en"


class DictionaryClient(BaseModel):
    """
    Word lookups against a word-definition HTTP service.

    Definitive answers (HTTP 200 or 404) are cached by word for the lifetime
    of the client. Transport errors and timeouts are not cached, so a later
    guess of the same word gets a fresh attempt.

    Attributes:
        base_url: Endpoint prefix; the word is appended as the last path segment
        timeout: Upper bound in seconds for a single lookup
        cache: Word -> validity answers already received
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    base_url: str = DEFAULT_DICTIONARY_URL
    timeout: float = Field(default=3.0, gt=0)
    cache: Dict[str, bool] = Field(default_factory=dict)
    transport: Optional[httpx.AsyncBaseTransport] = None

    async def is_valid_word(self, word: str) -> bool:
        """
        Check whether `word` is a real word.

        Args:
            word: The word to look up (case-insensitive)

        Returns:
            True if the service knows the word, False otherwise or on failure
        """
        key = word.strip().upper()
        if key in self.cache:
            return self.cache[key]

        try:
            found = await asyncio.wait_for(self._fetch(key), timeout=self.timeout)
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            logger.warning("Dictionary lookup failed for %r: %s", key, e)
            return False

        # Concurrent lookups of the same word keep the first answer
        return self.cache.setdefault(key, found)

    async def _fetch(self, word: str) -> bool:
        url = f"{self.base_url.rstrip('/')}/{word.lower()}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(url)

        if response.status_code == 200:
            logger.debug("Dictionary: %r is a word", word)
            return True
        if response.status_code == 404:
            logger.debug("Dictionary: %r not found", word)
            return False
        # Anything else (rate limit, server error) is a failed lookup
        raise httpx.HTTPStatusError(
            f"Unexpected status {response.status_code}",
            request=response.request,
            response=response,
        )


class StaticDictionary(BaseModel):
    """Word lookups against a fixed in-memory word set."""

    words: Set[str] = Field(default_factory=set)

    def model_post_init(self, __context) -> None:
        """Normalize words to uppercase."""
        self.words = {w.strip().upper() for w in self.words}

    @classmethod
    def from_words(cls, words: Optional[Iterable[str]] = None) -> "StaticDictionary":
        """
        Build a dictionary from `words`, defaulting to the puzzle corpus.

        Args:
            words: Optional iterable of words

        Returns:
            A StaticDictionary instance
        """
        return cls(words=set(words if words is not None else all_words()))

    def add(self, *words: str) -> None:
        """Add words to the dictionary."""
        self.words.update(w.strip().upper() for w in words)

    async def is_valid_word(self, word: str) -> bool:
        return word.strip().upper() in self.words
