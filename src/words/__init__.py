"""Word handling for ChainLink: corpus, selection, dictionary and bridge validation."""

from .models import Puzzle, ValidationResult, ValidationReason, REASON_CATEGORY
from .bridge import (
    BridgeValidator,
    check_structure,
    check_overlap,
    shared_letters,
    normalize,
    WORD_LENGTH,
    MIN_SHARED_LETTERS,
)
from .dictionary import DictionaryClient, StaticDictionary, DEFAULT_DICTIONARY_URL
from .selector import WordSelector, difficulty_mix, score_word
from .corpus import WORD_CORPUS, FALLBACK_WORDS, all_words

__all__ = [
    # Models
    "Puzzle",
    "ValidationResult",
    "ValidationReason",
    "REASON_CATEGORY",
    # Validation
    "BridgeValidator",
    "check_structure",
    "check_overlap",
    "shared_letters",
    "normalize",
    "WORD_LENGTH",
    "MIN_SHARED_LETTERS",
    # Dictionary
    "DictionaryClient",
    "StaticDictionary",
    "DEFAULT_DICTIONARY_URL",
    # Selection
    "WordSelector",
    "difficulty_mix",
    "score_word",
    # Corpus
    "WORD_CORPUS",
    "FALLBACK_WORDS",
    "all_words",
]
