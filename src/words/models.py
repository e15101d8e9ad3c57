"""Data models for bridge-word validation."""

from typing import Dict, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


ValidationReason = Literal[
    "wrong_length",
    "equals_endpoint",
    "not_a_word",
    "insufficient_overlap",
]

# Rejection categories
INPUT = "input"  # Malformed guess - wrong length or repeats an endpoint
LEXICAL = "lexical"  # Not in the dictionary, or the lookup failed
STRUCTURAL = "structural"  # Real word, but does not bridge the endpoints

REASON_CATEGORY: Dict[str, str] = {
    "wrong_length": INPUT,
    "equals_endpoint": INPUT,
    "not_a_word": LEXICAL,
    "insufficient_overlap": STRUCTURAL,
}


class Puzzle(BaseModel):
    """The two endpoint words of a round."""
    model_config = ConfigDict(frozen=True)

    start_word: str = Field(..., pattern=r'^[A-Z]{5}$')
    end_word: str = Field(..., pattern=r'^[A-Z]{5}$')

    def __str__(self) -> str:
        return f"{self.start_word} -> {self.end_word}"


class ValidationResult(BaseModel):
    """Result of validating a bridge word."""
    valid: bool
    candidate: str = ""
    reason: Optional[ValidationReason] = None
    message: str = ""
    shared_with_start: int = 0
    shared_with_end: int = 0

    @property
    def category(self) -> Optional[str]:
        """Rejection category (input, lexical or structural), None when valid."""
        if self.reason is None:
            return None
        return REASON_CATEGORY[self.reason]
