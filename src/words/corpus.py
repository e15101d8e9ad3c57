from typing import Dict, List


# Five-letter words grouped by difficulty and letter mix
WORD_CORPUS: Dict[str, List[str]] = {
    # Common letters, familiar words
    "easy": [
        "TOWER", "BEACH", "WATER", "REACH", "HEART", "SPACE", "EARTH", "CHART",
        "HOUSE", "RIVER", "HORSE", "CHAIR", "TABLE", "PHONE", "PAPER", "PLACE",
        "WORLD", "BREAD", "CLEAN", "CLEAR", "LIGHT", "PLANT", "STONE", "FLAME",
    ],
    # Mix of common and uncommon letters
    "medium": [
        "STORM", "PEACE", "CREAM", "STEAM", "MAGIC", "TRUTH", "MATCH", "TEACH",
        "BRAVE", "SMILE", "BLAME", "SCALE", "DREAM", "TREND", "MUSIC", "DANCE",
        "SONIC", "PANIC", "OCEAN", "PLANE", "CROWN", "CLOWN", "GROWN", "SLANT",
        "SHARP", "SMART", "START", "SPORT", "SHORT", "SHIRT", "SHIFT", "SHELF",
    ],
    # Uncommon letters, awkward combinations
    "hard": [
        "PROXY", "QUILT", "ZEBRA", "FJORD", "WALTZ", "BLITZ", "QUIRK", "ZESTY",
        "JUMPY", "FIZZY", "JAZZY", "DIZZY", "FUZZY", "PIZZA", "FRIZZ", "EXPAT",
        "SIXTH", "WRECK", "XERUS", "YACHT", "YOUTH", "ZONAL", "ZOWIE",
    ],
    "vowel_heavy": [
        "AUDIO", "ADIEU", "OUIJA", "QUEUE", "EERIE", "OZONE", "AZURE", "AGILE",
        "AISLE", "ALIEN", "ALIVE", "ALONE", "ARISE", "AWAKE", "EAGLE", "EARLY",
    ],
    "consonant_heavy": [
        "CRYPT", "LYMPH", "PSYCH", "GHOST", "THUMB", "CRUMB", "PLUMB", "DWELL",
        "SWIFT", "SWIRL", "SWEPT", "SWING", "TWIST", "FROST", "TRUST", "CRUSH",
    ],
}

# Hand-curated words used when the corpus cannot supply enough candidates
FALLBACK_WORDS: List[str] = [
    "TOWER", "BEACH", "WATER", "REACH", "HEART", "SPACE", "EARTH", "CHART",
    "HOUSE", "RIVER", "HORSE", "CHAIR", "TABLE", "PHONE", "PAPER", "PLACE",
    "WORLD", "BREAD", "CLEAN", "CLEAR", "LIGHT", "PLANT", "STONE", "FLAME",
]


def all_words() -> List[str]:
    """Every distinct corpus word, in corpus order."""
    seen: Dict[str, None] = {}
    for words in WORD_CORPUS.values():
        for word in words:
            seen.setdefault(word, None)
    return list(seen)
