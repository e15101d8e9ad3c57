"""Points and round-timer formulas."""

import math
from typing import Optional

BASE_POINTS = 100
TIME_MULTIPLIER = 10
LEVEL_BONUS_MULTIPLIER = 5
MAX_STREAK_MULTIPLIER = 10

BASE_TIME = 30
MIN_TIME = 15
LEVELS_PER_SECOND = 3

# (fraction of the round's time still left, bonus points, label), checked in order
SPEED_BONUS_STEPS = (
    (0.8, 100, "SUPER FAST"),
    (0.6, 50, "FAST"),
    (0.4, 25, "MEDIUM"),
)


def speed_bonus(remaining_time: float, initial_time: float) -> int:
    """Bonus for answering with a large share of the clock left."""
    if initial_time <= 0:
        return 0
    ratio = remaining_time / initial_time
    for threshold, bonus, _ in SPEED_BONUS_STEPS:
        if ratio >= threshold:
            return bonus
    return 0


def speed_label(remaining_time: float, initial_time: float) -> Optional[str]:
    """Name of the speed bonus tier earned, or None when there is no bonus."""
    if initial_time <= 0:
        return None
    ratio = remaining_time / initial_time
    for threshold, _, label in SPEED_BONUS_STEPS:
        if ratio >= threshold:
            return label
    return None


def score(
    remaining_time: float,
    initial_time: float,
    streak: int,
    level: int,
    max_streak_multiplier: int = MAX_STREAK_MULTIPLIER,
) -> int:
    """
    Points for solving a round.

    (base + time bonus + speed bonus + level bonus) x streak multiplier,
    where `streak` already counts the round being scored.

    Args:
        remaining_time: Seconds left on the clock when the answer was frozen
        initial_time: Seconds the round started with
        streak: Consecutive solves including this one
        level: Current player level
        max_streak_multiplier: Cap on the streak multiplier

    Returns:
        Non-negative integer points
    """
    remaining_time = max(0.0, remaining_time)
    time_bonus = int(round(remaining_time * TIME_MULTIPLIER))
    level_bonus = max(0, level) * LEVEL_BONUS_MULTIPLIER
    multiplier = min(max(0, streak), max_streak_multiplier)
    subtotal = BASE_POINTS + time_bonus + speed_bonus(remaining_time, initial_time) + level_bonus
    return subtotal * multiplier


def timer_duration(level: int, base_time: float = BASE_TIME, min_time: float = MIN_TIME) -> float:
    """Seconds allowed per round; shrinks one second every three levels."""
    return max(min_time, base_time - math.floor(level / LEVELS_PER_SECOND))
