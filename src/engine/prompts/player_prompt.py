from typing import List, Optional


def format_feedback(
    last_word: Optional[str] = None,
    last_message: Optional[str] = None,
    last_outcome: Optional[str] = None,
    action_error: Optional[str] = None,
) -> str:
    """Format feedback from the previous attempt."""
    lines = []

    if action_error:
        lines.append(f"Action failed: {action_error}")

    if last_word and last_message:
        lines.append(f"Your guess {last_word}: {last_message}")

    if last_outcome == "timed_out":
        lines.append("Time ran out on the last round.")
    elif last_outcome == "skipped":
        lines.append("You skipped the last round.")

    return "\n".join(lines)


def build_player_prompt(
    start_word: str,
    end_word: str,
    turn_number: int,
    round_number: int,
    remaining_time: float,
    score: int,
    streak: int,
    level: int,
    rounds_remaining: int,
    bonus_phase: bool = False,
    tried_words: Optional[List[str]] = None,
    last_word: Optional[str] = None,
    last_message: Optional[str] = None,
    last_outcome: Optional[str] = None,
    action_error: Optional[str] = None,
) -> str:
    """
    Build the player prompt with the current puzzle and feedback.

    Args:
        start_word: The round's start word
        end_word: The round's end word
        turn_number: Current turn number
        round_number: 1-based round number
        remaining_time: Seconds left on the clock
        score: Current score
        streak: Current streak
        level: Current level
        rounds_remaining: Regular rounds left (0 in bonus play)
        bonus_phase: Whether the game is in bonus rounds
        tried_words: Words already rejected this round
        last_word: The previous guess
        last_message: Validation message for the previous guess
        last_outcome: How the previous round ended, if it did not end in a solve
        action_error: Error from the previous turn

    Returns:
        Formatted prompt string
    """
    lines = [f"## Turn {turn_number}", ""]

    feedback = format_feedback(last_word, last_message, last_outcome, action_error)
    if feedback:
        lines.append("### Feedback from last turn")
        lines.append(feedback)
        lines.append("")

    lines.append(f"### Round {round_number}" + (" (BONUS)" if bonus_phase else ""))
    lines.append(f"START: {start_word}")
    lines.append(f"END: {end_word}")
    lines.append(f"Time left: {remaining_time:.1f}s")
    if tried_words:
        lines.append(f"Already rejected: {', '.join(tried_words)}")
    lines.append("")

    lines.append("### Game State")
    lines.append(f"- Score: {score}")
    lines.append(f"- Streak: {streak}")
    lines.append(f"- Level: {level}")
    if bonus_phase:
        lines.append("- Bonus rounds: one miss ends the game and SKIP is not allowed")
    else:
        lines.append(f"- Rounds remaining: {rounds_remaining}")

    return "\n".join(lines)
