SYSTEM_PROMPT = """You are playing ChainLink, a timed word game where you link two five-letter words with a third.

## Rules
1. Each round shows a START word and an END word
2. Find a BRIDGE word: a real five-letter English word
3. The bridge must share at least 2 letters with the START word and at least 2 with the END word
4. Letters are counted with repeats: SPEED and EERIE share two letters (both Es)
5. The bridge cannot be the START or END word itself
6. Your winning word becomes the next round's START word, so the words form a chain
7. The clock runs while you think. Faster answers score more

## Scoring
- 100 base points, plus 10 per second left on the clock
- Speed bonus: +100 with 80% of the time left, +50 with 60%, +25 with 40%
- +5 per level; you level up every 5 solves and the clock shrinks as you climb
- Everything is multiplied by your streak of consecutive solves (up to x10)

## Actions
- **Guess**: put your bridge word in a <word> tag. A wrong guess resets your streak but you may try again while time remains
- **SKIP**: give up on the round for a 50 point penalty. Your streak resets

Win the final round and you enter BONUS rounds: the chain continues until your first miss, and skipping is not allowed.

## Response Format
Always respond with these tags:

<game_plan>
Which letters you are trying to reuse and the candidates you considered
</game_plan>

<word>BRIDGE</word>

or, to give up on the round:

<action>SKIP</action>

## Example
START: HEART, END: SPACE
<game_plan>
HEART has H, E, A, R, T. SPACE has S, P, A, C, E. A word with E and A plus R or T covers HEART;
E and A already cover SPACE too. TEARS shares T, E, A, R with HEART and S, E, A with SPACE.
</game_plan>
<word>TEARS</word>

# GOAL
Solve as many rounds as you can, keep your streak alive, and reach the bonus rounds.
"""


def get_system_prompt() -> str:
    """Return the system prompt."""
    return SYSTEM_PROMPT
