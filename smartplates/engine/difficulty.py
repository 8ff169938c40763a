"""Difficulty classification derived from a recipe's ready time.

Difficulty is never stored. Every place that shows or filters by it calls
`difficulty_for()` so the thresholds stay identical everywhere.

Thresholds (minutes):
- easy: t <= 15
- medium: 15 < t < 35
- hard: t >= 35
"""

from typing import Optional

from smartplates.models.models import Difficulty, Recipe


# Used when a recipe carries no timing data at all
DEFAULT_READY_MINUTES = 30

EASY_MAX_MINUTES = 15
HARD_MIN_MINUTES = 35


def resolve_ready_minutes(recipe: Recipe) -> int:
    """Pick the ready time of a recipe from its timing fields.

    Precedence: readyInMinutes, cookingTime, totalTime, prepTime + cookTime,
    then DEFAULT_READY_MINUTES.

    Args:
        recipe: Recipe to inspect.

    Returns:
        Ready time in minutes (never None).
    """
    for minutes in (recipe.ready_in_minutes, recipe.cooking_time, recipe.total_time):
        if minutes is not None:
            return minutes

    if recipe.prep_time is not None or recipe.cook_time is not None:
        return (recipe.prep_time or 0) + (recipe.cook_time or 0)

    return DEFAULT_READY_MINUTES


def derive_difficulty(ready_minutes: Optional[int]) -> Difficulty:
    """Classify a ready time. Absent input falls back to DEFAULT_READY_MINUTES."""
    minutes = DEFAULT_READY_MINUTES if ready_minutes is None else ready_minutes
    if minutes <= EASY_MAX_MINUTES:
        return Difficulty.EASY
    if minutes < HARD_MIN_MINUTES:
        return Difficulty.MEDIUM
    return Difficulty.HARD


def difficulty_for(recipe: Recipe) -> Difficulty:
    return derive_difficulty(resolve_ready_minutes(recipe))


def max_ready_time_for(difficulty: Optional[Difficulty]) -> Optional[int]:
    """Translate a difficulty into the upstream `maxReadyTime` parameter.

    Hard has no upper bound, so it maps to None like an empty facet. Medium
    over-fetches easy recipes, which the in-memory difficulty filter removes.
    """
    if difficulty == Difficulty.EASY:
        return EASY_MAX_MINUTES
    if difficulty == Difficulty.MEDIUM:
        return HARD_MIN_MINUTES - 1
    return None
