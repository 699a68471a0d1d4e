"""Scoring lookups and best-score comparators."""

from __future__ import annotations

from typing import Optional

MAX_ATTEMPTS = 3

# Points per component keyed by the attempt number it was solved on.
POINTS_BY_ATTEMPT: dict[int, int] = {1: 3, 2: 2, 3: 1}

# Blur level (display units) keyed by attempts remaining.
BLUR_BY_ATTEMPTS_REMAINING: dict[int, int] = {3: 20, 2: 10, 1: 5, 0: 0}

MATCHING = "matching"
VALUATION = "valuation"
GUESS = "guess"

LOWER_IS_BETTER = frozenset({MATCHING})


def calculate_points(attempts_used: int) -> int:
    return POINTS_BY_ATTEMPT.get(attempts_used, 0)


def blur_amount(attempts_remaining: int) -> int:
    return BLUR_BY_ATTEMPTS_REMAINING.get(attempts_remaining, 0)


def lower_is_better(mode: str) -> bool:
    return mode in LOWER_IS_BETTER


def is_better_score(mode: str, score: int, current_best: Optional[int]) -> bool:
    """Return True if ``score`` beats ``current_best`` under the mode's comparator."""
    if current_best is None:
        return True
    if lower_is_better(mode):
        return score < current_best
    return score > current_best
