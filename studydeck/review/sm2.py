"""SM-2 Spaced Repetition Algorithm.

Based on the SuperMemo SM-2 algorithm by Piotr Wozniak.
https://www.supermemo.com/en/blog/application-of-a-computer-to-improve-the-results-obtained-in-working-with-the-supermemo-method
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from studydeck.constants import (
    DEFAULT_EASINESS_FACTOR,
    MASTERY_EASINESS_FACTOR,
    MASTERY_REPETITIONS,
    MIN_EASINESS_FACTOR,
    PASSING_QUALITY,
    QUALITY_COLORS,
    QUALITY_LABELS,
    VALID_QUALITIES,
)


class ReviewError(ValueError):
    """Base class for review engine contract violations."""


class InvalidQualityError(ReviewError):
    """Quality rating is missing, not an integer, or outside 0-5."""


class InvalidStateError(ReviewError):
    """Card memory state cannot be scheduled."""


class MasteryLevel(Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEWING = "reviewing"
    MASTERED = "mastered"

    @property
    def label(self) -> str:
        return _MASTERY_LABELS[self]

    @property
    def color(self) -> str:
        return _MASTERY_COLORS[self]


_MASTERY_LABELS = {
    MasteryLevel.NEW: "New",
    MasteryLevel.LEARNING: "Learning",
    MasteryLevel.REVIEWING: "Reviewing",
    MasteryLevel.MASTERED: "Mastered",
}

_MASTERY_COLORS = {
    MasteryLevel.NEW: "grey50",
    MasteryLevel.LEARNING: "yellow",
    MasteryLevel.REVIEWING: "blue",
    MasteryLevel.MASTERED: "green",
}


@dataclass
class CardMemoryState:
    """SM-2 memory state of a single card."""

    easiness_factor: float = DEFAULT_EASINESS_FACTOR
    repetition_count: int = 0
    interval_days: int = 0


@dataclass
class ReviewResult:
    """Result of an SM-2 calculation."""

    easiness_factor: float
    repetition_count: int
    interval_days: int
    next_review_at: datetime

    def to_state(self) -> CardMemoryState:
        """Drop the projected review date and keep the memory state."""
        return CardMemoryState(
            easiness_factor=self.easiness_factor,
            repetition_count=self.repetition_count,
            interval_days=self.interval_days,
        )


def _round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up, independent of Python's banker's rounding."""
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def validate_quality(quality: object) -> int:
    """Return quality unchanged if it is an integer rating in 0-5."""
    # bool is an int subclass but True/False are not ratings
    if quality is None or isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(f"Quality must be an integer 0-5, got {quality!r}")
    if quality not in VALID_QUALITIES:
        raise InvalidQualityError(f"Quality must be between 0 and 5, got {quality}")
    return quality


def validate_state(state: CardMemoryState) -> None:
    """Reject states the scheduler cannot reason about."""
    ef = state.easiness_factor
    if isinstance(ef, bool) or not isinstance(ef, (int, float)) or not math.isfinite(ef):
        raise InvalidStateError(f"Easiness factor must be a finite number, got {ef!r}")
    reps = state.repetition_count
    if isinstance(reps, bool) or not isinstance(reps, int) or reps < 0:
        raise InvalidStateError(f"Repetition count must be a non-negative integer, got {reps!r}")
    interval = state.interval_days
    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 0:
        raise InvalidStateError(f"Interval must be a non-negative integer, got {interval!r}")
    if reps >= 2 and interval < 1:
        # Third and later successes multiply the previous interval
        raise InvalidStateError(f"Interval must be at least 1 day after {reps} repetitions, got {interval}")


def schedule_next_review(
    quality: int,
    state: CardMemoryState | None = None,
    now: datetime | None = None,
) -> ReviewResult:
    """
    Calculate the next memory state of a card using the SM-2 algorithm.

    Args:
        quality: Response quality (0-5):
            5 - Perfect response, no hesitation
            4 - Correct response after hesitation
            3 - Correct response with difficulty
            2 - Incorrect, but seemed easy to recall
            1 - Incorrect, but remembered when shown answer
            0 - Complete blackout

        state: Current memory state (defaults to a brand-new card)
        now: Reference time for the next review date (defaults to now)

    Returns:
        ReviewResult with updated values and next review date.

    Raises:
        InvalidQualityError: quality is not an integer in 0-5.
        InvalidStateError: state holds a negative count or a non-finite EF.
    """
    quality = validate_quality(quality)
    if state is None:
        state = CardMemoryState()
    validate_state(state)

    # Stored values may predate the floor
    ef = max(MIN_EASINESS_FACTOR, float(state.easiness_factor))
    repetitions = state.repetition_count
    interval = state.interval_days

    if quality < PASSING_QUALITY:
        # Lapse - start over
        repetitions = 0
        interval = 1
    else:
        if repetitions == 0:
            interval = 1
        elif repetitions == 1:
            interval = 6
        else:
            interval = int(_round_half_up(interval * ef))
        repetitions += 1

    new_ef = ef + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    new_ef = max(MIN_EASINESS_FACTOR, new_ef)
    new_ef = _round_half_up(new_ef, 2)

    if now is None:
        now = datetime.now()

    return ReviewResult(
        easiness_factor=new_ef,
        repetition_count=repetitions,
        interval_days=interval,
        next_review_at=now + timedelta(days=interval),
    )


def classify_mastery(easiness_factor: float, repetition_count: int) -> MasteryLevel:
    """Summarize a card's learning progress for display."""
    if repetition_count == 0:
        return MasteryLevel.NEW
    if repetition_count < MASTERY_REPETITIONS:
        return MasteryLevel.LEARNING
    if easiness_factor >= MASTERY_EASINESS_FACTOR:
        return MasteryLevel.MASTERED
    return MasteryLevel.REVIEWING


def describe_quality(quality: int) -> str:
    """Human-readable label for a quality rating."""
    return QUALITY_LABELS[validate_quality(quality)]


def quality_color(quality: int) -> str:
    """Rich style name used to render a quality rating."""
    return QUALITY_COLORS[validate_quality(quality)]
