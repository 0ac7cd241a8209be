"""Database models for studydeck."""

from dataclasses import dataclass
from datetime import date, datetime

from studydeck.constants import DEFAULT_EASINESS_FACTOR, SESSION_STATUS_PLANNED
from studydeck.review.sm2 import CardMemoryState


@dataclass
class FlashcardDeck:
    """A named collection of flashcards, optionally tied to a subject."""

    id: int | None = None
    user_id: int = 0
    subject_id: int | None = None
    name: str = ""
    description: str | None = None
    card_count: int = 0  # Derived, not stored
    last_studied_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Flashcard:
    """A single card with its SM-2 spaced repetition state."""

    id: int | None = None
    deck_id: int = 0
    user_id: int = 0
    front: str = ""
    back: str = ""
    easiness_factor: float = DEFAULT_EASINESS_FACTOR
    repetition_count: int = 0
    interval_days: int = 0
    next_review_at: datetime | None = None
    last_reviewed_at: datetime | None = None
    total_reviews: int = 0
    correct_reviews: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def memory_state(self) -> CardMemoryState:
        return CardMemoryState(
            easiness_factor=self.easiness_factor,
            repetition_count=self.repetition_count,
            interval_days=self.interval_days,
        )


@dataclass
class FlashcardReview:
    """Immutable log entry for one recorded review."""

    id: int | None = None
    flashcard_id: int = 0
    user_id: int = 0
    quality: int = 0
    easiness_factor_before: float = DEFAULT_EASINESS_FACTOR
    easiness_factor_after: float = DEFAULT_EASINESS_FACTOR
    interval_before: int = 0
    interval_after: int = 0
    reviewed_at: datetime | None = None


@dataclass
class DeckStats:
    """Aggregate progress of a deck."""

    total_cards: int = 0
    mastered_cards: int = 0  # EF >= 2.5 and repetitions >= 3
    learning_cards: int = 0  # repetitions < 3
    due_cards: int = 0  # next_review_at <= now
    average_easiness: float = DEFAULT_EASINESS_FACTOR
    total_reviews: int = 0
    correct_rate: float = 0.0  # Percentage, 0-100


@dataclass
class Subject:
    """An exam subject the student is revising for."""

    id: int | None = None
    user_id: int = 0
    name: str = ""
    exam_date: date | None = None
    exam_weight: float = 1.0
    target_hours: float | None = None
    created_at: datetime | None = None


@dataclass
class RevisionSession:
    """A planned or completed block of revision time for a subject."""

    id: int | None = None
    subject_id: int = 0
    session_date: date | None = None
    start_time: str = "00:00"  # HH:MM
    end_time: str = "00:00"  # HH:MM
    status: str = SESSION_STATUS_PLANNED  # planned, done, skipped

    @property
    def duration_minutes(self) -> int:
        """Length of the session in minutes."""
        start_h, start_m = (int(part) for part in self.start_time.split(":"))
        end_h, end_m = (int(part) for part in self.end_time.split(":"))
        return (end_h * 60 + end_m) - (start_h * 60 + start_m)
