"""Flashcard study sessions.

Glues the SM-2 scheduler to the flashcard store: picks due cards,
applies a review and persists the new memory state with its log entry.
"""

import logging
from datetime import datetime

from studydeck.constants import PASSING_QUALITY
from studydeck.db.database import Database
from studydeck.db.models import DeckStats, Flashcard
from studydeck.review.sm2 import (
    MasteryLevel,
    ReviewResult,
    classify_mastery,
    schedule_next_review,
)


logger = logging.getLogger(__name__)


class StudySession:
    """Reviews one user's flashcards using spaced repetition."""

    def __init__(self, db: Database, user_id: int):
        self.db = db
        self.user_id = user_id

    def due_cards(self, deck_id: int | None = None, limit: int | None = None) -> list[Flashcard]:
        """Get cards that are due for review."""
        return self.db.get_due_flashcards(self.user_id, deck_id=deck_id, limit=limit)

    def review(self, card: Flashcard, quality: int, now: datetime | None = None) -> ReviewResult:
        """Record a review of a card and return its next memory state.

        The card object is updated in place to mirror what was stored.
        """
        now = now or datetime.now()

        result = schedule_next_review(quality, card.memory_state, now=now)
        self.db.record_review(card, quality, result, reviewed_at=now)

        logger.info(
            f"Card {card.id} reviewed with quality {quality}: "
            f"EF {card.easiness_factor} -> {result.easiness_factor}, "
            f"interval {card.interval_days} -> {result.interval_days}d"
        )

        card.easiness_factor = result.easiness_factor
        card.repetition_count = result.repetition_count
        card.interval_days = result.interval_days
        card.next_review_at = result.next_review_at
        card.last_reviewed_at = now
        card.total_reviews += 1
        if quality >= PASSING_QUALITY:
            card.correct_reviews += 1
        return result

    def review_by_id(self, card_id: int, quality: int, now: datetime | None = None) -> ReviewResult:
        """Load a card by ID and review it."""
        card = self.db.get_flashcard(card_id)
        if card is None or card.user_id != self.user_id:
            raise LookupError(f"Flashcard {card_id} not found for user {self.user_id}")
        return self.review(card, quality, now=now)

    def deck_stats(self, deck_id: int) -> DeckStats:
        return self.db.get_deck_stats(deck_id)

    @staticmethod
    def mastery(card: Flashcard) -> MasteryLevel:
        return classify_mastery(card.easiness_factor, card.repetition_count)
