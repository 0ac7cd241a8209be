"""SQLite database setup and operations."""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path

from studydeck.constants import (
    DEFAULT_EASINESS_FACTOR,
    MASTERY_EASINESS_FACTOR,
    MASTERY_REPETITIONS,
    PASSING_QUALITY,
)
from studydeck.db.models import (
    DeckStats,
    Flashcard,
    FlashcardDeck,
    FlashcardReview,
    RevisionSession,
    Subject,
)
from studydeck.review.sm2 import ReviewResult


logger = logging.getLogger(__name__)


class StaleCardError(RuntimeError):
    """The stored card no longer matches the state a review was computed from."""


SCHEMA = """
CREATE TABLE IF NOT EXISTS subjects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    exam_date TEXT,
    exam_weight REAL NOT NULL DEFAULT 1.0,
    target_hours REAL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS revision_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_id INTEGER REFERENCES subjects(id),
    session_date TEXT NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT NOT NULL,
    status TEXT DEFAULT 'planned'
);

CREATE TABLE IF NOT EXISTS flashcard_decks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    subject_id INTEGER REFERENCES subjects(id),
    name TEXT NOT NULL,
    description TEXT,
    last_studied_at TIMESTAMP,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS flashcards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    deck_id INTEGER REFERENCES flashcard_decks(id),
    user_id INTEGER NOT NULL,
    front TEXT NOT NULL,
    back TEXT NOT NULL,
    easiness_factor REAL DEFAULT 2.5,
    repetition_count INTEGER DEFAULT 0,
    interval_days INTEGER DEFAULT 0,
    next_review_at TIMESTAMP NOT NULL,
    last_reviewed_at TIMESTAMP,
    total_reviews INTEGER DEFAULT 0,
    correct_reviews INTEGER DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS flashcard_reviews (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    flashcard_id INTEGER REFERENCES flashcards(id),
    user_id INTEGER NOT NULL,
    quality INTEGER NOT NULL,
    easiness_factor_before REAL NOT NULL,
    easiness_factor_after REAL NOT NULL,
    interval_before INTEGER NOT NULL,
    interval_after INTEGER NOT NULL,
    reviewed_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_decks_user ON flashcard_decks(user_id);
CREATE INDEX IF NOT EXISTS idx_cards_deck ON flashcards(deck_id);
CREATE INDEX IF NOT EXISTS idx_cards_next_review ON flashcards(user_id, next_review_at);
CREATE INDEX IF NOT EXISTS idx_reviews_card ON flashcard_reviews(flashcard_id);
CREATE INDEX IF NOT EXISTS idx_subjects_user ON subjects(user_id);
CREATE INDEX IF NOT EXISTS idx_sessions_subject ON revision_sessions(subject_id);
"""


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class Database:
    """SQLite database wrapper with thread-local connection pooling."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._local = threading.local()
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create a thread-local database connection."""
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(self.db_path)
            self._local.conn.row_factory = sqlite3.Row
        return self._local.conn

    @contextmanager
    def connection(self):
        """Get a database connection (reuses thread-local connection)."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def close(self) -> None:
        """Close the thread-local connection if open."""
        if hasattr(self._local, "conn") and self._local.conn is not None:
            self._local.conn.close()
            self._local.conn = None

    def init_schema(self) -> None:
        """Initialize the database schema."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)

    # Deck operations
    def create_deck(self, deck: FlashcardDeck) -> int:
        """Create a deck and return its ID."""
        now = datetime.now().isoformat()
        with self.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO flashcard_decks (user_id, subject_id, name, description, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (deck.user_id, deck.subject_id, deck.name, deck.description, now, now),
            )
            return cursor.lastrowid

    def get_deck(self, deck_id: int) -> FlashcardDeck | None:
        """Get a deck by ID, including its card count."""
        with self.connection() as conn:
            row = conn.execute(
                """
                SELECT d.*, (SELECT COUNT(*) FROM flashcards f WHERE f.deck_id = d.id) AS card_count
                FROM flashcard_decks d WHERE d.id = ?
                """,
                (deck_id,),
            ).fetchone()
            if row:
                return self._row_to_deck(row)
            return None

    def list_decks(self, user_id: int) -> list[FlashcardDeck]:
        """Get a user's decks, most recently updated first."""
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT d.*, (SELECT COUNT(*) FROM flashcards f WHERE f.deck_id = d.id) AS card_count
                FROM flashcard_decks d
                WHERE d.user_id = ?
                ORDER BY d.updated_at DESC, d.id DESC
                """,
                (user_id,),
            ).fetchall()
            return [self._row_to_deck(row) for row in rows]

    def update_deck(self, deck: FlashcardDeck) -> None:
        """Update a deck's name, description and subject."""
        with self.connection() as conn:
            conn.execute(
                """
                UPDATE flashcard_decks
                SET name = ?, description = ?, subject_id = ?, updated_at = ?
                WHERE id = ?
                """,
                (deck.name, deck.description, deck.subject_id, datetime.now().isoformat(), deck.id),
            )

    def delete_deck(self, deck_id: int) -> None:
        """Delete a deck together with its cards and their review history."""
        with self.connection() as conn:
            conn.execute(
                """
                DELETE FROM flashcard_reviews
                WHERE flashcard_id IN (SELECT id FROM flashcards WHERE deck_id = ?)
                """,
                (deck_id,),
            )
            conn.execute("DELETE FROM flashcards WHERE deck_id = ?", (deck_id,))
            conn.execute("DELETE FROM flashcard_decks WHERE id = ?", (deck_id,))
        logger.info(f"Deleted deck {deck_id}")

    def _row_to_deck(self, row: sqlite3.Row) -> FlashcardDeck:
        """Convert a database row to a FlashcardDeck."""
        return FlashcardDeck(
            id=row["id"],
            user_id=row["user_id"],
            subject_id=row["subject_id"],
            name=row["name"],
            description=row["description"],
            card_count=row["card_count"] if "card_count" in row.keys() else 0,
            last_studied_at=_parse_dt(row["last_studied_at"]),
            created_at=_parse_dt(row["created_at"]),
            updated_at=_parse_dt(row["updated_at"]),
        )

    # Flashcard operations
    def add_flashcard(self, card: Flashcard) -> int:
        """Add a card to a deck and return its ID.

        New cards start with default SM-2 values and are due immediately
        unless next_review_at is set.
        """
        now = datetime.now()
        next_review_at = card.next_review_at or now
        with self.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO flashcards
                (deck_id, user_id, front, back, easiness_factor, repetition_count, interval_days,
                 next_review_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    card.deck_id,
                    card.user_id,
                    card.front,
                    card.back,
                    card.easiness_factor,
                    card.repetition_count,
                    card.interval_days,
                    next_review_at.isoformat(),
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            conn.execute(
                "UPDATE flashcard_decks SET updated_at = ? WHERE id = ?",
                (now.isoformat(), card.deck_id),
            )
            return cursor.lastrowid

    def get_flashcard(self, card_id: int) -> Flashcard | None:
        """Get a card by ID."""
        with self.connection() as conn:
            row = conn.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,)).fetchone()
            if row:
                return self._row_to_flashcard(row)
            return None

    def get_flashcards(self, deck_id: int) -> list[Flashcard]:
        """Get all cards in a deck in creation order."""
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM flashcards WHERE deck_id = ? ORDER BY created_at, id",
                (deck_id,),
            ).fetchall()
            return [self._row_to_flashcard(row) for row in rows]

    def update_flashcard_content(self, card_id: int, front: str, back: str) -> None:
        """Edit a card's text without touching its review state."""
        with self.connection() as conn:
            conn.execute(
                "UPDATE flashcards SET front = ?, back = ?, updated_at = ? WHERE id = ?",
                (front, back, datetime.now().isoformat(), card_id),
            )

    def delete_flashcard(self, card_id: int) -> None:
        """Delete a card and its review history."""
        with self.connection() as conn:
            conn.execute("DELETE FROM flashcard_reviews WHERE flashcard_id = ?", (card_id,))
            conn.execute("DELETE FROM flashcards WHERE id = ?", (card_id,))

    def get_due_flashcards(
        self,
        user_id: int,
        deck_id: int | None = None,
        now: datetime | None = None,
        limit: int | None = None,
    ) -> list[Flashcard]:
        """Get cards due for review, oldest due first."""
        now = now or datetime.now()
        query = "SELECT * FROM flashcards WHERE user_id = ? AND next_review_at <= ?"
        params: list = [user_id, now.isoformat()]
        if deck_id is not None:
            query += " AND deck_id = ?"
            params.append(deck_id)
        query += " ORDER BY next_review_at, id"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        with self.connection() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_flashcard(row) for row in rows]

    def _row_to_flashcard(self, row: sqlite3.Row) -> Flashcard:
        """Convert a database row to a Flashcard."""
        return Flashcard(
            id=row["id"],
            deck_id=row["deck_id"],
            user_id=row["user_id"],
            front=row["front"],
            back=row["back"],
            easiness_factor=row["easiness_factor"],
            repetition_count=row["repetition_count"],
            interval_days=row["interval_days"],
            next_review_at=_parse_dt(row["next_review_at"]),
            last_reviewed_at=_parse_dt(row["last_reviewed_at"]),
            total_reviews=row["total_reviews"],
            correct_reviews=row["correct_reviews"],
            created_at=_parse_dt(row["created_at"]),
            updated_at=_parse_dt(row["updated_at"]),
        )

    # Review operations
    def record_review(
        self,
        card: Flashcard,
        quality: int,
        result: ReviewResult,
        reviewed_at: datetime | None = None,
    ) -> int:
        """Persist a review outcome and append it to the review log.

        The card update, the log entry and the deck's last_studied_at are
        written in a single transaction. The update only applies if the
        stored memory state still matches `card`; otherwise StaleCardError is
        raised and nothing is written. Returns the review log ID.
        """
        reviewed_at = reviewed_at or datetime.now()
        correct_increment = 1 if quality >= PASSING_QUALITY else 0
        with self.connection() as conn:
            updated = conn.execute(
                """
                UPDATE flashcards
                SET easiness_factor = ?, repetition_count = ?, interval_days = ?,
                    next_review_at = ?, last_reviewed_at = ?,
                    total_reviews = total_reviews + 1,
                    correct_reviews = correct_reviews + ?,
                    updated_at = ?
                WHERE id = ? AND easiness_factor = ? AND repetition_count = ? AND interval_days = ?
                """,
                (
                    result.easiness_factor,
                    result.repetition_count,
                    result.interval_days,
                    result.next_review_at.isoformat(),
                    reviewed_at.isoformat(),
                    correct_increment,
                    reviewed_at.isoformat(),
                    card.id,
                    card.easiness_factor,
                    card.repetition_count,
                    card.interval_days,
                ),
            )
            if updated.rowcount == 0:
                # Another review landed after this copy of the card was loaded
                raise StaleCardError(f"Flashcard {card.id} changed since it was loaded")
            cursor = conn.execute(
                """
                INSERT INTO flashcard_reviews
                (flashcard_id, user_id, quality, easiness_factor_before, easiness_factor_after,
                 interval_before, interval_after, reviewed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    card.id,
                    card.user_id,
                    quality,
                    card.easiness_factor,
                    result.easiness_factor,
                    card.interval_days,
                    result.interval_days,
                    reviewed_at.isoformat(),
                ),
            )
            conn.execute(
                "UPDATE flashcard_decks SET last_studied_at = ? WHERE id = ?",
                (reviewed_at.isoformat(), card.deck_id),
            )
            return cursor.lastrowid

    def get_reviews(self, flashcard_id: int) -> list[FlashcardReview]:
        """Get the review history of a card, oldest first."""
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM flashcard_reviews WHERE flashcard_id = ? ORDER BY reviewed_at, id",
                (flashcard_id,),
            ).fetchall()
            return [
                FlashcardReview(
                    id=row["id"],
                    flashcard_id=row["flashcard_id"],
                    user_id=row["user_id"],
                    quality=row["quality"],
                    easiness_factor_before=row["easiness_factor_before"],
                    easiness_factor_after=row["easiness_factor_after"],
                    interval_before=row["interval_before"],
                    interval_after=row["interval_after"],
                    reviewed_at=_parse_dt(row["reviewed_at"]),
                )
                for row in rows
            ]

    def get_deck_stats(self, deck_id: int, now: datetime | None = None) -> DeckStats:
        """Compute progress statistics for a deck."""
        now = now or datetime.now()
        cards = self.get_flashcards(deck_id)

        total_cards = len(cards)
        total_reviews = sum(c.total_reviews for c in cards)
        total_correct = sum(c.correct_reviews for c in cards)

        return DeckStats(
            total_cards=total_cards,
            mastered_cards=sum(
                1
                for c in cards
                if c.easiness_factor >= MASTERY_EASINESS_FACTOR
                and c.repetition_count >= MASTERY_REPETITIONS
            ),
            learning_cards=sum(1 for c in cards if c.repetition_count < MASTERY_REPETITIONS),
            due_cards=sum(1 for c in cards if c.next_review_at and c.next_review_at <= now),
            average_easiness=(
                sum(c.easiness_factor for c in cards) / total_cards
                if total_cards
                else DEFAULT_EASINESS_FACTOR
            ),
            total_reviews=total_reviews,
            correct_rate=(total_correct / total_reviews) * 100 if total_reviews else 0.0,
        )

    # Subject operations
    def add_subject(self, subject: Subject) -> int:
        """Add an exam subject and return its ID."""
        with self.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO subjects (user_id, name, exam_date, exam_weight, target_hours, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    subject.user_id,
                    subject.name,
                    subject.exam_date.isoformat() if subject.exam_date else None,
                    subject.exam_weight if subject.exam_weight is not None else 1.0,
                    subject.target_hours,
                    datetime.now().isoformat(),
                ),
            )
            return cursor.lastrowid

    def list_subjects(self, user_id: int) -> list[Subject]:
        """Get a user's subjects."""
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM subjects WHERE user_id = ? ORDER BY id",
                (user_id,),
            ).fetchall()
            return [
                Subject(
                    id=row["id"],
                    user_id=row["user_id"],
                    name=row["name"],
                    exam_date=date.fromisoformat(row["exam_date"]) if row["exam_date"] else None,
                    exam_weight=row["exam_weight"],
                    target_hours=row["target_hours"],
                    created_at=_parse_dt(row["created_at"]),
                )
                for row in rows
            ]

    def add_revision_session(self, session: RevisionSession) -> int:
        """Add a revision session and return its ID."""
        with self.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO revision_sessions (subject_id, session_date, start_time, end_time, status)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    session.subject_id,
                    session.session_date.isoformat() if session.session_date else None,
                    session.start_time,
                    session.end_time,
                    session.status,
                ),
            )
            return cursor.lastrowid

    def list_revision_sessions(self, user_id: int) -> list[RevisionSession]:
        """Get all revision sessions across a user's subjects."""
        with self.connection() as conn:
            rows = conn.execute(
                """
                SELECT rs.* FROM revision_sessions rs
                JOIN subjects s ON s.id = rs.subject_id
                WHERE s.user_id = ?
                ORDER BY rs.session_date, rs.start_time
                """,
                (user_id,),
            ).fetchall()
            return [
                RevisionSession(
                    id=row["id"],
                    subject_id=row["subject_id"],
                    session_date=date.fromisoformat(row["session_date"]),
                    start_time=row["start_time"],
                    end_time=row["end_time"],
                    status=row["status"],
                )
                for row in rows
            ]
