"""Shared pytest fixtures for the studydeck test suite."""

from datetime import date, datetime

import pytest

from studydeck.config import Config
from studydeck.db.database import Database
from studydeck.db.models import Flashcard, FlashcardDeck, RevisionSession, Subject


@pytest.fixture
def memory_db(tmp_path):
    """Create a temporary SQLite database for fast tests.

    Note: We use a temp file instead of :memory: so that each test gets an
    isolated database that survives across connections.
    """
    db_path = tmp_path / "memory_test.db"
    db = Database(str(db_path))
    db.init_schema()
    yield db
    db.close()


@pytest.fixture
def sample_deck():
    """Sample deck for testing."""
    return FlashcardDeck(
        user_id=1,
        name="Biology",
        description="Cell structure and function",
    )


@pytest.fixture
def sample_card():
    """Sample flashcard for testing (deck_id is filled in by the test)."""
    return Flashcard(
        user_id=1,
        front="Powerhouse of the cell?",
        back="Mitochondria",
    )


@pytest.fixture
def deck_with_card(memory_db, sample_deck, sample_card):
    """Database with one deck holding one due card. Returns (deck_id, card_id)."""
    deck_id = memory_db.create_deck(sample_deck)
    sample_card.deck_id = deck_id
    sample_card.next_review_at = datetime(2024, 1, 1, 9, 0)
    card_id = memory_db.add_flashcard(sample_card)
    return deck_id, card_id


@pytest.fixture
def sample_subject():
    """Sample exam subject for testing."""
    return Subject(
        id=1,
        user_id=1,
        name="Chemistry",
        exam_date=date(2024, 6, 20),
        exam_weight=2.0,
        target_hours=10,
    )


@pytest.fixture
def done_session():
    """A completed two-hour revision session."""
    return RevisionSession(
        subject_id=1,
        session_date=date(2024, 6, 1),
        start_time="09:00",
        end_time="11:00",
        status="done",
    )


@pytest.fixture
def config():
    """Test configuration."""
    return Config(
        database_path=":memory:",
        user_id=1,
        review_limit=5,
    )
