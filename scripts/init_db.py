#!/usr/bin/env python3
"""Initialize the database with schema and an optional sample deck.

Run: uv run python scripts/init_db.py --sample
"""

from dataclasses import dataclass

from rich.console import Console
from rich.panel import Panel
import simple_parsing as sp

from studydeck.config import Config
from studydeck.db.database import Database
from studydeck.db.models import Flashcard, FlashcardDeck


@dataclass
class Args:
    """Create the studydeck database."""

    sample: bool = False  # Add a sample deck with a few cards


SAMPLE_CARDS = [
    ("What does SM-2 stand for?", "SuperMemo 2"),
    ("Minimum easiness factor in SM-2", "1.3"),
    ("Interval after the second successful review", "6 days"),
    ("Quality ratings below which a review is a lapse", "3"),
]


console = Console()


def main() -> None:
    args = sp.parse(Args)
    console.rule("[bold blue]Initializing studydeck Database")

    config = Config.from_env()
    config.ensure_database_dir()

    console.print(f"Database path: {config.database_path}")

    db = Database(config.database_path)
    db.init_schema()
    console.print("[green]✓ Schema created[/green]")

    if args.sample:
        if any(deck.name == "SM-2 basics" for deck in db.list_decks(config.user_id)):
            console.print("[yellow]Sample deck already exists[/yellow]")
        else:
            deck_id = db.create_deck(
                FlashcardDeck(user_id=config.user_id, name="SM-2 basics", description="Sample deck")
            )
            for front, back in SAMPLE_CARDS:
                db.add_flashcard(
                    Flashcard(deck_id=deck_id, user_id=config.user_id, front=front, back=back)
                )
            console.print(f"[green]✓ Added sample deck (ID: {deck_id}) with {len(SAMPLE_CARDS)} cards[/green]")

    console.print(Panel("[bold green]Database initialized successfully!", title="Done"))


if __name__ == "__main__":
    main()
