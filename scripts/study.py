#!/usr/bin/env python3
"""Review due flashcards in the terminal.

Run: uv run python scripts/study.py --deck_id 1
"""

from dataclasses import dataclass

from rich.console import Console
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table
import simple_parsing as sp

from studydeck.config import Config
from studydeck.constants import QUALITY_LABELS
from studydeck.db.database import Database
from studydeck.review.session import StudySession
from studydeck.review.sm2 import describe_quality, quality_color


@dataclass
class Args:
    """Study due flashcards with SM-2 scheduling."""

    deck_id: int | None = None  # Only study this deck
    limit: int | None = None  # Max cards (defaults to REVIEW_LIMIT)


console = Console()


def show_stats(session: StudySession, deck_id: int) -> None:
    stats = session.deck_stats(deck_id)
    table = Table(title="Deck progress")
    table.add_column("Cards", justify="right")
    table.add_column("Mastered", justify="right")
    table.add_column("Learning", justify="right")
    table.add_column("Due", justify="right")
    table.add_column("Avg EF", justify="right")
    table.add_column("Correct", justify="right")
    table.add_row(
        str(stats.total_cards),
        str(stats.mastered_cards),
        str(stats.learning_cards),
        str(stats.due_cards),
        f"{stats.average_easiness:.2f}",
        f"{stats.correct_rate:.0f}%",
    )
    console.print(table)


def main() -> None:
    args = sp.parse(Args)
    config = Config.from_env()

    db = Database(config.database_path)
    db.init_schema()
    session = StudySession(db, config.user_id)

    cards = session.due_cards(deck_id=args.deck_id, limit=args.limit or config.review_limit)
    if not cards:
        console.print("[green]Nothing due. Come back later![/green]")
        return

    scale = "  ".join(
        f"[{quality_color(q)}]{q}={describe_quality(q)}[/{quality_color(q)}]" for q in QUALITY_LABELS
    )

    for index, card in enumerate(cards, start=1):
        level = session.mastery(card)
        console.rule(f"Card {index}/{len(cards)} [{level.color}]{level.label}[/{level.color}]")
        console.print(Panel(card.front, title="Question"))
        Prompt.ask("Press Enter to reveal", default="", show_default=False)
        console.print(Panel(card.back, title="Answer"))
        console.print(scale)

        quality = IntPrompt.ask("How well did you recall it?", choices=[str(q) for q in QUALITY_LABELS])
        result = session.review(card, quality)
        console.print(
            f"Next review in [bold]{result.interval_days}[/bold] day(s) "
            f"on {result.next_review_at:%Y-%m-%d} (EF {result.easiness_factor:.2f})"
        )

    deck_ids = sorted({card.deck_id for card in cards})
    for deck_id in deck_ids:
        show_stats(session, deck_id)


if __name__ == "__main__":
    main()
