#!/usr/bin/env python3
"""Show exam subjects ordered by revision risk."""

from rich.console import Console
from rich.table import Table

from studydeck.config import Config
from studydeck.db.database import Database
from studydeck.planning.risk import RiskLevel, calculate_subjects_risk, sort_subjects_by_risk_priority


RISK_STYLES = {
    RiskLevel.HIGH: "bold red",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.LOW: "green",
}

console = Console()


def main() -> None:
    config = Config.from_env()
    db = Database(config.database_path)
    db.init_schema()

    subjects = db.list_subjects(config.user_id)
    if not subjects:
        console.print("[yellow]No subjects yet[/yellow]")
        return

    sessions = db.list_revision_sessions(config.user_id)
    risks = sort_subjects_by_risk_priority(calculate_subjects_risk(subjects, sessions))

    table = Table(title="Revision priorities")
    table.add_column("Subject")
    table.add_column("Risk")
    table.add_column("Score", justify="right")
    table.add_column("Exam in", justify="right")
    table.add_column("Done (h)", justify="right")
    table.add_column("Left (h)", justify="right")
    for risk in risks:
        style = RISK_STYLES[risk.risk_level]
        table.add_row(
            risk.subject.name,
            f"[{style}]{risk.risk_level.value}[/{style}]",
            f"{risk.risk_score:.0f}",
            f"{risk.days_until_exam}d" if risk.days_until_exam is not None else "-",
            f"{risk.completed_hours:.1f}",
            f"{risk.remaining_hours:.1f}",
        )
    console.print(table)


if __name__ == "__main__":
    main()
