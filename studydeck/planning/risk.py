"""Subject risk prioritisation for revision planning.

Scores each exam subject by how far behind its revision target it is and
how close its exam is, so that planning can schedule the most urgent
subjects first.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from studydeck.constants import SESSION_STATUS_DONE, SESSION_STATUS_SKIPPED
from studydeck.db.models import RevisionSession, Subject


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class SubjectRisk:
    """A subject annotated with its preparation risk."""

    subject: Subject
    risk_level: RiskLevel
    risk_score: float  # Higher = more urgent
    remaining_hours: float
    completed_hours: float
    days_until_exam: int | None = None


def _risk_level(
    progress_ratio: float,
    remaining_ratio: float,
    days_until_exam: int | None,
) -> RiskLevel:
    if days_until_exam is not None:
        if days_until_exam <= 7 and remaining_ratio > 0.5:
            return RiskLevel.HIGH
        if days_until_exam <= 14 and remaining_ratio > 0.3:
            return RiskLevel.HIGH if progress_ratio < 0.4 else RiskLevel.MEDIUM
    if progress_ratio < 0.4:
        return RiskLevel.HIGH
    if progress_ratio < 0.8:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def assess_subject(
    subject: Subject,
    sessions: list[RevisionSession],
    today: date,
) -> SubjectRisk:
    """Compute the risk of a single subject from its revision sessions."""
    target_minutes = (subject.target_hours or 0) * 60
    own_sessions = [s for s in sessions if s.subject_id == subject.id]

    completed_minutes = sum(
        s.duration_minutes
        for s in own_sessions
        if s.session_date <= today and s.status == SESSION_STATUS_DONE
    )
    # Sessions after the exam do not count towards it
    future_planned_minutes = sum(
        s.duration_minutes
        for s in own_sessions
        if s.session_date > today
        and s.status != SESSION_STATUS_SKIPPED
        and not (subject.exam_date and s.session_date > subject.exam_date)
    )

    remaining_minutes = max(0, target_minutes - completed_minutes - future_planned_minutes)
    completed_hours = completed_minutes / 60
    remaining_hours = remaining_minutes / 60

    progress_ratio = completed_minutes / target_minutes if target_minutes > 0 else 1
    remaining_ratio = remaining_minutes / target_minutes if target_minutes > 0 else 0

    days_until_exam = (subject.exam_date - today).days if subject.exam_date else None

    risk_level = _risk_level(progress_ratio, remaining_ratio, days_until_exam)

    risk_score = 0.0
    if risk_level is RiskLevel.HIGH:
        risk_score += 1000
    elif risk_level is RiskLevel.MEDIUM:
        risk_score += 500
    if days_until_exam is not None and days_until_exam > 0:
        risk_score += max(0, 100 - days_until_exam)
    risk_score += (subject.exam_weight or 0) * 20
    risk_score += min(remaining_hours * 10, 100)

    return SubjectRisk(
        subject=subject,
        risk_level=risk_level,
        risk_score=risk_score,
        remaining_hours=remaining_hours,
        completed_hours=completed_hours,
        days_until_exam=days_until_exam,
    )


def calculate_subjects_risk(
    subjects: list[Subject],
    sessions: list[RevisionSession],
    today: date | None = None,
) -> list[SubjectRisk]:
    """Assess every subject, preserving input order."""
    today = today or date.today()
    return [assess_subject(subject, sessions, today) for subject in subjects]


def sort_subjects_by_risk_priority(risks: list[SubjectRisk]) -> list[SubjectRisk]:
    """Most urgent subjects first."""
    return sorted(risks, key=lambda r: r.risk_score, reverse=True)
