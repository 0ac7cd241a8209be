"""Tests for subject risk prioritisation."""

from datetime import date

import pytest

from studydeck.db.models import RevisionSession, Subject
from studydeck.planning.risk import (
    RiskLevel,
    SubjectRisk,
    assess_subject,
    calculate_subjects_risk,
    sort_subjects_by_risk_priority,
)


def _session(day: date, start: str, end: str, status: str = "planned", subject_id: int = 1):
    return RevisionSession(subject_id=subject_id, session_date=day, start_time=start, end_time=end, status=status)


class TestAssessSubject:
    """Tests for single-subject risk assessment."""

    def test_behind_schedule_is_high(self, sample_subject, done_session):
        """Low progress with two weeks left is high risk."""
        risk = assess_subject(sample_subject, [done_session], today=date(2024, 6, 5))
        assert risk.risk_level == RiskLevel.HIGH
        assert risk.completed_hours == 2
        assert risk.remaining_hours == 8
        assert risk.days_until_exam == 15
        # 1000 high + 85 proximity + 40 weight + 80 remaining
        assert risk.risk_score == pytest.approx(1205)

    def test_exam_within_a_week_with_work_left(self, sample_subject, done_session):
        risk = assess_subject(sample_subject, [done_session], today=date(2024, 6, 15))
        assert risk.days_until_exam == 5
        assert risk.risk_level == RiskLevel.HIGH

    def test_exam_within_two_weeks_with_fair_progress_is_medium(self, sample_subject):
        sessions = [_session(date(2024, 6, 1), "08:00", "12:00", "done")]
        risk = assess_subject(sample_subject, sessions, today=date(2024, 6, 10))
        assert risk.days_until_exam == 10
        assert risk.risk_level == RiskLevel.MEDIUM

    def test_well_prepared_is_low(self, sample_subject):
        sessions = [_session(date(2024, 6, 1), "08:00", "17:00", "done")]
        risk = assess_subject(sample_subject, sessions, today=date(2024, 6, 5))
        assert risk.risk_level == RiskLevel.LOW
        assert risk.remaining_hours == 1

    def test_future_sessions_reduce_remaining(self, sample_subject, done_session):
        sessions = [done_session, _session(date(2024, 6, 10), "09:00", "12:00")]
        risk = assess_subject(sample_subject, sessions, today=date(2024, 6, 5))
        assert risk.remaining_hours == 5
        assert risk.completed_hours == 2

    def test_skipped_and_post_exam_sessions_ignored(self, sample_subject, done_session):
        sessions = [
            done_session,
            _session(date(2024, 6, 10), "09:00", "12:00", "skipped"),
            _session(date(2024, 6, 25), "09:00", "12:00"),
        ]
        risk = assess_subject(sample_subject, sessions, today=date(2024, 6, 5))
        assert risk.remaining_hours == 8

    def test_past_sessions_not_done_do_not_count(self, sample_subject):
        sessions = [_session(date(2024, 6, 1), "09:00", "11:00", "planned")]
        risk = assess_subject(sample_subject, sessions, today=date(2024, 6, 5))
        assert risk.completed_hours == 0
        assert risk.remaining_hours == 10

    def test_other_subjects_sessions_ignored(self, sample_subject):
        sessions = [_session(date(2024, 6, 1), "08:00", "17:00", "done", subject_id=99)]
        risk = assess_subject(sample_subject, sessions, today=date(2024, 6, 5))
        assert risk.completed_hours == 0

    def test_without_exam_date_uses_progress_only(self):
        subject = Subject(id=1, name="Reading", target_hours=10)
        sessions = [_session(date(2024, 6, 1), "08:00", "13:00", "done")]
        risk = assess_subject(subject, sessions, today=date(2024, 6, 5))
        assert risk.days_until_exam is None
        assert risk.risk_level == RiskLevel.MEDIUM
        # 500 medium + 20 weight + 50 remaining
        assert risk.risk_score == pytest.approx(570)

    def test_without_target_is_low(self):
        subject = Subject(id=1, name="Music", exam_weight=1.5)
        risk = assess_subject(subject, [], today=date(2024, 6, 5))
        assert risk.risk_level == RiskLevel.LOW
        assert risk.remaining_hours == 0
        assert risk.risk_score == pytest.approx(30)

    def test_past_exam_gets_no_proximity_bonus(self, sample_subject):
        sessions = [_session(date(2024, 6, 1), "08:00", "18:00", "done")]
        risk = assess_subject(sample_subject, sessions, today=date(2024, 6, 21))
        assert risk.days_until_exam == -1
        assert risk.risk_level == RiskLevel.LOW
        assert risk.risk_score == pytest.approx(40)

    def test_remaining_hours_bonus_is_capped(self):
        subject = Subject(id=1, name="Law", target_hours=50, exam_weight=0)
        risk = assess_subject(subject, [], today=date(2024, 6, 5))
        # 1000 high + capped 100 remaining
        assert risk.risk_score == pytest.approx(1100)


    def test_missing_exam_weight_scores_zero(self):
        subject = Subject(id=1, name="Music", exam_weight=None)
        risk = assess_subject(subject, [], today=date(2024, 6, 5))
        assert risk.risk_score == pytest.approx(0)


class TestCalculateAndSort:
    """Tests for multi-subject scoring and ordering."""

    def test_calculate_preserves_order(self, sample_subject):
        other = Subject(id=2, name="Art")
        risks = calculate_subjects_risk([sample_subject, other], [], today=date(2024, 6, 5))
        assert [r.subject.name for r in risks] == ["Chemistry", "Art"]

    def test_calculate_defaults_to_today(self):
        risks = calculate_subjects_risk([Subject(id=1, name="Art")], [])
        assert len(risks) == 1

    def test_sort_most_urgent_first(self, sample_subject):
        relaxed = Subject(id=2, name="Art")
        risks = calculate_subjects_risk([relaxed, sample_subject], [], today=date(2024, 6, 5))
        ordered = sort_subjects_by_risk_priority(risks)
        assert [r.subject.name for r in ordered] == ["Chemistry", "Art"]

    def test_sort_does_not_mutate_input(self):
        low = SubjectRisk(Subject(name="a"), RiskLevel.LOW, 10, 0, 0)
        high = SubjectRisk(Subject(name="b"), RiskLevel.HIGH, 1000, 0, 0)
        risks = [low, high]
        assert sort_subjects_by_risk_priority(risks) == [high, low]
        assert risks == [low, high]
