"""
Attendance and assignment metrics.

Pure functions over already-fetched lists. The values returned here are the
ones embedded in a Report; nothing downstream recomputes them.
"""

import math
from typing import Sequence

from app.schemas.reports import (
    AttendanceRecord, AssignmentSubmission, AttendanceBreakdown, AssignmentBreakdown,
)

ATTENDED_STATUSES = ("present", "late")


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; reports round .5 upwards.
    return int(math.floor(value + 0.5))


def clamp_percent(value: int) -> int:
    return max(0, min(100, value))


def attendance_rate(records: Sequence[AttendanceRecord]) -> int:
    if not records:
        return 0
    attended = sum(1 for r in records if r.status in ATTENDED_STATUSES)
    return clamp_percent(round_half_up(attended / len(records) * 100))


def average_score(submissions: Sequence[AssignmentSubmission]) -> int:
    if not submissions:
        return 0
    # Extra credit can push a percentage past 100; reports stay within 0..100.
    return clamp_percent(round_half_up(sum(s.percentage for s in submissions) / len(submissions)))


def attendance_breakdown(records: Sequence[AttendanceRecord]) -> AttendanceBreakdown:
    present = sum(1 for r in records if r.status == "present")
    return AttendanceBreakdown(
        total_days=len(records),
        present_days=present,
        absent_days=len(records) - present,
    )


def assignment_breakdown(submissions: Sequence[AssignmentSubmission]) -> AssignmentBreakdown:
    return AssignmentBreakdown(
        total=len(submissions),
        submitted=sum(1 for s in submissions if s.submitted),
        average_score=average_score(submissions),
    )


def term_name(term: int) -> str:
    names = {1: "1st Term", 2: "2nd Term", 3: "3rd Term"}
    return names.get(term, f"Term {term}")
