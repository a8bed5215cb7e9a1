"""
Builds the canonical Report draft from metrics plus identity and context.
"""

from typing import Sequence

from app.schemas.reports import (
    REMARKS_MAX_LENGTH, Report, StudentRef, StudentProfile, AttendanceRecord, AssignmentSubmission,
)
from app.services import metrics


def get_teacher_name(user: dict | None) -> str:
    if not user:
        return "Unknown Teacher"

    first, last = user.get("first_name"), user.get("last_name")
    email = user.get("email") or ""
    return (
        user.get("name")
        or user.get("display_name")
        or (f"{first} {last}" if first and last else "")
        or email.split("@")[0]
        or "Unknown Teacher"
    )


def get_student_name(profile: StudentProfile) -> str:
    if profile.full_name:
        return profile.full_name
    parts = [p for p in (profile.first_name, profile.surname) if p]
    return " ".join(parts) or "Unknown Student"


def student_from_profile(profile: StudentProfile) -> StudentRef:
    return StudentRef(
        id=profile.id,
        name=get_student_name(profile),
        admission_number=profile.admission_number,
    )


def clip_remarks(text: str | None) -> str:
    return (text or "")[: REMARKS_MAX_LENGTH]


def assemble_report(
    *,
    student: StudentRef,
    class_id: str | None,
    class_name: str | None,
    subject_name: str,
    term: int,
    academic_year: int,
    actor: dict,
    attendance: Sequence[AttendanceRecord],
    submissions: Sequence[AssignmentSubmission],
    remarks: str | None = "",
) -> Report:
    """
    Assemble a draft report. The draft has no id and status "draft";
    it only becomes durable through one of the submission orchestrators.
    """
    assignment_stats = metrics.assignment_breakdown(submissions)
    return Report(
        student_id=student.id,
        student_name=student.name or "Unknown Student",
        student_admission_number=student.admission_number,
        class_id=class_id,
        class_name=class_name or "Unknown Class",
        subject_name=subject_name,
        teacher_id=actor.get("user_id", actor.get("uid")),
        teacher_name=get_teacher_name(actor),
        academic_year=academic_year,
        term=term,
        attendance_rate=metrics.attendance_rate(attendance),
        average_score=assignment_stats.average_score,
        total_assignments=assignment_stats.total,
        submitted_assignments=assignment_stats.submitted,
        remarks=clip_remarks(remarks),
        attendance_breakdown=metrics.attendance_breakdown(attendance),
        assignment_breakdown=assignment_stats,
        status="draft",
    )
