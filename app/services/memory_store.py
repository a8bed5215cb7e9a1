"""
In-process report store, used in mock/demo mode and by the test-suite.

Mirrors the Supabase tables with plain dicts. The uniqueness check inside
submit_report runs without a suspension point, so it behaves like a unique
index on (student_id, subject_name, term, academic_year, teacher_id).
"""

import uuid
from datetime import datetime, timezone
from typing import Sequence

from app.core.errors import DuplicateError, FetchError, ReportNotFoundError
from app.schemas.reports import (
    AttendanceRecord, AssignmentSubmission, RemarkEntry, Report, ReportKey,
    ReportFilters, StudentProfile, BulkOutcome,
)
from app.services.guard import DUPLICATE_MESSAGE
from app.services.store import persist_in_batches


class MemoryReportStore:
    def __init__(self):
        self.attendance: dict[tuple, list[AttendanceRecord]] = {}
        self.assignments: dict[tuple, list[AssignmentSubmission]] = {}
        self.remarks: dict[tuple, dict] = {}
        self.reports: dict[str, Report] = {}
        self.profiles: dict[str, StudentProfile] = {}

    # ---- seeding ----
    def add_attendance(self, student_id: str, subject_name: str, records: Sequence[AttendanceRecord]):
        self.attendance.setdefault((student_id, subject_name), []).extend(records)

    def add_assignments(self, teacher_id: str, student_id: str, subject_name: str,
                        submissions: Sequence[AssignmentSubmission]):
        self.assignments.setdefault((teacher_id, student_id, subject_name), []).extend(submissions)

    def add_profile(self, profile: StudentProfile):
        self.profiles[profile.id] = profile

    # ---- reads ----
    async def get_attendance(self, student_id: str, subject_name: str) -> list[AttendanceRecord]:
        rows = self.attendance.get((student_id, subject_name), [])
        return sorted(rows, key=lambda r: r.date, reverse=True)

    async def get_assignment_submissions(self, teacher_id: str, student_id: str,
                                         subject_name: str) -> list[AssignmentSubmission]:
        return list(self.assignments.get((teacher_id, student_id, subject_name), []))

    async def get_remarks(self, student_id: str, subject_name: str, class_id: str, teacher_id: str) -> dict:
        entry = self.remarks.get((student_id, subject_name, class_id, teacher_id))
        if not entry:
            return {"remarks": "", "id": None}
        return {"remarks": entry["remarks"], "id": entry["id"]}

    async def get_student_profile(self, student_id: str) -> StudentProfile:
        profile = self.profiles.get(student_id)
        if profile is None:
            raise FetchError(f"Student profile not found: {student_id}")
        return profile

    async def report_exists(self, key: ReportKey) -> bool:
        return any(r.key == key for r in self.reports.values())

    async def find_report(self, key: ReportKey) -> Report | None:
        for report in self.reports.values():
            if report.key == key:
                return report
        return None

    async def get_report(self, report_id: str) -> Report:
        report = self.reports.get(report_id)
        if report is None:
            raise ReportNotFoundError(f"Report not found: {report_id}")
        return report

    async def list_reports(self, filters: ReportFilters) -> list[Report]:
        wanted = filters.model_dump(exclude_none=True)
        rows = [
            r for r in self.reports.values()
            if all(getattr(r, field) == value for field, value in wanted.items())
        ]
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(rows, key=lambda r: r.submitted_at or epoch, reverse=True)

    # ---- writes ----
    async def save_remarks(self, entry: RemarkEntry):
        key = (entry.student_id, entry.subject_name, entry.class_id, entry.teacher_id)
        existing = self.remarks.get(key)
        self.remarks[key] = {
            "id": existing["id"] if existing else str(uuid.uuid4()),
            "student_name": entry.student_name,
            "remarks": entry.remarks,
        }

    async def submit_report(self, report: Report) -> Report:
        if await self.find_report(report.key) is not None:
            raise DuplicateError(DUPLICATE_MESSAGE)

        saved = report.model_copy(update={
            "id": str(uuid.uuid4()),
            "status": "submitted",
            "submitted_at": datetime.now(timezone.utc),
        })
        self.reports[saved.id] = saved
        return saved

    async def submit_bulk_reports(self, reports: Sequence[Report]) -> BulkOutcome:
        return await persist_in_batches(self, reports)

    async def update_report(self, report_id: str, changes: dict) -> Report:
        current = await self.get_report(report_id)
        updated = current.model_copy(update=changes)
        self.reports[report_id] = updated
        return updated
