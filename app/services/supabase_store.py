"""
Supabase-backed report store.

The supabase client is synchronous; every query runs in the threadpool so
the bulk fan-out can overlap network round-trips.
All student_reports writes rely on a unique index over
(student_id, subject_name, term, academic_year, teacher_id).
"""

import logging
from datetime import datetime, timezone
from typing import Sequence

from starlette.concurrency import run_in_threadpool

from app.core.database import get_supabase
from app.core.errors import (
    DuplicateError, FetchError, PersistenceError, ReportNotFoundError,
)
from app.schemas.reports import (
    AttendanceRecord, AssignmentSubmission, RemarkEntry, Report, ReportKey,
    ReportFilters, StudentProfile, BulkOutcome,
)
from app.services.guard import DUPLICATE_MESSAGE
from app.services.metrics import round_half_up
from app.services.store import persist_in_batches

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
REPORTS_TABLE = "student_reports"


def _row_to_report(row: dict) -> Report:
    return Report.model_validate(row)


def _report_to_row(report: Report) -> dict:
    return report.model_dump(mode="json", exclude={"id", "status", "submitted_at"})


class SupabaseReportStore:
    def __init__(self, db=None):
        self.db = db or get_supabase()

    async def _read(self, query, what: str):
        try:
            return await run_in_threadpool(query.execute)
        except Exception as e:
            logger.error("Supabase error fetching %s: %s", what, e)
            raise FetchError(f"Failed to fetch {what}: {e}") from e

    async def _write(self, query, what: str):
        try:
            return await run_in_threadpool(query.execute)
        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                raise DuplicateError(DUPLICATE_MESSAGE) from e
            logger.error("Supabase error saving %s: %s", what, e)
            raise PersistenceError(f"Failed to save {what}: {e}") from e

    # ===== COLLABORATOR READS =====

    async def get_attendance(self, student_id: str, subject_name: str) -> list[AttendanceRecord]:
        result = await self._read(
            self.db.table("attendance")
            .select("id, date, status, last_updated_at, subjects!inner(name)")
            .eq("student_id", student_id)
            .eq("subjects.name", subject_name)
            .order("date", desc=True),
            "attendance",
        )
        return [
            AttendanceRecord(date=r["date"], status=r["status"], marked_at=r.get("last_updated_at"))
            for r in result.data or []
        ]

    async def get_assignment_submissions(self, teacher_id: str, student_id: str,
                                         subject_name: str) -> list[AssignmentSubmission]:
        assignments = await self._read(
            self.db.table("assignments")
            .select("id, title, due_date, max_points, subjects!inner(name)")
            .eq("teacher_id", teacher_id)
            .eq("subjects.name", subject_name)
            .order("due_date", desc=False),
            "assignments",
        )
        if not assignments.data:
            return []

        ids = [a["id"] for a in assignments.data]
        submissions = await self._read(
            self.db.table("assignment_submissions")
            .select("assignment_id, score, status")
            .eq("student_id", student_id)
            .in_("assignment_id", ids),
            "assignment submissions",
        )
        sub_map = {s["assignment_id"]: s for s in submissions.data or []}

        result = []
        for a in assignments.data:
            sub = sub_map.get(a["id"])
            max_points = float(a.get("max_points") or 100)
            score = float(sub.get("score") or 0) if sub else 0
            result.append(AssignmentSubmission(
                assignment_id=a["id"],
                title=a.get("title") or "",
                due_date=a.get("due_date"),
                max_points=max_points,
                submitted=sub is not None,
                score=score,
                percentage=round_half_up(score / max_points * 100) if sub and max_points else 0,
                status=sub.get("status", "submitted") if sub else "not_submitted",
            ))
        return result

    async def get_remarks(self, student_id: str, subject_name: str, class_id: str, teacher_id: str) -> dict:
        result = await self._read(
            self.db.table("student_remarks")
            .select("id, remarks")
            .eq("student_id", student_id)
            .eq("subject_name", subject_name)
            .eq("class_id", class_id)
            .eq("teacher_id", teacher_id)
            .maybe_single(),
            "remarks",
        )
        if not result or not result.data:
            return {"remarks": "", "id": None}
        return {"remarks": result.data.get("remarks") or "", "id": result.data["id"]}

    async def get_student_profile(self, student_id: str) -> StudentProfile:
        result = await self._read(
            self.db.table("students")
            .select("id, full_name, first_name, surname, admission_number, class_id, classes(name)")
            .eq("id", student_id)
            .maybe_single(),
            "student profile",
        )
        if not result or not result.data:
            raise FetchError(f"Student profile not found: {student_id}")

        row = result.data
        class_info = row.get("classes") or {}
        return StudentProfile(
            id=row["id"],
            full_name=row.get("full_name"),
            first_name=row.get("first_name"),
            surname=row.get("surname"),
            admission_number=row.get("admission_number"),
            class_id=row.get("class_id"),
            class_name=class_info.get("name"),
        )

    # ===== REPORTS =====

    def _by_key(self, columns: str, key: ReportKey):
        return (
            self.db.table(REPORTS_TABLE)
            .select(columns)
            .eq("student_id", key.student_id)
            .eq("subject_name", key.subject_name)
            .eq("term", key.term)
            .eq("academic_year", key.academic_year)
            .eq("teacher_id", key.teacher_id)
            .limit(1)
        )

    async def report_exists(self, key: ReportKey) -> bool:
        result = await self._read(self._by_key("id", key), "report existence")
        return bool(result.data)

    async def find_report(self, key: ReportKey) -> Report | None:
        result = await self._read(self._by_key("*", key), "existing report")
        if not result.data:
            return None
        return _row_to_report(result.data[0])

    async def get_report(self, report_id: str) -> Report:
        result = await self._read(
            self.db.table(REPORTS_TABLE).select("*").eq("id", report_id).maybe_single(),
            "report",
        )
        if not result or not result.data:
            raise ReportNotFoundError(f"Report not found: {report_id}")
        return _row_to_report(result.data)

    async def list_reports(self, filters: ReportFilters) -> list[Report]:
        query = self.db.table(REPORTS_TABLE).select("*")
        for field, value in filters.model_dump(exclude_none=True).items():
            query = query.eq(field, value)
        result = await self._read(query.order("submitted_at", desc=True), "reports")
        return [_row_to_report(r) for r in result.data or []]

    # ===== WRITES =====

    async def save_remarks(self, entry: RemarkEntry):
        await self._write(
            self.db.table("student_remarks").upsert(
                entry.model_dump(),
                on_conflict="student_id,subject_name,class_id,teacher_id",
            ),
            "remarks",
        )

    async def submit_report(self, report: Report) -> Report:
        now = datetime.now(timezone.utc).isoformat()
        row = {
            **_report_to_row(report),
            "status": "submitted",
            "submitted_at": now,
            "created_at": now,
            "updated_at": now,
        }
        result = await self._write(self.db.table(REPORTS_TABLE).insert(row), "report")
        if not result.data:
            raise PersistenceError("Failed to save report: no row returned")
        return _row_to_report(result.data[0])

    async def submit_bulk_reports(self, reports: Sequence[Report]) -> BulkOutcome:
        return await persist_in_batches(self, reports)

    async def update_report(self, report_id: str, changes: dict) -> Report:
        payload = {
            k: (v.isoformat() if isinstance(v, datetime) else v)
            for k, v in changes.items()
        }
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        result = await self._write(
            self.db.table(REPORTS_TABLE).update(payload).eq("id", report_id),
            "report",
        )
        if not result.data:
            raise ReportNotFoundError(f"Report not found: {report_id}")
        return _row_to_report(result.data[0])
