"""
Report store selection + bulk persistence shared by every backend.

A report store is any object exposing these coroutines:

    get_attendance(student_id, subject_name) -> list[AttendanceRecord]
    get_assignment_submissions(teacher_id, student_id, subject_name) -> list[AssignmentSubmission]
    get_remarks(student_id, subject_name, class_id, teacher_id) -> {"remarks", "id"}
    save_remarks(entry: RemarkEntry) -> None
    report_exists(key) -> bool
    find_report(key) -> Report | None
    get_report(report_id) -> Report
    submit_report(report) -> Report
    submit_bulk_reports(reports) -> BulkOutcome
    list_reports(filters: ReportFilters) -> list[Report]
    update_report(report_id, changes: dict) -> Report
    get_student_profile(student_id) -> StudentProfile

Reads raise FetchError, writes raise PersistenceError (DuplicateError when
the storage-level uniqueness constraint fires).
"""

import asyncio
import logging
from typing import Sequence

from app.core.config import settings
from app.core.errors import ReportError
from app.schemas.reports import Report, BulkOutcome, BulkSuccess, BulkFailure
from app.services.guard import ensure_unique

logger = logging.getLogger(__name__)

_memory_store = None


def get_report_store():
    """
    Resolve the backend from settings on every call.
    Usable directly or as a FastAPI dependency.
    """
    global _memory_store
    if settings.REPORT_BACKEND == "supabase":
        from app.services.supabase_store import SupabaseReportStore
        return SupabaseReportStore()

    if _memory_store is None:
        from app.services.memory_store import MemoryReportStore
        _memory_store = MemoryReportStore()
    return _memory_store


async def _persist_one(store, report: Report) -> BulkSuccess | BulkFailure:
    try:
        await ensure_unique(store, report.key)
        saved = await store.submit_report(report)
        return BulkSuccess(student_name=report.student_name, report_id=saved.id)
    except ReportError as e:
        return BulkFailure(student_name=report.student_name, error=e.message)
    except Exception as e:
        logger.exception("Unexpected error persisting report for %s", report.student_name)
        return BulkFailure(student_name=report.student_name, error=str(e) or "Unknown error")


async def persist_in_batches(store, reports: Sequence[Report], batch_size: int | None = None) -> BulkOutcome:
    """
    Persist reports batch by batch; items inside a batch run concurrently.
    Every item re-runs the guard, so existing reports are skipped and
    reported as failures instead of being written twice.
    """
    size = max(1, batch_size or settings.BULK_BATCH_SIZE)
    successful: list[BulkSuccess] = []
    failed: list[BulkFailure] = []

    for i in range(0, len(reports), size):
        batch = reports[i:i + size]
        results = await asyncio.gather(*(_persist_one(store, r) for r in batch))
        for result in results:
            if isinstance(result, BulkSuccess):
                successful.append(result)
            else:
                failed.append(result)

    return BulkOutcome(
        successful=successful,
        failed=failed,
        total_submitted=len(successful),
        total_failed=len(failed),
    )
