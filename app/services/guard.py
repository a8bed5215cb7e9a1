"""
Submission guard: one report per (student, subject, term, year, teacher).

Usage:
    from app.services.guard import ensure_unique

    await ensure_unique(store, report.key)
    await store.submit_report(report)

Runs right before every write, per student, on both the single and bulk
paths.
"""

import logging

from app.core.errors import DuplicateError
from app.schemas.reports import ReportKey

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Report already exists for this student, subject, term, and academic year"
REJECTED_HINT = "The existing report was rejected; edit and resubmit it instead."


async def exists(store, key: ReportKey) -> bool:
    return await store.report_exists(key)


async def ensure_unique(store, key: ReportKey):
    """
    Raise DuplicateError if a report already exists for the key.
    Nothing is written either way.
    """
    if not await exists(store, key):
        return

    # Only a blocked submission needs the row itself, for the status hint.
    existing = await store.find_report(key)
    status = existing.status if existing else None
    logger.info(
        "Duplicate report blocked: student=%s subject=%s term=%s year=%s teacher=%s (status=%s)",
        key.student_id, key.subject_name, key.term, key.academic_year, key.teacher_id, status,
    )
    if status == "rejected":
        raise DuplicateError(f"{DUPLICATE_MESSAGE}. {REJECTED_HINT}")
    raise DuplicateError(DUPLICATE_MESSAGE)
