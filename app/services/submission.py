"""
Report submission: load a student's report data, submit one report, or
submit the whole class in bulk.

Single submission: guard -> metrics -> assemble -> persist. Any failure
surfaces as one error and nothing is written.

Bulk submission: every student's fetch/aggregate/assemble chain starts at
once and all of them are awaited. A failing student becomes an entry in
`failed` and never aborts the batch; the valid drafts are persisted through
the store's bulk call, which re-checks the guard for each report.
"""

import asyncio
import contextlib
import logging

from app.core.config import settings
from app.core.errors import ReportError, ValidationError, PersistenceError
from app.schemas.reports import (
    SelectionContext, SingleSubmit, BulkSubmit, StudentRef, Report, ReportKey,
    BulkOutcome, BulkFailure, StudentReportView,
)
from app.services.assembler import assemble_report
from app.services.guard import ensure_unique
from app.services.review import call_to_action

logger = logging.getLogger(__name__)

NO_VALID_REPORTS = "No valid reports could be prepared. Please try again."


def _actor_id(actor: dict | None) -> str | None:
    if not actor:
        return None
    return actor.get("user_id", actor.get("uid"))


async def _or_default(coro, default, what: str, student_id: str):
    try:
        return await coro
    except Exception as e:
        logger.warning("Error fetching %s for student %s: %s", what, student_id, e)
        return default


async def load_student_report(store, context: SelectionContext, student: StudentRef, actor: dict) -> StudentReportView:
    """
    Gather attendance, assignments, and remarks for one student and build
    the draft the teacher reviews before submitting.
    Sections whose fetch fails are shown empty.
    """
    teacher_id = _actor_id(actor)
    if not context.subject_name or not context.class_id or not teacher_id:
        raise ValidationError("Please select a class and subject first")

    attendance, submissions, remarks = await asyncio.gather(
        _or_default(store.get_attendance(student.id, context.subject_name), [], "attendance", student.id),
        _or_default(
            store.get_assignment_submissions(teacher_id, student.id, context.subject_name),
            [], "assignment submissions", student.id,
        ),
        _or_default(
            store.get_remarks(student.id, context.subject_name, context.class_id, teacher_id),
            {"remarks": "", "id": None}, "remarks", student.id,
        ),
    )

    draft = assemble_report(
        student=student,
        class_id=context.class_id,
        class_name=context.class_name,
        subject_name=context.subject_name,
        term=context.term,
        academic_year=context.academic_year,
        actor=actor,
        attendance=attendance,
        submissions=submissions,
        remarks=remarks.get("remarks"),
    )
    existing = await _or_default(store.find_report(draft.key), None, "existing report", student.id)

    return StudentReportView(
        student=student,
        attendance=attendance,
        assignments=submissions,
        remarks=draft.remarks,
        remarks_id=remarks.get("id"),
        draft=draft,
        existing=existing,
        call_to_action=call_to_action(existing.status if existing else None),
    )


async def submit_single(store, body: SingleSubmit, actor: dict) -> Report:
    teacher_id = _actor_id(actor)
    if not body.student or not body.subject_name or not body.class_id or not teacher_id:
        raise ValidationError("Please ensure all required fields are selected")

    key = ReportKey(
        student_id=body.student.id,
        subject_name=body.subject_name,
        term=body.term,
        academic_year=body.academic_year,
        teacher_id=teacher_id,
    )
    await ensure_unique(store, key)

    report = assemble_report(
        student=body.student,
        class_id=body.class_id,
        class_name=body.class_name,
        subject_name=body.subject_name,
        term=body.term,
        academic_year=body.academic_year,
        actor=actor,
        attendance=body.attendance,
        submissions=body.assignments,
        remarks=body.remarks,
    )

    try:
        saved = await store.submit_report(report)
    except ReportError:
        raise
    except Exception as e:
        logger.exception("Error submitting report for student %s", body.student.id)
        raise PersistenceError(f"Failed to submit report: {e}") from e

    logger.info(
        "Report %s submitted: student=%s subject=%s term=%s year=%s",
        saved.id, saved.student_id, saved.subject_name, saved.term, saved.academic_year,
    )
    return saved


async def _prepare_report(store, body: BulkSubmit, student: StudentRef, actor: dict, limiter) -> Report:
    teacher_id = _actor_id(actor)
    async with limiter:
        attendance, submissions, remarks = await asyncio.gather(
            store.get_attendance(student.id, body.subject_name),
            store.get_assignment_submissions(teacher_id, student.id, body.subject_name),
            store.get_remarks(student.id, body.subject_name, body.class_id, teacher_id),
        )

    return assemble_report(
        student=student,
        class_id=body.class_id,
        class_name=body.class_name,
        subject_name=body.subject_name,
        term=body.term,
        academic_year=body.academic_year,
        actor=actor,
        attendance=attendance,
        submissions=submissions,
        remarks=(remarks or {}).get("remarks"),
    )


async def submit_bulk(store, body: BulkSubmit, actor: dict) -> BulkOutcome:
    """
    Submit reports for every student in the class.

    Partial failure is never raised: the returned outcome lists each
    student that failed with its reason. Only a failure of the bulk
    persistence call itself raises PersistenceError.
    """
    if not body.class_id or not body.subject_name or not _actor_id(actor) or not body.students:
        raise ValidationError("Please ensure class, subject, and students are selected")

    bound = settings.BULK_GATHER_CONCURRENCY
    limiter = asyncio.Semaphore(bound) if bound > 0 else contextlib.nullcontext()

    results = await asyncio.gather(
        *(_prepare_report(store, body, s, actor, limiter) for s in body.students),
        return_exceptions=True,
    )

    valid: list[Report] = []
    excluded: list[BulkFailure] = []
    for student, result in zip(body.students, results):
        if isinstance(result, Report):
            valid.append(result)
            continue
        error = result.message if isinstance(result, ReportError) else f"Failed to load student data: {result}"
        logger.warning("Excluding student %s from bulk submission: %s", student.id, error)
        excluded.append(BulkFailure(student_name=student.name or student.id, error=error))

    if not valid:
        return BulkOutcome(
            ok=False,
            message=NO_VALID_REPORTS,
            total_failed=len(excluded),
            failed=excluded,
        )

    try:
        persisted = await store.submit_bulk_reports(valid)
    except Exception as e:
        logger.exception("Bulk report persistence failed")
        if isinstance(e, PersistenceError):
            raise
        raise PersistenceError(f"Error submitting bulk reports: {e}") from e

    failed = excluded + persisted.failed
    outcome = BulkOutcome(
        ok=True,
        total_submitted=persisted.total_submitted,
        total_failed=len(failed),
        successful=persisted.successful,
        failed=failed,
    )
    outcome.message = f"Bulk submission completed! {outcome.summary()}"
    logger.info(
        "Bulk submission for %s/%s: %d succeeded, %d failed",
        body.class_id, body.subject_name, outcome.total_submitted, outcome.total_failed,
    )
    return outcome
