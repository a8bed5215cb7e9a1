"""
Reports router — Student progress reports for teachers.
Load a student's report, save remarks, submit one or all students,
resubmit rejected reports, overview counts, and rejected-report triage.
"""

from fastapi import APIRouter, Depends
from app.core.security import require_role
from app.schemas.reports import (
    StudentReportRequest, SingleSubmit, BulkSubmit, RemarksSave, RemarkEntry,
    Resubmit, OverviewRequest, ReportFilters, ReportStatus,
)
from app.services import review, triage
from app.services.overview import compute_overview
from app.services.remarks import save_remarks
from app.services.store import get_report_store
from app.services.submission import load_student_report, submit_single, submit_bulk
from app.utils.response import success_response, outcome_response

router = APIRouter(prefix="/api/reports", tags=["Reports"])


def _teacher_id(user: dict) -> str:
    return user.get("user_id", user.get("uid"))


# ===== STUDENT REPORT =====

@router.post("/student-report")
async def get_student_report(
    body: StudentReportRequest,
    user: dict = Depends(require_role(["teacher"])),
    store=Depends(get_report_store),
):
    """Attendance, assignments, remarks, and the draft report for one student."""
    view = await load_student_report(store, body, body.student, user)
    return success_response(data=view.model_dump(mode="json"))


@router.put("/remarks")
async def update_remarks(
    body: RemarksSave,
    user: dict = Depends(require_role(["teacher"])),
    store=Depends(get_report_store),
):
    entry = RemarkEntry(
        student_id=body.student.id,
        student_name=body.student.name,
        subject_name=body.subject_name,
        class_id=body.class_id,
        teacher_id=_teacher_id(user),
        remarks=body.remarks,
    )
    saved = await save_remarks(store, entry)
    return success_response(data=saved.model_dump(), message="Remarks saved")


# ===== SUBMISSION =====

@router.post("/submit")
async def submit_report(
    body: SingleSubmit,
    user: dict = Depends(require_role(["teacher"])),
    store=Depends(get_report_store),
):
    report = await submit_single(store, body, user)
    return success_response(
        data=report.model_dump(mode="json"),
        message="Report submitted to admin successfully!",
    )


@router.post("/submit-bulk")
async def submit_bulk_reports(
    body: BulkSubmit,
    user: dict = Depends(require_role(["teacher"])),
    store=Depends(get_report_store),
):
    outcome = await submit_bulk(store, body, user)
    return outcome_response(outcome)


@router.get("/mine")
async def get_my_reports(
    status: ReportStatus | None = None,
    term: int | None = None,
    academic_year: int | None = None,
    subject_name: str | None = None,
    user: dict = Depends(require_role(["teacher"])),
    store=Depends(get_report_store),
):
    filters = ReportFilters(
        teacher_id=_teacher_id(user),
        status=status,
        term=term,
        academic_year=academic_year,
        subject_name=subject_name,
    )
    reports = await store.list_reports(filters)
    data = [
        {**r.model_dump(mode="json"), "call_to_action": review.call_to_action(r.status).model_dump()}
        for r in reports
    ]
    return success_response(data=data)


@router.post("/{report_id}/resubmit")
async def resubmit_report(
    report_id: str,
    body: Resubmit,
    user: dict = Depends(require_role(["teacher"])),
    store=Depends(get_report_store),
):
    report = await review.resubmit(store, report_id, _teacher_id(user), body.remarks)
    return success_response(data=report.model_dump(mode="json"), message="Report resubmitted for review")


@router.post("/overview")
async def report_overview(
    body: OverviewRequest,
    user: dict = Depends(require_role(["teacher"])),
    store=Depends(get_report_store),
):
    counts = await compute_overview(
        store, _teacher_id(user), body.subject_name, body.term, body.academic_year, body.roster_size,
    )
    return success_response(data=counts.model_dump())


# ===== REJECTED REPORT TRIAGE =====

def _triage_state(session: triage.RejectionTriage, opened=None) -> dict:
    return {
        "reports": [r.model_dump(mode="json") for r in session.reports],
        "cursor": session.cursor,
        "opened": opened.model_dump(mode="json") if opened else None,
    }


@router.get("/rejected")
async def list_rejected(
    auto_open: bool = False,
    user: dict = Depends(require_role(["teacher"])),
    store=Depends(get_report_store),
):
    """Rejected reports, newest first. auto_open opens the first one once per session."""
    session = triage.get_triage_session(store, user)
    await session.refresh()
    opened = await session.auto_open_first(auto_open)
    return success_response(data=_triage_state(session, opened))


@router.post("/rejected/next")
async def open_next_rejected(
    user: dict = Depends(require_role(["teacher"])),
    store=Depends(get_report_store),
):
    session = triage.get_triage_session(store, user)
    opened = await session.next()
    return success_response(data=_triage_state(session, opened))


@router.post("/rejected/prev")
async def open_prev_rejected(
    user: dict = Depends(require_role(["teacher"])),
    store=Depends(get_report_store),
):
    session = triage.get_triage_session(store, user)
    opened = await session.prev()
    return success_response(data=_triage_state(session, opened))


@router.post("/rejected/{index}/open")
async def open_rejected(
    index: int,
    user: dict = Depends(require_role(["teacher"])),
    store=Depends(get_report_store),
):
    session = triage.get_triage_session(store, user)
    if not session.reports:
        await session.refresh()
    opened = await session.open_at(index)
    return success_response(data=_triage_state(session, opened))
