"""
Review router — Admin approval / rejection of submitted reports, statistics.
"""

from fastapi import APIRouter, Depends
from app.core.security import require_role
from app.schemas.reports import ReviewAction, ReportFilters
from app.services import review
from app.services.store import get_report_store
from app.utils.response import success_response

router = APIRouter(prefix="/api/review", tags=["Review"])


@router.get("/reports")
async def list_reports(
    status: str | None = None,
    term: int | None = None,
    academic_year: int | None = None,
    subject_name: str | None = None,
    class_name: str | None = None,
    teacher_id: str | None = None,
    user: dict = Depends(require_role(["admin"])),
    store=Depends(get_report_store),
):
    """status: empty for all, a report status, or "pending" for the review queue."""
    filters = ReportFilters(
        term=term,
        academic_year=academic_year,
        subject_name=subject_name,
        class_name=class_name,
        teacher_id=teacher_id,
    )
    reports = await review.list_for_review(store, filters, status)
    return success_response(data=[r.model_dump(mode="json") for r in reports])


@router.patch("/reports/{report_id}")
async def review_report(
    report_id: str,
    body: ReviewAction,
    user: dict = Depends(require_role(["admin"])),
    store=Depends(get_report_store),
):
    report = await review.review(store, report_id, body.action, body.admin_notes)
    return success_response(data=report.model_dump(mode="json"), message=f"Report {report.status}")


@router.get("/statistics")
async def report_statistics(
    term: int | None = None,
    academic_year: int | None = None,
    teacher_id: str | None = None,
    user: dict = Depends(require_role(["admin"])),
    store=Depends(get_report_store),
):
    stats = await review.report_statistics(
        store, ReportFilters(term=term, academic_year=academic_year, teacher_id=teacher_id),
    )
    return success_response(data=stats)
