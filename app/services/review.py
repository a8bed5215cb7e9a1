"""
Report review workflow.

    draft (never stored) -> submitted -> approved   (terminal)
                                      -> rejected -> resubmitted -> approved / rejected ...

Admins approve or reject reports waiting for review. Teachers can only
resubmit rejected reports. admin_notes and reviewed_at change only on
admin actions, so the teacher keeps seeing the last review note after
resubmitting.
"""

import logging
from datetime import datetime, timezone
from typing import get_args

from app.core.errors import InvalidTransitionError, ValidationError
from app.schemas.reports import Report, ReportFilters, ReportStatus, CallToAction
from app.services.assembler import clip_remarks

logger = logging.getLogger(__name__)

PENDING_STATUSES = ("submitted", "resubmitted")
PENDING_FILTER = "pending"

ADMIN_ACTIONS = {
    "approve": "approved",
    "reject": "rejected",
}

TRANSITIONS = {
    "draft": {"submitted"},
    "submitted": {"approved", "rejected"},
    "resubmitted": {"approved", "rejected"},
    "rejected": {"resubmitted"},
    "approved": set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, set())


def _check(report: Report, target: str):
    if not can_transition(report.status, target):
        if report.status == "approved":
            raise InvalidTransitionError("Report is already approved and can no longer be changed")
        raise InvalidTransitionError(f"Cannot move report from '{report.status}' to '{target}'")


def call_to_action(status: str | None) -> CallToAction:
    if status in PENDING_STATUSES:
        return CallToAction(label="Submit/Resubmit to Admin")
    if status == "approved":
        return CallToAction(label="Approved", enabled=False)
    if status == "rejected":
        return CallToAction(label="Resubmit to Admin")
    return CallToAction(label="Submit to Admin")


async def review(store, report_id: str, action: str, admin_notes: str = "") -> Report:
    """Admin approve/reject. Overwrites admin_notes and reviewed_at."""
    target = ADMIN_ACTIONS.get(action)
    if target is None:
        raise InvalidTransitionError(f"Invalid action: {action}")

    report = await store.get_report(report_id)
    _check(report, target)

    updated = await store.update_report(report_id, {
        "status": target,
        "admin_notes": admin_notes or "",
        "reviewed_at": datetime.now(timezone.utc),
    })
    logger.info("Report %s %s (was %s)", report_id, target, report.status)
    return updated


async def resubmit(store, report_id: str, teacher_id: str, remarks: str = "") -> Report:
    """Teacher resubmission of a rejected report with corrected remarks."""
    report = await store.get_report(report_id)
    if report.teacher_id != teacher_id:
        raise InvalidTransitionError("Only the teacher who submitted this report can resubmit it")
    _check(report, "resubmitted")

    updated = await store.update_report(report_id, {
        "status": "resubmitted",
        "remarks": clip_remarks(remarks),
        "submitted_at": datetime.now(timezone.utc),
    })
    logger.info("Report %s resubmitted by teacher %s", report_id, teacher_id)
    return updated


async def list_for_review(store, filters: ReportFilters, status: str | None = None) -> list[Report]:
    """
    Admin listing. An empty status means every status; "pending" is the
    review queue (submitted + resubmitted), newest submission first.
    """
    if not status:
        return await store.list_reports(filters.model_copy(update={"status": None}))

    if status == PENDING_FILTER:
        rows = []
        for s in PENDING_STATUSES:
            rows.extend(await store.list_reports(filters.model_copy(update={"status": s})))
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(rows, key=lambda r: r.submitted_at or epoch, reverse=True)

    if status not in get_args(ReportStatus):
        raise ValidationError(f"Invalid status filter: {status}")
    return await store.list_reports(filters.model_copy(update={"status": status}))


async def report_statistics(store, filters: ReportFilters) -> dict:
    reports = await store.list_reports(filters)

    stats = {
        "total": len(reports),
        "submitted": 0,
        "approved": 0,
        "rejected": 0,
        "resubmitted": 0,
        "by_term": {},
        "by_year": {},
    }
    for r in reports:
        if r.status in stats:
            stats[r.status] += 1
        stats["by_term"][r.term] = stats["by_term"].get(r.term, 0) + 1
        stats["by_year"][r.academic_year] = stats["by_year"].get(r.academic_year, 0) + 1
    return stats
