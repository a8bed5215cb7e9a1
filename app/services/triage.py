"""
Rejected-report triage: walk a teacher's rejected reports one by one.

Opening a report always re-reads the student's identity from the profile
collaborator; the name stored on the report row may be stale.
"""

import logging
from collections import OrderedDict

from app.core.errors import ReportNotFoundError, ValidationError
from app.schemas.reports import Report, ReportFilters, SelectionContext, StudentReportView
from app.services.assembler import student_from_profile
from app.services.submission import load_student_report

logger = logging.getLogger(__name__)


def _recency(report: Report):
    stamp = report.reviewed_at or report.submitted_at
    return stamp.timestamp() if stamp else 0.0


class RejectionTriage:
    def __init__(self, store, actor: dict):
        self.store = store
        self.actor = actor
        self.teacher_id = actor.get("user_id", actor.get("uid"))
        self.reports: list[Report] = []
        self.cursor: int = 0
        self.auto_open_fired = False

    async def refresh(self) -> list[Report]:
        rows = await self.store.list_reports(ReportFilters(teacher_id=self.teacher_id, status="rejected"))
        self.reports = sorted(rows, key=_recency, reverse=True)
        if self.cursor >= len(self.reports):
            self.cursor = max(0, len(self.reports) - 1)
        return self.reports

    @property
    def current(self) -> Report | None:
        if not self.reports:
            return None
        return self.reports[self.cursor]

    async def open_at(self, index: int) -> StudentReportView:
        if not 0 <= index < len(self.reports):
            raise ReportNotFoundError(f"No rejected report at position {index}")

        report = self.reports[index]
        profile = await self.store.get_student_profile(report.student_id)
        student = student_from_profile(profile)
        class_id = report.class_id or profile.class_id
        if not class_id:
            raise ValidationError(f"Cannot resolve the class for report {report.id}")

        context = SelectionContext(
            subject_name=report.subject_name,
            class_id=class_id,
            class_name=profile.class_name or report.class_name,
            term=report.term,
            academic_year=report.academic_year,
        )
        view = await load_student_report(self.store, context, student, self.actor)
        self.cursor = index
        logger.info("Opened rejected report %s (%d/%d)", report.id, index + 1, len(self.reports))
        return view

    async def next(self) -> StudentReportView | None:
        if self.cursor >= len(self.reports) - 1:
            return None
        return await self.open_at(self.cursor + 1)

    async def prev(self) -> StudentReportView | None:
        if self.cursor <= 0 or not self.reports:
            return None
        return await self.open_at(self.cursor - 1)

    async def auto_open_first(self, requested: bool) -> StudentReportView | None:
        """Jump to the newest rejected report, at most once per session."""
        if not requested or self.auto_open_fired:
            return None
        self.auto_open_fired = True
        if not self.reports:
            return None
        return await self.open_at(0)


# Least recently used sessions are dropped past this many teachers.
MAX_SESSIONS = 500

_sessions: OrderedDict[str, RejectionTriage] = OrderedDict()


def get_triage_session(store, actor: dict) -> RejectionTriage:
    teacher_id = actor.get("user_id", actor.get("uid"))
    session = _sessions.get(teacher_id)
    if session is None:
        session = RejectionTriage(store, actor)
        _sessions[teacher_id] = session
        while len(_sessions) > MAX_SESSIONS:
            _sessions.popitem(last=False)
    else:
        _sessions.move_to_end(teacher_id)
    session.store = store
    session.actor = actor
    return session


def reset_triage_sessions():
    _sessions.clear()
