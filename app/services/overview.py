"""
Live per-status counts for the teacher's current selection.
"""

from app.schemas.reports import ReportFilters, OverviewCounts

COUNTED_STATUSES = ("submitted", "approved", "rejected", "resubmitted")


async def compute_overview(store, teacher_id: str, subject_name: str | None, term: int,
                           academic_year: int, roster_size: int = 0) -> OverviewCounts:
    # Without a subject there is nothing to count yet; only the roster is known.
    if not subject_name:
        return OverviewCounts(roster_size=roster_size)

    reports = await store.list_reports(ReportFilters(
        teacher_id=teacher_id,
        subject_name=subject_name,
        term=term,
        academic_year=academic_year,
    ))

    counts = {s: 0 for s in COUNTED_STATUSES}
    for r in reports:
        if r.status in counts:
            counts[r.status] += 1

    return OverviewCounts(
        roster_size=roster_size,
        total=len(reports),
        pending=counts["submitted"] + counts["resubmitted"],
        **counts,
    )
