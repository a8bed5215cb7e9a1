import asyncio

import pytest

from app.core.errors import ReportNotFoundError, ValidationError
from app.schemas.reports import RemarkEntry, StudentProfile
from app.services import triage
from app.services.triage import RejectionTriage, get_triage_session
from tests.factories import TEACHER, make_report, ts


def _reject(store, student_id, reviewed_day, **overrides):
    saved = asyncio.run(store.submit_report(make_report(student_id, **overrides)))
    return asyncio.run(store.update_report(saved.id, {
        "status": "rejected",
        "admin_notes": f"Fix {student_id}",
        "reviewed_at": ts(reviewed_day),
    }))


class CountingProfiles:
    """Wraps a store and records profile lookups."""

    def __init__(self, store):
        self.store = store
        self.profile_calls = []

    def __getattr__(self, name):
        return getattr(self.store, name)

    async def get_student_profile(self, student_id):
        self.profile_calls.append(student_id)
        return await self.store.get_student_profile(student_id)


@pytest.fixture()
def triage_store(seeded_store):
    _reject(seeded_store, "s1", reviewed_day=1, student_name="Stale Name")
    _reject(seeded_store, "s2", reviewed_day=3)
    _reject(seeded_store, "s3", reviewed_day=2)
    asyncio.run(seeded_store.submit_report(make_report("s1", subject_name="Mathematics")))
    return CountingProfiles(seeded_store)


def _session(store) -> RejectionTriage:
    session = RejectionTriage(store, TEACHER)
    asyncio.run(session.refresh())
    return session


def test_lists_rejected_most_recent_first(triage_store):
    session = _session(triage_store)
    assert [r.student_id for r in session.reports] == ["s2", "s3", "s1"]
    assert all(r.status == "rejected" for r in session.reports)


def test_open_at_refetches_identity_from_profile(triage_store):
    session = _session(triage_store)
    view = asyncio.run(session.open_at(2))

    assert triage_store.profile_calls == ["s1"]
    assert session.reports[2].student_name == "Stale Name"
    assert view.student.name == "Ada Eze"
    assert view.draft.student_name == "Ada Eze"
    assert view.existing.status == "rejected"
    assert view.call_to_action.label == "Resubmit to Admin"
    assert session.cursor == 2


def test_prev_at_start_is_noop(triage_store):
    session = _session(triage_store)
    assert session.cursor == 0
    assert asyncio.run(session.prev()) is None
    assert session.cursor == 0
    assert triage_store.profile_calls == []


def test_next_at_end_is_noop(triage_store):
    session = _session(triage_store)
    asyncio.run(session.open_at(2))
    triage_store.profile_calls.clear()

    assert asyncio.run(session.next()) is None
    assert session.cursor == 2
    assert triage_store.profile_calls == []


def test_next_and_prev_walk_the_list(triage_store):
    session = _session(triage_store)
    view = asyncio.run(session.next())
    assert view.student.id == "s3"
    assert session.cursor == 1

    view = asyncio.run(session.prev())
    assert view.student.id == "s2"
    assert session.cursor == 0


def test_open_at_out_of_range(triage_store):
    session = _session(triage_store)
    with pytest.raises(ReportNotFoundError):
        asyncio.run(session.open_at(3))
    with pytest.raises(ReportNotFoundError):
        asyncio.run(session.open_at(-1))


def test_auto_open_fires_once(triage_store):
    session = _session(triage_store)

    assert asyncio.run(session.auto_open_first(False)) is None
    first = asyncio.run(session.auto_open_first(True))
    assert first.student.id == "s2"
    assert asyncio.run(session.auto_open_first(True)) is None
    assert triage_store.profile_calls == ["s2"]


def test_auto_open_does_not_refire_after_empty_attempt(store):
    session = _session(store)
    assert asyncio.run(session.auto_open_first(True)) is None
    assert session.auto_open_fired is True


def test_navigation_on_empty_list(store):
    session = _session(store)
    assert session.current is None
    assert asyncio.run(session.next()) is None
    assert asyncio.run(session.prev()) is None


def test_sessions_are_kept_per_teacher(store):
    first = get_triage_session(store, TEACHER)
    again = get_triage_session(store, TEACHER)
    other = get_triage_session(store, {**TEACHER, "user_id": "t2"})
    assert first is again
    assert first is not other


def test_open_uses_profile_class_when_report_has_none(seeded_store):
    seeded_store.add_profile(StudentProfile(id="s4", first_name="Dayo", surname="Ola", class_id="c9", class_name="JSS 2B"))
    asyncio.run(seeded_store.save_remarks(RemarkEntry(
        student_id="s4", subject_name="English", class_id="c9", teacher_id=TEACHER["user_id"], remarks="Keep reading",
    )))
    _reject(seeded_store, "s4", reviewed_day=5, class_id=None, class_name="JSS 2B")

    session = _session(seeded_store)
    view = asyncio.run(session.open_at(0))

    assert view.draft.class_id == "c9"
    assert view.remarks == "Keep reading"


def test_open_without_any_class_id_is_rejected(seeded_store):
    _reject(seeded_store, "s1", reviewed_day=1, class_id=None)
    session = _session(seeded_store)
    with pytest.raises(ValidationError):
        asyncio.run(session.open_at(0))


def test_session_registry_is_bounded(store, monkeypatch):
    monkeypatch.setattr(triage, "MAX_SESSIONS", 2)
    first = get_triage_session(store, {**TEACHER, "user_id": "t1"})
    get_triage_session(store, {**TEACHER, "user_id": "t2"})
    assert get_triage_session(store, {**TEACHER, "user_id": "t1"}) is first

    get_triage_session(store, {**TEACHER, "user_id": "t3"})

    assert set(triage._sessions) == {"t1", "t3"}
