from __future__ import annotations

from typing import Iterator

import pytest

from app.core.config import settings
from app.schemas.reports import StudentProfile, StudentRef
from app.services import triage
from app.services.memory_store import MemoryReportStore
from tests.factories import TEACHER


@pytest.fixture()
def teacher() -> dict:
    return dict(TEACHER)


@pytest.fixture()
def store() -> MemoryReportStore:
    return MemoryReportStore()


@pytest.fixture()
def seeded_store(store: MemoryReportStore) -> MemoryReportStore:
    for sid, name in (("s1", "Ada Eze"), ("s2", "Bola Ade"), ("s3", "Chidi Obi")):
        first, surname = name.split()
        store.add_profile(StudentProfile(
            id=sid, first_name=first, surname=surname, admission_number=f"ADM-{sid}", class_name="JSS 1A",
        ))
    return store


@pytest.fixture()
def students() -> list[StudentRef]:
    return [
        StudentRef(id="s1", name="Ada Eze", admission_number="ADM-s1"),
        StudentRef(id="s2", name="Bola Ade", admission_number="ADM-s2"),
        StudentRef(id="s3", name="Chidi Obi", admission_number="ADM-s3"),
    ]


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch) -> Iterator[None]:
    monkeypatch.setattr(settings, "AUTH_MODE", "mock")
    monkeypatch.setattr(settings, "REPORT_BACKEND", "memory")
    monkeypatch.setattr(settings, "BULK_BATCH_SIZE", 10)
    monkeypatch.setattr(settings, "BULK_GATHER_CONCURRENCY", 0)
    triage.reset_triage_sessions()
    yield
    triage.reset_triage_sessions()
