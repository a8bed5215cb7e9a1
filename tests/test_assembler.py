from app.schemas.reports import REMARKS_MAX_LENGTH, StudentProfile, StudentRef
from app.services import metrics
from app.services.assembler import (
    assemble_report, get_teacher_name, get_student_name, student_from_profile,
)
from tests.factories import TEACHER, attendance, submissions


def test_teacher_name_resolution_order():
    assert get_teacher_name({"name": "Amina", "display_name": "Ms A"}) == "Amina"
    assert get_teacher_name({"display_name": "Ms A", "first_name": "Amina", "last_name": "Okafor"}) == "Ms A"
    assert get_teacher_name({"first_name": "Amina", "last_name": "Okafor", "email": "x@y.z"}) == "Amina Okafor"
    assert get_teacher_name({"first_name": "Amina", "email": "amina.o@school.test"}) == "amina.o"
    assert get_teacher_name({"email": ""}) == "Unknown Teacher"
    assert get_teacher_name(None) == "Unknown Teacher"


def test_student_name_from_profile():
    assert get_student_name(StudentProfile(id="s1", full_name="Ada Eze", first_name="X")) == "Ada Eze"
    assert get_student_name(StudentProfile(id="s1", first_name="Ada", surname="Eze")) == "Ada Eze"
    assert get_student_name(StudentProfile(id="s1")) == "Unknown Student"

    ref = student_from_profile(StudentProfile(id="s9", full_name="Ada Eze", admission_number="ADM-9"))
    assert ref == StudentRef(id="s9", name="Ada Eze", admission_number="ADM-9")


def test_assemble_report_embeds_metric_outputs():
    records = attendance(["present"] * 7 + ["late", "absent", "absent"])
    subs = submissions([100, 60]) + submissions([0], submitted=False)

    report = assemble_report(
        student=StudentRef(id="s1", name="Ada Eze", admission_number="ADM-1"),
        class_id="c1",
        class_name="JSS 1A",
        subject_name="English",
        term=2,
        academic_year=2024,
        actor=TEACHER,
        attendance=records,
        submissions=subs,
        remarks="Steady progress",
    )

    assert report.id is None
    assert report.status == "draft"
    assert report.teacher_id == TEACHER["user_id"]
    assert report.teacher_name == "Amina Okafor"
    assert report.attendance_rate == metrics.attendance_rate(records) == 80
    assert report.average_score == metrics.average_score(subs)
    assert report.total_assignments == 3
    assert report.submitted_assignments == 2
    assert report.attendance_breakdown.total_days == 10
    assert report.attendance_breakdown.present_days == 7
    assert report.assignment_breakdown.average_score == report.average_score
    assert report.remarks == "Steady progress"


def test_assemble_report_defaults_and_clips_remarks():
    base = dict(
        student=StudentRef(id="s1"),
        class_id="c1",
        class_name=None,
        subject_name="English",
        term=1,
        academic_year=2024,
        actor=TEACHER,
        attendance=[],
        submissions=[],
    )
    empty = assemble_report(**base, remarks=None)
    assert empty.remarks == ""
    assert empty.class_name == "Unknown Class"
    assert empty.student_name == "Unknown Student"
    assert empty.attendance_rate == 0
    assert empty.average_score == 0

    long = assemble_report(**base, remarks="x" * 150)
    assert len(long.remarks) == 100


def test_clipped_remarks_always_fit_the_report_field():
    draft = assemble_report(
        student=StudentRef(id="s1", name="Ada Eze"), class_id="c1", class_name="JSS 1A",
        subject_name="English", term=2, academic_year=2024, actor=TEACHER,
        attendance=[], submissions=[], remarks="r" * (REMARKS_MAX_LENGTH + 40),
    )
    assert len(draft.remarks) == REMARKS_MAX_LENGTH
