"""
Pydantic schemas for attendance, assignments, remarks, and progress reports.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

AttendanceStatus = Literal["present", "absent", "late", "excused"]
ReportStatus = Literal["draft", "submitted", "approved", "rejected", "resubmitted"]

REMARKS_MAX_LENGTH = 100


# ---- Collaborator data ----
class AttendanceRecord(BaseModel):
    date: str
    status: AttendanceStatus
    marked_at: Optional[str] = None

    model_config = {"frozen": True}


class AssignmentSubmission(BaseModel):
    assignment_id: str
    title: str = ""
    due_date: Optional[str] = None
    max_points: float = 100
    submitted: bool = False
    score: float = 0
    percentage: float = 0
    status: str = "not_submitted"


class RemarkEntry(BaseModel):
    student_id: str
    student_name: str = ""
    subject_name: str
    class_id: str
    teacher_id: str
    remarks: str = ""


class StudentProfile(BaseModel):
    id: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    surname: Optional[str] = None
    admission_number: Optional[str] = None
    class_id: Optional[str] = None
    class_name: Optional[str] = None


class StudentRef(BaseModel):
    id: str
    name: str = ""
    admission_number: Optional[str] = None


# ---- Report ----
class AttendanceBreakdown(BaseModel):
    total_days: int = 0
    present_days: int = 0
    absent_days: int = 0


class AssignmentBreakdown(BaseModel):
    total: int = 0
    submitted: int = 0
    average_score: int = 0


class ReportKey(BaseModel):
    student_id: str
    subject_name: str
    term: int
    academic_year: int
    teacher_id: str

    model_config = {"frozen": True}


class Report(BaseModel):
    id: Optional[str] = None
    student_id: str
    student_name: str = ""
    student_admission_number: Optional[str] = None
    class_id: Optional[str] = None
    class_name: str = ""
    subject_name: str
    teacher_id: str
    teacher_name: str = ""
    academic_year: int
    term: int
    attendance_rate: int = Field(default=0, ge=0, le=100)
    average_score: int = Field(default=0, ge=0, le=100)
    total_assignments: int = 0
    submitted_assignments: int = 0
    remarks: str = Field(default="", max_length=REMARKS_MAX_LENGTH)
    attendance_breakdown: AttendanceBreakdown = Field(default_factory=AttendanceBreakdown)
    assignment_breakdown: AssignmentBreakdown = Field(default_factory=AssignmentBreakdown)
    status: ReportStatus = "draft"
    admin_notes: str = ""
    reviewed_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None

    @property
    def key(self) -> ReportKey:
        return ReportKey(
            student_id=self.student_id,
            subject_name=self.subject_name,
            term=self.term,
            academic_year=self.academic_year,
            teacher_id=self.teacher_id,
        )


class ReportFilters(BaseModel):
    teacher_id: Optional[str] = None
    status: Optional[ReportStatus] = None
    term: Optional[int] = None
    academic_year: Optional[int] = None
    subject_name: Optional[str] = None
    class_name: Optional[str] = None


# ---- Submission requests ----
class SelectionContext(BaseModel):
    subject_name: Optional[str] = None
    class_id: Optional[str] = None
    class_name: Optional[str] = None
    term: int = Field(default=1, ge=1, le=3)
    academic_year: int = Field(default_factory=lambda: datetime.now().year)


class StudentReportRequest(SelectionContext):
    student: StudentRef


class SingleSubmit(SelectionContext):
    student: Optional[StudentRef] = None
    attendance: List[AttendanceRecord] = []
    assignments: List[AssignmentSubmission] = []
    remarks: str = ""


class BulkSubmit(SelectionContext):
    students: List[StudentRef] = []


class RemarksSave(BaseModel):
    student: StudentRef
    subject_name: str
    class_id: str
    remarks: str = ""


class Resubmit(BaseModel):
    remarks: str = ""


class ReviewAction(BaseModel):
    action: Literal["approve", "reject"]
    admin_notes: str = ""


class OverviewRequest(BaseModel):
    subject_name: Optional[str] = None
    term: int = Field(default=1, ge=1, le=3)
    academic_year: int = Field(default_factory=lambda: datetime.now().year)
    roster_size: int = Field(default=0, ge=0)


# ---- Results ----
class BulkSuccess(BaseModel):
    student_name: str
    report_id: Optional[str] = None


class BulkFailure(BaseModel):
    student_name: str
    error: str


class BulkOutcome(BaseModel):
    ok: bool = True
    message: str = ""
    total_submitted: int = 0
    total_failed: int = 0
    successful: List[BulkSuccess] = []
    failed: List[BulkFailure] = []

    def summary(self) -> str:
        text = f"{self.total_submitted} succeeded, {self.total_failed} failed"
        if self.failed:
            lines = "\n".join(f"{f.student_name}: {f.error}" for f in self.failed)
            text = f"{text}\n\nFailed submissions:\n{lines}"
        return text


class CallToAction(BaseModel):
    label: str
    enabled: bool = True


class StudentReportView(BaseModel):
    student: StudentRef
    attendance: List[AttendanceRecord] = []
    assignments: List[AssignmentSubmission] = []
    remarks: str = ""
    remarks_id: Optional[str] = None
    draft: Report
    existing: Optional[Report] = None
    call_to_action: CallToAction


class OverviewCounts(BaseModel):
    roster_size: int = 0
    total: int = 0
    submitted: int = 0
    approved: int = 0
    rejected: int = 0
    resubmitted: int = 0
    pending: int = 0
