from datetime import date
from typing import Literal

from pydantic import BaseModel, Field


class SemesterCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    start_date: date
    end_date: date
    teachers: list[str] = Field(default_factory=list)


class SemesterUpdateRequest(BaseModel):
    name: str | None = None
    start_date: date | None = None
    end_date: date | None = None


class TeacherAddRequest(BaseModel):
    teacher_name: str = Field(min_length=1, max_length=120)


class SessionCreateRequest(BaseModel):
    semester_id: int
    teacher_name: str
    day: str
    start_time: str
    duration_hours: float
    specialization: str
    student_id: int
    session_type: Literal['practical', 'theory'] = 'practical'


class EnrollRequest(BaseModel):
    semester_id: int
    teacher_name: str
    day: str
    start_time: str = Field(description='24h HH:MM')
    duration_hours: float = 1.0
    specialization: str
    student_id: int


class RosterChangeRequest(BaseModel):
    semester_id: int
    teacher_name: str
    day: str
    session_id: int
    student_id: int


class AttendanceMarkRequest(BaseModel):
    semester_id: int
    teacher_name: str
    session_id: int
    student_id: int
    status: Literal['present', 'absent', 'late', 'excused'] | None = None
    on_date: date | None = None
    week_start: date | None = None
    note: str = ''


class LeaveCreateRequest(BaseModel):
    leave_type: Literal['student', 'teacher']
    person_id: str
    person_name: str
    start_date: date
    end_date: date
    reason: str


class TransferItem(BaseModel):
    student_id: int
    session_id: int
    new_teacher: str


class LeaveApproveRequest(BaseModel):
    transfers: list[TransferItem] = Field(default_factory=list)


class TeacherRequestCreate(BaseModel):
    request_type: Literal['add-student', 'remove-student', 'change-time']
    teacher_id: str = ''
    teacher_name: str
    semester_id: int
    day: str
    session_id: int | None = None
    session_time: str = ''
    student_id: int | None = None
    student_name: str = ''
    reason: str = ''


class PaymentSettingsUpdate(BaseModel):
    monthly: float = Field(ge=0)
    quarterly: float = Field(ge=0)
    yearly: float = Field(ge=0)


class AssignPlanRequest(BaseModel):
    plan: Literal['monthly', 'quarterly', 'yearly']
    start_date: date


class MarkPaidRequest(BaseModel):
    payment_method: Literal['visa', 'mada', 'cash', 'transfer']


class GracePeriodRequest(BaseModel):
    until: date


class DueDayRequest(BaseModel):
    day: int = Field(ge=1, le=28)


class StudentCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    level: str = 'Beginner'
    gender: Literal['male', 'female'] | None = None
    dob: str = ''
    nationality: str = ''
    phone: str = ''
    email: str = ''
    instrument_interest: str = ''


class StudentUpdateRequest(BaseModel):
    name: str | None = None
    gender: Literal['male', 'female'] | None = None
    dob: str | None = None
    nationality: str | None = None
    phone: str | None = None
    email: str | None = None
    instrument_interest: str | None = None
    status: Literal['active', 'inactive'] | None = None


class LevelChangeRequest(BaseModel):
    level: str = Field(min_length=1, max_length=40)
    review: str = ''


class SoftDeleteRequest(BaseModel):
    reason: str = ''


class GradeCreateRequest(BaseModel):
    student_id: int
    subject: str = Field(min_length=1, max_length=120)
    grade_type: Literal['test', 'assignment', 'quiz']
    title: str = Field(min_length=1, max_length=200)
    score: float = Field(ge=0)
    max_score: float = Field(gt=0)
    graded_on: date | None = None
    attachment_name: str = ''
    attachment_type: str = ''
    attachment_url: str = ''


class GradeUpdateRequest(BaseModel):
    subject: str | None = Field(default=None, min_length=1, max_length=120)
    grade_type: Literal['test', 'assignment', 'quiz'] | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    score: float | None = Field(default=None, ge=0)
    max_score: float | None = Field(default=None, gt=0)
    graded_on: date | None = None
    attachment_name: str | None = None
    attachment_type: str | None = None
    attachment_url: str | None = None


class EvaluationCriterion(BaseModel):
    name: str = Field(min_length=1)
    score: float = 0


class StudentEvaluationCreateRequest(BaseModel):
    student_id: int
    evaluator: str = Field(min_length=1, max_length=120)
    criteria: list[EvaluationCriterion] = Field(default_factory=list)
    notes: str = ''
    evaluated_on: date | None = None


class StudentEvaluationUpdateRequest(BaseModel):
    evaluator: str | None = Field(default=None, min_length=1, max_length=120)
    criteria: list[EvaluationCriterion] | None = None
    notes: str | None = None
    evaluated_on: date | None = None


class ApplicantCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    gender: Literal['male', 'female', 'other'] = 'other'
    dob: str = ''
    nationality: str = ''
    phone: str = ''
    email: str = ''
    instrument_interest: str = ''
    previous_experience: str = ''


class InterviewScheduleRequest(BaseModel):
    applicant_ids: list[int]
    interview_date: date
    start_time: str
    duration_minutes: int = Field(default=30, ge=5)
    break_minutes: int = Field(default=0, ge=0)
    interviewers: list[str]


class EvaluationRequest(BaseModel):
    decision: Literal['approved', 'rejected']
    criteria: dict[str, float] = Field(default_factory=dict)
    notes: str = ''
    general_score: float | None = None
    enroll: bool = False


class CancelRequest(BaseModel):
    reason: str = Field(min_length=1)


class IncompatibilityCreateRequest(BaseModel):
    rule_type: Literal['teacher-student', 'student-student']
    semester_id: int
    person1_id: str
    person1_name: str
    person2_id: str
    person2_name: str
    reason: str = ''
