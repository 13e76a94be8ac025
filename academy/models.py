from datetime import date, datetime, time
from enum import Enum
from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academy.core.time_provider import utcnow
from academy.db import Base


class SessionType(str, Enum):
    PRACTICAL = 'practical'
    THEORY = 'theory'


class AttendanceStatus(str, Enum):
    PRESENT = 'present'
    ABSENT = 'absent'
    LATE = 'late'
    EXCUSED = 'excused'


class StudentStatus(str, Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    DELETED = 'deleted'


class PaymentPlan(str, Enum):
    MONTHLY = 'monthly'
    QUARTERLY = 'quarterly'
    YEARLY = 'yearly'
    NONE = 'none'


class PaymentMethod(str, Enum):
    VISA = 'visa'
    MADA = 'mada'
    CASH = 'cash'
    TRANSFER = 'transfer'


class InstallmentStatus(str, Enum):
    PAID = 'paid'
    UNPAID = 'unpaid'
    OVERDUE = 'overdue'


class ApprovalStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    DENIED = 'denied'


class LeaveType(str, Enum):
    STUDENT = 'student'
    TEACHER = 'teacher'


class TeacherRequestType(str, Enum):
    ADD_STUDENT = 'add-student'
    REMOVE_STUDENT = 'remove-student'
    CHANGE_TIME = 'change-time'


class ApplicantStatus(str, Enum):
    PENDING_REVIEW = 'pending-review'
    INTERVIEW_SCHEDULED = 'interview-scheduled'
    EVALUATED = 'evaluated'
    RE_EVALUATION = 're-evaluation'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    CANCELLED = 'cancelled'
    ARCHIVED = 'archived'


class GradeType(str, Enum):
    TEST = 'test'
    ASSIGNMENT = 'assignment'
    QUIZ = 'quiz'


class IncompatibilityType(str, Enum):
    TEACHER_STUDENT = 'teacher-student'
    STUDENT_STUDENT = 'student-student'


class Semester(Base):
    __tablename__ = 'semesters'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120))
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    teacher_links: Mapped[list['SemesterTeacher']] = relationship(
        'SemesterTeacher',
        back_populates='semester',
        cascade='all, delete-orphan',
        order_by='SemesterTeacher.id',
    )
    sessions: Mapped[list['ScheduleSession']] = relationship('ScheduleSession', back_populates='semester')

    @property
    def teachers(self) -> list[str]:
        return [link.teacher_name for link in self.teacher_links]


class SemesterTeacher(Base):
    __tablename__ = 'semester_teachers'
    __table_args__ = (
        UniqueConstraint('semester_id', 'teacher_name', name='uq_semester_teachers_semester_teacher'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    semester_id: Mapped[int] = mapped_column(ForeignKey('semesters.id'), index=True)
    teacher_name: Mapped[str] = mapped_column(String(120), index=True)

    semester: Mapped['Semester'] = relationship('Semester', back_populates='teacher_links')


class ScheduleSession(Base):
    __tablename__ = 'schedule_sessions'
    __table_args__ = (
        Index('ix_schedule_sessions_slot', 'semester_id', 'teacher_name', 'day', 'start_time'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    semester_id: Mapped[int] = mapped_column(ForeignKey('semesters.id'), index=True)
    teacher_name: Mapped[str] = mapped_column(String(120), index=True)
    day: Mapped[str] = mapped_column(String(12), index=True)
    start_time: Mapped[time] = mapped_column(Time)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    duration_hours: Mapped[float] = mapped_column(Float, default=1.0)
    specialization: Mapped[str] = mapped_column(String(120), default='')
    session_type: Mapped[str] = mapped_column(String(20), default=SessionType.PRACTICAL.value)
    note: Mapped[str] = mapped_column(Text, default='')
    slot_key: Mapped[str] = mapped_column(String(255), default='', index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    semester: Mapped['Semester'] = relationship('Semester', back_populates='sessions')
    enrollments: Mapped[list['SessionEnrollment']] = relationship(
        'SessionEnrollment',
        back_populates='session',
        cascade='all, delete-orphan',
        order_by='SessionEnrollment.id',
    )


class SessionEnrollment(Base):
    __tablename__ = 'session_enrollments'
    __table_args__ = (
        UniqueConstraint('session_id', 'student_id', name='uq_session_enrollments_session_student'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    session_id: Mapped[int] = mapped_column(ForeignKey('schedule_sessions.id'), index=True)
    # No FK to students: hard-deleting a student leaves roster rows behind.
    student_id: Mapped[int] = mapped_column(Integer, index=True)
    student_name: Mapped[str] = mapped_column(String(120), default='')
    pending_removal: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    session: Mapped['ScheduleSession'] = relationship('ScheduleSession', back_populates='enrollments')


class AttendanceRecord(Base):
    __tablename__ = 'attendance_records'
    __table_args__ = (
        UniqueConstraint('semester_id', 'week_start', 'session_id', 'student_id', name='uq_attendance_week_session_student'),
        Index('ix_attendance_records_week_teacher', 'semester_id', 'week_start', 'teacher_name'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    semester_id: Mapped[int] = mapped_column(ForeignKey('semesters.id'), index=True)
    week_start: Mapped[date] = mapped_column(Date, index=True)
    teacher_name: Mapped[str] = mapped_column(String(120))
    # Plain ints: ledger rows outlive deleted sessions.
    session_id: Mapped[int] = mapped_column(Integer, index=True)
    student_id: Mapped[int] = mapped_column(Integer, index=True)
    status: Mapped[str] = mapped_column(String(20))
    note: Mapped[str] = mapped_column(Text, default='')
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class Student(Base):
    __tablename__ = 'students'
    # Ids are never reused: roster and ledger rows keep the ids of hard-deleted students.
    __table_args__ = {'sqlite_autoincrement': True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120), index=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    dob: Mapped[str] = mapped_column(String(20), default='')
    nationality: Mapped[str] = mapped_column(String(80), default='')
    phone: Mapped[str] = mapped_column(String(30), default='')
    email: Mapped[str] = mapped_column(String(255), default='')
    instrument_interest: Mapped[str] = mapped_column(String(120), default='')
    level: Mapped[str] = mapped_column(String(40), default='Beginner')
    enrollment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=StudentStatus.ACTIVE.value, index=True)
    deletion_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    deletion_reason: Mapped[str] = mapped_column(Text, default='')
    payment_plan: Mapped[str] = mapped_column(String(20), default=PaymentPlan.NONE.value)
    subscription_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    preferred_pay_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    applicant_id: Mapped[int | None] = mapped_column(ForeignKey('applicants.id'), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    level_history: Mapped[list['LevelChange']] = relationship(
        'LevelChange',
        back_populates='student',
        cascade='all, delete-orphan',
        order_by='LevelChange.id',
    )
    installments: Mapped[list['Installment']] = relationship(
        'Installment',
        back_populates='student',
        cascade='all, delete-orphan',
        order_by='Installment.due_date',
    )
    due_date_changes: Mapped[list['DueDateChange']] = relationship(
        'DueDateChange',
        back_populates='student',
        cascade='all, delete-orphan',
        order_by='DueDateChange.id',
    )
    grades: Mapped[list['Grade']] = relationship(
        'Grade',
        back_populates='student',
        cascade='all, delete-orphan',
        order_by='Grade.graded_on',
    )
    evaluations: Mapped[list['StudentEvaluation']] = relationship(
        'StudentEvaluation',
        back_populates='student',
        cascade='all, delete-orphan',
        order_by='StudentEvaluation.evaluated_on',
    )


class LevelChange(Base):
    __tablename__ = 'level_changes'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey('students.id'), index=True)
    changed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    level: Mapped[str] = mapped_column(String(40))
    review: Mapped[str] = mapped_column(Text, default='')

    student: Mapped['Student'] = relationship('Student', back_populates='level_history')


class Grade(Base):
    __tablename__ = 'grades'
    __table_args__ = (
        Index('ix_grades_student_date', 'student_id', 'graded_on'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey('students.id'), index=True)
    subject: Mapped[str] = mapped_column(String(120))
    grade_type: Mapped[str] = mapped_column(String(20))
    title: Mapped[str] = mapped_column(String(200))
    score: Mapped[float] = mapped_column(Float)
    max_score: Mapped[float] = mapped_column(Float)
    graded_on: Mapped[date] = mapped_column(Date)
    attachment_name: Mapped[str] = mapped_column(String(255), default='')
    attachment_type: Mapped[str] = mapped_column(String(120), default='')
    attachment_url: Mapped[str] = mapped_column(Text, default='')
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    student: Mapped['Student'] = relationship('Student', back_populates='grades')


class StudentEvaluation(Base):
    __tablename__ = 'student_evaluations'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey('students.id'), index=True)
    evaluated_on: Mapped[date] = mapped_column(Date)
    evaluator: Mapped[str] = mapped_column(String(120))
    criteria_json: Mapped[str] = mapped_column(Text, default='[]')
    notes: Mapped[str] = mapped_column(Text, default='')
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    student: Mapped['Student'] = relationship('Student', back_populates='evaluations')


class Installment(Base):
    __tablename__ = 'installments'
    __table_args__ = (
        Index('ix_installments_student_due_status', 'student_id', 'due_date', 'status'),
        UniqueConstraint('invoice_number', name='uq_installments_invoice_number'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey('students.id'), index=True)
    sequence: Mapped[int] = mapped_column(Integer, default=0)
    due_date: Mapped[date] = mapped_column(Date)
    amount: Mapped[float] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(20), default=InstallmentStatus.UNPAID.value)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    payment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    invoice_number: Mapped[str | None] = mapped_column(String(40), nullable=True)
    grace_period_until: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    student: Mapped['Student'] = relationship('Student', back_populates='installments')


class DueDateChange(Base):
    __tablename__ = 'due_date_changes'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey('students.id'), index=True)
    changed_on: Mapped[date] = mapped_column(Date)
    old_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    new_day: Mapped[int] = mapped_column(Integer)

    student: Mapped['Student'] = relationship('Student', back_populates='due_date_changes')


class PaymentSettings(Base):
    __tablename__ = 'payment_settings'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    monthly: Mapped[float] = mapped_column(Float, default=0)
    quarterly: Mapped[float] = mapped_column(Float, default=0)
    yearly: Mapped[float] = mapped_column(Float, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class TeacherRequest(Base):
    __tablename__ = 'teacher_requests'
    __table_args__ = (
        Index('ix_teacher_requests_status_type', 'status', 'request_type'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    request_type: Mapped[str] = mapped_column(String(30))
    status: Mapped[str] = mapped_column(String(20), default=ApprovalStatus.PENDING.value, index=True)
    request_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    teacher_id: Mapped[str] = mapped_column(String(64), default='')
    teacher_name: Mapped[str] = mapped_column(String(120), index=True)
    student_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    student_name: Mapped[str] = mapped_column(String(120), default='')
    session_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    session_time: Mapped[str] = mapped_column(String(20), default='')
    day: Mapped[str] = mapped_column(String(12), default='')
    reason: Mapped[str] = mapped_column(Text, default='')
    semester_id: Mapped[int | None] = mapped_column(ForeignKey('semesters.id'), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class Leave(Base):
    __tablename__ = 'leaves'
    __table_args__ = (
        Index('ix_leaves_type_status_dates', 'leave_type', 'status', 'start_date', 'end_date'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    leave_type: Mapped[str] = mapped_column(String(20))
    person_id: Mapped[str] = mapped_column(String(64), index=True)
    person_name: Mapped[str] = mapped_column(String(120))
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    reason: Mapped[str] = mapped_column(Text, default='')
    status: Mapped[str] = mapped_column(String(20), default=ApprovalStatus.PENDING.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class Applicant(Base):
    __tablename__ = 'applicants'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120))
    gender: Mapped[str] = mapped_column(String(10), default='other')
    dob: Mapped[str] = mapped_column(String(20), default='')
    nationality: Mapped[str] = mapped_column(String(80), default='')
    phone: Mapped[str] = mapped_column(String(30), default='')
    email: Mapped[str] = mapped_column(String(255), default='')
    instrument_interest: Mapped[str] = mapped_column(String(120), default='')
    previous_experience: Mapped[str] = mapped_column(Text, default='')
    status: Mapped[str] = mapped_column(String(30), default=ApplicantStatus.PENDING_REVIEW.value, index=True)
    application_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    interview_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    interview_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    interviewer: Mapped[str | None] = mapped_column(String(120), nullable=True)
    evaluation_json: Mapped[str] = mapped_column(Text, default='')
    cancellation_reason: Mapped[str] = mapped_column(Text, default='')
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class Incompatibility(Base):
    __tablename__ = 'incompatibilities'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    rule_type: Mapped[str] = mapped_column(String(30))
    person1_id: Mapped[str] = mapped_column(String(64))
    person1_name: Mapped[str] = mapped_column(String(120))
    person2_id: Mapped[str] = mapped_column(String(64))
    person2_name: Mapped[str] = mapped_column(String(120))
    reason: Mapped[str] = mapped_column(Text, default='')
    semester_id: Mapped[int] = mapped_column(ForeignKey('semesters.id'), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
