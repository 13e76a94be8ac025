"""initial academy schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:01:00
"""

from alembic import op
import sqlalchemy as sa


revision = '20261019_0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'semesters',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_semesters_id', 'semesters', ['id'])
    op.create_index('ix_semesters_is_active', 'semesters', ['is_active'])
    op.create_index('ix_semesters_created_at', 'semesters', ['created_at'])

    op.create_table(
        'semester_teachers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('semester_id', sa.Integer(), sa.ForeignKey('semesters.id'), nullable=False),
        sa.Column('teacher_name', sa.String(length=120), nullable=False),
        sa.UniqueConstraint('semester_id', 'teacher_name', name='uq_semester_teachers_semester_teacher'),
    )
    op.create_index('ix_semester_teachers_id', 'semester_teachers', ['id'])
    op.create_index('ix_semester_teachers_semester_id', 'semester_teachers', ['semester_id'])
    op.create_index('ix_semester_teachers_teacher_name', 'semester_teachers', ['teacher_name'])

    op.create_table(
        'schedule_sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('semester_id', sa.Integer(), sa.ForeignKey('semesters.id'), nullable=False),
        sa.Column('teacher_name', sa.String(length=120), nullable=False),
        sa.Column('day', sa.String(length=12), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('duration_hours', sa.Float(), nullable=False, server_default='1'),
        sa.Column('specialization', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('session_type', sa.String(length=20), nullable=False, server_default='practical'),
        sa.Column('note', sa.Text(), nullable=False, server_default=''),
        sa.Column('slot_key', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_schedule_sessions_id', 'schedule_sessions', ['id'])
    op.create_index('ix_schedule_sessions_semester_id', 'schedule_sessions', ['semester_id'])
    op.create_index('ix_schedule_sessions_teacher_name', 'schedule_sessions', ['teacher_name'])
    op.create_index('ix_schedule_sessions_day', 'schedule_sessions', ['day'])
    op.create_index('ix_schedule_sessions_slot_key', 'schedule_sessions', ['slot_key'])
    op.create_index(
        'ix_schedule_sessions_slot',
        'schedule_sessions',
        ['semester_id', 'teacher_name', 'day', 'start_time'],
    )

    op.create_table(
        'session_enrollments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('schedule_sessions.id'), nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('student_name', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('pending_removal', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('session_id', 'student_id', name='uq_session_enrollments_session_student'),
    )
    op.create_index('ix_session_enrollments_id', 'session_enrollments', ['id'])
    op.create_index('ix_session_enrollments_session_id', 'session_enrollments', ['session_id'])
    op.create_index('ix_session_enrollments_student_id', 'session_enrollments', ['student_id'])

    op.create_table(
        'attendance_records',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('semester_id', sa.Integer(), sa.ForeignKey('semesters.id'), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=False),
        sa.Column('teacher_name', sa.String(length=120), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('note', sa.Text(), nullable=False, server_default=''),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('semester_id', 'week_start', 'session_id', 'student_id', name='uq_attendance_week_session_student'),
    )
    op.create_index('ix_attendance_records_id', 'attendance_records', ['id'])
    op.create_index('ix_attendance_records_semester_id', 'attendance_records', ['semester_id'])
    op.create_index('ix_attendance_records_week_start', 'attendance_records', ['week_start'])
    op.create_index('ix_attendance_records_session_id', 'attendance_records', ['session_id'])
    op.create_index('ix_attendance_records_student_id', 'attendance_records', ['student_id'])
    op.create_index(
        'ix_attendance_records_week_teacher',
        'attendance_records',
        ['semester_id', 'week_start', 'teacher_name'],
    )

    op.create_table(
        'applicants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('gender', sa.String(length=10), nullable=False, server_default='other'),
        sa.Column('dob', sa.String(length=20), nullable=False, server_default=''),
        sa.Column('nationality', sa.String(length=80), nullable=False, server_default=''),
        sa.Column('phone', sa.String(length=30), nullable=False, server_default=''),
        sa.Column('email', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('instrument_interest', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('previous_experience', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='pending-review'),
        sa.Column('application_date', sa.DateTime(), nullable=False),
        sa.Column('interview_date', sa.Date(), nullable=True),
        sa.Column('interview_time', sa.String(length=5), nullable=True),
        sa.Column('interviewer', sa.String(length=120), nullable=True),
        sa.Column('evaluation_json', sa.Text(), nullable=False, server_default=''),
        sa.Column('cancellation_reason', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_applicants_id', 'applicants', ['id'])
    op.create_index('ix_applicants_status', 'applicants', ['status'])

    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('gender', sa.String(length=10), nullable=True),
        sa.Column('dob', sa.String(length=20), nullable=False, server_default=''),
        sa.Column('nationality', sa.String(length=80), nullable=False, server_default=''),
        sa.Column('phone', sa.String(length=30), nullable=False, server_default=''),
        sa.Column('email', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('instrument_interest', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('level', sa.String(length=40), nullable=False, server_default='Beginner'),
        sa.Column('enrollment_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('deletion_date', sa.DateTime(), nullable=True),
        sa.Column('deletion_reason', sa.Text(), nullable=False, server_default=''),
        sa.Column('payment_plan', sa.String(length=20), nullable=False, server_default='none'),
        sa.Column('subscription_start_date', sa.Date(), nullable=True),
        sa.Column('preferred_pay_day', sa.Integer(), nullable=True),
        sa.Column('applicant_id', sa.Integer(), sa.ForeignKey('applicants.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_students_id', 'students', ['id'])
    op.create_index('ix_students_name', 'students', ['name'])
    op.create_index('ix_students_status', 'students', ['status'])
    op.create_index('ix_students_applicant_id', 'students', ['applicant_id'])
    op.create_index('ix_students_created_at', 'students', ['created_at'])

    op.create_table(
        'level_changes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('changed_at', sa.DateTime(), nullable=False),
        sa.Column('level', sa.String(length=40), nullable=False),
        sa.Column('review', sa.Text(), nullable=False, server_default=''),
    )
    op.create_index('ix_level_changes_id', 'level_changes', ['id'])
    op.create_index('ix_level_changes_student_id', 'level_changes', ['student_id'])

    op.create_table(
        'grades',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('subject', sa.String(length=120), nullable=False),
        sa.Column('grade_type', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('max_score', sa.Float(), nullable=False),
        sa.Column('graded_on', sa.Date(), nullable=False),
        sa.Column('attachment_name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('attachment_type', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('attachment_url', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_grades_id', 'grades', ['id'])
    op.create_index('ix_grades_student_id', 'grades', ['student_id'])
    op.create_index('ix_grades_student_date', 'grades', ['student_id', 'graded_on'])

    op.create_table(
        'student_evaluations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('evaluated_on', sa.Date(), nullable=False),
        sa.Column('evaluator', sa.String(length=120), nullable=False),
        sa.Column('criteria_json', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_student_evaluations_id', 'student_evaluations', ['id'])
    op.create_index('ix_student_evaluations_student_id', 'student_evaluations', ['student_id'])

    op.create_table(
        'installments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='unpaid'),
        sa.Column('payment_date', sa.Date(), nullable=True),
        sa.Column('payment_method', sa.String(length=20), nullable=True),
        sa.Column('invoice_number', sa.String(length=40), nullable=True),
        sa.Column('grace_period_until', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('invoice_number', name='uq_installments_invoice_number'),
    )
    op.create_index('ix_installments_id', 'installments', ['id'])
    op.create_index('ix_installments_student_id', 'installments', ['student_id'])
    op.create_index('ix_installments_payment_date', 'installments', ['payment_date'])
    op.create_index('ix_installments_student_due_status', 'installments', ['student_id', 'due_date', 'status'])

    op.create_table(
        'due_date_changes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('changed_on', sa.Date(), nullable=False),
        sa.Column('old_day', sa.Integer(), nullable=True),
        sa.Column('new_day', sa.Integer(), nullable=False),
    )
    op.create_index('ix_due_date_changes_id', 'due_date_changes', ['id'])
    op.create_index('ix_due_date_changes_student_id', 'due_date_changes', ['student_id'])

    op.create_table(
        'payment_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('monthly', sa.Float(), nullable=False, server_default='0'),
        sa.Column('quarterly', sa.Float(), nullable=False, server_default='0'),
        sa.Column('yearly', sa.Float(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'teacher_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('request_type', sa.String(length=30), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('request_date', sa.DateTime(), nullable=False),
        sa.Column('teacher_id', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('teacher_name', sa.String(length=120), nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=True),
        sa.Column('student_name', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('session_time', sa.String(length=20), nullable=False, server_default=''),
        sa.Column('day', sa.String(length=12), nullable=False, server_default=''),
        sa.Column('reason', sa.Text(), nullable=False, server_default=''),
        sa.Column('semester_id', sa.Integer(), sa.ForeignKey('semesters.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_teacher_requests_id', 'teacher_requests', ['id'])
    op.create_index('ix_teacher_requests_status', 'teacher_requests', ['status'])
    op.create_index('ix_teacher_requests_teacher_name', 'teacher_requests', ['teacher_name'])
    op.create_index('ix_teacher_requests_semester_id', 'teacher_requests', ['semester_id'])
    op.create_index('ix_teacher_requests_status_type', 'teacher_requests', ['status', 'request_type'])

    op.create_table(
        'leaves',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('leave_type', sa.String(length=20), nullable=False),
        sa.Column('person_id', sa.String(length=64), nullable=False),
        sa.Column('person_name', sa.String(length=120), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_leaves_id', 'leaves', ['id'])
    op.create_index('ix_leaves_person_id', 'leaves', ['person_id'])
    op.create_index('ix_leaves_status', 'leaves', ['status'])
    op.create_index('ix_leaves_type_status_dates', 'leaves', ['leave_type', 'status', 'start_date', 'end_date'])

    op.create_table(
        'incompatibilities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('rule_type', sa.String(length=30), nullable=False),
        sa.Column('person1_id', sa.String(length=64), nullable=False),
        sa.Column('person1_name', sa.String(length=120), nullable=False),
        sa.Column('person2_id', sa.String(length=64), nullable=False),
        sa.Column('person2_name', sa.String(length=120), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False, server_default=''),
        sa.Column('semester_id', sa.Integer(), sa.ForeignKey('semesters.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_incompatibilities_id', 'incompatibilities', ['id'])
    op.create_index('ix_incompatibilities_semester_id', 'incompatibilities', ['semester_id'])


def downgrade() -> None:
    op.drop_table('incompatibilities')
    op.drop_table('leaves')
    op.drop_table('teacher_requests')
    op.drop_table('payment_settings')
    op.drop_table('due_date_changes')
    op.drop_table('installments')
    op.drop_table('student_evaluations')
    op.drop_table('grades')
    op.drop_table('level_changes')
    op.drop_table('students')
    op.drop_table('applicants')
    op.drop_table('attendance_records')
    op.drop_table('session_enrollments')
    op.drop_table('schedule_sessions')
    op.drop_table('semester_teachers')
    op.drop_table('semesters')
