from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy.orm import Session

from academy.config import settings
from academy.core.errors import NotFoundError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.core.weekdays import week_start_for
from academy.models import AttendanceRecord, AttendanceStatus, LeaveType
from academy.services.leave_service import approved_leaves_overlapping
from academy.services.schedule_service import get_session, get_teacher_schedule
from academy.services.semester_service import get_semester


logger = logging.getLogger(__name__)

_VALID_STATUSES = {s.value for s in AttendanceStatus}


def resolve_week_start(
    *,
    on_date: date | None = None,
    week_start: date | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> date:
    anchor = week_start or on_date or time_provider.today()
    return week_start_for(anchor, settings.week_start_day)


def _week_bounds(week_start: date) -> tuple[date, date]:
    return week_start, week_start + timedelta(days=6)


def students_on_leave(db: Session, week_start: date) -> set[int]:
    start, end = _week_bounds(week_start)
    student_ids: set[int] = set()
    for leave in approved_leaves_overlapping(db, start=start, end=end, leave_type=LeaveType.STUDENT.value):
        try:
            student_ids.add(int(leave.person_id))
        except (TypeError, ValueError):
            continue
    return student_ids


def is_teacher_on_leave(db: Session, teacher_name: str, week_start: date) -> bool:
    start, end = _week_bounds(week_start)
    leaves = approved_leaves_overlapping(db, start=start, end=end, leave_type=LeaveType.TEACHER.value)
    return any(leave.person_name == teacher_name for leave in leaves)


def mark_attendance(
    db: Session,
    *,
    semester_id: int,
    teacher_name: str,
    session_id: int,
    student_id: int,
    status: str | None,
    on_date: date | None = None,
    week_start: date | None = None,
    note: str = '',
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    """Sets one ledger cell; ``status=None`` clears it."""
    if status is not None and status not in _VALID_STATUSES:
        raise ValueError('Attendance status must be present, absent, late or excused')
    get_semester(db, semester_id)
    session = get_session(db, session_id)
    if session.semester_id != semester_id or session.teacher_name != teacher_name:
        raise NotFoundError('Session not found for this teacher')
    if not any(entry.student_id == student_id for entry in session.enrollments):
        raise NotFoundError('Student is not enrolled in this session')

    week = resolve_week_start(on_date=on_date, week_start=week_start, time_provider=time_provider)
    if student_id in students_on_leave(db, week):
        raise ValueError('Student is on approved leave during this week')

    row = (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.semester_id == semester_id,
            AttendanceRecord.week_start == week,
            AttendanceRecord.session_id == session_id,
            AttendanceRecord.student_id == student_id,
        )
        .first()
    )
    if status is None:
        if row:
            db.delete(row)
            db.commit()
        return {'week_start': week.isoformat(), 'session_id': session_id, 'student_id': student_id, 'status': None}

    if row is None:
        row = AttendanceRecord(
            semester_id=semester_id,
            week_start=week,
            teacher_name=teacher_name,
            session_id=session_id,
            student_id=student_id,
        )
        db.add(row)
    row.status = status
    row.note = note or ''
    db.commit()
    logger.info(
        'attendance_marked semester_id=%s week=%s session_id=%s student_id=%s status=%s',
        semester_id,
        week.isoformat(),
        session_id,
        student_id,
        status,
    )
    return {'week_start': week.isoformat(), 'session_id': session_id, 'student_id': student_id, 'status': status}


def get_weekly_attendance(
    db: Session,
    *,
    semester_id: int,
    week_start: date,
    teacher_name: str | None = None,
) -> dict[str, dict[str, dict[int, dict[int, dict]]]]:
    """week -> teacher -> session id -> student id -> {status, note}."""
    get_semester(db, semester_id)
    week = week_start_for(week_start, settings.week_start_day)
    query = db.query(AttendanceRecord).filter(
        AttendanceRecord.semester_id == semester_id,
        AttendanceRecord.week_start == week,
    )
    if teacher_name:
        query = query.filter(AttendanceRecord.teacher_name == teacher_name)
    by_teacher: dict[str, dict[int, dict[int, dict]]] = {}
    for row in query.order_by(AttendanceRecord.id.asc()).all():
        sessions = by_teacher.setdefault(row.teacher_name, {})
        sessions.setdefault(row.session_id, {})[row.student_id] = {'status': row.status, 'note': row.note}
    return {week.isoformat(): by_teacher}


def get_teacher_week_view(
    db: Session,
    *,
    semester_id: int,
    teacher_name: str,
    on_date: date | None = None,
    week_start: date | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    week = resolve_week_start(on_date=on_date, week_start=week_start, time_provider=time_provider)
    ledger = get_weekly_attendance(db, semester_id=semester_id, week_start=week, teacher_name=teacher_name)
    teacher_ledger = ledger[week.isoformat()].get(teacher_name, {})
    schedule = get_teacher_schedule(
        db,
        semester_id=semester_id,
        teacher_name=teacher_name,
        attendance=teacher_ledger,
        excused_student_ids=students_on_leave(db, week),
    )
    start, end = _week_bounds(week)
    return {
        'semester_id': semester_id,
        'teacher': teacher_name,
        'week_start': start.isoformat(),
        'week_end': end.isoformat(),
        'teacher_on_leave': is_teacher_on_leave(db, teacher_name, week),
        'schedule': schedule,
    }


def teacher_week_stats(view: dict) -> dict:
    counts = {'present': 0, 'absent': 0, 'late': 0, 'excused': 0, 'pending': 0}
    total = 0
    sessions = 0
    for day_sessions in view['schedule'].values():
        for session in day_sessions:
            sessions += 1
            for student in session['students']:
                total += 1
                status = student['attendance']
                counts[status if status in counts else 'pending'] += 1
    rate = ((counts['present'] + counts['late']) / total * 100) if total > 0 else 0.0
    return {
        'sessions': sessions,
        'total_students': total,
        **counts,
        'attendance_rate': round(rate),
    }
