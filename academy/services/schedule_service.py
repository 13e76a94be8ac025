from __future__ import annotations

import logging
from datetime import time

from sqlalchemy.orm import Session

from academy.config import settings
from academy.core.errors import NotFoundError
from academy.core.weekdays import (
    ACADEMY_DAYS,
    WEEKDAY_NAMES,
    add_hours,
    format_display_time,
    format_hhmm,
    normalize_day,
    parse_hhmm,
    parse_session_time,
    slot_key,
)
from academy.models import ScheduleSession, SessionEnrollment, SessionType, Student, StudentStatus
from academy.services.semester_service import ensure_semester_teacher, get_semester


logger = logging.getLogger(__name__)

_DAY_ORDER = {name: idx for idx, name in enumerate(ACADEMY_DAYS + [d for d in WEEKDAY_NAMES if d not in ACADEMY_DAYS])}


def _validate_duration(duration_hours: float, minimum: float, maximum: float) -> float:
    value = float(duration_hours)
    if value < minimum:
        raise ValueError(f'Duration must be at least {minimum:g} hour(s)')
    if value > maximum:
        raise ValueError(f'Duration cannot exceed {maximum:g} hours')
    return value


def _validate_session_type(session_type: str) -> str:
    value = (session_type or '').strip().lower()
    if value not in {t.value for t in SessionType}:
        raise ValueError('Session type must be practical or theory')
    return value


def _require_specialization(specialization: str) -> str:
    value = (specialization or '').strip()
    if not value:
        raise ValueError('Specialization is required')
    return value


def _require_teacher(teacher_name: str) -> str:
    value = (teacher_name or '').strip()
    if not value:
        raise ValueError('Teacher name is required')
    return value


def get_session(db: Session, session_id: int) -> ScheduleSession:
    row = db.query(ScheduleSession).filter(ScheduleSession.id == session_id).first()
    if not row:
        raise NotFoundError('Session not found')
    return row


def get_slot_session(db: Session, *, semester_id: int, teacher_name: str, day: str, session_id: int) -> ScheduleSession:
    """Locates a session by id inside one (teacher, day) slot list."""
    day = normalize_day(day)
    slot_sessions = list_slot_sessions(db, semester_id=semester_id, teacher_name=teacher_name, day=day)
    if not slot_sessions:
        raise NotFoundError(f'No sessions found for {teacher_name} on {day}')
    for row in slot_sessions:
        if row.id == session_id:
            return row
    raise NotFoundError(f'Session {session_id} not found')


def list_slot_sessions(db: Session, *, semester_id: int, teacher_name: str, day: str) -> list[ScheduleSession]:
    return (
        db.query(ScheduleSession)
        .filter(
            ScheduleSession.semester_id == semester_id,
            ScheduleSession.teacher_name == teacher_name,
            ScheduleSession.day == day,
        )
        .order_by(ScheduleSession.start_time.asc(), ScheduleSession.id.asc())
        .all()
    )


def find_session_at_time(db: Session, *, semester_id: int, teacher_name: str, day: str, start_time: time) -> ScheduleSession | None:
    return (
        db.query(ScheduleSession)
        .filter(
            ScheduleSession.semester_id == semester_id,
            ScheduleSession.teacher_name == teacher_name,
            ScheduleSession.day == day,
            ScheduleSession.start_time == start_time,
        )
        .order_by(ScheduleSession.id.asc())
        .first()
    )


def get_enrollable_student(db: Session, student_id: int) -> Student:
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise NotFoundError('Student not found')
    if student.status == StudentStatus.DELETED.value:
        raise ValueError('Deleted students cannot be enrolled')
    return student


def add_roster_entry(session: ScheduleSession, *, student_id: int, student_name: str) -> SessionEnrollment:
    """Appends a fresh roster row unless the student is already on the session. Does not commit."""
    for entry in session.enrollments:
        if entry.student_id == student_id:
            return entry
    entry = SessionEnrollment(student_id=student_id, student_name=student_name, pending_removal=False)
    session.enrollments.append(entry)
    return entry


def build_session(
    *,
    semester_id: int,
    teacher_name: str,
    day: str,
    start_time: time,
    duration_hours: float,
    specialization: str,
    session_type: str,
    note: str = '',
) -> ScheduleSession:
    return ScheduleSession(
        semester_id=semester_id,
        teacher_name=teacher_name,
        day=day,
        start_time=start_time,
        end_time=add_hours(start_time, duration_hours),
        duration_hours=duration_hours,
        specialization=specialization,
        session_type=session_type,
        note=note,
        slot_key=slot_key(day, teacher_name, start_time),
    )


def create_session(
    db: Session,
    *,
    semester_id: int,
    teacher_name: str,
    day: str,
    start_time: str,
    duration_hours: float,
    specialization: str,
    student_id: int,
    session_type: str = SessionType.PRACTICAL.value,
) -> ScheduleSession:
    duration = _validate_duration(duration_hours, settings.session_min_duration_hours, settings.session_max_duration_hours)
    specialization = _require_specialization(specialization)
    session_type = _validate_session_type(session_type)
    teacher_name = _require_teacher(teacher_name)
    day = normalize_day(day)
    start = parse_session_time(start_time)

    semester = get_semester(db, semester_id)
    student = get_enrollable_student(db, student_id)

    try:
        ensure_semester_teacher(db, semester, teacher_name)
        row = build_session(
            semester_id=semester.id,
            teacher_name=teacher_name,
            day=day,
            start_time=start,
            duration_hours=duration,
            specialization=specialization,
            session_type=session_type,
        )
        add_roster_entry(row, student_id=student.id, student_name=student.name)
        db.add(row)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)
    logger.info(
        'session_created session_id=%s semester_id=%s teacher=%s day=%s time=%s',
        row.id,
        semester.id,
        teacher_name,
        day,
        format_hhmm(start),
    )
    return row


def enroll_student(
    db: Session,
    *,
    semester_id: int,
    teacher_name: str,
    day: str,
    start_time: str,
    duration_hours: float,
    specialization: str,
    student_id: int,
) -> ScheduleSession:
    """Adds the student to the (teacher, day, start time) session, creating it when absent."""
    duration = _validate_duration(duration_hours, settings.enroll_min_duration_hours, settings.session_max_duration_hours)
    specialization = _require_specialization(specialization)
    teacher_name = _require_teacher(teacher_name)
    day = normalize_day(day)
    start = parse_hhmm(start_time)

    semester = get_semester(db, semester_id)
    student = get_enrollable_student(db, student_id)

    try:
        ensure_semester_teacher(db, semester, teacher_name)
        row = find_session_at_time(db, semester_id=semester.id, teacher_name=teacher_name, day=day, start_time=start)
        created = row is None
        if created:
            row = build_session(
                semester_id=semester.id,
                teacher_name=teacher_name,
                day=day,
                start_time=start,
                duration_hours=duration,
                specialization=specialization,
                session_type=SessionType.PRACTICAL.value,
            )
            db.add(row)
        add_roster_entry(row, student_id=student.id, student_name=student.name)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)
    logger.info(
        'student_enrolled student_id=%s session_id=%s created_session=%s',
        student.id,
        row.id,
        created,
    )
    return row


def remove_student_from_session(
    db: Session,
    *,
    semester_id: int,
    teacher_name: str,
    day: str,
    session_id: int,
    student_id: int,
    commit: bool = True,
) -> ScheduleSession:
    row = get_slot_session(db, semester_id=semester_id, teacher_name=teacher_name, day=day, session_id=session_id)
    if not any(entry.student_id == student_id for entry in row.enrollments):
        raise NotFoundError('Student is not on this session')
    row.enrollments = [entry for entry in row.enrollments if entry.student_id != student_id]
    if commit:
        db.commit()
        db.refresh(row)
        logger.info('student_removed student_id=%s session_id=%s', student_id, session_id)
    else:
        db.flush()
    return row


def set_pending_removal(
    db: Session,
    *,
    semester_id: int,
    teacher_name: str,
    day: str,
    session_id: int,
    student_id: int,
    pending: bool = True,
    commit: bool = True,
) -> bool:
    """Flags a roster row for removal review. Returns False when the student is not on the session."""
    try:
        row = get_slot_session(db, semester_id=semester_id, teacher_name=teacher_name, day=day, session_id=session_id)
    except NotFoundError:
        return False
    entry = next((e for e in row.enrollments if e.student_id == student_id), None)
    if entry is None:
        return False
    entry.pending_removal = pending
    if commit:
        db.commit()
    else:
        db.flush()
    return True


def delete_session(db: Session, session_id: int) -> None:
    row = get_session(db, session_id)
    db.delete(row)
    db.commit()
    logger.info('session_deleted session_id=%s', session_id)


def serialize_session(
    row: ScheduleSession,
    *,
    attendance: dict[int, dict] | None = None,
    excused_student_ids: set[int] | None = None,
) -> dict:
    attendance = attendance or {}
    excused_student_ids = excused_student_ids or set()
    students = []
    for entry in row.enrollments:
        if entry.student_id in excused_student_ids:
            status = 'excused'
        else:
            status = (attendance.get(entry.student_id) or {}).get('status')
        students.append(
            {
                'id': entry.student_id,
                'name': entry.student_name,
                'attendance': status,
                'pending_removal': bool(entry.pending_removal),
                'on_leave': entry.student_id in excused_student_ids,
            }
        )
    return {
        'id': row.id,
        'slot_key': row.slot_key,
        'teacher': row.teacher_name,
        'day': row.day,
        'time': format_display_time(row.start_time),
        'start_time': format_hhmm(row.start_time),
        'end_time': format_display_time(row.end_time) if row.end_time else None,
        'duration': row.duration_hours,
        'specialization': row.specialization,
        'type': row.session_type,
        'note': row.note,
        'students': students,
    }


def _ordered_sessions(rows: list[ScheduleSession]) -> list[ScheduleSession]:
    return sorted(rows, key=lambda r: (_DAY_ORDER.get(r.day, 99), r.start_time, r.id))


def get_teacher_schedule(
    db: Session,
    *,
    semester_id: int,
    teacher_name: str,
    attendance: dict[int, dict[int, dict]] | None = None,
    excused_student_ids: set[int] | None = None,
) -> dict[str, list[dict]]:
    """Day -> sessions for one teacher; ``attendance`` is session id -> student id -> record."""
    get_semester(db, semester_id)
    rows = (
        db.query(ScheduleSession)
        .filter(ScheduleSession.semester_id == semester_id, ScheduleSession.teacher_name == teacher_name)
        .all()
    )
    attendance = attendance or {}
    schedule: dict[str, list[dict]] = {}
    for row in _ordered_sessions(rows):
        schedule.setdefault(row.day, []).append(
            serialize_session(row, attendance=attendance.get(row.id), excused_student_ids=excused_student_ids)
        )
    return schedule


def get_master_schedule(db: Session, semester_id: int) -> dict[str, dict[str, list[dict]]]:
    semester = get_semester(db, semester_id)
    schedule: dict[str, dict[str, list[dict]]] = {name: {} for name in semester.teachers}
    for row in _ordered_sessions(list(semester.sessions)):
        schedule.setdefault(row.teacher_name, {}).setdefault(row.day, []).append(serialize_session(row))
    return schedule


def list_student_enrollments(db: Session, student_id: int) -> list[dict]:
    """The student's ``enrolledIn`` view, derived from the session rosters."""
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise NotFoundError('Student not found')
    if student.status == StudentStatus.DELETED.value:
        return []
    rows = (
        db.query(ScheduleSession)
        .join(SessionEnrollment, SessionEnrollment.session_id == ScheduleSession.id)
        .filter(SessionEnrollment.student_id == student_id)
        .order_by(ScheduleSession.semester_id.asc(), ScheduleSession.id.asc())
        .all()
    )
    return [
        {
            'semester_id': row.semester_id,
            'teacher': row.teacher_name,
            'session_id': row.id,
            'day': row.day,
            'time': format_display_time(row.start_time),
        }
        for row in rows
    ]
