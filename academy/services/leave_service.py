from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, StateConflictError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.core.weekdays import day_name, iter_days
from academy.models import ApprovalStatus, Leave, LeaveType, ScheduleSession, Semester
from academy.services.schedule_service import add_roster_entry, build_session, find_session_at_time
from academy.services.semester_service import ensure_semester_teacher, resolve_current_semester


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transfer:
    student_id: int
    session_id: int
    new_teacher: str


def _validate_leave_fields(leave_type: str, start_date: date, end_date: date, reason: str) -> None:
    if leave_type not in {t.value for t in LeaveType}:
        raise ValueError('Leave type must be student or teacher')
    if end_date < start_date:
        raise ValueError('End date cannot be before start date')
    if len((reason or '').strip()) < 5:
        raise ValueError('Reason must be at least 5 characters long')


def create_leave(
    db: Session,
    *,
    leave_type: str,
    person_id: str,
    person_name: str,
    start_date: date,
    end_date: date,
    reason: str,
) -> Leave:
    _validate_leave_fields(leave_type, start_date, end_date, reason)
    if not (person_name or '').strip():
        raise ValueError('Person name is required')
    row = Leave(
        leave_type=leave_type,
        person_id=str(person_id),
        person_name=person_name.strip(),
        start_date=start_date,
        end_date=end_date,
        reason=reason.strip(),
        status=ApprovalStatus.PENDING.value,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info('leave_created leave_id=%s type=%s person=%s', row.id, row.leave_type, row.person_name)
    return row


def get_leave(db: Session, leave_id: int) -> Leave:
    row = db.query(Leave).filter(Leave.id == leave_id).first()
    if not row:
        raise NotFoundError('Leave not found')
    return row


def list_leaves(db: Session, *, status: str | None = None, leave_type: str | None = None) -> list[Leave]:
    query = db.query(Leave)
    if status:
        query = query.filter(Leave.status == status)
    if leave_type:
        query = query.filter(Leave.leave_type == leave_type)
    return query.order_by(Leave.start_date.desc(), Leave.id.desc()).all()


def approved_leaves_overlapping(db: Session, *, start: date, end: date, leave_type: str | None = None) -> list[Leave]:
    query = db.query(Leave).filter(
        Leave.status == ApprovalStatus.APPROVED.value,
        Leave.start_date <= end,
        Leave.end_date >= start,
    )
    if leave_type:
        query = query.filter(Leave.leave_type == leave_type)
    return query.all()


def _teacher_sessions(db: Session, semester: Semester, teacher_name: str) -> list[ScheduleSession]:
    return (
        db.query(ScheduleSession)
        .filter(ScheduleSession.semester_id == semester.id, ScheduleSession.teacher_name == teacher_name)
        .order_by(ScheduleSession.day.asc(), ScheduleSession.start_time.asc(), ScheduleSession.id.asc())
        .all()
    )


def find_affected_students(
    db: Session,
    leave: Leave,
    *,
    semester: Semester | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> list[dict]:
    """Every (student, session) of the teacher whose weekday falls inside the leave, once each."""
    if leave.leave_type != LeaveType.TEACHER.value:
        return []
    semester = semester or resolve_current_semester(db, time_provider=time_provider)
    if semester is None:
        return []

    leave_weekdays = {day_name(d) for d in iter_days(leave.start_date, leave.end_date)}
    affected: list[dict] = []
    seen: set[tuple[int, int]] = set()
    for session in _teacher_sessions(db, semester, leave.person_name):
        if session.day not in leave_weekdays:
            continue
        for entry in session.enrollments:
            key = (entry.student_id, session.id)
            if key in seen:
                continue
            seen.add(key)
            affected.append(
                {
                    'student_id': entry.student_id,
                    'student_name': entry.student_name,
                    'session_id': session.id,
                    'day': session.day,
                    'semester_id': semester.id,
                }
            )
    return affected


def _require_pending(leave: Leave) -> None:
    if leave.status != ApprovalStatus.PENDING.value:
        raise StateConflictError(f'Leave is already {leave.status}')


def _validate_transfers(leave: Leave, affected: list[dict], transfers: list[Transfer]) -> None:
    expected = {(item['student_id'], item['session_id']) for item in affected}
    given: set[tuple[int, int]] = set()
    for transfer in transfers:
        key = (transfer.student_id, transfer.session_id)
        if key in given:
            raise ValueError(f'Duplicate transfer for student {transfer.student_id} in session {transfer.session_id}')
        if key not in expected:
            raise ValueError(f'Student {transfer.student_id} is not affected in session {transfer.session_id}')
        substitute = (transfer.new_teacher or '').strip()
        if not substitute:
            raise ValueError('A new teacher must be selected')
        if substitute == leave.person_name:
            raise ValueError('Substitute teacher must differ from the teacher on leave')
        given.add(key)
    missing = expected - given
    if missing:
        raise ValueError(f'{len(missing)} affected student(s) have no substitute teacher')


def _apply_transfer(db: Session, semester: Semester, transfer: Transfer) -> ScheduleSession:
    old_session = db.query(ScheduleSession).filter(ScheduleSession.id == transfer.session_id).one()
    entry = next(e for e in old_session.enrollments if e.student_id == transfer.student_id)
    student_name = entry.student_name
    old_session.enrollments.remove(entry)

    substitute = transfer.new_teacher.strip()
    ensure_semester_teacher(db, semester, substitute)
    target = find_session_at_time(
        db,
        semester_id=semester.id,
        teacher_name=substitute,
        day=old_session.day,
        start_time=old_session.start_time,
    )
    if target is None:
        target = build_session(
            semester_id=semester.id,
            teacher_name=substitute,
            day=old_session.day,
            start_time=old_session.start_time,
            duration_hours=old_session.duration_hours,
            specialization=old_session.specialization,
            session_type=old_session.session_type,
            note=old_session.note,
        )
        db.add(target)
    add_roster_entry(target, student_id=transfer.student_id, student_name=student_name)
    # autoflush is off; later transfers must see this session.
    db.flush()
    return target


def approve_leave(
    db: Session,
    leave_id: int,
    *,
    transfers: list[Transfer] | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    leave = get_leave(db, leave_id)
    _require_pending(leave)
    transfers = list(transfers or [])

    if leave.leave_type == LeaveType.STUDENT.value:
        if transfers:
            raise ValueError('Student leave does not take transfers')
        leave.status = ApprovalStatus.APPROVED.value
        db.commit()
        db.refresh(leave)
        logger.info('leave_approved leave_id=%s type=student', leave.id)
        return {'leave': leave, 'transfers': []}

    semester = resolve_current_semester(db, time_provider=time_provider)
    affected = find_affected_students(db, leave, semester=semester)
    _validate_transfers(leave, affected, transfers)

    results = []
    try:
        for transfer in transfers:
            target = _apply_transfer(db, semester, transfer)
            results.append(
                {
                    'student_id': transfer.student_id,
                    'from_session_id': transfer.session_id,
                    'to_session_id': target.id,
                    'new_teacher': target.teacher_name,
                }
            )
        leave.status = ApprovalStatus.APPROVED.value
        db.commit()
    except Exception:
        db.rollback()
        logger.exception('leave_transfer_failed leave_id=%s', leave_id)
        raise
    db.refresh(leave)
    logger.info('leave_approved leave_id=%s type=teacher transfers=%s', leave.id, len(results))
    return {'leave': leave, 'transfers': results}


def deny_leave(db: Session, leave_id: int) -> Leave:
    leave = get_leave(db, leave_id)
    _require_pending(leave)
    leave.status = ApprovalStatus.DENIED.value
    db.commit()
    db.refresh(leave)
    logger.info('leave_denied leave_id=%s', leave.id)
    return leave


def serialize_leave(row: Leave) -> dict:
    return {
        'id': row.id,
        'type': row.leave_type,
        'person_id': row.person_id,
        'person_name': row.person_name,
        'start_date': row.start_date.isoformat(),
        'end_date': row.end_date.isoformat(),
        'reason': row.reason,
        'status': row.status,
        'created_at': row.created_at.isoformat() if row.created_at else None,
        'updated_at': row.updated_at.isoformat() if row.updated_at else None,
    }
