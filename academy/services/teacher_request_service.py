from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, StateConflictError
from academy.core.weekdays import normalize_day
from academy.models import ApprovalStatus, TeacherRequest, TeacherRequestType
from academy.services.schedule_service import remove_student_from_session, set_pending_removal
from academy.services.semester_service import get_semester


logger = logging.getLogger(__name__)


def create_teacher_request(
    db: Session,
    *,
    request_type: str,
    teacher_id: str,
    teacher_name: str,
    semester_id: int,
    day: str,
    session_id: int | None = None,
    session_time: str = '',
    student_id: int | None = None,
    student_name: str = '',
    reason: str = '',
) -> TeacherRequest:
    if request_type not in {t.value for t in TeacherRequestType}:
        raise ValueError('Unknown request type')
    if not (teacher_name or '').strip():
        raise ValueError('Teacher name is required')
    if request_type == TeacherRequestType.REMOVE_STUDENT.value and (student_id is None or session_id is None):
        raise ValueError('remove-student requests need a student and a session')
    get_semester(db, semester_id)
    day = normalize_day(day)

    row = TeacherRequest(
        request_type=request_type,
        status=ApprovalStatus.PENDING.value,
        teacher_id=str(teacher_id or ''),
        teacher_name=teacher_name.strip(),
        student_id=student_id,
        student_name=student_name or '',
        session_id=session_id,
        session_time=session_time or '',
        day=day,
        reason=reason or '',
        semester_id=semester_id,
    )
    db.add(row)
    flagged = False
    if request_type == TeacherRequestType.REMOVE_STUDENT.value:
        flagged = set_pending_removal(
            db,
            semester_id=semester_id,
            teacher_name=row.teacher_name,
            day=day,
            session_id=session_id,
            student_id=student_id,
            pending=True,
            commit=False,
        )
    db.commit()
    db.refresh(row)
    logger.info(
        'teacher_request_created request_id=%s type=%s teacher=%s pending_removal_flagged=%s',
        row.id,
        row.request_type,
        row.teacher_name,
        flagged,
    )
    return row


def get_teacher_request(db: Session, request_id: int) -> TeacherRequest:
    row = db.query(TeacherRequest).filter(TeacherRequest.id == request_id).first()
    if not row:
        raise NotFoundError('Request not found')
    return row


def list_teacher_requests(db: Session, *, status: str | None = None, teacher_name: str | None = None) -> list[TeacherRequest]:
    query = db.query(TeacherRequest)
    if status:
        query = query.filter(TeacherRequest.status == status)
    if teacher_name:
        query = query.filter(TeacherRequest.teacher_name == teacher_name)
    return query.order_by(TeacherRequest.request_date.desc(), TeacherRequest.id.desc()).all()


def _require_pending(row: TeacherRequest) -> None:
    if row.status != ApprovalStatus.PENDING.value:
        raise StateConflictError(f'Request is already {row.status}')


def approve_request(db: Session, request_id: int) -> TeacherRequest:
    row = get_teacher_request(db, request_id)
    _require_pending(row)
    try:
        if row.request_type == TeacherRequestType.REMOVE_STUDENT.value:
            remove_student_from_session(
                db,
                semester_id=row.semester_id,
                teacher_name=row.teacher_name,
                day=row.day,
                session_id=row.session_id,
                student_id=row.student_id,
                commit=False,
            )
        # add-student and change-time approvals only record the decision.
        row.status = ApprovalStatus.APPROVED.value
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)
    logger.info('teacher_request_approved request_id=%s type=%s', row.id, row.request_type)
    return row


def deny_request(db: Session, request_id: int) -> TeacherRequest:
    row = get_teacher_request(db, request_id)
    _require_pending(row)
    if row.request_type == TeacherRequestType.REMOVE_STUDENT.value:
        set_pending_removal(
            db,
            semester_id=row.semester_id,
            teacher_name=row.teacher_name,
            day=row.day,
            session_id=row.session_id,
            student_id=row.student_id,
            pending=False,
            commit=False,
        )
    row.status = ApprovalStatus.DENIED.value
    db.commit()
    db.refresh(row)
    logger.info('teacher_request_denied request_id=%s', row.id)
    return row


def serialize_teacher_request(row: TeacherRequest) -> dict:
    return {
        'id': row.id,
        'type': row.request_type,
        'status': row.status,
        'date': row.request_date.isoformat() if row.request_date else None,
        'teacher_id': row.teacher_id,
        'teacher_name': row.teacher_name,
        'details': {
            'student_id': row.student_id,
            'student_name': row.student_name,
            'session_id': row.session_id,
            'session_time': row.session_time,
            'day': row.day,
            'reason': row.reason,
            'semester_id': row.semester_id,
        },
    }
