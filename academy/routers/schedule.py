from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, to_http_exception
from academy.db import get_db
from academy.route_logging import EndpointNameRoute
from academy.schemas import EnrollRequest, RosterChangeRequest, SessionCreateRequest
from academy.services.attendance_service import get_teacher_week_view
from academy.services.schedule_service import (
    create_session,
    delete_session,
    enroll_student,
    list_student_enrollments,
    remove_student_from_session,
    serialize_session,
    set_pending_removal,
)


router = APIRouter(prefix='/api/schedule', tags=['Schedule'], route_class=EndpointNameRoute)


@router.post('/sessions')
def api_create_session(payload: SessionCreateRequest, db: Session = Depends(get_db)):
    try:
        row = create_session(
            db,
            semester_id=payload.semester_id,
            teacher_name=payload.teacher_name,
            day=payload.day,
            start_time=payload.start_time,
            duration_hours=payload.duration_hours,
            specialization=payload.specialization,
            student_id=payload.student_id,
            session_type=payload.session_type,
        )
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_session(row)


@router.post('/enroll')
def api_enroll_student(payload: EnrollRequest, db: Session = Depends(get_db)):
    try:
        row = enroll_student(
            db,
            semester_id=payload.semester_id,
            teacher_name=payload.teacher_name,
            day=payload.day,
            start_time=payload.start_time,
            duration_hours=payload.duration_hours,
            specialization=payload.specialization,
            student_id=payload.student_id,
        )
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_session(row)


@router.post('/remove-student')
def api_remove_student(payload: RosterChangeRequest, db: Session = Depends(get_db)):
    try:
        row = remove_student_from_session(
            db,
            semester_id=payload.semester_id,
            teacher_name=payload.teacher_name,
            day=payload.day,
            session_id=payload.session_id,
            student_id=payload.student_id,
        )
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_session(row)


@router.post('/pending-removal')
def api_mark_pending_removal(payload: RosterChangeRequest, db: Session = Depends(get_db)):
    flagged = set_pending_removal(
        db,
        semester_id=payload.semester_id,
        teacher_name=payload.teacher_name,
        day=payload.day,
        session_id=payload.session_id,
        student_id=payload.student_id,
    )
    if not flagged:
        raise to_http_exception(NotFoundError('Student is not on this session'))
    return {'ok': True}


@router.delete('/sessions/{session_id}')
def api_delete_session(session_id: int, db: Session = Depends(get_db)):
    try:
        delete_session(db, session_id)
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc
    return {'ok': True}


@router.get('/{semester_id}/teachers/{teacher_name}')
def api_teacher_schedule(
    semester_id: int,
    teacher_name: str,
    week_start: date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        return get_teacher_week_view(db, semester_id=semester_id, teacher_name=teacher_name, week_start=week_start)
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc


@router.get('/students/{student_id}/enrollments')
def api_student_enrollments(student_id: int, db: Session = Depends(get_db)):
    try:
        return {'student_id': student_id, 'enrolled_in': list_student_enrollments(db, student_id)}
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc
