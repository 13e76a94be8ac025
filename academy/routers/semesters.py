from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, to_http_exception
from academy.db import get_db
from academy.route_logging import EndpointNameRoute
from academy.schemas import SemesterCreateRequest, SemesterUpdateRequest, TeacherAddRequest
from academy.services.schedule_service import get_master_schedule
from academy.services.semester_service import (
    add_teacher,
    create_semester,
    get_semester,
    list_semesters,
    resolve_current_semester,
    serialize_semester,
    set_active_semester,
    update_semester,
)


router = APIRouter(prefix='/api/semesters', tags=['Semesters'], route_class=EndpointNameRoute)


@router.get('')
def api_list_semesters(db: Session = Depends(get_db)):
    return {'data': [serialize_semester(row) for row in list_semesters(db)]}


@router.post('')
def api_create_semester(payload: SemesterCreateRequest, db: Session = Depends(get_db)):
    try:
        row = create_semester(
            db,
            name=payload.name,
            start_date=payload.start_date,
            end_date=payload.end_date,
            teachers=payload.teachers,
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return serialize_semester(row)


@router.get('/current')
def api_current_semester(db: Session = Depends(get_db)):
    row = resolve_current_semester(db)
    return {'data': serialize_semester(row) if row else None}


@router.get('/{semester_id}')
def api_get_semester(semester_id: int, db: Session = Depends(get_db)):
    try:
        return serialize_semester(get_semester(db, semester_id))
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc


@router.patch('/{semester_id}')
def api_update_semester(semester_id: int, payload: SemesterUpdateRequest, db: Session = Depends(get_db)):
    try:
        row = update_semester(
            db,
            semester_id,
            name=payload.name,
            start_date=payload.start_date,
            end_date=payload.end_date,
        )
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_semester(row)


@router.post('/{semester_id}/activate')
def api_activate_semester(semester_id: int, db: Session = Depends(get_db)):
    try:
        return serialize_semester(set_active_semester(db, semester_id))
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc


@router.post('/{semester_id}/teachers')
def api_add_teacher(semester_id: int, payload: TeacherAddRequest, db: Session = Depends(get_db)):
    try:
        return serialize_semester(add_teacher(db, semester_id, payload.teacher_name))
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc


@router.get('/{semester_id}/master-schedule')
def api_master_schedule(semester_id: int, db: Session = Depends(get_db)):
    try:
        return {'semester_id': semester_id, 'schedule': get_master_schedule(db, semester_id)}
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc
