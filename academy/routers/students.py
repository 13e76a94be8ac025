from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, to_http_exception
from academy.db import get_db
from academy.route_logging import EndpointNameRoute
from academy.schemas import LevelChangeRequest, SoftDeleteRequest, StudentCreateRequest, StudentUpdateRequest
from academy.services.student_service import (
    change_level,
    create_student,
    get_student,
    hard_delete_student,
    import_students_csv,
    list_students,
    serialize_student,
    soft_delete_student,
    update_student,
)


router = APIRouter(prefix='/api/students', tags=['Students'], route_class=EndpointNameRoute)


@router.get('')
def api_list_students(
    include_deleted: bool = Query(default=False),
    status: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    rows = list_students(db, include_deleted=include_deleted, status=status)
    return {'data': [serialize_student(db, row) for row in rows]}


@router.post('')
def api_create_student(payload: StudentCreateRequest, db: Session = Depends(get_db)):
    try:
        row = create_student(db, **payload.model_dump())
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return serialize_student(db, row)


@router.post('/import')
async def api_import_students(file: UploadFile = File(...), db: Session = Depends(get_db)):
    content = await file.read()
    try:
        return import_students_csv(db, content)
    except ValueError as exc:
        raise to_http_exception(exc) from exc


@router.get('/{student_id}')
def api_get_student(student_id: int, db: Session = Depends(get_db)):
    try:
        return serialize_student(db, get_student(db, student_id))
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc


@router.patch('/{student_id}')
def api_update_student(student_id: int, payload: StudentUpdateRequest, db: Session = Depends(get_db)):
    try:
        row = update_student(db, student_id, **payload.model_dump(exclude_unset=True))
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_student(db, row)


@router.post('/{student_id}/level')
def api_change_level(student_id: int, payload: LevelChangeRequest, db: Session = Depends(get_db)):
    try:
        row = change_level(db, student_id, level=payload.level, review=payload.review)
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_student(db, row)


@router.post('/{student_id}/soft-delete')
def api_soft_delete(student_id: int, payload: SoftDeleteRequest, db: Session = Depends(get_db)):
    try:
        row = soft_delete_student(db, student_id, reason=payload.reason)
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc
    return serialize_student(db, row)


@router.delete('/{student_id}')
def api_hard_delete(student_id: int, db: Session = Depends(get_db)):
    try:
        hard_delete_student(db, student_id)
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc
    return {'ok': True}
