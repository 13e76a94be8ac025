from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, to_http_exception
from academy.db import get_db
from academy.route_logging import EndpointNameRoute
from academy.schemas import GradeCreateRequest, GradeUpdateRequest
from academy.services.grade_service import (
    create_grade,
    delete_grade,
    list_grades_for_student,
    serialize_grade,
    update_grade,
)


router = APIRouter(prefix='/api/grades', tags=['Grades'], route_class=EndpointNameRoute)


@router.get('')
def api_list_grades(student_id: int = Query(...), db: Session = Depends(get_db)):
    return {'data': [serialize_grade(row) for row in list_grades_for_student(db, student_id)]}


@router.post('')
def api_create_grade(payload: GradeCreateRequest, db: Session = Depends(get_db)):
    try:
        row = create_grade(db, **payload.model_dump())
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_grade(row)


@router.patch('/{grade_id}')
def api_update_grade(grade_id: int, payload: GradeUpdateRequest, db: Session = Depends(get_db)):
    try:
        row = update_grade(db, grade_id, **payload.model_dump(exclude_unset=True))
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_grade(row)


@router.delete('/{grade_id}')
def api_delete_grade(grade_id: int, db: Session = Depends(get_db)):
    try:
        delete_grade(db, grade_id)
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc
    return {'ok': True}
