from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, to_http_exception
from academy.db import get_db
from academy.route_logging import EndpointNameRoute
from academy.schemas import StudentEvaluationCreateRequest, StudentEvaluationUpdateRequest
from academy.services.grade_service import (
    create_evaluation,
    delete_evaluation,
    list_evaluations_for_student,
    serialize_evaluation,
    update_evaluation,
)


router = APIRouter(prefix='/api/evaluations', tags=['Evaluations'], route_class=EndpointNameRoute)


@router.get('')
def api_list_evaluations(student_id: int = Query(...), db: Session = Depends(get_db)):
    return {'data': [serialize_evaluation(row) for row in list_evaluations_for_student(db, student_id)]}


@router.post('')
def api_create_evaluation(payload: StudentEvaluationCreateRequest, db: Session = Depends(get_db)):
    try:
        row = create_evaluation(db, **payload.model_dump())
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_evaluation(row)


@router.patch('/{evaluation_id}')
def api_update_evaluation(evaluation_id: int, payload: StudentEvaluationUpdateRequest, db: Session = Depends(get_db)):
    try:
        row = update_evaluation(db, evaluation_id, **payload.model_dump(exclude_unset=True))
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_evaluation(row)


@router.delete('/{evaluation_id}')
def api_delete_evaluation(evaluation_id: int, db: Session = Depends(get_db)):
    try:
        delete_evaluation(db, evaluation_id)
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc
    return {'ok': True}
