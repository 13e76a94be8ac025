from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, to_http_exception
from academy.db import get_db
from academy.route_logging import EndpointNameRoute
from academy.schemas import TeacherRequestCreate
from academy.services.teacher_request_service import (
    approve_request,
    create_teacher_request,
    deny_request,
    list_teacher_requests,
    serialize_teacher_request,
)


router = APIRouter(prefix='/api/requests', tags=['Teacher Requests'], route_class=EndpointNameRoute)


@router.get('')
def api_list_requests(
    status: str | None = Query(default=None),
    teacher_name: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    rows = list_teacher_requests(db, status=status, teacher_name=teacher_name)
    return {'data': [serialize_teacher_request(row) for row in rows]}


@router.post('')
def api_create_request(payload: TeacherRequestCreate, db: Session = Depends(get_db)):
    try:
        row = create_teacher_request(db, **payload.model_dump())
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_teacher_request(row)


@router.post('/{request_id}/approve')
def api_approve_request(request_id: int, db: Session = Depends(get_db)):
    try:
        return serialize_teacher_request(approve_request(db, request_id))
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc


@router.post('/{request_id}/deny')
def api_deny_request(request_id: int, db: Session = Depends(get_db)):
    try:
        return serialize_teacher_request(deny_request(db, request_id))
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
