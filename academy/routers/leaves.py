from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, to_http_exception
from academy.db import get_db
from academy.route_logging import EndpointNameRoute
from academy.schemas import LeaveApproveRequest, LeaveCreateRequest
from academy.services.leave_service import (
    Transfer,
    approve_leave,
    create_leave,
    deny_leave,
    find_affected_students,
    get_leave,
    list_leaves,
    serialize_leave,
)


router = APIRouter(prefix='/api/leaves', tags=['Leaves'], route_class=EndpointNameRoute)


@router.get('')
def api_list_leaves(
    status: str | None = Query(default=None),
    leave_type: str | None = Query(default=None, alias='type'),
    db: Session = Depends(get_db),
):
    return {'data': [serialize_leave(row) for row in list_leaves(db, status=status, leave_type=leave_type)]}


@router.post('')
def api_create_leave(payload: LeaveCreateRequest, db: Session = Depends(get_db)):
    try:
        row = create_leave(
            db,
            leave_type=payload.leave_type,
            person_id=payload.person_id,
            person_name=payload.person_name,
            start_date=payload.start_date,
            end_date=payload.end_date,
            reason=payload.reason,
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return serialize_leave(row)


@router.get('/{leave_id}/affected')
def api_affected_students(leave_id: int, db: Session = Depends(get_db)):
    try:
        leave = get_leave(db, leave_id)
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc
    return {'leave_id': leave.id, 'affected': find_affected_students(db, leave)}


@router.post('/{leave_id}/approve')
def api_approve_leave(leave_id: int, payload: LeaveApproveRequest | None = None, db: Session = Depends(get_db)):
    transfers = [
        Transfer(student_id=item.student_id, session_id=item.session_id, new_teacher=item.new_teacher)
        for item in (payload.transfers if payload else [])
    ]
    try:
        result = approve_leave(db, leave_id, transfers=transfers)
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return {'leave': serialize_leave(result['leave']), 'transfers': result['transfers']}


@router.post('/{leave_id}/deny')
def api_deny_leave(leave_id: int, db: Session = Depends(get_db)):
    try:
        return serialize_leave(deny_leave(db, leave_id))
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
