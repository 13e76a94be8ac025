from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, to_http_exception
from academy.db import get_db
from academy.route_logging import EndpointNameRoute
from academy.schemas import AttendanceMarkRequest
from academy.services.attendance_service import (
    get_teacher_week_view,
    get_weekly_attendance,
    mark_attendance,
    resolve_week_start,
    teacher_week_stats,
)


router = APIRouter(prefix='/api/attendance', tags=['Attendance'], route_class=EndpointNameRoute)


@router.post('/mark')
def api_mark_attendance(payload: AttendanceMarkRequest, db: Session = Depends(get_db)):
    try:
        return mark_attendance(
            db,
            semester_id=payload.semester_id,
            teacher_name=payload.teacher_name,
            session_id=payload.session_id,
            student_id=payload.student_id,
            status=payload.status,
            on_date=payload.on_date,
            week_start=payload.week_start,
            note=payload.note,
        )
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc


@router.get('/{semester_id}/weekly')
def api_weekly_attendance(
    semester_id: int,
    week_start: date | None = Query(default=None),
    teacher_name: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        return get_weekly_attendance(
            db,
            semester_id=semester_id,
            week_start=resolve_week_start(week_start=week_start),
            teacher_name=teacher_name,
        )
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc


@router.get('/{semester_id}/teachers/{teacher_name}/stats')
def api_teacher_week_stats(
    semester_id: int,
    teacher_name: str,
    week_start: date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        view = get_teacher_week_view(db, semester_id=semester_id, teacher_name=teacher_name, week_start=week_start)
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc
    return {
        'teacher': teacher_name,
        'week_start': view['week_start'],
        'teacher_on_leave': view['teacher_on_leave'],
        **teacher_week_stats(view),
    }
