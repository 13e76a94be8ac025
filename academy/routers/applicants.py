from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, to_http_exception
from academy.db import get_db
from academy.route_logging import EndpointNameRoute
from academy.schemas import ApplicantCreateRequest, CancelRequest, EvaluationRequest, InterviewScheduleRequest
from academy.services.applicant_service import (
    cancel_applicant,
    create_applicant,
    evaluate_applicant,
    import_applicants_csv,
    list_applicants,
    schedule_interviews,
    serialize_applicant,
)


router = APIRouter(prefix='/api/applicants', tags=['Applicants'], route_class=EndpointNameRoute)


@router.get('')
def api_list_applicants(status: str | None = Query(default=None), db: Session = Depends(get_db)):
    return {'data': [serialize_applicant(row) for row in list_applicants(db, status=status)]}


@router.post('')
def api_create_applicant(payload: ApplicantCreateRequest, db: Session = Depends(get_db)):
    try:
        row = create_applicant(db, **payload.model_dump())
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return serialize_applicant(row)


@router.post('/import')
async def api_import_applicants(file: UploadFile = File(...), db: Session = Depends(get_db)):
    content = await file.read()
    try:
        return import_applicants_csv(db, content)
    except ValueError as exc:
        raise to_http_exception(exc) from exc


@router.post('/interviews')
def api_schedule_interviews(payload: InterviewScheduleRequest, db: Session = Depends(get_db)):
    try:
        rows = schedule_interviews(
            db,
            applicant_ids=payload.applicant_ids,
            interview_date=payload.interview_date,
            start_time=payload.start_time,
            duration_minutes=payload.duration_minutes,
            break_minutes=payload.break_minutes,
            interviewers=payload.interviewers,
        )
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return {'data': [serialize_applicant(row) for row in rows]}


@router.post('/{applicant_id}/evaluate')
def api_evaluate_applicant(applicant_id: int, payload: EvaluationRequest, db: Session = Depends(get_db)):
    try:
        result = evaluate_applicant(
            db,
            applicant_id,
            decision=payload.decision,
            criteria=payload.criteria,
            notes=payload.notes,
            general_score=payload.general_score,
            enroll=payload.enroll,
        )
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    student = result['student']
    return {
        'applicant': serialize_applicant(result['applicant']),
        'student_id': student.id if student is not None else None,
    }


@router.post('/{applicant_id}/cancel')
def api_cancel_applicant(applicant_id: int, payload: CancelRequest, db: Session = Depends(get_db)):
    try:
        return serialize_applicant(cancel_applicant(db, applicant_id, reason=payload.reason))
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
