from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, to_http_exception
from academy.core.time_provider import default_time_provider
from academy.db import get_db
from academy.route_logging import EndpointNameRoute
from academy.schemas import AssignPlanRequest, DueDayRequest, GracePeriodRequest, MarkPaidRequest, PaymentSettingsUpdate
from academy.services.payment_service import (
    assign_payment_plan,
    change_all_due_dates,
    end_of_day_report,
    get_payment_settings,
    mark_installment_paid,
    serialize_installment,
    set_grace_period,
    student_payment_summary,
    update_payment_settings,
)


router = APIRouter(prefix='/api/payments', tags=['Payments'], route_class=EndpointNameRoute)


def _serialize_settings(row) -> dict:
    return {'monthly': row.monthly, 'quarterly': row.quarterly, 'yearly': row.yearly}


@router.get('/settings')
def api_get_settings(db: Session = Depends(get_db)):
    return _serialize_settings(get_payment_settings(db))


@router.put('/settings')
def api_update_settings(payload: PaymentSettingsUpdate, db: Session = Depends(get_db)):
    try:
        row = update_payment_settings(db, monthly=payload.monthly, quarterly=payload.quarterly, yearly=payload.yearly)
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return _serialize_settings(row)


@router.get('/students/{student_id}')
def api_student_installments(student_id: int, db: Session = Depends(get_db)):
    try:
        return student_payment_summary(db, student_id)
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc


@router.post('/students/{student_id}/plan')
def api_assign_plan(student_id: int, payload: AssignPlanRequest, db: Session = Depends(get_db)):
    try:
        assign_payment_plan(db, student_id=student_id, plan=payload.plan, start_date=payload.start_date)
        return student_payment_summary(db, student_id)
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc


@router.post('/students/{student_id}/due-day')
def api_change_due_day(student_id: int, payload: DueDayRequest, db: Session = Depends(get_db)):
    try:
        change_all_due_dates(db, student_id=student_id, day=payload.day)
        return student_payment_summary(db, student_id)
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc


@router.post('/installments/{installment_id}/pay')
def api_mark_paid(installment_id: int, payload: MarkPaidRequest, db: Session = Depends(get_db)):
    try:
        row = mark_installment_paid(db, installment_id, payment_method=payload.payment_method)
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_installment(row, default_time_provider.today())


@router.post('/installments/{installment_id}/grace')
def api_grace_period(installment_id: int, payload: GracePeriodRequest, db: Session = Depends(get_db)):
    try:
        row = set_grace_period(db, installment_id, until=payload.until)
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_installment(row, default_time_provider.today())


@router.get('/reports/end-of-day')
def api_end_of_day(day: date | None = Query(default=None), db: Session = Depends(get_db)):
    return end_of_day_report(db, day=day or default_time_provider.today())
