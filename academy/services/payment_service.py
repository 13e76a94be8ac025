from __future__ import annotations

import calendar
import logging
from datetime import date

from sqlalchemy.orm import Session

from academy.config import settings
from academy.core.errors import NotFoundError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.models import DueDateChange, Installment, InstallmentStatus, PaymentMethod, PaymentPlan, PaymentSettings, Student


logger = logging.getLogger(__name__)

# plan -> (installment count, months between installments)
PLAN_SCHEDULE = {
    PaymentPlan.MONTHLY.value: (12, 1),
    PaymentPlan.QUARTERLY.value: (4, 3),
    PaymentPlan.YEARLY.value: (1, 12),
}


def add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def get_payment_settings(db: Session) -> PaymentSettings:
    row = db.query(PaymentSettings).order_by(PaymentSettings.id.asc()).first()
    if row:
        return row
    row = PaymentSettings(
        id=1,
        monthly=settings.default_monthly_price,
        quarterly=settings.default_quarterly_price,
        yearly=settings.default_yearly_price,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_payment_settings(db: Session, *, monthly: float, quarterly: float, yearly: float) -> PaymentSettings:
    for label, value in (('monthly', monthly), ('quarterly', quarterly), ('yearly', yearly)):
        if value is None or float(value) < 0:
            raise ValueError(f'{label} price cannot be negative')
    row = get_payment_settings(db)
    row.monthly = float(monthly)
    row.quarterly = float(quarterly)
    row.yearly = float(yearly)
    db.commit()
    db.refresh(row)
    logger.info('payment_settings_updated monthly=%s quarterly=%s yearly=%s', row.monthly, row.quarterly, row.yearly)
    return row


def plan_price(row: PaymentSettings, plan: str) -> float:
    return float(getattr(row, plan))


def _get_student(db: Session, student_id: int) -> Student:
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise NotFoundError('Student not found')
    return student


def get_installment(db: Session, installment_id: int) -> Installment:
    row = db.query(Installment).filter(Installment.id == installment_id).first()
    if not row:
        raise NotFoundError('Installment not found')
    return row


def assign_payment_plan(db: Session, *, student_id: int, plan: str, start_date: date) -> Student:
    if plan not in PLAN_SCHEDULE:
        raise ValueError('Plan must be monthly, quarterly or yearly')
    student = _get_student(db, student_id)
    count, step_months = PLAN_SCHEDULE[plan]
    # Amount is copied now; later price edits do not touch these rows.
    amount = plan_price(get_payment_settings(db), plan)

    student.installments = [
        Installment(
            sequence=i,
            due_date=add_months(start_date, i * step_months),
            amount=amount,
            status=InstallmentStatus.UNPAID.value,
        )
        for i in range(count)
    ]
    student.payment_plan = plan
    student.subscription_start_date = start_date
    db.commit()
    db.refresh(student)
    logger.info('payment_plan_assigned student_id=%s plan=%s installments=%s amount=%s', student.id, plan, count, amount)
    return student


def _next_invoice_number(db: Session, time_provider: TimeProvider) -> str:
    base = f'{settings.invoice_prefix}-{time_provider.epoch_millis()}'
    candidate = base
    suffix = 0
    while db.query(Installment.id).filter(Installment.invoice_number == candidate).first():
        suffix += 1
        candidate = f'{base}-{suffix}'
    return candidate


def mark_installment_paid(
    db: Session,
    installment_id: int,
    *,
    payment_method: str,
    time_provider: TimeProvider = default_time_provider,
) -> Installment:
    if payment_method not in {m.value for m in PaymentMethod}:
        raise ValueError('Payment method must be visa, mada, cash or transfer')
    row = get_installment(db, installment_id)
    row.status = InstallmentStatus.PAID.value
    row.payment_date = time_provider.today()
    row.payment_method = payment_method
    if not row.invoice_number:
        row.invoice_number = _next_invoice_number(db, time_provider)
    db.commit()
    db.refresh(row)
    logger.info('installment_paid installment_id=%s invoice=%s method=%s', row.id, row.invoice_number, payment_method)
    return row


def set_grace_period(db: Session, installment_id: int, *, until: date) -> Installment:
    row = get_installment(db, installment_id)
    if until < row.due_date:
        raise ValueError('Grace period cannot end before the original due date')
    row.grace_period_until = until
    db.commit()
    db.refresh(row)
    return row


def change_all_due_dates(
    db: Session,
    *,
    student_id: int,
    day: int,
    time_provider: TimeProvider = default_time_provider,
) -> Student:
    """Moves every unpaid installment due today or later to ``day`` of its month."""
    if day < 1 or day > 28:
        raise ValueError('Day must be between 1 and 28')
    student = _get_student(db, student_id)
    today = time_provider.today()
    changed = 0
    for inst in student.installments:
        if inst.status == InstallmentStatus.UNPAID.value and inst.due_date >= today:
            inst.due_date = inst.due_date.replace(day=day)
            changed += 1
    student.due_date_changes.append(DueDateChange(changed_on=today, old_day=student.preferred_pay_day, new_day=day))
    student.preferred_pay_day = day
    db.commit()
    db.refresh(student)
    logger.info('due_dates_changed student_id=%s day=%s installments=%s', student.id, day, changed)
    return student


def installment_status(row: Installment, today: date) -> str:
    if row.status == InstallmentStatus.PAID.value:
        return InstallmentStatus.PAID.value
    compare_date = row.grace_period_until or row.due_date
    if compare_date < today:
        return InstallmentStatus.OVERDUE.value
    return InstallmentStatus.UNPAID.value


def serialize_installment(row: Installment, today: date) -> dict:
    return {
        'id': row.id,
        'student_id': row.student_id,
        'sequence': row.sequence,
        'due_date': row.due_date.isoformat(),
        'amount': row.amount,
        'status': installment_status(row, today),
        'payment_date': row.payment_date.isoformat() if row.payment_date else None,
        'payment_method': row.payment_method,
        'invoice_number': row.invoice_number,
        'grace_period_until': row.grace_period_until.isoformat() if row.grace_period_until else None,
    }


def student_payment_summary(
    db: Session,
    student_id: int,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    student = _get_student(db, student_id)
    today = time_provider.today()
    items = [serialize_installment(inst, today) for inst in student.installments]
    paid = sum(item['amount'] for item in items if item['status'] == InstallmentStatus.PAID.value)
    due = sum(item['amount'] for item in items if item['status'] != InstallmentStatus.PAID.value)
    next_due = next((item for item in items if item['status'] != InstallmentStatus.PAID.value), None)
    return {
        'student_id': student.id,
        'student_name': student.name,
        'payment_plan': student.payment_plan,
        'subscription_start_date': student.subscription_start_date.isoformat() if student.subscription_start_date else None,
        'preferred_pay_day': student.preferred_pay_day,
        'paid_total': paid,
        'due_total': due,
        'overdue_count': sum(1 for item in items if item['status'] == InstallmentStatus.OVERDUE.value),
        'next_due': next_due,
        'installments': items,
    }


def end_of_day_report(db: Session, *, day: date) -> dict:
    report = {method.value: 0.0 for method in PaymentMethod}
    total = 0.0
    transactions = []
    rows = (
        db.query(Installment, Student)
        .join(Student, Student.id == Installment.student_id)
        .filter(Installment.status == InstallmentStatus.PAID.value, Installment.payment_date == day)
        .order_by(Installment.id.asc())
        .all()
    )
    for inst, student in rows:
        if inst.payment_method in report:
            report[inst.payment_method] += inst.amount
        total += inst.amount
        transactions.append(
            {
                'student_name': student.name,
                'amount': inst.amount,
                'method': inst.payment_method,
                'invoice': inst.invoice_number,
            }
        )
    return {'date': day.isoformat(), **report, 'total': total, 'transactions': transactions}
