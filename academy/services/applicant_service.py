from __future__ import annotations

import json
import logging
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from academy.core.csv_import import read_csv_rows
from academy.core.errors import NotFoundError, StateConflictError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.core.weekdays import format_hhmm, parse_hhmm
from academy.models import Applicant, ApplicantStatus, LevelChange
from academy.services.student_service import build_student


logger = logging.getLogger(__name__)

APPLICANT_CSV_FIELDS = [
    'name',
    'gender',
    'dob',
    'nationality',
    'phone',
    'email',
    'instrumentInterest',
    'previousExperience',
]
_GENDERS = {'male', 'female', 'other'}
_DECISIONS = {ApplicantStatus.APPROVED.value, ApplicantStatus.REJECTED.value}
_EVALUABLE = {ApplicantStatus.INTERVIEW_SCHEDULED.value, ApplicantStatus.RE_EVALUATION.value}
_SCHEDULABLE = {ApplicantStatus.PENDING_REVIEW.value, ApplicantStatus.EVALUATED.value}


def _build_applicant(
    *,
    name: str,
    gender: str = 'other',
    dob: str = '',
    nationality: str = '',
    phone: str = '',
    email: str = '',
    instrument_interest: str = '',
    previous_experience: str = '',
    application_date: datetime,
) -> Applicant:
    if not (name or '').strip():
        raise ValueError('Applicant name is required')
    gender = (gender or 'other').strip().lower()
    if gender not in _GENDERS:
        raise ValueError('Gender must be male, female or other')
    return Applicant(
        name=name.strip(),
        gender=gender,
        dob=dob or '',
        nationality=nationality or '',
        phone=phone or '',
        email=email or '',
        instrument_interest=instrument_interest or '',
        previous_experience=previous_experience or '',
        status=ApplicantStatus.PENDING_REVIEW.value,
        application_date=application_date,
    )


def create_applicant(db: Session, *, time_provider: TimeProvider = default_time_provider, **fields) -> Applicant:
    row = _build_applicant(application_date=time_provider.now().replace(tzinfo=None), **fields)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info('applicant_created applicant_id=%s', row.id)
    return row


def get_applicant(db: Session, applicant_id: int) -> Applicant:
    row = db.query(Applicant).filter(Applicant.id == applicant_id).first()
    if not row:
        raise NotFoundError('Applicant not found')
    return row


def list_applicants(db: Session, *, status: str | None = None) -> list[Applicant]:
    query = db.query(Applicant)
    if status:
        query = query.filter(Applicant.status == status)
    return query.order_by(Applicant.application_date.desc(), Applicant.id.desc()).all()


def import_applicants_csv(
    db: Session,
    content: str | bytes,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    rows = read_csv_rows(content, APPLICANT_CSV_FIELDS)
    now = time_provider.now().replace(tzinfo=None)
    applicants = [
        _build_applicant(
            name=row.get('name', ''),
            gender=row.get('gender') or 'other',
            dob=row.get('dob', ''),
            nationality=row.get('nationality', ''),
            phone=row.get('phone', ''),
            email=row.get('email', ''),
            instrument_interest=row.get('instrumentInterest', ''),
            previous_experience=row.get('previousExperience', ''),
            application_date=now,
        )
        for row in rows
    ]
    db.add_all(applicants)
    db.commit()
    logger.info('applicants_imported count=%s', len(applicants))
    return {'imported': len(applicants), 'total': len(rows)}


def schedule_interviews(
    db: Session,
    *,
    applicant_ids: list[int],
    interview_date: date,
    start_time: str,
    duration_minutes: int,
    break_minutes: int,
    interviewers: list[str],
) -> list[Applicant]:
    """Assigns applicants to interviewers in turn; each interviewer's clock advances by duration plus break."""
    if not applicant_ids:
        raise ValueError('Select at least one applicant')
    interviewers = [name.strip() for name in interviewers if (name or '').strip()]
    if not interviewers:
        raise ValueError('Select at least one interviewer')
    if duration_minutes < 5:
        raise ValueError('Interview duration must be at least 5 minutes')
    if break_minutes < 0:
        raise ValueError('Break cannot be negative')
    start = datetime.combine(interview_date, parse_hhmm(start_time))

    applicants = [get_applicant(db, applicant_id) for applicant_id in applicant_ids]
    for row in applicants:
        if row.status not in _SCHEDULABLE:
            raise StateConflictError(f'Applicant {row.id} is {row.status}')

    next_slot = {name: start for name in interviewers}
    step = timedelta(minutes=duration_minutes + break_minutes)
    for index, row in enumerate(applicants):
        interviewer = interviewers[index % len(interviewers)]
        slot = next_slot[interviewer]
        row.interview_date = slot.date()
        row.interview_time = format_hhmm(slot.time())
        row.interviewer = interviewer
        row.status = ApplicantStatus.INTERVIEW_SCHEDULED.value
        next_slot[interviewer] = slot + step
    db.commit()
    logger.info('interviews_scheduled count=%s interviewers=%s date=%s', len(applicants), len(interviewers), interview_date)
    return applicants


def evaluate_applicant(
    db: Session,
    applicant_id: int,
    *,
    decision: str,
    criteria: dict[str, float] | None = None,
    notes: str = '',
    general_score: float | None = None,
    enroll: bool = False,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    if decision not in _DECISIONS:
        raise ValueError('Decision must be approved or rejected')
    if enroll and decision != ApplicantStatus.APPROVED.value:
        raise ValueError('Only approved applicants can be enrolled')
    row = get_applicant(db, applicant_id)
    if row.status not in _EVALUABLE:
        raise StateConflictError(f'Applicant is {row.status}; only interviewed applicants can be evaluated')

    row.evaluation_json = json.dumps(
        {
            'decision': decision,
            'criteria': criteria or {},
            'notes': notes or '',
            'general_score': general_score,
        }
    )
    row.status = decision
    student = None
    try:
        if enroll:
            student = build_student(
                name=row.name,
                level='Beginner',
                gender=row.gender if row.gender in ('male', 'female') else None,
                dob=row.dob,
                nationality=row.nationality,
                phone=row.phone,
                email=row.email,
                instrument_interest=row.instrument_interest,
                enrollment_date=time_provider.today(),
                applicant_id=row.id,
            )
            student.level_history.append(
                LevelChange(
                    level='Beginner',
                    review='Initial enrollment from application.',
                    changed_at=time_provider.now().replace(tzinfo=None),
                )
            )
            db.add(student)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)
    if student is not None:
        db.refresh(student)
    logger.info('applicant_evaluated applicant_id=%s decision=%s enrolled=%s', row.id, decision, student is not None)
    return {'applicant': row, 'student': student}


def cancel_applicant(db: Session, applicant_id: int, *, reason: str) -> Applicant:
    row = get_applicant(db, applicant_id)
    if not (reason or '').strip():
        raise ValueError('Cancellation reason is required')
    if row.status == ApplicantStatus.CANCELLED.value:
        raise StateConflictError('Applicant is already cancelled')
    row.status = ApplicantStatus.CANCELLED.value
    row.cancellation_reason = reason.strip()
    db.commit()
    db.refresh(row)
    logger.info('applicant_cancelled applicant_id=%s', row.id)
    return row


def serialize_applicant(row: Applicant) -> dict:
    return {
        'id': row.id,
        'name': row.name,
        'gender': row.gender,
        'dob': row.dob,
        'nationality': row.nationality,
        'contact': {'phone': row.phone, 'email': row.email},
        'instrument_interest': row.instrument_interest,
        'previous_experience': row.previous_experience,
        'status': row.status,
        'application_date': row.application_date.isoformat() if row.application_date else None,
        'interview_details': (
            {
                'date': row.interview_date.isoformat(),
                'time': row.interview_time,
                'interviewer': row.interviewer,
            }
            if row.interview_date
            else None
        ),
        'evaluation': json.loads(row.evaluation_json) if row.evaluation_json else None,
        'cancellation_reason': row.cancellation_reason or None,
    }
