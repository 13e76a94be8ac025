from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from academy.core.csv_import import read_csv_rows
from academy.core.errors import NotFoundError, StateConflictError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.models import LevelChange, Student, StudentStatus
from academy.services.schedule_service import list_student_enrollments


logger = logging.getLogger(__name__)

STUDENT_CSV_FIELDS = ['name', 'level', 'gender', 'dob', 'nationality', 'phone', 'email', 'instrumentInterest']
_UPDATABLE_FIELDS = {
    'name',
    'gender',
    'dob',
    'nationality',
    'phone',
    'email',
    'instrument_interest',
    'status',
}


def _normalize_gender(value: str | None) -> str | None:
    if value is None:
        return None
    gender = value.strip().lower()
    if gender not in ('male', 'female'):
        raise ValueError('Gender must be male or female')
    return gender


def build_student(
    *,
    name: str,
    level: str = 'Beginner',
    gender: str | None = None,
    dob: str = '',
    nationality: str = '',
    phone: str = '',
    email: str = '',
    instrument_interest: str = '',
    enrollment_date: date,
    applicant_id: int | None = None,
) -> Student:
    if not (name or '').strip():
        raise ValueError('Student name is required')
    return Student(
        name=name.strip(),
        level=(level or 'Beginner').strip(),
        gender=_normalize_gender(gender),
        dob=dob or '',
        nationality=nationality or '',
        phone=phone or '',
        email=email or '',
        instrument_interest=instrument_interest or '',
        enrollment_date=enrollment_date,
        status=StudentStatus.ACTIVE.value,
        applicant_id=applicant_id,
    )


def create_student(
    db: Session,
    *,
    time_provider: TimeProvider = default_time_provider,
    **fields,
) -> Student:
    fields.setdefault('enrollment_date', time_provider.today())
    row = build_student(**fields)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info('student_created student_id=%s', row.id)
    return row


def get_student(db: Session, student_id: int) -> Student:
    row = db.query(Student).filter(Student.id == student_id).first()
    if not row:
        raise NotFoundError('Student not found')
    return row


def list_students(db: Session, *, include_deleted: bool = False, status: str | None = None) -> list[Student]:
    query = db.query(Student)
    if status:
        query = query.filter(Student.status == status)
    elif not include_deleted:
        query = query.filter(Student.status != StudentStatus.DELETED.value)
    return query.order_by(Student.name.asc(), Student.id.asc()).all()


def update_student(db: Session, student_id: int, **changes) -> Student:
    row = get_student(db, student_id)
    unknown = set(changes) - _UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    if 'status' in changes:
        if changes['status'] not in {s.value for s in StudentStatus}:
            raise ValueError('Unknown student status')
        if changes['status'] == StudentStatus.DELETED.value:
            raise ValueError('Use soft delete to delete a student')
        if row.status == StudentStatus.DELETED.value:
            raise StateConflictError('Deleted students cannot change status')
    if 'name' in changes and not (changes['name'] or '').strip():
        raise ValueError('Student name is required')
    if 'gender' in changes:
        changes['gender'] = _normalize_gender(changes['gender'])
    for key, value in changes.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


def change_level(
    db: Session,
    student_id: int,
    *,
    level: str,
    review: str = '',
    time_provider: TimeProvider = default_time_provider,
) -> Student:
    row = get_student(db, student_id)
    level = (level or '').strip()
    if not level:
        raise ValueError('Level is required')
    row.level = level
    row.level_history.append(LevelChange(level=level, review=review or '', changed_at=time_provider.now().replace(tzinfo=None)))
    db.commit()
    db.refresh(row)
    logger.info('student_level_changed student_id=%s level=%s', row.id, level)
    return row


def soft_delete_student(
    db: Session,
    student_id: int,
    *,
    reason: str = '',
    time_provider: TimeProvider = default_time_provider,
) -> Student:
    """Marks the student deleted. Session rosters keep their rows."""
    row = get_student(db, student_id)
    row.status = StudentStatus.DELETED.value
    row.deletion_date = time_provider.now().replace(tzinfo=None)
    row.deletion_reason = reason or 'No reason provided.'
    db.commit()
    db.refresh(row)
    logger.info('student_soft_deleted student_id=%s', row.id)
    return row


def hard_delete_student(db: Session, student_id: int) -> None:
    row = get_student(db, student_id)
    db.delete(row)
    db.commit()
    logger.info('student_hard_deleted student_id=%s', student_id)


def import_students_csv(
    db: Session,
    content: str | bytes,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    rows = read_csv_rows(content, STUDENT_CSV_FIELDS)
    today = time_provider.today()
    students = [
        build_student(
            name=row.get('name', ''),
            level=row.get('level') or 'Beginner',
            gender=row.get('gender') or 'male',
            dob=row.get('dob', ''),
            nationality=row.get('nationality', ''),
            phone=row.get('phone', ''),
            email=row.get('email', ''),
            instrument_interest=row.get('instrumentInterest', ''),
            enrollment_date=today,
        )
        for row in rows
    ]
    db.add_all(students)
    db.commit()
    logger.info('students_imported count=%s', len(students))
    return {'imported': len(students), 'total': len(rows)}


def serialize_student(db: Session, row: Student) -> dict:
    return {
        'id': row.id,
        'name': row.name,
        'gender': row.gender,
        'dob': row.dob,
        'nationality': row.nationality,
        'contact': {'phone': row.phone, 'email': row.email},
        'instrument_interest': row.instrument_interest,
        'level': row.level,
        'level_history': [
            {'date': change.changed_at.isoformat(), 'level': change.level, 'review': change.review}
            for change in row.level_history
        ],
        'enrollment_date': row.enrollment_date.isoformat() if row.enrollment_date else None,
        'status': row.status,
        'deletion_info': (
            {'date': row.deletion_date.isoformat(), 'reason': row.deletion_reason} if row.deletion_date else None
        ),
        'payment_plan': row.payment_plan,
        'enrolled_in': list_student_enrollments(db, row.id),
    }
