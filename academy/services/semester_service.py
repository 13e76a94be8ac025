from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.models import Semester, SemesterTeacher


logger = logging.getLogger(__name__)


def _validate_semester_fields(name: str, start_date: date, end_date: date) -> None:
    if len((name or '').strip()) < 3:
        raise ValueError('Semester name is required (at least 3 characters)')
    if end_date <= start_date:
        raise ValueError('End date must be after start date')


def get_semester(db: Session, semester_id: int) -> Semester:
    row = db.query(Semester).filter(Semester.id == semester_id).first()
    if not row:
        raise NotFoundError('Semester not found')
    return row


def list_semesters(db: Session) -> list[Semester]:
    return db.query(Semester).order_by(Semester.start_date.desc(), Semester.id.desc()).all()


def ensure_semester_teacher(db: Session, semester: Semester, teacher_name: str) -> SemesterTeacher:
    """Adds the teacher to the semester roster without committing."""
    name = (teacher_name or '').strip()
    if not name:
        raise ValueError('Teacher name is required')
    for link in semester.teacher_links:
        if link.teacher_name == name:
            return link
    link = SemesterTeacher(teacher_name=name)
    semester.teacher_links.append(link)
    db.flush()
    return link


def create_semester(
    db: Session,
    *,
    name: str,
    start_date: date,
    end_date: date,
    teachers: list[str] | None = None,
) -> Semester:
    _validate_semester_fields(name, start_date, end_date)
    row = Semester(name=name.strip(), start_date=start_date, end_date=end_date, is_active=False)
    db.add(row)
    db.flush()
    for teacher_name in teachers or []:
        ensure_semester_teacher(db, row, teacher_name)
    db.commit()
    db.refresh(row)
    logger.info('semester_created semester_id=%s name=%s', row.id, row.name)
    return row


def update_semester(
    db: Session,
    semester_id: int,
    *,
    name: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> Semester:
    row = get_semester(db, semester_id)
    new_name = name if name is not None else row.name
    new_start = start_date or row.start_date
    new_end = end_date or row.end_date
    _validate_semester_fields(new_name, new_start, new_end)
    row.name = new_name.strip()
    row.start_date = new_start
    row.end_date = new_end
    db.commit()
    db.refresh(row)
    return row


def add_teacher(db: Session, semester_id: int, teacher_name: str) -> Semester:
    row = get_semester(db, semester_id)
    ensure_semester_teacher(db, row, teacher_name)
    db.commit()
    db.refresh(row)
    return row


def set_active_semester(db: Session, semester_id: int) -> Semester:
    target = get_semester(db, semester_id)
    # Flip all off then one on, in the same transaction.
    db.query(Semester).filter(Semester.id != target.id).update({Semester.is_active: False}, synchronize_session=False)
    target.is_active = True
    db.commit()
    db.refresh(target)
    logger.info('semester_activated semester_id=%s', target.id)
    return target


def resolve_current_semester(db: Session, *, time_provider: TimeProvider = default_time_provider) -> Semester | None:
    flagged = db.query(Semester).filter(Semester.is_active.is_(True)).order_by(Semester.id.asc()).first()
    if flagged:
        return flagged
    today = time_provider.today()
    in_range = (
        db.query(Semester)
        .filter(Semester.start_date <= today, Semester.end_date >= today)
        .order_by(Semester.start_date.desc(), Semester.id.asc())
        .first()
    )
    if in_range:
        return in_range
    return db.query(Semester).order_by(Semester.created_at.asc(), Semester.id.asc()).first()


def serialize_semester(row: Semester) -> dict:
    return {
        'id': row.id,
        'name': row.name,
        'start_date': row.start_date.isoformat(),
        'end_date': row.end_date.isoformat(),
        'teachers': row.teachers,
        'is_active': bool(row.is_active),
        'created_at': row.created_at.isoformat() if row.created_at else None,
        'updated_at': row.updated_at.isoformat() if row.updated_at else None,
    }
