from __future__ import annotations

import json
import logging
from datetime import date

from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError
from academy.core.time_provider import TimeProvider, default_time_provider
from academy.models import Grade, GradeType, StudentEvaluation
from academy.services.student_service import get_student


logger = logging.getLogger(__name__)

_GRADE_FIELDS = {
    'subject',
    'grade_type',
    'title',
    'score',
    'max_score',
    'graded_on',
    'attachment_name',
    'attachment_type',
    'attachment_url',
}


def _validate_grade(*, grade_type: str, score: float, max_score: float, subject: str, title: str) -> None:
    if grade_type not in {t.value for t in GradeType}:
        raise ValueError('Grade type must be test, assignment or quiz')
    if not (subject or '').strip() or not (title or '').strip():
        raise ValueError('Subject and title are required')
    if max_score <= 0:
        raise ValueError('Max score must be positive')
    if score < 0 or score > max_score:
        raise ValueError('Score must be between 0 and max score')


def create_grade(
    db: Session,
    *,
    student_id: int,
    subject: str,
    grade_type: str,
    title: str,
    score: float,
    max_score: float,
    graded_on: date | None = None,
    attachment_name: str = '',
    attachment_type: str = '',
    attachment_url: str = '',
    time_provider: TimeProvider = default_time_provider,
) -> Grade:
    _validate_grade(grade_type=grade_type, score=score, max_score=max_score, subject=subject, title=title)
    get_student(db, student_id)
    row = Grade(
        student_id=student_id,
        subject=subject.strip(),
        grade_type=grade_type,
        title=title.strip(),
        score=score,
        max_score=max_score,
        graded_on=graded_on or time_provider.today(),
        attachment_name=attachment_name or '',
        attachment_type=attachment_type or '',
        attachment_url=attachment_url or '',
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info('grade_created grade_id=%s student_id=%s type=%s', row.id, student_id, grade_type)
    return row


def get_grade(db: Session, grade_id: int) -> Grade:
    row = db.query(Grade).filter(Grade.id == grade_id).first()
    if not row:
        raise NotFoundError('Grade not found')
    return row


def update_grade(db: Session, grade_id: int, **changes) -> Grade:
    row = get_grade(db, grade_id)
    unknown = set(changes) - _GRADE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    changes = {key: value for key, value in changes.items() if value is not None}
    merged = {
        'grade_type': changes.get('grade_type', row.grade_type),
        'score': changes.get('score', row.score),
        'max_score': changes.get('max_score', row.max_score),
        'subject': changes.get('subject', row.subject),
        'title': changes.get('title', row.title),
    }
    _validate_grade(**merged)
    for key, value in changes.items():
        setattr(row, key, value.strip() if key in ('subject', 'title') else value)
    db.commit()
    db.refresh(row)
    return row


def delete_grade(db: Session, grade_id: int) -> None:
    row = get_grade(db, grade_id)
    db.delete(row)
    db.commit()
    logger.info('grade_deleted grade_id=%s', grade_id)


def list_grades_for_student(db: Session, student_id: int) -> list[Grade]:
    return (
        db.query(Grade)
        .filter(Grade.student_id == student_id)
        .order_by(Grade.graded_on.desc(), Grade.id.desc())
        .all()
    )


def serialize_grade(row: Grade) -> dict:
    attachment = None
    if row.attachment_url:
        attachment = {'name': row.attachment_name, 'type': row.attachment_type, 'url': row.attachment_url}
    return {
        'id': row.id,
        'student_id': row.student_id,
        'subject': row.subject,
        'type': row.grade_type,
        'title': row.title,
        'score': row.score,
        'max_score': row.max_score,
        'date': row.graded_on.isoformat(),
        'attachment': attachment,
        'created_at': row.created_at.isoformat() if row.created_at else None,
    }


def _clean_criteria(criteria: list[dict] | None) -> list[dict]:
    cleaned = []
    for item in criteria or []:
        name = str(item.get('name') or '').strip()
        if not name:
            raise ValueError('Each criterion needs a name')
        cleaned.append({'name': name, 'score': float(item.get('score') or 0)})
    return cleaned


def create_evaluation(
    db: Session,
    *,
    student_id: int,
    evaluator: str,
    criteria: list[dict] | None = None,
    notes: str = '',
    evaluated_on: date | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> StudentEvaluation:
    if not (evaluator or '').strip():
        raise ValueError('Evaluator is required')
    get_student(db, student_id)
    row = StudentEvaluation(
        student_id=student_id,
        evaluator=evaluator.strip(),
        criteria_json=json.dumps(_clean_criteria(criteria)),
        notes=notes or '',
        evaluated_on=evaluated_on or time_provider.today(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info('evaluation_created evaluation_id=%s student_id=%s', row.id, student_id)
    return row


def get_evaluation(db: Session, evaluation_id: int) -> StudentEvaluation:
    row = db.query(StudentEvaluation).filter(StudentEvaluation.id == evaluation_id).first()
    if not row:
        raise NotFoundError('Evaluation not found')
    return row


def update_evaluation(
    db: Session,
    evaluation_id: int,
    *,
    evaluator: str | None = None,
    criteria: list[dict] | None = None,
    notes: str | None = None,
    evaluated_on: date | None = None,
) -> StudentEvaluation:
    row = get_evaluation(db, evaluation_id)
    if evaluator is not None:
        if not evaluator.strip():
            raise ValueError('Evaluator is required')
        row.evaluator = evaluator.strip()
    if criteria is not None:
        row.criteria_json = json.dumps(_clean_criteria(criteria))
    if notes is not None:
        row.notes = notes
    if evaluated_on is not None:
        row.evaluated_on = evaluated_on
    db.commit()
    db.refresh(row)
    return row


def delete_evaluation(db: Session, evaluation_id: int) -> None:
    row = get_evaluation(db, evaluation_id)
    db.delete(row)
    db.commit()
    logger.info('evaluation_deleted evaluation_id=%s', evaluation_id)


def list_evaluations_for_student(db: Session, student_id: int) -> list[StudentEvaluation]:
    return (
        db.query(StudentEvaluation)
        .filter(StudentEvaluation.student_id == student_id)
        .order_by(StudentEvaluation.evaluated_on.desc(), StudentEvaluation.id.desc())
        .all()
    )


def serialize_evaluation(row: StudentEvaluation) -> dict:
    return {
        'id': row.id,
        'student_id': row.student_id,
        'date': row.evaluated_on.isoformat(),
        'evaluator': row.evaluator,
        'criteria': json.loads(row.criteria_json or '[]'),
        'notes': row.notes,
        'created_at': row.created_at.isoformat() if row.created_at else None,
    }
