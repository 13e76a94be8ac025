from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError
from academy.models import Incompatibility, IncompatibilityType
from academy.services.semester_service import get_semester


logger = logging.getLogger(__name__)


def create_incompatibility(
    db: Session,
    *,
    rule_type: str,
    semester_id: int,
    person1_id: str,
    person1_name: str,
    person2_id: str,
    person2_name: str,
    reason: str = '',
) -> Incompatibility:
    if rule_type not in {t.value for t in IncompatibilityType}:
        raise ValueError('Rule type must be teacher-student or student-student')
    if str(person1_id) == str(person2_id) and person1_name == person2_name:
        raise ValueError('A rule needs two different people')
    get_semester(db, semester_id)
    row = Incompatibility(
        rule_type=rule_type,
        semester_id=semester_id,
        person1_id=str(person1_id),
        person1_name=person1_name,
        person2_id=str(person2_id),
        person2_name=person2_name,
        reason=reason or '',
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info('incompatibility_created rule_id=%s type=%s semester_id=%s', row.id, rule_type, semester_id)
    return row


def list_incompatibilities(db: Session, *, semester_id: int) -> list[Incompatibility]:
    return (
        db.query(Incompatibility)
        .filter(Incompatibility.semester_id == semester_id)
        .order_by(Incompatibility.created_at.desc(), Incompatibility.id.desc())
        .all()
    )


def delete_incompatibility(db: Session, rule_id: int) -> None:
    row = db.query(Incompatibility).filter(Incompatibility.id == rule_id).first()
    if not row:
        raise NotFoundError('Rule not found')
    db.delete(row)
    db.commit()
    logger.info('incompatibility_deleted rule_id=%s', rule_id)


def serialize_incompatibility(row: Incompatibility) -> dict:
    return {
        'id': row.id,
        'type': row.rule_type,
        'person1': {'id': row.person1_id, 'name': row.person1_name},
        'person2': {'id': row.person2_id, 'name': row.person2_name},
        'reason': row.reason,
        'semester_id': row.semester_id,
        'created_at': row.created_at.isoformat() if row.created_at else None,
    }
