from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from academy.core.errors import NotFoundError, to_http_exception
from academy.db import get_db
from academy.route_logging import EndpointNameRoute
from academy.schemas import IncompatibilityCreateRequest
from academy.services.incompatibility_service import (
    create_incompatibility,
    delete_incompatibility,
    list_incompatibilities,
    serialize_incompatibility,
)


router = APIRouter(prefix='/api/exclusions', tags=['Exclusion Rules'], route_class=EndpointNameRoute)


@router.get('')
def api_list_rules(semester_id: int = Query(...), db: Session = Depends(get_db)):
    return {'data': [serialize_incompatibility(row) for row in list_incompatibilities(db, semester_id=semester_id)]}


@router.post('')
def api_create_rule(payload: IncompatibilityCreateRequest, db: Session = Depends(get_db)):
    try:
        row = create_incompatibility(db, **payload.model_dump())
    except (NotFoundError, ValueError) as exc:
        raise to_http_exception(exc) from exc
    return serialize_incompatibility(row)


@router.delete('/{rule_id}')
def api_delete_rule(rule_id: int, db: Session = Depends(get_db)):
    try:
        delete_incompatibility(db, rule_id)
    except NotFoundError as exc:
        raise to_http_exception(exc) from exc
    return {'ok': True}
