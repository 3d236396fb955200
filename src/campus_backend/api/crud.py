import logging
from typing import Any, Dict, Optional
from sqlalchemy import exc
from fastapi import Response
from sqlalchemy.orm import Query, Session

from campus_backend.api.exceptions import BadRequestException, InternalServerException, NotFoundException
from campus_backend.interface.base import ListQuery, apply_list_query

logger = logging.getLogger(__name__)


def _label(db_type: Any) -> str:
    return db_type.__tablename__.replace('_', ' ')


def get_or_404(query: Query, db_type: Any, id: str):
    item = query.filter(db_type.id == id).first()

    if item is None:
        raise NotFoundException(detail=f"{db_type.__name__} not found")

    return item


def commit_or_400(db: Session, db_type: Any, action: str):
    try:
        db.commit()
    except exc.IntegrityError as e:
        db.rollback()
        logger.info(f"Integrity error on {action} {db_type.__tablename__}: {e.orig if hasattr(e, 'orig') else e}")
        if action == "delete":
            raise BadRequestException(detail=f"Cannot delete this {_label(db_type)} because other records depend on it")
        raise BadRequestException(detail=f"{_label(db_type).capitalize()} violates a uniqueness or reference constraint")
    except exc.SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error on {action} {db_type.__tablename__}: {e}")
        raise InternalServerException(detail="An unexpected database error occurred")


def create_db(db: Session, db_type: Any, values: Dict[str, Any], relations: Optional[Dict[str, Any]] = None):
    db_item = db_type(**values)

    for key, value in (relations or {}).items():
        setattr(db_item, key, value)

    return commit_new(db, db_item)


def commit_new(db: Session, db_item: Any):
    db.add(db_item)
    commit_or_400(db, type(db_item), "create")
    db.refresh(db_item)

    return db_item


def update_db(db: Session, db_item: Any, values: Dict[str, Any], relations: Optional[Dict[str, Any]] = None):
    db_type = type(db_item)

    for key, value in values.items():
        setattr(db_item, key, value)

    for key, value in (relations or {}).items():
        setattr(db_item, key, value)

    commit_or_400(db, db_type, "update")
    db.refresh(db_item)

    return db_item


def delete_db(db: Session, db_item: Any):
    db.delete(db_item)
    commit_or_400(db, type(db_item), "delete")


def fetch_related(db: Session, db_type: Any, ids, label: Optional[str] = None):
    """Load ``ids`` of ``db_type``, failing with 400 when any of them is unknown."""
    ids = list(dict.fromkeys(ids or []))

    if not ids:
        return []

    items = db.query(db_type).filter(db_type.id.in_(ids)).all()

    if len(items) != len(ids):
        found = {item.id for item in items}
        missing = [id for id in ids if id not in found]
        raise BadRequestException(detail=f"Unknown {label or _label(db_type)} ids: {', '.join(missing)}")

    return items


def ensure_exists(db: Session, db_type: Any, id: Optional[str], label: Optional[str] = None):
    if id is None:
        return None
    item = db.query(db_type).filter(db_type.id == id).first()
    if item is None:
        raise BadRequestException(detail=f"Unknown {label or _label(db_type)}: {id}")
    return item


def list_db(query: Query, params: Optional[ListQuery], list_type: Any, response: Optional[Response] = None):
    total = query.order_by(None).count()

    if response is not None:
        response.headers["X-Total-Count"] = str(total)

    return [list_type.model_validate(item, from_attributes=True) for item in apply_list_query(query, params).all()]
