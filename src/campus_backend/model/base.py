from datetime import datetime, timezone
from uuid import uuid4
from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()
metadata = Base.metadata


def generate_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    id = Column(String(36), primary_key=True, default=generate_id)
    created_at = Column(DateTime(True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(True), nullable=False, default=utcnow, onupdate=utcnow)


def one_of(column: str, values) -> str:
    """SQL check expression restricting ``column`` to ``values``."""
    return f"{column} IN ({', '.join(repr(value) for value in values)})"
