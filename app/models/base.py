"""Base models and mixins for database models"""

from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase, declared_attr
from typing import Any, Dict, Optional
from datetime import datetime
import uuid

from app.utils.helpers import utcnow

# Create declarative base
class Base(DeclarativeBase):
    pass

class TimestampedModel:
    """Mixin for adding created_at and updated_at timestamps (naive UTC)"""

    @declared_attr
    def created_at(cls):
        return Column(
            DateTime,
            nullable=False,
            default=utcnow,
            index=True
        )

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime,
            nullable=False,
            default=utcnow,
            onupdate=utcnow
        )

class UUIDModel:
    """Mixin for adding UUID primary key"""

    @declared_attr
    def id(cls):
        return Column(
            Uuid,
            primary_key=True,
            default=uuid.uuid4,
            nullable=False
        )

class SerializableModel:
    """Mixin for plain-dict serialization of column values"""

    def to_dict(self, exclude: Optional[list] = None) -> Dict[str, Any]:
        exclude = exclude or []
        result = {}

        for column in self.__table__.columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, uuid.UUID):
                value = str(value)
            result[column.name] = value

        return result

    def __repr__(self):
        attributes = [
            f"{column.name}={getattr(self, column.name)!r}"
            for column in self.__table__.columns
            if column.primary_key
        ]
        return f"<{self.__class__.__name__}({', '.join(attributes)})>"

__all__ = [
    'Base',
    'TimestampedModel',
    'UUIDModel',
    'SerializableModel',
]
