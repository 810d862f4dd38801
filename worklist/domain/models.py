"""SQLAlchemy models for the worklist store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class StoredRecord(Base):
    """One entity of a named collection, stored as a JSON document."""

    __tablename__ = "records"
    __table_args__ = (UniqueConstraint("collection", "record_id", name="uq_collection_record"),)

    id = Column(Integer, primary_key=True)
    collection = Column(String(40), nullable=False, index=True)  # members, tasks, planned_shifts, ...
    record_id = Column(String(64), nullable=False)
    payload = Column(JSON, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<StoredRecord(collection='{self.collection}', id='{self.record_id}')>"
