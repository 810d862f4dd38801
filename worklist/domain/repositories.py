"""Repository classes for data access."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from worklist.exceptions import ConfigurationError

from .entities import COLLECTIONS
from .models import StoredRecord
from .records import from_record, to_record


Predicate = Callable[[Any], bool]


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise ConfigurationError(f"Unknown collection: {collection!r}")


class Repository(ABC):
    """Collection-keyed CRUD over entities.

    Entities go in and come out as the frozen dataclasses of
    ``worklist.domain.entities``; records are keyed by their ``id``.
    """

    @abstractmethod
    def select(self, collection: str, where: Optional[Predicate] = None) -> List[Any]:
        """All entities of a collection in insertion order, optionally filtered."""

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Optional[Any]:
        """One entity by id, or None."""

    @abstractmethod
    def upsert(self, collection: str, entities: Iterable[Any]) -> int:
        """Insert or replace entities by id. Returns the number written."""

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> bool:
        """Delete one entity. Returns True if it existed."""

    def delete_where(self, collection: str, where: Predicate) -> int:
        """Delete every entity matching ``where``. Returns the number deleted."""
        doomed = [entity.id for entity in self.select(collection, where)]
        for record_id in doomed:
            self.delete(collection, record_id)
        return len(doomed)

    def clear(self, collection: str) -> int:
        return self.delete_where(collection, lambda _: True)


class SqlAlchemyRepository(Repository):
    """Repository backed by the ``records`` table."""

    def __init__(self, session: Session):
        self.session = session

    def _query(self, collection: str):
        _check_collection(collection)
        return self.session.query(StoredRecord).filter(StoredRecord.collection == collection)

    def select(self, collection: str, where: Optional[Predicate] = None) -> List[Any]:
        rows = self._query(collection).order_by(StoredRecord.id).all()
        entities = [from_record(collection, row.payload) for row in rows]
        if where is not None:
            entities = [e for e in entities if where(e)]
        return entities

    def get(self, collection: str, record_id: str) -> Optional[Any]:
        row = self._query(collection).filter(StoredRecord.record_id == record_id).first()
        return from_record(collection, row.payload) if row is not None else None

    def upsert(self, collection: str, entities: Iterable[Any]) -> int:
        existing = {row.record_id: row for row in self._query(collection).all()}
        count = 0
        for entity in entities:
            payload = to_record(entity)
            row = existing.get(entity.id)
            if row is None:
                row = StoredRecord(collection=collection, record_id=entity.id, payload=payload)
                self.session.add(row)
                existing[entity.id] = row
            else:
                row.payload = payload
            count += 1
        self.session.commit()
        return count

    def delete(self, collection: str, record_id: str) -> bool:
        count = (
            self._query(collection)
            .filter(StoredRecord.record_id == record_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return count > 0

    def delete_where(self, collection: str, where: Predicate) -> int:
        doomed = [entity.id for entity in self.select(collection, where)]
        if not doomed:
            return 0
        count = (
            self._query(collection)
            .filter(StoredRecord.record_id.in_(doomed))
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return count


class InMemoryRepository(Repository):
    """Dict-backed repository for tests and dry runs.

    Entities are kept as plain records, so reads decode exactly what the
    database-backed repository would return.
    """

    def __init__(self, seed: Optional[Dict[str, Iterable[Any]]] = None):
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = {name: {} for name in COLLECTIONS}
        for collection, entities in (seed or {}).items():
            self.upsert(collection, entities)

    def _table(self, collection: str) -> Dict[str, Dict[str, Any]]:
        _check_collection(collection)
        return self._tables[collection]

    def select(self, collection: str, where: Optional[Predicate] = None) -> List[Any]:
        entities = [from_record(collection, payload) for payload in self._table(collection).values()]
        if where is not None:
            entities = [e for e in entities if where(e)]
        return entities

    def get(self, collection: str, record_id: str) -> Optional[Any]:
        payload = self._table(collection).get(record_id)
        return from_record(collection, payload) if payload is not None else None

    def upsert(self, collection: str, entities: Iterable[Any]) -> int:
        table = self._table(collection)
        count = 0
        for entity in entities:
            table[entity.id] = to_record(entity)
            count += 1
        return count

    def delete(self, collection: str, record_id: str) -> bool:
        return self._table(collection).pop(record_id, None) is not None
