"""Engine and session helpers for the record store."""

from __future__ import annotations

from typing import Dict

from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .models import Base, StoredRecord


DEFAULT_DB_URL = "sqlite:///worklist.db"

# One engine per URL so in-memory databases survive across sessions
_engines: Dict[str, Engine] = {}


def engine_for(db_url: str = DEFAULT_DB_URL) -> Engine:
    engine = _engines.get(db_url)
    if engine is None:
        engine = _engines[db_url] = create_engine(db_url)
    return engine


def init_database(db_url: str = DEFAULT_DB_URL, reset: bool = False) -> int:
    """
    Create the ``records`` table.

    Args:
        db_url: SQLAlchemy database URL
        reset: Drop every stored record first

    Returns:
        Number of records already stored after initialization
    """
    engine = engine_for(db_url)
    if reset:
        Base.metadata.drop_all(engine)
        print(f"[WARN] Dropped stored records: {db_url}")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        stored = session.scalar(select(func.count()).select_from(StoredRecord)) or 0
    print(f"[INFO] Records table ready ({stored} stored): {db_url}")
    return stored


def get_session(db_url: str = DEFAULT_DB_URL) -> Session:
    """New session on the shared engine for ``db_url``."""
    return Session(engine_for(db_url))
