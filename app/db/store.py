# app/db/store.py
"""
Thin access layer over the SQLAlchemy engine.

Reads and one-off statements borrow a connection per call; multi-statement
writes go through ``Store.transaction()``, which commits when the block
finishes and rolls back if anything inside it raises.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping, Optional

from sqlalchemy.engine import Connection, Engine, RowMapping
from sqlalchemy.exc import SQLAlchemyError

from app.db.schema import metadata
from app.errors import StoreError

logger = logging.getLogger(__name__)

Params = Optional[Mapping[str, Any]]


@dataclass(frozen=True)
class ExecuteResult:
    inserted_id: Optional[int]
    rows_affected: int


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Store error: %s", exc)
        raise StoreError(str(exc)) from exc


def _get_one(conn: Connection, statement, params: Params) -> Optional[RowMapping]:
    with _translate_errors():
        return conn.execute(statement, params or {}).mappings().first()


def _get_many(conn: Connection, statement, params: Params) -> List[RowMapping]:
    with _translate_errors():
        return list(conn.execute(statement, params or {}).mappings().all())


def _execute(conn: Connection, statement, params: Params) -> ExecuteResult:
    with _translate_errors():
        result = conn.execute(statement, params or {})
        inserted_id = None
        if result.is_insert and result.inserted_primary_key:
            inserted_id = result.inserted_primary_key[0]
        return ExecuteResult(inserted_id=inserted_id, rows_affected=result.rowcount)


class StoreTransaction:
    """Primitives bound to the connection of an open transaction."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def get_one(self, statement, params: Params = None) -> Optional[RowMapping]:
        return _get_one(self._conn, statement, params)

    def get_many(self, statement, params: Params = None) -> List[RowMapping]:
        return _get_many(self._conn, statement, params)

    def execute(self, statement, params: Params = None) -> ExecuteResult:
        return _execute(self._conn, statement, params)


class Store:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_schema(self) -> None:
        """Create any missing tables; existing ones are left untouched."""
        with _translate_errors():
            metadata.create_all(self.engine)
        logger.info("Database schema ready (%s)", self.engine.url)

    def get_one(self, statement, params: Params = None) -> Optional[RowMapping]:
        with self.engine.connect() as conn:
            return _get_one(conn, statement, params)

    def get_many(self, statement, params: Params = None) -> List[RowMapping]:
        with self.engine.connect() as conn:
            return _get_many(conn, statement, params)

    def execute(self, statement, params: Params = None) -> ExecuteResult:
        with self.transaction() as tx:
            return tx.execute(statement, params)

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        with _translate_errors():
            with self.engine.begin() as conn:
                yield StoreTransaction(conn)

    def dispose(self) -> None:
        self.engine.dispose()
