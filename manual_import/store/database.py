from __future__ import annotations

from typing import Any, Callable, Dict, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from manual_import.exceptions import (
    ImportTimeoutError,
    ManualImportError,
    PersistenceError,
)
from manual_import.store.models import Base

_T = TypeVar("_T")
_TIMEOUT_MARKERS = ("database is locked", "timeout", "timed out", "canceling statement")


class Store:
    """Relational store holding manuals, sections, policies and versions."""

    def __init__(self, database_url: str, *, timeout: float = 10.0) -> None:
        self.database_url = database_url
        connect_args: Dict[str, Any] = {}
        is_sqlite = database_url.startswith("sqlite")
        if is_sqlite:
            connect_args["timeout"] = timeout
        try:
            self.engine = create_engine(database_url, connect_args=connect_args)
        except (SQLAlchemyError, ImportError, ValueError) as exc:
            raise PersistenceError(f"Cannot open database {database_url}: {exc}") from exc
        if is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_schema(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot create database schema: {exc}") from exc

    def session(self) -> Session:
        return self._session_factory()

    def with_transaction(self, fn: Callable[[Session], _T]) -> _T:
        """Run *fn* in one transaction: all of its writes commit or none do."""
        try:
            with self._session_factory.begin() as session:
                return fn(session)
        except ManualImportError:
            raise
        except PoolTimeoutError as exc:
            raise ImportTimeoutError(
                "Timed out waiting for a database connection. Nothing was saved."
            ) from exc
        except OperationalError as exc:
            if _is_timeout(exc):
                raise ImportTimeoutError(
                    "Database operation timed out. Nothing was saved."
                ) from exc
            raise PersistenceError(f"Database write failed, nothing was saved: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Database write failed, nothing was saved: {exc}") from exc

    def dispose(self) -> None:
        self.engine.dispose()


def _is_timeout(exc: OperationalError) -> bool:
    message = str(exc.orig).lower()
    return any(marker in message for marker in _TIMEOUT_MARKERS)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()
