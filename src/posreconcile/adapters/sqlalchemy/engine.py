"""Engine lifecycle of the SQLAlchemy store adapter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, inspect, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .tables import create_all_tables, metadata

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the store is missing or the adapter is used before initialisation."""


def create_store_engine(uri: str, *, create_tables: bool = False) -> Engine:
    """Create an engine for the store at ``uri``.

    By default the store must already exist with every table in place, so a
    mistyped location fails instead of reading as an empty store. Only
    ``create_tables=True`` (local setup and tests) writes the schema.
    """

    if create_tables:
        engine = create_engine(uri)
        create_all_tables(engine)
        return engine

    _require_database_file(uri)
    engine = create_engine(uri)
    try:
        verify_store_schema(engine)
    except StartupError:
        engine.dispose()
        raise
    return engine


def verify_store_schema(engine: Engine) -> None:
    """Raise ``StartupError`` unless every store table exists."""

    try:
        inspector = inspect(engine)
        missing = [
            table.name for table in metadata.sorted_tables if not inspector.has_table(table.name)
        ]
    except SQLAlchemyError as exc:
        raise StartupError(f"Could not inspect the store schema: {exc}") from exc
    if missing:
        raise StartupError(f"Store is missing tables: {', '.join(missing)}")


def _require_database_file(uri: str) -> None:
    # connecting to a missing SQLite file would create it
    url = make_url(uri)
    if url.get_backend_name() != "sqlite":
        return
    database = url.database
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    if not Path(database).exists():
        raise StartupError(f"Store database {database} does not exist")


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy store adapter not initialised. Call "
                "posreconcile.adapters.sqlalchemy.startup() before reading existing state."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the managed engine for an existing store.

    Nothing is created: a store without its tables raises ``StartupError``.
    """

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy store adapter already initialised. Pass force=True to reconfigure."
        )
    if engine is not None:
        verify_store_schema(engine)
        resolved_engine = engine
    elif database_uri is not None:
        resolved_engine = create_store_engine(database_uri)
    else:
        raise StartupError("startup() needs an engine or a database URI")
    if _STATE.engine is not None and _STATE.engine is not resolved_engine:
        _STATE.engine.dispose()
    _STATE.engine = resolved_engine
    log.debug("Store adapter started")
    return resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def session_factory() -> sessionmaker[Session]:
    return _STATE.session_factory


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
