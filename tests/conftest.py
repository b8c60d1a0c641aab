from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from posreconcile.adapters.sqlalchemy import (
    SqlAlchemyExistingStateLoader,
    create_all_tables,
    shutdown,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "POSRECONCILE_DATA_DIR",
        "POSRECONCILE_DATABASE_URI",
        "POSRECONCILE_PAGE_SIZE",
        "POSRECONCILE_CONCURRENT_LOADS",
        "POSRECONCILE_SAMPLE_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    # file database: concurrent loads read through separate pooled connections
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'store.db'}")
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_loader(sqlite_engine: Engine) -> SqlAlchemyExistingStateLoader:
    return SqlAlchemyExistingStateLoader.from_engine(sqlite_engine)


@pytest.fixture
def reset_adapter_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


@pytest.fixture
def write_import_file(tmp_path: Path) -> Callable[..., Path]:
    def write(document: object, name: str = "import.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return write
