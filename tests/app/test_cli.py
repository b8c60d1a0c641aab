from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from posreconcile.adapters.sqlalchemy import create_store_engine
from posreconcile.adapters.sqlalchemy.tables import product_table
from posreconcile.domain.ports import ExistingStateUnavailableError
from posreconcile.domain.reconciliation import ConflictSummary, PayloadLayout
from posreconcile.ui import cli as cli_module

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

PAYLOAD = {
    "version": "2.0",
    "exportDate": "2025-03-01T10:00:00Z",
    "dataType": "all",
    "data": {
        "products": [
            {"id": "prod-1", "name": "Tea", "price": 2},
            {"name": "Coffee", "price": 3},
        ],
        "sales": "corrupted",
    },
}


def test_validate_prints_feedback(
    write_import_file: Callable[..., Path], capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["validate", str(write_import_file(PAYLOAD))])

    assert excinfo.value.code == 0
    output = capsys.readouterr().out
    assert "Available data: products (2 records)" in output
    assert '- Data section "sales" is not an array (found string)' in output


def test_validate_exits_one_for_unusable_payload(
    write_import_file: Callable[..., Path],
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["validate", str(write_import_file({"data": {"sales": 5}}))])

    assert excinfo.value.code == 1


def test_conflicts_passes_layout(
    monkeypatch: pytest.MonkeyPatch,
    write_import_file: Callable[..., Path],
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured: dict[str, object] = {}

    def fake_detect(path: Path, **kwargs: object) -> ConflictSummary:
        captured["path"] = path
        captured.update(kwargs)
        return ConflictSummary.empty()

    monkeypatch.setattr(cli_module, "detect_file_conflicts", fake_detect)
    path = write_import_file({"products": []})

    cli_module.main(["conflicts", str(path), "--layout", "sections"])

    assert captured == {"path": path, "layout": PayloadLayout.SECTIONS}
    assert json.loads(capsys.readouterr().out)["hasConflicts"] is False


def test_conflicts_exits_one_when_store_unavailable(
    monkeypatch: pytest.MonkeyPatch, write_import_file: Callable[..., Path]
) -> None:
    def failing_detect(*_: object, **__: object) -> ConflictSummary:
        raise ExistingStateUnavailableError("store offline")

    monkeypatch.setattr(cli_module, "detect_file_conflicts", failing_detect)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["conflicts", str(write_import_file(PAYLOAD))])

    assert excinfo.value.code == 1


def test_missing_file_exits_one(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["validate", str(tmp_path / "absent.json")])

    assert excinfo.value.code == 1


def test_invalid_arguments_exit_two() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["conflicts", "file.json", "--layout", "flat"])

    assert excinfo.value.code == 2


@pytest.mark.usefixtures("reset_adapter_state")
def test_preview_against_configured_database(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    write_import_file: Callable[..., Path],
    capsys: pytest.CaptureFixture[str],
) -> None:
    uri = f"sqlite+pysqlite:///{tmp_path / 'pos.db'}"
    engine = create_store_engine(uri, create_tables=True)
    with engine.begin() as connection:
        connection.execute(product_table.insert(), [{"id": "prod-1", "name": "Tea", "price": 2}])
    engine.dispose()
    monkeypatch.setenv("POSRECONCILE_DATABASE_URI", uri)
    monkeypatch.setenv("POSRECONCILE_SAMPLE_SIZE", "1")

    cli_module.main(["preview", str(write_import_file(PAYLOAD))])

    report = json.loads(capsys.readouterr().out)
    assert report["recordCounts"] == {"products": 2}
    assert report["sampleData"]["products"] == [{"id": "prod-1", "name": "Tea", "price": 2}]
    assert report["validation"]["corruptedSections"] == ["sales"]
    assert report["conflictSummary"]["totalConflicts"] == 1


@pytest.mark.usefixtures("reset_adapter_state")
def test_conflicts_exits_one_when_store_missing(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    write_import_file: Callable[..., Path],
) -> None:
    monkeypatch.setenv("POSRECONCILE_DATA_DIR", str(tmp_path / "data"))
    path = write_import_file(PAYLOAD)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["conflicts", str(path)])

    assert excinfo.value.code == 1
    assert not (tmp_path / "data").exists()
