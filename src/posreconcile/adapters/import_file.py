"""Reader for JSON export files handed to the reconciliation engine."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

if TYPE_CHECKING:
    from pathlib import Path

log = logging.getLogger(__name__)


class ImportFileError(RuntimeError):
    """Raised when an import file cannot be read as a JSON document."""


class ImportFileEnvelope(BaseModel):
    """Metadata wrapped around the data sections of an export file.

    ``data`` is kept raw: corrupted sections are reported by the
    reconciliation core, not rejected here.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    version: str | None = None
    export_date: str | None = Field(default=None, alias="exportDate")
    data_type: str | None = Field(default=None, alias="dataType")
    data: Any = None


def load_import_file(path: Path) -> dict[str, Any]:
    """Read ``path`` and return the decoded document.

    Documents carrying a ``data`` container are checked against
    ``ImportFileEnvelope``; anything else is returned unchanged so the
    section layout can be decided by the caller.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ImportFileError(f"Could not read import file {path}: {exc}") from exc

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ImportFileError(f"Import file {path} is not valid JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise ImportFileError(f"Import file {path} does not contain a JSON object")

    if "data" in document:
        try:
            envelope = ImportFileEnvelope.model_validate(document)
        except ValidationError as exc:
            raise ImportFileError(f"Import file {path} has an invalid header: {exc}") from exc
        log.info(
            "Read import file %s (version=%s, exported=%s, dataType=%s)",
            path,
            envelope.version,
            envelope.export_date,
            envelope.data_type,
        )
    return document
