from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Any

from documind.errors import AnalysisNotFound, PersistenceError

logger = logging.getLogger(__name__)


def _atomic_write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=False)
        handle.flush()
        temp_path = Path(handle.name)
    temp_path.replace(path)


def _is_safe_record_id(record_id: str) -> bool:
    if not isinstance(record_id, str) or not record_id.strip():
        return False
    if record_id in {".", ".."} or record_id.startswith("."):
        return False
    return "/" not in record_id and "\\" not in record_id and "\x00" not in record_id


class AnalysisStore:
    """File-per-record JSON store keyed by analysis id.

    Writes replace the whole record atomically. Missing and corrupt records are
    both reported as ``AnalysisNotFound``.
    """

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir)

    def path_for(self, record_id: str) -> Path:
        return self.base_dir / f"{record_id}.json"

    def save(self, record_id: str, record: dict[str, Any]) -> Path:
        if not _is_safe_record_id(record_id):
            raise PersistenceError(f"Invalid analysis id '{record_id}'.")

        path = self.path_for(record_id)
        try:
            _atomic_write_json(path, record)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Save analysis error for %s: %s", record_id, exc)
            raise PersistenceError("Failed to save analysis") from exc
        return path

    def load(self, record_id: str) -> dict[str, Any]:
        if not _is_safe_record_id(record_id):
            raise AnalysisNotFound()

        path = self.path_for(record_id)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            raise AnalysisNotFound() from None

        if not isinstance(payload, dict):
            raise AnalysisNotFound()
        return payload

    def exists(self, record_id: str) -> bool:
        return _is_safe_record_id(record_id) and self.path_for(record_id).is_file()

    def list_all(self) -> list[dict[str, Any]]:
        if not self.base_dir.exists():
            return []

        records: list[dict[str, Any]] = []
        for path in self.base_dir.glob("*.json"):
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError):
                logger.warning("Skipping invalid analysis file: %s", path.name)
                continue

            if not isinstance(payload, dict):
                logger.warning("Skipping invalid analysis file: %s", path.name)
                continue

            payload.pop("documentText", None)
            records.append(payload)

        return records
