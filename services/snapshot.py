"""Snapshot reader/writer.

A snapshot is a JSON array of flat objects, one per catalog record:
    [{"title": ..., "description": ..., "genre": ..., "year": ..., "images": [...]}, ...]
Upcoming snapshots carry release_date, author, status and pre_order instead of year.
"""
from __future__ import annotations
import json
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Type
from pydantic import ValidationError
from schemas.catalog import CatalogRecord
from services.errors import SnapshotNotFound, InvalidSnapshotFormat


def read_snapshot(path: str | Path, record_cls: Type[CatalogRecord]) -> List[CatalogRecord]:
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise SnapshotNotFound(path)
    except OSError as e:
        raise SnapshotNotFound(path) from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidSnapshotFormat(path, f"not valid JSON: {e.msg} at line {e.lineno}") from e
    if not isinstance(data, list):
        raise InvalidSnapshotFormat(path, f"expected a JSON array, got {type(data).__name__}")
    records = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            raise InvalidSnapshotFormat(path, f"entry {idx} is not an object")
        try:
            records.append(record_cls.model_validate(item))
        except ValidationError as e:
            raise InvalidSnapshotFormat(path, f"entry {idx}: {e.errors()[0]['msg']}") from e
    return records


def write_snapshot(path: str | Path, records: Iterable[CatalogRecord]) -> int:
    """Atomically replace the snapshot file with the canonical form of ``records``."""
    path = Path(path)
    payload = [r.to_snapshot() for r in records]
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, ensure_ascii=False)
            fh.write("\n")
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    return len(payload)
