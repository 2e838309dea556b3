"""Error taxonomy for the sync pipeline.

- SnapshotError: the local snapshot could not be used (missing or malformed).
- RemoteError: the table store rejected or could not serve a call.
- MediaUploadError: the media host did not return a usable URL.
"""
from __future__ import annotations


class SnapshotError(Exception):
    def __init__(self, path, reason: str):
        super().__init__(f"{reason}: {path}")
        self.path = str(path)
        self.reason = reason


class SnapshotNotFound(SnapshotError):
    def __init__(self, path):
        super().__init__(path, "Snapshot not found")


class InvalidSnapshotFormat(SnapshotError):
    def __init__(self, path, detail: str):
        super().__init__(path, f"Invalid snapshot format ({detail})")
        self.detail = detail


class RemoteError(Exception):
    kind = "remote"


class RemoteUnreachable(RemoteError):
    kind = "unreachable"


class ConstraintViolation(RemoteError):
    kind = "constraint_violation"


class RecordNotFound(RemoteError):
    kind = "not_found"

    def __init__(self, table: str, record_id: int):
        super().__init__(f"No row with id {record_id} in {table}")
        self.table = table
        self.record_id = record_id


class MediaUploadError(Exception):
    pass
