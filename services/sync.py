"""Catalog sync: the single write path for one catalog.

Every mutation of a catalog table goes through its CatalogSync and runs under
one asyncio.Lock, so a reconciliation cycle can never interleave with an
interactive write between reading the existing titles and applying the plan.

- run_cycle(): snapshot -> diff -> apply -> broadcast full_sync
- create/update/delete(): fold in pending snapshot edits -> single-row write ->
  snapshot write-back -> reconciliation against the rewritten snapshot ->
  targeted broadcast

Blocking SQLAlchemy and file work runs in the thread pool.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Callable, Dict, Optional
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
import database
from config import settings
from realtime import manager, ConnectionManager
from schemas.catalog import CatalogRecord, ChangeEvent, ChangeKind
from services.catalogs import Catalog, build_catalogs
from services.catalog_store import ApplyResult, CatalogStore
from services.errors import RemoteError, SnapshotError
from services.reconcile import diff
from services.snapshot import read_snapshot, write_snapshot

logger = logging.getLogger(__name__)


def _default_session_factory() -> Session:
    # Looked up at call time so tests can swap database.SessionLocal
    return database.SessionLocal()


def _mtime(path) -> Optional[int]:
    try:
        return path.stat().st_mtime_ns
    except OSError:
        return None


class CatalogSync:
    def __init__(
        self,
        catalog: Catalog,
        session_factory: Callable[[], Session] = _default_session_factory,
        hub: ConnectionManager = manager,
        write_back: Optional[bool] = None,
    ):
        self.catalog = catalog
        self.hub = hub
        self._write_back = write_back
        self._session_factory = session_factory
        self._lock = asyncio.Lock()
        # mtime of the snapshot as of the last successful cycle or write-back
        self._synced_mtime: Optional[int] = None
        self.last_error: Optional[Exception] = None

    @property
    def key(self) -> str:
        return self.catalog.key

    @property
    def write_back(self) -> bool:
        if self._write_back is None:
            return settings.SNAPSHOT_WRITE_BACK
        return self._write_back

    def _with_store(self, fn):
        db = self._session_factory()
        try:
            return fn(CatalogStore(db, self.catalog))
        finally:
            db.close()

    # -- reconciliation cycle -------------------------------------------

    def _reconcile(self):
        # Taken before the read: a write racing the read shows up as a pending edit
        mtime = _mtime(self.catalog.snapshot_path)
        records = read_snapshot(self.catalog.snapshot_path, self.catalog.record_cls)

        def _apply(store: CatalogStore):
            plan = diff(store.existing_titles(), records)
            result = store.apply(plan)
            rows = store.list_all() if result.ok else None
            return plan, result, rows

        return self._with_store(_apply) + (mtime,)

    async def run_cycle(self, reason: str = "manual", broadcast: bool = True) -> Optional[ApplyResult]:
        """Run one reconciliation cycle. Never raises; returns None when the cycle aborted."""
        async with self._lock:
            return await self._run_cycle_locked(reason, broadcast)

    async def _run_cycle_locked(self, reason: str, broadcast: bool) -> Optional[ApplyResult]:
        try:
            plan, result, rows, mtime = await run_in_threadpool(self._reconcile)
        except SnapshotError as e:
            logger.error("Reconciliation of %s aborted (%s): %s", self.key, reason, e)
            self.last_error = e
            return None
        except RemoteError as e:
            logger.error("Reconciliation of %s aborted (%s): remote %s: %s", self.key, reason, e.kind, e)
            self.last_error = e
            return None
        if not result.ok:
            logger.error(
                "Reconciliation of %s (%s) finished with %d error(s); deleted=%d upserted=%d",
                self.key, reason, len(result.errors), result.deleted, result.upserted,
            )
            self.last_error = result.errors[0]
            return result
        self.last_error = None
        self._synced_mtime = mtime
        logger.info(
            "Reconciled %s (%s): deleted=%d upserted=%d",
            self.key, reason, result.deleted, result.upserted,
        )
        if plan.to_delete:
            logger.info("Removed from %s: %s", self.key, ", ".join(sorted(plan.to_delete)))
        if broadcast:
            await self.hub.broadcast(ChangeEvent(
                kind=ChangeKind.FULL_SYNC,
                catalog=self.key,
                payload=[r.model_dump(mode="json") for r in rows],
            ))
        return result

    # -- interactive writes ---------------------------------------------

    async def create(self, record: CatalogRecord) -> CatalogRecord:
        return await self._write(ChangeKind.ADD, lambda store: store.create(record))

    async def update(self, record_id: int, record: CatalogRecord) -> CatalogRecord:
        return await self._write(ChangeKind.UPDATE, lambda store: store.update(record_id, record))

    async def delete(self, record_id: int) -> CatalogRecord:
        return await self._write(ChangeKind.DELETE, lambda store: store.delete(record_id))

    async def _write(self, kind: ChangeKind, op) -> CatalogRecord:
        async with self._lock:
            write_back = self.write_back
            if write_back and self._has_pending_edit():
                # An edit still waiting out the debounce window must reach the
                # table before the snapshot is rewritten from it
                result = await self._run_cycle_locked(f"pending edit before {kind.value}", broadcast=True)
                if result is None or not result.ok:
                    logger.warning(
                        "Skipping snapshot write-back for %s: pending edit could not be reconciled", self.key,
                    )
                    write_back = False
            # RemoteError propagates to the caller; nothing is broadcast
            affected = await run_in_threadpool(self._with_store, op)
            if write_back and await self._write_back_snapshot():
                await self._run_cycle_locked(f"after {kind.value}", broadcast=False)
        await self.hub.broadcast(ChangeEvent(kind=kind, catalog=self.key, payload=affected.model_dump(mode="json")))
        return affected

    def _has_pending_edit(self) -> bool:
        return self.catalog.snapshot_path.exists() and self.snapshot_changed_externally()

    def _export_snapshot(self) -> int:
        rows = self._with_store(lambda store: store.list_all())
        rows.sort(key=lambda r: r.id)
        record_cls = self.catalog.record_cls
        count = write_snapshot(self.catalog.snapshot_path, [record_cls.model_validate(r.model_dump()) for r in rows])
        self._synced_mtime = self.catalog.snapshot_path.stat().st_mtime_ns
        return count

    async def _write_back_snapshot(self) -> bool:
        """Rewrite the snapshot from the table. False when the file was left as it was."""
        try:
            count = await run_in_threadpool(self._export_snapshot)
        except (OSError, RemoteError) as e:
            logger.error("Snapshot write-back for %s failed: %s", self.key, e)
            return False
        logger.info("Wrote %d %s record(s) back to %s", count, self.key, self.catalog.snapshot_path)
        return True

    def snapshot_changed_externally(self) -> bool:
        """False when the snapshot on disk is the one this sync last read or wrote."""
        mtime = _mtime(self.catalog.snapshot_path)
        return mtime is None or mtime != self._synced_mtime


def build_syncs(
    catalogs: Dict[str, Catalog],
    session_factory: Callable[[], Session] = _default_session_factory,
    hub: ConnectionManager = manager,
    write_back: Optional[bool] = None,
) -> Dict[str, CatalogSync]:
    return {
        key: CatalogSync(catalog, session_factory=session_factory, hub=hub, write_back=write_back)
        for key, catalog in catalogs.items()
    }


_syncs: Dict[str, CatalogSync] | None = None

def get_catalog_syncs() -> Dict[str, CatalogSync]:
    """FastAPI dependency: the process-wide sync per catalog."""
    global _syncs
    if _syncs is None:
        _syncs = build_syncs(build_catalogs())
    return _syncs
