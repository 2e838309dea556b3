"""Snapshot file watching.

watchfiles reports changes per directory; SnapshotWatcher maps them back to
the catalog whose snapshot changed and fires that catalog's CoalescingTrigger.
Directories are watched instead of the files themselves because editors (and
our own write-back) replace the file, which swaps its inode.
"""
from __future__ import annotations
import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Iterable, Set as AbstractSet
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from watchfiles import Change, awatch
from services.sync import CatalogSync

logger = logging.getLogger(__name__)


class CoalescingTrigger:
    """Collapses bursts of fire() calls into single runs of ``action``.

    The action runs once the trigger has been quiet for ``window`` seconds.
    Firing while the action is running schedules exactly one follow-up run.
    """

    def __init__(self, action: Callable[[], Awaitable[Any]], window: float, name: str = "trigger"):
        self._action = action
        self._window = window
        self._name = name
        self._pending = False
        self._last_fired = 0.0
        self._task: Optional[asyncio.Task] = None
        self.runs = 0

    def fire(self) -> None:
        loop = asyncio.get_running_loop()
        self._pending = True
        self._last_fired = loop.time()
        if self._task is None or self._task.done():
            self._task = loop.create_task(self._drain())

    async def _drain(self) -> None:
        loop = asyncio.get_running_loop()
        while self._pending:
            while (remaining := self._last_fired + self._window - loop.time()) > 0:
                await asyncio.sleep(remaining)
            self._pending = False
            self.runs += 1
            try:
                await self._action()
            except Exception:
                logger.exception("%s: triggered run failed", self._name)

    async def wait_idle(self) -> None:
        while self._task is not None and not self._task.done():
            await self._task

    async def close(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        self._pending = False


class SnapshotWatcher:
    def __init__(self, syncs: Iterable[CatalogSync], debounce_ms: int = 300):
        self._debounce_ms = debounce_ms
        self._targets: Dict[Path, Tuple[CatalogSync, CoalescingTrigger]] = {}
        for sync in syncs:
            trigger = CoalescingTrigger(
                lambda s=sync: s.run_cycle("snapshot changed"),
                window=debounce_ms / 1000,
                name=f"{sync.key}-snapshot",
            )
            self._targets[sync.catalog.snapshot_path.resolve()] = (sync, trigger)
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger_for(self, key: str) -> Optional[CoalescingTrigger]:
        for sync, trigger in self._targets.values():
            if sync.key == key:
                return trigger
        return None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._watch_loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        for _, trigger in self._targets.values():
            await trigger.close()

    async def _watch_loop(self) -> None:
        dirs = sorted({str(p.parent) for p in self._targets if p.parent.is_dir()})
        if not dirs:
            logger.warning("No snapshot directories exist; file watching disabled")
            return
        logger.info("Watching snapshot files in %s", ", ".join(dirs))
        async for changes in awatch(*dirs, debounce=self._debounce_ms, stop_event=self._stop_event):
            self.dispatch(changes)

    def dispatch(self, changes: AbstractSet[Tuple[Change, str]]) -> int:
        """Fire the trigger of every catalog whose snapshot appears in ``changes``."""
        fired = set()
        for change, path_str in changes:
            if change == Change.deleted:
                continue
            target = self._targets.get(Path(path_str).resolve())
            if target is None:
                continue
            sync, trigger = target
            if sync.key in fired:
                continue
            if not sync.snapshot_changed_externally():
                logger.debug("Ignoring our own write to %s", path_str)
                continue
            logger.info("Detected change in %s, syncing %s", path_str, sync.key)
            trigger.fire()
            fired.add(sync.key)
        return len(fired)
