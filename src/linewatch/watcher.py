from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from functools import partial
from typing import Any, Protocol

from .compare import Measure, compute_changes
from .config import WatchConfig
from .line_counter import measure_file
from .models import EventKind, FileIdentifier, StateChange, WatchEvent
from .scanner_local import LocalScanner
from .snapshot import DirectorySnapshot, build_snapshot

logger = logging.getLogger(__name__)


class Scanner(Protocol):
    def scan(self, pattern: str = "*") -> dict[str, FileIdentifier]: ...


class DirectoryWatcher:
    """Control loop multiplexing the heartbeat, per-file comparisons and stop.

    Only this loop replaces ``snapshot``; comparisons read the snapshot that
    was current when their rescan was issued.
    """

    def __init__(
        self,
        config: WatchConfig,
        emit: Callable[[str], None],
        *,
        scanner: Scanner | None = None,
        measure: Measure | None = None,
    ) -> None:
        self.config = config
        self.emit = emit
        self.scanner = scanner if scanner is not None else LocalScanner(config.root)
        self.measure = (
            measure
            if measure is not None
            else partial(measure_file, chunk_size=config.chunk_size)
        )
        self.snapshot = DirectorySnapshot()
        self._outstanding: set[asyncio.Task[WatchEvent]] = set()
        # comparison task -> path it is measuring
        self._in_flight: dict[asyncio.Task[WatchEvent], str] = {}

    @property
    def outstanding(self) -> int:
        return len(self._outstanding)

    async def initialize(
        self, stop: asyncio.Event | None = None
    ) -> DirectorySnapshot:
        """Measure every matching file once.

        Returns early with the snapshot unchanged if ``stop`` fires first.
        """
        identifiers = self.scanner.scan(self.config.pattern)
        build = asyncio.create_task(
            build_snapshot(identifiers.values(), self.measure)
        )
        if stop is None:
            self.snapshot = await build
        else:
            waiter = asyncio.create_task(stop.wait())
            try:
                await asyncio.wait(
                    {build, waiter}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                build.cancel()
                waiter.cancel()
                await asyncio.gather(build, waiter, return_exceptions=True)
            if build.cancelled():
                logger.debug("Stopped during the initial scan")
                return self.snapshot
            self.snapshot = build.result()
        logger.info(
            "Watching %s (%s): %d files",
            self.config.root,
            self.config.pattern,
            len(self.snapshot),
        )
        return self.snapshot

    async def run(self, stop: asyncio.Event) -> None:
        self._spawn(self._wait_for_stop(stop))
        self._arm_heartbeat()
        try:
            while not stop.is_set():
                done, _ = await asyncio.wait(
                    self._outstanding, return_when=asyncio.FIRST_COMPLETED
                )
                for task in done:
                    self._outstanding.discard(task)
                    self._in_flight.pop(task, None)
                    event = self._collect(task)
                    if event is not None:
                        self._dispatch(event, stop)
        finally:
            await self._cancel_outstanding()

    def apply(self, change: StateChange) -> None:
        self.snapshot = self.snapshot.apply(change)
        text = change.describe()
        if text:
            self.emit(text)

    def rescan(self) -> int:
        try:
            fresh = self.scanner.scan(self.config.pattern)
        except OSError as exc:
            logger.error("Scan of %s failed: %s", self.config.root, exc)
            return 0
        # paths still being measured are left to their running comparison
        busy = set(self._in_flight.values())
        old_states = {
            path: state for path, state in self.snapshot.items() if path not in busy
        }
        fresh = {path: ident for path, ident in fresh.items() if path not in busy}
        queued = 0
        for path, pending in compute_changes(old_states, fresh, self.measure):
            task = self._spawn(self._change_event(pending))
            self._in_flight[task] = path
            queued += 1
        logger.debug("Rescan queued %d comparisons", queued)
        return queued

    def _dispatch(self, event: WatchEvent, stop: asyncio.Event) -> None:
        if event.kind == EventKind.HEARTBEAT:
            assert event.message is not None
            self.emit(event.message)
            self._arm_heartbeat()
            self.rescan()
        elif event.kind == EventKind.CHANGE:
            assert event.change is not None
            self.apply(event.change)
        elif event.kind == EventKind.TERMINATE:
            stop.set()

    def _collect(self, task: asyncio.Task[WatchEvent]) -> WatchEvent | None:
        try:
            return task.result()
        except OSError as exc:
            # snapshot untouched; the next rescan picks the file up again
            logger.warning("Could not count lines: %s", exc)
            return None

    def _spawn(
        self, coro: Coroutine[Any, Any, WatchEvent]
    ) -> asyncio.Task[WatchEvent]:
        task = asyncio.create_task(coro)
        self._outstanding.add(task)
        return task

    def _arm_heartbeat(self) -> None:
        self._spawn(self._heartbeat())

    async def _heartbeat(self) -> WatchEvent:
        await asyncio.sleep(self.config.interval)
        return WatchEvent.heartbeat(self.config.heartbeat)

    async def _change_event(self, pending: Awaitable[StateChange]) -> WatchEvent:
        return WatchEvent.for_change(await pending)

    async def _wait_for_stop(self, stop: asyncio.Event) -> WatchEvent:
        await stop.wait()
        return WatchEvent.terminate()

    async def _cancel_outstanding(self) -> None:
        tasks = list(self._outstanding)
        self._outstanding.clear()
        self._in_flight.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
