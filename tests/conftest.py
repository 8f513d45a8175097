from __future__ import annotations

import asyncio

from linewatch.models import FileIdentifier, FileState, StateChange


def mk_id(path: str, *, mtime_ns: int = 0) -> FileIdentifier:
    return FileIdentifier(path=path, mtime_ns=mtime_ns)


def mk_state(path: str, lines: int, *, mtime_ns: int = 0) -> FileState:
    return FileState(identifier=mk_id(path, mtime_ns=mtime_ns), line_count=lines)


def mk_change(
    old: FileState | None = None, new: FileState | None = None
) -> StateChange:
    return StateChange(old_state=old, new_state=new)


class FakeScanner:
    """Scanner returning whatever identifiers the test put in ``files``."""

    def __init__(self, files: dict[str, FileIdentifier] | None = None) -> None:
        self.files: dict[str, FileIdentifier] = dict(files or {})
        self.error: OSError | None = None
        self.calls = 0

    def scan(self, pattern: str = "*") -> dict[str, FileIdentifier]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return dict(self.files)


class FakeMeasure:
    """Line counts by path; paths listed in ``failures`` raise OSError.

    ``delays`` slows single paths down, ``gate`` holds every measurement until
    it is set, and cancelled measurements are recorded in ``cancelled``.
    """

    def __init__(self, lines: dict[str, int] | None = None) -> None:
        self.lines: dict[str, int] = dict(lines or {})
        self.failures: set[str] = set()
        self.delays: dict[str, float] = {}
        self.gate: asyncio.Event | None = None
        self.calls: list[str] = []
        self.cancelled: list[str] = []

    async def __call__(self, identifier: FileIdentifier) -> FileState:
        self.calls.append(identifier.path)
        try:
            if self.gate is not None:
                await self.gate.wait()
            await asyncio.sleep(self.delays.get(identifier.path, 0))
        except asyncio.CancelledError:
            self.cancelled.append(identifier.path)
            raise
        if identifier.path in self.failures:
            raise PermissionError(f"denied: {identifier.path}")
        return FileState(identifier=identifier, line_count=self.lines[identifier.path])
