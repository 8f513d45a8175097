from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping

from .models import ChangeAction, FileIdentifier, FileState, StateChange

logger = logging.getLogger(__name__)


class DirectorySnapshot(Mapping[str, FileState]):
    """Read-only ``path -> FileState`` mapping of the last known directory state.

    ``apply`` never mutates; it returns a new snapshot so comparisons that
    still hold the previous one keep a consistent view.
    """

    def __init__(self, states: Mapping[str, FileState] | None = None) -> None:
        self._states: dict[str, FileState] = dict(states or {})
        for path, state in self._states.items():
            if state.path != path:
                raise ValueError(
                    f"snapshot key {path!r} does not match state path {state.path!r}"
                )

    @classmethod
    def from_states(cls, states: Iterable[FileState]) -> DirectorySnapshot:
        return cls({state.path: state for state in states})

    def __getitem__(self, path: str) -> FileState:
        return self._states[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def __repr__(self) -> str:
        return f"DirectorySnapshot({self._states!r})"

    def line_counts(self) -> dict[str, int]:
        return {path: state.line_count for path, state in self._states.items()}

    def apply(self, change: StateChange) -> DirectorySnapshot:
        action = change.action
        if action == ChangeAction.NONE:
            return self
        states = dict(self._states)
        if action == ChangeAction.DELETED:
            states.pop(change.path, None)
        else:
            assert change.new_state is not None
            states[change.path] = change.new_state
        return DirectorySnapshot(states)


async def build_snapshot(
    identifiers: Iterable[FileIdentifier],
    measure: Callable[[FileIdentifier], Awaitable[FileState]],
) -> DirectorySnapshot:
    """Measure every identifier concurrently; unreadable files are left out."""
    pending = list(identifiers)
    results = await asyncio.gather(
        *(measure(identifier) for identifier in pending), return_exceptions=True
    )
    states: list[FileState] = []
    for identifier, result in zip(pending, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, OSError):
            logger.warning("Could not count lines of %s: %s", identifier.path, result)
            continue
        if isinstance(result, BaseException):
            raise result
        states.append(result)
    return DirectorySnapshot.from_states(states)
