from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping

from .models import FileIdentifier, FileState, StateChange

Measure = Callable[[FileIdentifier], Awaitable[FileState]]


async def _resolved(change: StateChange) -> StateChange:
    return change


async def _measure_change(
    old_state: FileState | None, identifier: FileIdentifier, measure: Measure
) -> StateChange:
    new_state = await measure(identifier)
    return StateChange(old_state=old_state, new_state=new_state)


def compute_changes(
    old_states: Mapping[str, FileState],
    fresh: Mapping[str, FileIdentifier],
    measure: Measure,
) -> Iterator[tuple[str, Awaitable[StateChange]]]:
    """Yield ``(path, pending comparison)`` for every path that may have changed.

    Files present on both sides are re-measured only when their mtime moved
    forward. Deleted files resolve immediately from the recorded state; new
    files are measured from scratch. Nothing is started until the caller
    pulls the next item.
    """
    for path in old_states.keys() & fresh.keys():
        old_state = old_states[path]
        identifier = fresh[path]
        if identifier.mtime_ns > old_state.identifier.mtime_ns:
            yield path, _measure_change(old_state, identifier, measure)

    for path in old_states.keys() - fresh.keys():
        yield path, _resolved(StateChange(old_state=old_states[path], new_state=None))

    for path in fresh.keys() - old_states.keys():
        yield path, _measure_change(None, fresh[path], measure)
