from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath


class ChangeAction(str, Enum):
    NEW = "new"
    DELETED = "deleted"
    CHANGED = "changed"
    NONE = "none"


class EventKind(str, Enum):
    HEARTBEAT = "heartbeat"
    CHANGE = "change"
    TERMINATE = "terminate"


@dataclass(frozen=True)
class FileIdentifier:
    path: str
    mtime_ns: int

    @property
    def name(self) -> str:
        return PurePath(self.path).name


@dataclass(frozen=True)
class FileState:
    identifier: FileIdentifier
    line_count: int

    def __post_init__(self) -> None:
        if self.line_count < 0:
            raise ValueError(f"line_count must be >= 0, got {self.line_count}")

    @property
    def path(self) -> str:
        return self.identifier.path


@dataclass(frozen=True)
class StateChange:
    """Difference between the recorded and the freshly measured state of one path.

    Either side may be missing (new or deleted file) but not both.
    """

    old_state: FileState | None
    new_state: FileState | None

    def __post_init__(self) -> None:
        if self.old_state is None and self.new_state is None:
            raise ValueError("StateChange needs at least one of old_state/new_state")

    @property
    def _identifier(self) -> FileIdentifier:
        state = self.new_state if self.new_state is not None else self.old_state
        assert state is not None
        return state.identifier

    @property
    def path(self) -> str:
        return self._identifier.path

    @property
    def name(self) -> str:
        return self._identifier.name

    @property
    def action(self) -> ChangeAction:
        if self.old_state is None:
            return ChangeAction.NEW
        if self.new_state is None:
            return ChangeAction.DELETED
        if self.old_state.line_count != self.new_state.line_count:
            return ChangeAction.CHANGED
        return ChangeAction.NONE

    @property
    def delta(self) -> int:
        old_lines = self.old_state.line_count if self.old_state is not None else 0
        new_lines = self.new_state.line_count if self.new_state is not None else 0
        return new_lines - old_lines

    def describe(self) -> str:
        action = self.action
        if action == ChangeAction.NEW:
            assert self.new_state is not None
            return f"{self.name} {self.new_state.line_count}"
        if action == ChangeAction.DELETED:
            return self.name
        if action == ChangeAction.CHANGED:
            sign = "+" if self.delta > 0 else "-"
            return f"{self.name} {sign}{abs(self.delta)}"
        return ""


@dataclass(frozen=True)
class WatchEvent:
    kind: EventKind
    message: str | None = None
    change: StateChange | None = None

    @classmethod
    def heartbeat(cls, message: str) -> WatchEvent:
        return cls(kind=EventKind.HEARTBEAT, message=message)

    @classmethod
    def for_change(cls, change: StateChange) -> WatchEvent:
        return cls(kind=EventKind.CHANGE, change=change)

    @classmethod
    def terminate(cls) -> WatchEvent:
        return cls(kind=EventKind.TERMINATE)
