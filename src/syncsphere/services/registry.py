"""Process-wide registry of running progress drivers."""

import asyncio
from dataclasses import dataclass, field
from uuid import UUID


@dataclass
class DriverEntry:
    """Control state for one session's driver loop."""

    session_id: UUID
    started_at: float
    start_step: int
    stop_requested: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task | None = None

    @property
    def paused(self) -> bool:
        return self.stop_requested.is_set()

    @property
    def is_live(self) -> bool:
        return self.task is not None and not self.task.done()


class DriverRegistry:
    """Maps session ids to driver entries.

    Start and restart hold ``lock`` across their awaits. Stop requests and
    releases are single dict operations and never suspend.
    """

    def __init__(self) -> None:
        self._entries: dict[UUID, DriverEntry] = {}
        self.lock = asyncio.Lock()

    def get(self, session_id: UUID) -> DriverEntry | None:
        return self._entries.get(session_id)

    def register(self, entry: DriverEntry) -> None:
        self._entries[entry.session_id] = entry

    def release(self, session_id: UUID, entry: DriverEntry | None = None) -> None:
        """Drop a session's entry, or only ``entry`` when given."""
        current = self._entries.get(session_id)
        if current is None:
            return
        if entry is None or current is entry:
            self._entries.pop(session_id, None)

    def request_stop(self, session_id: UUID) -> bool:
        """Flag a session's driver to stop before its next tick."""
        entry = self._entries.get(session_id)
        if entry is None:
            return False
        entry.stop_requested.set()
        return True

    def entries(self) -> list[DriverEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._entries
