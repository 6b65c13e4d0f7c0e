"""Persistence interfaces for sessions and devices."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from syncsphere.domain.devices import DeviceRecord
from syncsphere.domain.sessions import (
    ServiceType,
    SessionProgress,
    SessionRecord,
    SessionStatus,
)


class DeviceRepository(Protocol):
    """Lookup interface for registered devices."""

    def find_by_id(self, device_id: UUID) -> DeviceRecord | None:
        """Return a device by id, if present."""


class SessionRepository(Protocol):
    """Persistence interface for advanced sessions."""

    def create_session(  # noqa: PLR0913
        self,
        user_id: UUID,
        device_id: UUID,
        service_type: ServiceType,
        method: str,
        options: dict[str, object],
        status: SessionStatus,
        progress: SessionProgress,
        started_at: datetime,
    ) -> SessionRecord:
        """Create a new session and return it."""

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""

    def find_active_session(
        self, user_id: UUID, device_id: UUID, service_type: ServiceType
    ) -> SessionRecord | None:
        """Return the running or paused session for the tuple, if any."""

    def update_fields(self, session_id: UUID, fields: dict[str, object]) -> None:
        """Update the named session fields.

        Keys are ``status``, ``progress``, ``result`` and the ``*_at``
        timestamps, holding domain values.
        """

    def list_sessions(  # noqa: PLR0913
        self,
        user_id: UUID,
        status: SessionStatus | None,
        service_type: ServiceType | None,
        offset: int,
        limit: int,
        started_after: datetime | None = None,
    ) -> list[SessionRecord]:
        """Return a user's sessions, newest first."""

    def count_sessions(
        self,
        user_id: UUID,
        status: SessionStatus | None,
        service_type: ServiceType | None,
    ) -> int:
        """Return how many sessions match the filters."""

    def list_by_status(self, status: SessionStatus) -> list[SessionRecord]:
        """Return every session in a status, across users."""
