"""Supabase-backed advanced session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from syncsphere.domain.sessions import (
    ACTIVE_STATUSES,
    ServiceType,
    SessionProgress,
    SessionRecord,
    SessionResult,
    SessionStatus,
)
from syncsphere.services.repositories import SessionRepository

_COLUMNS = (
    "id, user_id, device_id, service_type, method, status, options_json, "
    "progress_json, result_json, started_at, paused_at, resumed_at, completed_at"
)
_TIMESTAMP_FIELDS = {"started_at", "paused_at", "resumed_at", "completed_at"}


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for advanced sessions."""

    client: Client
    table_name: str = "advanced_sessions"

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
        """Create a session row and return it."""
        response = (
            self.client.table(self.table_name)
            .insert(
                {
                    "user_id": str(user_id),
                    "device_id": str(device_id),
                    "service_type": str(service_type),
                    "method": method,
                    "status": str(status),
                    "options_json": options,
                    "progress_json": progress.to_dict(),
                    "result_json": None,
                    "started_at": started_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create session")
        return _parse_session(response.data[0])

    def get_session(self, session_id: UUID) -> SessionRecord | None:
        """Return a session by id, if present."""
        response = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def find_active_session(
        self, user_id: UUID, device_id: UUID, service_type: ServiceType
    ) -> SessionRecord | None:
        """Return the running or paused session for the tuple, if any."""
        response = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("device_id", str(device_id))
            .eq("service_type", str(service_type))
            .in_("status", sorted(str(status) for status in ACTIVE_STATUSES))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def update_fields(self, session_id: UUID, fields: dict[str, object]) -> None:
        """Update the named session columns."""
        payload = _to_row(fields)
        payload["updated_at"] = datetime.now(tz=UTC).isoformat()
        self.client.table(self.table_name).update(payload).eq(
            "id", str(session_id)
        ).execute()

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
        query = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
        )
        if status is not None:
            query = query.eq("status", str(status))
        if service_type is not None:
            query = query.eq("service_type", str(service_type))
        if started_after is not None:
            query = query.gte("started_at", started_after.isoformat())
        response = (
            query.order("started_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]

    def count_sessions(
        self,
        user_id: UUID,
        status: SessionStatus | None,
        service_type: ServiceType | None,
    ) -> int:
        """Return how many sessions match the filters."""
        query = (
            self.client.table(self.table_name)
            .select("id", count="exact")
            .eq("user_id", str(user_id))
        )
        if status is not None:
            query = query.eq("status", str(status))
        if service_type is not None:
            query = query.eq("service_type", str(service_type))
        response = query.execute()
        return response.count or 0

    def list_by_status(self, status: SessionStatus) -> list[SessionRecord]:
        """Return every session in a status, across users."""
        response = (
            self.client.table(self.table_name)
            .select(_COLUMNS)
            .eq("status", str(status))
            .execute()
        )
        return [_parse_session(row) for row in response.data or []]


def _to_row(fields: dict[str, object]) -> dict[str, object]:
    row: dict[str, object] = {}
    for name, value in fields.items():
        if name == "status":
            row["status"] = str(value)
        elif name == "progress" and isinstance(value, SessionProgress):
            row["progress_json"] = value.to_dict()
        elif name == "result":
            row["result_json"] = (
                value.to_dict() if isinstance(value, SessionResult) else None
            )
        elif name in _TIMESTAMP_FIELDS:
            row[name] = value.isoformat() if isinstance(value, datetime) else None
        else:
            raise ValueError(f"Unsupported session field: {name}")
    return row


def _parse_timestamp(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_session(row: dict[str, object]) -> SessionRecord:
    result_raw = row.get("result_json")
    options = row.get("options_json")
    return SessionRecord(
        id=UUID(row["id"]),
        user_id=UUID(row["user_id"]),
        device_id=UUID(row["device_id"]),
        service_type=ServiceType(row["service_type"]),
        method=row["method"],
        status=SessionStatus(row["status"]),
        progress=SessionProgress.from_dict(row["progress_json"]),
        options=options if isinstance(options, dict) else {},
        started_at=_parse_timestamp(row.get("started_at")),
        paused_at=_parse_timestamp(row.get("paused_at")),
        resumed_at=_parse_timestamp(row.get("resumed_at")),
        completed_at=_parse_timestamp(row.get("completed_at")),
        result=SessionResult.from_dict(result_raw)
        if isinstance(result_raw, dict)
        else None,
    )
