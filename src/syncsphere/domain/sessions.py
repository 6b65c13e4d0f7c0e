"""Domain models for advanced device sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class ServiceType(StrEnum):
    """Advanced services that run as progress sessions."""

    SCREEN_UNLOCK = "screen_unlock"
    SYSTEM_REPAIR = "system_repair"
    DATA_ERASER = "data_eraser"
    FRP_BYPASS = "frp_bypass"
    ICLOUD_BYPASS = "icloud_bypass"


class SessionStatus(StrEnum):
    """Lifecycle states of a session."""

    PENDING = "pending"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = frozenset({SessionStatus.RUNNING, SessionStatus.PAUSED})
TERMINAL_STATUSES = frozenset(
    {SessionStatus.COMPLETED, SessionStatus.FAILED, SessionStatus.CANCELLED}
)


@dataclass(frozen=True)
class SessionProgress:
    """Step counter and derived progress figures."""

    total_steps: int
    current_step: int = 0
    percentage: int = 0
    current_phase: str = "initializing"
    estimated_time_remaining_ms: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "percentage": self.percentage,
            "current_step": self.current_step,
            "total_steps": self.total_steps,
            "current_phase": self.current_phase,
            "estimated_time_remaining_ms": self.estimated_time_remaining_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "SessionProgress":
        eta = data.get("estimated_time_remaining_ms")
        return cls(
            total_steps=int(data["total_steps"]),
            current_step=int(data.get("current_step", 0)),
            percentage=int(data.get("percentage", 0)),
            current_phase=str(data.get("current_phase", "initializing")),
            estimated_time_remaining_ms=int(eta) if eta is not None else None,
        )


@dataclass(frozen=True)
class SessionResult:
    """Outcome written once when a session finishes."""

    success: bool
    error_message: str | None = None
    details: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "error_message": self.error_message,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "SessionResult":
        details = data.get("details")
        return cls(
            success=bool(data["success"]),
            error_message=data.get("error_message"),
            details=details if isinstance(details, dict) else {},
        )


@dataclass(frozen=True)
class SessionRecord:
    """Represents a persisted advanced session."""

    id: UUID
    user_id: UUID
    device_id: UUID
    service_type: ServiceType
    method: str
    status: SessionStatus
    progress: SessionProgress
    options: dict[str, object] = field(default_factory=dict)
    started_at: datetime | None = None
    paused_at: datetime | None = None
    resumed_at: datetime | None = None
    completed_at: datetime | None = None
    result: SessionResult | None = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def duration_ms(self) -> int | None:
        """Milliseconds between start and completion, once finished."""
        if self.started_at is None or self.completed_at is None:
            return None
        return round((self.completed_at - self.started_at).total_seconds() * 1000)


@dataclass(frozen=True)
class ProgressView:
    """Read-only snapshot returned to progress pollers."""

    session_id: UUID
    service_type: ServiceType
    method: str
    status: SessionStatus
    progress: SessionProgress
    started_at: datetime | None
    completed_at: datetime | None


@dataclass(frozen=True)
class SessionPage:
    """A page of sessions with pagination totals."""

    items: list[SessionRecord]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0


@dataclass(frozen=True)
class ServiceStats:
    """Aggregated session outcomes for one service type."""

    service_type: ServiceType
    total: int
    completed: int
    failed: int
    cancelled: int
    avg_duration_ms: float | None
