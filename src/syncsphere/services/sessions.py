"""Session controller for advanced device operations."""

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import TypeVar
from uuid import UUID

from syncsphere.domain.methods import get_service_profile, resolve_total_steps
from syncsphere.domain.sessions import (
    ACTIVE_STATUSES,
    ProgressView,
    ServiceStats,
    ServiceType,
    SessionPage,
    SessionProgress,
    SessionRecord,
    SessionStatus,
)
from syncsphere.services.completion import CompletionResolver
from syncsphere.services.driver import ProgressDriver
from syncsphere.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from syncsphere.services.repositories import DeviceRepository, SessionRepository

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
STATS_PAGE_SIZE = 1000
INTERRUPTED_MESSAGE = "Interrupted by service restart"

E = TypeVar("E", bound=StrEnum)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionService:
    """Validates requests and drives the session state machine.

    Status checks and status writes happen without an await in between, so
    a single event loop never interleaves two control operations on the same
    session.
    """

    device_repository: DeviceRepository
    session_repository: SessionRepository
    driver: ProgressDriver
    resolver: CompletionResolver
    clock: Callable[[], datetime] = _utcnow

    async def start(
        self,
        user_id: UUID,
        device_id: UUID,
        service_type: str,
        method: str,
        options: dict[str, object] | None = None,
    ) -> SessionRecord:
        """Create a running session and start its driver in the background."""
        options = dict(options or {})
        device = self.device_repository.find_by_id(device_id)
        if device is None or device.user_id != user_id:
            raise NotFoundError("Device not found or not owned by user")

        service = get_service_profile(service_type)
        if service is None:
            raise InvalidArgumentError(f"Unknown service type: {service_type}")
        method_profile = service.get_method(method)
        if method_profile is None:
            raise InvalidArgumentError(f"Invalid method for {service_type}: {method}")
        if service.required_platform and (
            (device.platform or "").lower() != service.required_platform
        ):
            raise InvalidArgumentError(
                f"{service_type} is only available for "
                f"{service.required_platform} devices"
            )
        try:
            total_steps = resolve_total_steps(method_profile, options)
        except ValueError as exc:
            raise InvalidArgumentError(str(exc)) from exc

        existing = self.session_repository.find_active_session(
            user_id, device_id, service.service_type
        )
        if existing is not None:
            raise ConflictError(f"{service_type} session already active for this device")

        session = self.session_repository.create_session(
            user_id=user_id,
            device_id=device_id,
            service_type=service.service_type,
            method=method,
            options=options,
            status=SessionStatus.RUNNING,
            progress=SessionProgress(total_steps=total_steps),
            started_at=self.clock(),
        )
        logger.info(
            "Session started",
            extra={
                "session_id": str(session.id),
                "user_id": str(user_id),
                "device_id": str(device_id),
                "service_type": service_type,
                "method": method,
            },
        )
        await self.driver.start(session.id)
        return session

    def get_progress(self, session_id: UUID, user_id: UUID) -> ProgressView:
        """Return the progress snapshot of an owned session."""
        session = self._owned_session(session_id, user_id)
        return ProgressView(
            session_id=session.id,
            service_type=session.service_type,
            method=session.method,
            status=session.status,
            progress=session.progress,
            started_at=session.started_at,
            completed_at=session.completed_at,
        )

    def get_session(self, session_id: UUID, user_id: UUID) -> SessionRecord:
        """Return an owned session."""
        return self._owned_session(session_id, user_id)

    def pause(self, session_id: UUID, user_id: UUID) -> SessionRecord:
        """Pause a running session."""
        session = self._owned_session(session_id, user_id)
        if session.status != SessionStatus.RUNNING:
            raise InvalidStateError("Can only pause running sessions")
        self.session_repository.update_fields(
            session_id, {"status": SessionStatus.PAUSED, "paused_at": self.clock()}
        )
        self.driver.stop(session_id)
        logger.info("Session paused", extra={"session_id": str(session_id)})
        return self._reload(session_id)

    async def resume(self, session_id: UUID, user_id: UUID) -> SessionRecord:
        """Resume a paused session from its current step."""
        session = self._owned_session(session_id, user_id)
        if session.status != SessionStatus.PAUSED:
            raise InvalidStateError("Can only resume paused sessions")
        self.session_repository.update_fields(
            session_id, {"status": SessionStatus.RUNNING, "resumed_at": self.clock()}
        )
        logger.info("Session resumed", extra={"session_id": str(session_id)})
        await self.driver.start(session_id)
        return self._reload(session_id)

    def cancel(self, session_id: UUID, user_id: UUID) -> SessionRecord:
        """Cancel a running or paused session without writing a result."""
        session = self._owned_session(session_id, user_id)
        if session.status not in ACTIVE_STATUSES:
            raise InvalidStateError("Can only cancel active sessions")
        self.session_repository.update_fields(
            session_id,
            {"status": SessionStatus.CANCELLED, "completed_at": self.clock()},
        )
        self.driver.stop(session_id)
        logger.info("Session cancelled", extra={"session_id": str(session_id)})
        return self._reload(session_id)

    def list_sessions(  # noqa: PLR0913
        self,
        user_id: UUID,
        status: str | None = None,
        service_type: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> SessionPage:
        """Return a page of the user's sessions, newest first."""
        status_filter = _parse_enum(SessionStatus, status, "status")
        service_filter = _parse_enum(ServiceType, service_type, "service type")
        if page < 1 or limit < 1:
            raise InvalidArgumentError("page and limit must be positive")
        limit = min(limit, MAX_PAGE_SIZE)
        items = self.session_repository.list_sessions(
            user_id,
            status=status_filter,
            service_type=service_filter,
            offset=(page - 1) * limit,
            limit=limit,
        )
        total = self.session_repository.count_sessions(
            user_id, status=status_filter, service_type=service_filter
        )
        return SessionPage(items=items, page=page, limit=limit, total=total)

    def get_stats(self, user_id: UUID, days: int = 30) -> list[ServiceStats]:
        """Summarize session outcomes per service type over a window."""
        if days < 1:
            raise InvalidArgumentError("days must be positive")
        since = self.clock() - timedelta(days=days)
        grouped: dict[ServiceType, list[SessionRecord]] = defaultdict(list)
        offset = 0
        while True:
            batch = self.session_repository.list_sessions(
                user_id,
                status=None,
                service_type=None,
                offset=offset,
                limit=STATS_PAGE_SIZE,
                started_after=since,
            )
            for session in batch:
                grouped[session.service_type].append(session)
            if len(batch) < STATS_PAGE_SIZE:
                break
            offset += STATS_PAGE_SIZE
        return [
            _summarize(service_type, grouped[service_type])
            for service_type in ServiceType
            if grouped.get(service_type)
        ]

    def recover_interrupted(self) -> int:
        """Fail sessions left running by a previous process."""
        recovered = 0
        for session in self.session_repository.list_by_status(SessionStatus.RUNNING):
            if self.driver.is_running(session.id):
                continue
            if self.resolver.resolve(
                session.id, success=False, error_message=INTERRUPTED_MESSAGE
            ):
                recovered += 1
        if recovered:
            logger.warning(
                "Marked interrupted sessions as failed", extra={"count": recovered}
            )
        return recovered

    def _owned_session(self, session_id: UUID, user_id: UUID) -> SessionRecord:
        session = self.session_repository.get_session(session_id)
        if session is None:
            raise NotFoundError("Session not found")
        if session.user_id != user_id:
            raise ForbiddenError("Access denied")
        return session

    def _reload(self, session_id: UUID) -> SessionRecord:
        session = self.session_repository.get_session(session_id)
        if session is None:
            raise NotFoundError("Session not found")
        return session


def _parse_enum(enum_type: type[E], value: str | None, label: str) -> E | None:
    if value is None:
        return None
    try:
        return enum_type(value)
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown {label}: {value}") from exc


def _summarize(service_type: ServiceType, sessions: list[SessionRecord]) -> ServiceStats:
    durations = [
        session.duration_ms for session in sessions if session.duration_ms is not None
    ]
    return ServiceStats(
        service_type=service_type,
        total=len(sessions),
        completed=sum(1 for s in sessions if s.status == SessionStatus.COMPLETED),
        failed=sum(1 for s in sessions if s.status == SessionStatus.FAILED),
        cancelled=sum(1 for s in sessions if s.status == SessionStatus.CANCELLED),
        avg_duration_ms=sum(durations) / len(durations) if durations else None,
    )
