"""Pydantic request and response models for the sessions API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from syncsphere.domain.sessions import (
    ProgressView,
    ServiceStats,
    SessionPage,
    SessionProgress,
    SessionRecord,
    SessionResult,
)


class ApiModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartSessionRequest(ApiModel):
    """Body for starting an advanced session."""

    device_id: UUID
    method: str = Field(min_length=1)
    options: dict[str, Any] = Field(default_factory=dict)


class ProgressModel(ApiModel):
    """Progress counters of a session."""

    percentage: int
    current_step: int
    total_steps: int
    current_phase: str
    estimated_time_remaining_ms: int | None

    @classmethod
    def from_domain(cls, progress: SessionProgress) -> "ProgressModel":
        return cls(**progress.to_dict())


class ResultModel(ApiModel):
    """Terminal outcome of a session."""

    success: bool
    error_message: str | None
    details: dict[str, Any]

    @classmethod
    def from_domain(cls, result: SessionResult | None) -> "ResultModel | None":
        if result is None:
            return None
        return cls(
            success=result.success,
            error_message=result.error_message,
            details=result.details,
        )


class SessionModel(ApiModel):
    """Full session record."""

    id: UUID
    user_id: UUID
    device_id: UUID
    service_type: str
    method: str
    status: str
    options: dict[str, Any]
    progress: ProgressModel
    result: ResultModel | None
    started_at: datetime | None
    paused_at: datetime | None
    resumed_at: datetime | None
    completed_at: datetime | None

    @classmethod
    def from_domain(cls, session: SessionRecord) -> "SessionModel":
        return cls(
            id=session.id,
            user_id=session.user_id,
            device_id=session.device_id,
            service_type=str(session.service_type),
            method=session.method,
            status=str(session.status),
            options=session.options,
            progress=ProgressModel.from_domain(session.progress),
            result=ResultModel.from_domain(session.result),
            started_at=session.started_at,
            paused_at=session.paused_at,
            resumed_at=session.resumed_at,
            completed_at=session.completed_at,
        )


class ProgressViewModel(ApiModel):
    """Progress snapshot for pollers."""

    session_id: UUID
    service_type: str
    method: str
    status: str
    progress: ProgressModel
    started_at: datetime | None
    completed_at: datetime | None

    @classmethod
    def from_domain(cls, view: ProgressView) -> "ProgressViewModel":
        return cls(
            session_id=view.session_id,
            service_type=str(view.service_type),
            method=view.method,
            status=str(view.status),
            progress=ProgressModel.from_domain(view.progress),
            started_at=view.started_at,
            completed_at=view.completed_at,
        )


class PaginationModel(ApiModel):
    """Pagination totals."""

    page: int
    limit: int
    total: int
    pages: int


class SessionListModel(ApiModel):
    """A page of sessions."""

    sessions: list[SessionModel]
    pagination: PaginationModel

    @classmethod
    def from_domain(cls, page: SessionPage) -> "SessionListModel":
        return cls(
            sessions=[SessionModel.from_domain(item) for item in page.items],
            pagination=PaginationModel(
                page=page.page, limit=page.limit, total=page.total, pages=page.pages
            ),
        )


class ServiceStatsModel(ApiModel):
    """Outcome counts for one service type."""

    service_type: str
    total: int
    completed: int
    failed: int
    cancelled: int
    avg_duration_ms: float | None

    @classmethod
    def from_domain(cls, stats: ServiceStats) -> "ServiceStatsModel":
        return cls(
            service_type=str(stats.service_type),
            total=stats.total,
            completed=stats.completed,
            failed=stats.failed,
            cancelled=stats.cancelled,
            avg_duration_ms=stats.avg_duration_ms,
        )


def envelope(**data: ApiModel | list[ApiModel]) -> dict[str, object]:
    """Wrap serialized models in the ``{success, data}`` response shape."""
    return {
        "success": True,
        "data": {
            key: [item.model_dump(mode="json", by_alias=True) for item in value]
            if isinstance(value, list)
            else value.model_dump(mode="json", by_alias=True)
            for key, value in data.items()
        },
    }
