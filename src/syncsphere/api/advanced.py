"""Advanced session endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from syncsphere.api.models import (
    ProgressViewModel,
    ServiceStatsModel,
    SessionListModel,
    SessionModel,
    StartSessionRequest,
    envelope,
)
from syncsphere.services.sessions import SessionService

router = APIRouter(prefix="/advanced", tags=["advanced"])


def _get_service(request: Request) -> SessionService:
    return request.app.state.container.session_service


async def require_user(x_user_id: str | None = Header(default=None)) -> UUID:
    """Return the caller id set by the upstream auth gateway."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    try:
        return UUID(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc


@router.post("/{service_type}/start", status_code=status.HTTP_201_CREATED)
async def start_session(
    service_type: str,
    body: StartSessionRequest,
    user_id: UUID = Depends(require_user),
    service: SessionService = Depends(_get_service),
) -> dict[str, object]:
    """Start a session for one of the advanced services."""
    session = await service.start(
        user_id=user_id,
        device_id=body.device_id,
        service_type=service_type.replace("-", "_"),
        method=body.method,
        options=body.options,
    )
    return envelope(session=SessionModel.from_domain(session))


@router.get("/sessions")
async def list_sessions(  # noqa: PLR0913
    status_filter: str | None = Query(default=None, alias="status"),
    service_type: str | None = Query(default=None, alias="serviceType"),
    page: int = 1,
    limit: int = 50,
    user_id: UUID = Depends(require_user),
    service: SessionService = Depends(_get_service),
) -> dict[str, object]:
    """Return the caller's sessions, newest first."""
    result = service.list_sessions(
        user_id,
        status=status_filter,
        service_type=service_type,
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "data": SessionListModel.from_domain(result).model_dump(
            mode="json", by_alias=True
        ),
    }


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: UUID,
    user_id: UUID = Depends(require_user),
    service: SessionService = Depends(_get_service),
) -> dict[str, object]:
    """Return one of the caller's sessions."""
    session = service.get_session(session_id, user_id)
    return envelope(session=SessionModel.from_domain(session))


@router.get("/sessions/{session_id}/progress")
async def get_progress(
    session_id: UUID,
    user_id: UUID = Depends(require_user),
    service: SessionService = Depends(_get_service),
) -> dict[str, object]:
    """Return the progress snapshot of a session."""
    view = service.get_progress(session_id, user_id)
    return envelope(progress=ProgressViewModel.from_domain(view))


@router.post("/sessions/{session_id}/pause")
async def pause_session(
    session_id: UUID,
    user_id: UUID = Depends(require_user),
    service: SessionService = Depends(_get_service),
) -> dict[str, object]:
    """Pause a running session."""
    session = service.pause(session_id, user_id)
    return envelope(session=SessionModel.from_domain(session))


@router.post("/sessions/{session_id}/resume")
async def resume_session(
    session_id: UUID,
    user_id: UUID = Depends(require_user),
    service: SessionService = Depends(_get_service),
) -> dict[str, object]:
    """Resume a paused session."""
    session = await service.resume(session_id, user_id)
    return envelope(session=SessionModel.from_domain(session))


@router.post("/sessions/{session_id}/cancel")
async def cancel_session(
    session_id: UUID,
    user_id: UUID = Depends(require_user),
    service: SessionService = Depends(_get_service),
) -> dict[str, object]:
    """Cancel a running or paused session."""
    session = service.cancel(session_id, user_id)
    return envelope(session=SessionModel.from_domain(session))


@router.get("/stats")
async def session_stats(
    days: int = 30,
    user_id: UUID = Depends(require_user),
    service: SessionService = Depends(_get_service),
) -> dict[str, object]:
    """Return per-service outcome counts for the caller."""
    stats = service.get_stats(user_id, days=days)
    return envelope(stats=[ServiceStatsModel.from_domain(item) for item in stats])
