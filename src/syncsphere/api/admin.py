"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from syncsphere.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/drivers", dependencies=[Depends(require_admin)])
async def list_drivers(request: Request) -> dict[str, object]:
    """Return the progress drivers running in this process."""
    container: AppContainer = request.app.state.container
    session_ids = container.driver.active_session_ids()
    return {
        "active": len(session_ids),
        "session_ids": [str(session_id) for session_id in session_ids],
    }


@router.post("/recover", dependencies=[Depends(require_admin)])
async def recover_sessions(request: Request) -> dict[str, int]:
    """Fail sessions left running without a live driver."""
    container: AppContainer = request.app.state.container
    return {"recovered": container.session_service.recover_interrupted()}
