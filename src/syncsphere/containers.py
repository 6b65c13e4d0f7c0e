"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from syncsphere.adapters.supabase_device_repository import SupabaseDeviceRepository
from syncsphere.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from syncsphere.config import Settings
from syncsphere.services.completion import CompletionResolver
from syncsphere.services.driver import ProgressDriver
from syncsphere.services.registry import DriverRegistry
from syncsphere.services.sessions import SessionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_service: SessionService
    driver: ProgressDriver
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    session_repository = SupabaseSessionRepository(
        supabase_client, table_name=resolved_settings.sessions_table
    )
    device_repository = SupabaseDeviceRepository(
        supabase_client, table_name=resolved_settings.devices_table
    )
    registry = DriverRegistry()
    resolver = CompletionResolver(repository=session_repository, registry=registry)
    driver = ProgressDriver(
        repository=session_repository,
        resolver=resolver,
        registry=registry,
        delay_scale=resolved_settings.progress_delay_scale,
    )
    session_service = SessionService(
        device_repository=device_repository,
        session_repository=session_repository,
        driver=driver,
        resolver=resolver,
    )

    async def close_resources() -> None:
        await driver.shutdown()

    return AppContainer(
        settings=resolved_settings,
        session_service=session_service,
        driver=driver,
        close_resources=close_resources,
    )
