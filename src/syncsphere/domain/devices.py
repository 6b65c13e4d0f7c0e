"""Domain models for registered devices."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class DeviceRecord:
    """Minimal view of a user's registered device."""

    id: UUID
    user_id: UUID
    platform: str | None
