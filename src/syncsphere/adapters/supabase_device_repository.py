"""Supabase-backed device lookup."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from syncsphere.domain.devices import DeviceRecord
from syncsphere.services.repositories import DeviceRepository


@dataclass
class SupabaseDeviceRepository(DeviceRepository):
    """Supabase implementation for device lookups."""

    client: Client
    table_name: str = "devices"

    def find_by_id(self, device_id: UUID) -> DeviceRecord | None:
        """Return a device by id, if present."""
        response = (
            self.client.table(self.table_name)
            .select("id, user_id, platform")
            .eq("id", str(device_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return DeviceRecord(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            platform=row.get("platform"),
        )
