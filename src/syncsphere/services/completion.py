"""Terminal writes and result payloads for finished sessions."""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from syncsphere.domain.methods import ERASE_CHUNKS_PER_PASS
from syncsphere.domain.sessions import (
    ServiceType,
    SessionRecord,
    SessionResult,
    SessionStatus,
)
from syncsphere.services.registry import DriverRegistry
from syncsphere.services.repositories import SessionRepository

logger = logging.getLogger(__name__)

DEFAULT_ERASE_BYTES = 1_000_000_000


class RandomSource(Protocol):
    """Source of uniform floats in [0, 1)."""

    def random(self) -> float:
        """Return the next random float."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class CompletionResolver:
    """Performs the single terminal write for a session."""

    repository: SessionRepository
    registry: DriverRegistry
    random_source: RandomSource = field(default_factory=random.Random)
    clock: Callable[[], datetime] = _utcnow

    def resolve(
        self,
        session_id: UUID,
        success: bool,
        error_message: str | None = None,
        details: dict[str, object] | None = None,
    ) -> bool:
        """Finalize a running session. Returns False when nothing was written."""
        session = self.repository.get_session(session_id)
        if session is None or session.status != SessionStatus.RUNNING:
            return False

        result = SessionResult(
            success=success,
            error_message=None if success else error_message,
            details=build_result_details(session, success, self.random_source)
            | (details or {}),
        )
        status = SessionStatus.COMPLETED if success else SessionStatus.FAILED
        self.repository.update_fields(
            session_id,
            {"status": status, "completed_at": self.clock(), "result": result},
        )
        self.registry.release(session_id)
        logger.info(
            "Session finished",
            extra={
                "session_id": str(session_id),
                "service_type": str(session.service_type),
                "status": str(status),
            },
        )
        return True


def build_result_details(
    session: SessionRecord, success: bool, random_source: RandomSource
) -> dict[str, object]:
    """Return the service-specific result payload."""
    formatter = _FORMATTERS.get(session.service_type)
    steps = session.progress.current_step
    if formatter is None:
        return {"stepsCompleted": steps}
    return formatter(session, success, random_source)


def format_bytes(size: float) -> str:
    """Format a byte count with binary units."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:  # noqa: PLR2004
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def _screen_unlock(
    session: SessionRecord, success: bool, random_source: RandomSource
) -> dict[str, object]:
    details: dict[str, object] = {"attempts": session.progress.current_step}
    if success:
        details["unlockCode"] = _unlock_code(session.method, random_source)
    return details


def _unlock_code(method: str, random_source: RandomSource) -> str:
    if method == "pin_bruteforce":
        return f"{int(random_source.random() * 10_000):04d}"
    return {
        "pattern_analysis": "Pattern: L-shape",
        "password_dictionary": "password123",
        "biometric_bypass": "Biometric bypassed",
    }.get(method, "Unknown")


_REPAIR_SUMMARIES = {
    "ios_system_repair": (
        "iOS system successfully repaired. All system files restored and verified."
    ),
    "android_system_repair": (
        "Android system successfully repaired. "
        "Bootloader and system partition restored."
    ),
    "bootloop_fix": "Bootloop issue resolved. Device can now boot normally.",
    "firmware_restore": "Firmware successfully restored to factory state.",
    "factory_reset": "Device successfully reset to factory settings.",
}


def _system_repair(
    session: SessionRecord, success: bool, _random_source: RandomSource
) -> dict[str, object]:
    details: dict[str, object] = {"stepsCompleted": session.progress.current_step}
    if success:
        details["repairSummary"] = _REPAIR_SUMMARIES.get(
            session.method, "System repair completed successfully."
        )
    return details


_ERASURE_SUMMARIES = {
    "quick_erase": "Quick erasure completed. {size} securely overwritten with zeros.",
    "secure_erase": (
        "Secure erasure completed using DoD 5220.22-M standard. "
        "{size} processed through 3-pass overwrite."
    ),
    "military_grade": (
        "Military-grade erasure completed using DoD 5220.22-M Enhanced. "
        "{size} processed through 7-pass overwrite."
    ),
    "custom_pattern": (
        "Custom pattern erasure completed. "
        "{size} processed through 5-pass custom overwrite with verification."
    ),
}


def _data_eraser(
    session: SessionRecord, success: bool, _random_source: RandomSource
) -> dict[str, object]:
    total_bytes = _positive_int(session.options.get("totalBytes"))
    total_bytes = total_bytes or DEFAULT_ERASE_BYTES
    chunks = session.progress.current_step
    bytes_erased = round(total_bytes * chunks / ERASE_CHUNKS_PER_PASS)
    details: dict[str, object] = {
        "passesCompleted": chunks // ERASE_CHUNKS_PER_PASS,
        "bytesErased": bytes_erased,
        "verificationPassed": success,
    }
    if success:
        template = _ERASURE_SUMMARIES.get(
            session.method, "Data erasure completed. {size} securely erased."
        )
        details["erasureSummary"] = template.format(size=format_bytes(bytes_erased))
    return details


def _positive_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return None
    return value


def _frp_bypass(
    session: SessionRecord, success: bool, _random_source: RandomSource
) -> dict[str, object]:
    return {
        "stepsCompleted": session.progress.current_step,
        "bypassSuccessful": success,
        "googleAccountRemoved": success,
        "deviceUnlocked": success,
    }


def _icloud_bypass(
    session: SessionRecord, success: bool, _random_source: RandomSource
) -> dict[str, object]:
    return {
        "stepsCompleted": session.progress.current_step,
        "bypassSuccessful": success,
        "icloudRemoved": success,
        "activationLockDisabled": success,
        "deviceUnlocked": success,
    }


_FORMATTERS: dict[
    ServiceType,
    Callable[[SessionRecord, bool, RandomSource], dict[str, object]],
] = {
    ServiceType.SCREEN_UNLOCK: _screen_unlock,
    ServiceType.SYSTEM_REPAIR: _system_repair,
    ServiceType.DATA_ERASER: _data_eraser,
    ServiceType.FRP_BYPASS: _frp_bypass,
    ServiceType.ICLOUD_BYPASS: _icloud_bypass,
}
