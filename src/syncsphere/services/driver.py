"""Background loop advancing a session's step counter."""

import asyncio
import contextlib
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from uuid import UUID

from syncsphere.domain.methods import MethodProfile, get_service_profile
from syncsphere.domain.sessions import SessionProgress, SessionRecord, SessionStatus
from syncsphere.services.completion import CompletionResolver, RandomSource
from syncsphere.services.registry import DriverEntry, DriverRegistry
from syncsphere.services.repositories import SessionRepository

logger = logging.getLogger(__name__)


@dataclass
class ProgressDriver:
    """Runs one asyncio task per active session.

    Only the driver writes ``progress``. A stop request takes effect at the
    top of the next tick or wakes the inter-step sleep; an in-flight
    repository write is never interrupted.
    """

    repository: SessionRepository
    resolver: CompletionResolver
    registry: DriverRegistry
    random_source: RandomSource = field(default_factory=random.Random)
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep
    delay_scale: float = 1.0
    monotonic: Callable[[], float] = time.monotonic

    async def start(self, session_id: UUID) -> bool:
        """Start driving a running session from its persisted step."""
        async with self.registry.lock:
            existing = self.registry.get(session_id)
            if existing is not None and existing.is_live:
                if not existing.paused:
                    return False
                # a stopped loop may still be finishing its last write
                with contextlib.suppress(asyncio.CancelledError):
                    await existing.task
            session = self.repository.get_session(session_id)
            if session is None or session.status != SessionStatus.RUNNING:
                return False
            method = _method_profile(session)
            if method is None:
                self.resolver.resolve(
                    session_id, success=False, error_message="Unknown method"
                )
                return False
            entry = DriverEntry(
                session_id=session_id,
                started_at=self.monotonic(),
                start_step=session.progress.current_step,
            )
            self.registry.register(entry)
            entry.task = asyncio.create_task(self._run(entry, session, method))
            return True

    def stop(self, session_id: UUID) -> bool:
        """Ask a session's loop to stop advancing."""
        return self.registry.request_stop(session_id)

    def is_running(self, session_id: UUID) -> bool:
        entry = self.registry.get(session_id)
        return entry is not None and entry.is_live and not entry.paused

    def active_count(self) -> int:
        return sum(1 for entry in self.registry.entries() if entry.is_live)

    def active_session_ids(self) -> list[UUID]:
        return [entry.session_id for entry in self.registry.entries() if entry.is_live]

    async def wait(self, session_id: UUID) -> None:
        """Wait until a session's loop has exited."""
        entry = self.registry.get(session_id)
        if entry is not None and entry.task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await entry.task

    async def shutdown(self) -> None:
        """Stop every loop and wait for all of them to exit."""
        entries = self.registry.entries()
        for entry in entries:
            entry.stop_requested.set()
        tasks = [entry.task for entry in entries if entry.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(
        self, entry: DriverEntry, session: SessionRecord, method: MethodProfile
    ) -> None:
        service = get_service_profile(session.service_type)
        total = session.progress.total_steps
        step = session.progress.current_step
        phase = session.progress.current_phase
        try:
            while True:
                if entry.stop_requested.is_set():
                    return
                if step >= total:
                    self._finish(session.id, step, total)
                    return

                phase = method.phase_for(step, total)
                step += 1
                self._write_progress(entry, step, total, phase)

                if await self._pause_point(entry, self._delay_seconds(method, phase)):
                    return

                if self._roll(method.early_success_probability):
                    self._finish(session.id, step, total)
                    return
                if self._roll(method.failure_probability):
                    message = service.failure_message.format(phase=phase)
                    self.resolver.resolve(
                        session.id, success=False, error_message=message
                    )
                    return
        except Exception as exc:
            logger.exception(
                "Progress driver failed",
                extra={"session_id": str(session.id), "phase": phase},
            )
            self.resolver.resolve(session.id, success=False, error_message=str(exc))
        finally:
            self.registry.release(session.id, entry)

    def _write_progress(
        self, entry: DriverEntry, step: int, total: int, phase: str
    ) -> None:
        progress = SessionProgress(
            total_steps=total,
            current_step=step,
            percentage=_percentage(step, total),
            current_phase=phase,
            estimated_time_remaining_ms=self._estimate_remaining_ms(
                entry, step, total
            ),
        )
        self.repository.update_fields(entry.session_id, {"progress": progress})

    def _finish(self, session_id: UUID, step: int, total: int) -> None:
        progress = SessionProgress(
            total_steps=total,
            current_step=step,
            percentage=100,
            current_phase="completed",
            estimated_time_remaining_ms=0,
        )
        self.repository.update_fields(session_id, {"progress": progress})
        self.resolver.resolve(session_id, success=True)

    def _estimate_remaining_ms(
        self, entry: DriverEntry, step: int, total: int
    ) -> int | None:
        # steps fully executed since this run started
        done = step - 1 - entry.start_step
        if done <= 0:
            return None
        elapsed_ms = (self.monotonic() - entry.started_at) * 1000
        return round(elapsed_ms / done * (total - step))

    def _delay_seconds(self, method: MethodProfile, phase: str) -> float:
        delay_ms = float(method.delay_ms(phase))
        if method.delay_jitter_ms:
            delay_ms += self.random_source.random() * method.delay_jitter_ms
        return delay_ms * self.delay_scale / 1000

    def _roll(self, probability: float) -> bool:
        return probability > 0 and self.random_source.random() < probability

    async def _pause_point(self, entry: DriverEntry, seconds: float) -> bool:
        """Sleep between steps. Returns True when a stop request woke it."""
        if entry.stop_requested.is_set():
            return True
        sleeper = asyncio.ensure_future(self.sleep(seconds))
        stopper = asyncio.ensure_future(entry.stop_requested.wait())
        try:
            await asyncio.wait(
                {sleeper, stopper}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for waiter in (sleeper, stopper):
                if not waiter.done():
                    waiter.cancel()
        return entry.stop_requested.is_set()


def _method_profile(session: SessionRecord) -> MethodProfile | None:
    service = get_service_profile(session.service_type)
    if service is None:
        return None
    return service.get_method(session.method)


def _percentage(step: int, total: int) -> int:
    if total <= 0:
        return 100
    return max(0, min(100, round(step / total * 100)))
