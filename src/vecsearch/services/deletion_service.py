"""Background scan-and-delete sweeps over key patterns."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum

from vecsearch.core.logging import get_logger
from vecsearch.services.record_keys import generate_uid
from vecsearch.services.redis_service import RedisService

logger = get_logger(__name__)


class SweepStatus(str, Enum):
    """Lifecycle of a sweep."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class SweepHandle:
    """Observable, cancellable handle on a running sweep."""

    id: str
    pattern: str
    status: SweepStatus = SweepStatus.RUNNING
    deleted: int = 0
    failed: int = 0
    error: str | None = None
    task: asyncio.Task[SweepHandle] | None = field(default=None, repr=False)

    def done(self) -> bool:
        return self.task is not None and self.task.done()

    async def wait(self) -> SweepHandle:
        """Wait for completion; cancelling the waiter does not cancel the sweep."""
        if self.task is None:
            return self
        return await asyncio.shield(self.task)

    def cancel(self) -> None:
        if self.task is not None and not self.task.done():
            self.task.cancel()


class DeletionSweeper:
    """Runs sweeps detached from the request that started them.

    Each sweep is an asyncio task owned by the sweeper, so a client
    disconnect does not stop it; callers get a handle to await or poll.
    """

    def __init__(
        self,
        redis_service: RedisService,
        *,
        batch_size: int = 500,
        max_retained: int = 100,
    ):
        self._redis = redis_service
        self._batch_size = batch_size
        self._max_retained = max_retained
        self._handles: dict[str, SweepHandle] = {}

    def sweep(self, pattern: str) -> SweepHandle:
        """Start deleting every key matching ``pattern`` in the background."""
        self._prune()
        handle = SweepHandle(id=generate_uid(), pattern=pattern)
        handle.task = asyncio.create_task(self._run(handle), name=f"sweep:{pattern}")
        self._handles[handle.id] = handle
        logger.info("Started sweep %s for pattern '%s'", handle.id, pattern)
        return handle

    def get(self, sweep_id: str) -> SweepHandle | None:
        return self._handles.get(sweep_id)

    async def cancel_all(self) -> None:
        """Cancel running sweeps and wait for them to stop."""
        running = [h for h in self._handles.values() if not h.done()]
        for handle in running:
            handle.cancel()
        if running:
            await asyncio.gather(*(h.task for h in running if h.task), return_exceptions=True)
            logger.info("Cancelled %d running sweeps", len(running))

    def _prune(self) -> None:
        finished = [sweep_id for sweep_id, h in self._handles.items() if h.done()]
        excess = len(self._handles) - self._max_retained + 1
        for sweep_id in finished[: max(excess, 0)]:
            del self._handles[sweep_id]

    async def _delete_batch(self, handle: SweepHandle, keys: list[str]) -> None:
        try:
            await self._redis.delete(*keys)
            handle.deleted += len(keys)
        except Exception as exc:
            handle.failed += len(keys)
            logger.warning("Sweep %s failed to delete %d keys: %s", handle.id, len(keys), exc)

    async def _run(self, handle: SweepHandle) -> SweepHandle:
        batch: list[str] = []
        try:
            async for key in self._redis.scan_keys(handle.pattern, count=self._batch_size):
                batch.append(key)
                if len(batch) >= self._batch_size:
                    await self._delete_batch(handle, batch)
                    batch = []
            if batch:
                await self._delete_batch(handle, batch)
        except asyncio.CancelledError:
            handle.status = SweepStatus.CANCELLED
            logger.warning("Sweep %s cancelled after %d deletions", handle.id, handle.deleted)
            raise
        except Exception as exc:
            handle.status = SweepStatus.FAILED
            handle.error = str(exc)
            logger.error("Sweep %s failed: %s", handle.id, exc, exc_info=True)
            return handle

        handle.status = SweepStatus.COMPLETED
        logger.info(
            "Sweep %s done: %d deleted, %d failed", handle.id, handle.deleted, handle.failed
        )
        return handle
