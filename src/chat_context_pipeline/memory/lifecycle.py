# chat_context_pipeline/memory/lifecycle.py
"""
Explicit lifecycle for conversation memory.

Nothing here starts a timer on construction. The host calls ``init()`` to
register the periodic sweep (and flush, when a snapshot sink is configured)
with a scheduler it owns, and ``close()`` on shutdown to cancel them and
write a final snapshot. A scheduler exposing a ``shutdown()`` coroutine is
awaited so no job task outlives ``close()``.

Schedulers:
- AsyncioScheduler: repeating tasks on the running event loop
- ManualScheduler: jobs run only when the test calls ``run_pending()``
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import TypeAdapter

from chat_context_pipeline.config import SWEEP_INTERVAL_SECONDS
from chat_context_pipeline.memory.conversation import ConversationMemory
from chat_context_pipeline.models.conversation import ConversationSession

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]

_SESSIONS = TypeAdapter(list[ConversationSession])


# =============================================================================
# Schedulers
# =============================================================================


@runtime_checkable
class Scheduler(Protocol):
    """Runs async jobs at a fixed interval until cancelled."""

    def every(self, interval: float, job: Job) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class AsyncioScheduler:
    """Repeating jobs as tasks on the running loop. A failing run is logged and the job keeps its schedule."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def every(self, interval: float, job: Job) -> asyncio.Task:
        if interval <= 0:
            raise ValueError("interval must be positive")
        task = asyncio.get_running_loop().create_task(self._repeat(interval, job))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _repeat(self, interval: float, job: Job) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await job()
            except Exception as e:
                logger.warning("Scheduled job %s failed: %s", getattr(job, "__name__", job), e)

    def cancel(self, handle: asyncio.Task) -> None:
        handle.cancel()

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


class ManualScheduler:
    """Records jobs and runs them on demand."""

    def __init__(self) -> None:
        self._jobs: dict[int, tuple[float, Job]] = {}
        self._next_handle = 0

    def every(self, interval: float, job: Job) -> int:
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = self._next_handle
        self._next_handle += 1
        self._jobs[handle] = (interval, job)
        return handle

    def cancel(self, handle: int) -> None:
        self._jobs.pop(handle, None)

    @property
    def intervals(self) -> list[float]:
        return [interval for interval, _ in self._jobs.values()]

    async def run_pending(self) -> int:
        """Run every registered job once, in registration order."""
        jobs = [job for _, job in self._jobs.values()]
        for job in jobs:
            await job()
        return len(jobs)

    def __len__(self) -> int:
        return len(self._jobs)


# =============================================================================
# Snapshot sinks
# =============================================================================


@runtime_checkable
class SnapshotSink(Protocol):
    """Durable destination for session snapshots."""

    async def write(self, sessions: list[ConversationSession]) -> None: ...

    async def read(self) -> list[ConversationSession]: ...


class JsonFileSnapshotSink:
    """Sessions as a JSON array in one file, replaced atomically on each write."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    async def write(self, sessions: list[ConversationSession]) -> None:
        await asyncio.to_thread(self._write, _SESSIONS.dump_json(sessions, indent=2))

    async def read(self) -> list[ConversationSession]:
        if not self.path.exists():
            return []
        data = await asyncio.to_thread(self.path.read_bytes)
        return _SESSIONS.validate_json(data)

    def _write(self, data: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(self.path)


# =============================================================================
# Lifecycle
# =============================================================================


class MemoryLifecycle:
    """
    Owns the periodic work around a ConversationMemory.

    Usage:
        lifecycle = MemoryLifecycle(memory, AsyncioScheduler(), sink=JsonFileSnapshotSink("sessions.json"))
        await lifecycle.init()
        ...
        await lifecycle.close()
    """

    def __init__(
        self,
        memory: ConversationMemory,
        scheduler: Scheduler,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        sink: SnapshotSink | None = None,
        flush_interval: float | None = None,
    ):
        self.memory = memory
        self.scheduler = scheduler
        self.sweep_interval = sweep_interval
        self.sink = sink
        self.flush_interval = flush_interval or sweep_interval
        self._handles: list[Any] = []

    @property
    def running(self) -> bool:
        return bool(self._handles)

    async def init(self) -> None:
        """Restore from the sink if present, then register periodic jobs. Idempotent."""
        if self.running:
            return
        if self.sink is not None:
            restored = await self.memory.restore(await self.sink.read())
            if restored:
                logger.info("Restored %d conversation sessions from snapshot", restored)
        self._handles.append(self.scheduler.every(self.sweep_interval, self.sweep))
        if self.sink is not None:
            self._handles.append(self.scheduler.every(self.flush_interval, self.flush))

    async def sweep(self) -> list[str]:
        return await self.memory.sweep_expired()

    async def flush(self) -> int:
        """Write all sessions to the sink. Returns the number written."""
        if self.sink is None:
            return 0
        sessions = await self.memory.snapshot()
        await self.sink.write(sessions)
        logger.info("Flushed %d conversation sessions", len(sessions))
        return len(sessions)

    async def close(self) -> None:
        """Cancel the periodic jobs, wait for the scheduler to stop them, then flush."""
        for handle in self._handles:
            self.scheduler.cancel(handle)
        self._handles.clear()
        shutdown = getattr(self.scheduler, "shutdown", None)
        if shutdown is not None:
            await shutdown()
        await self.flush()

    async def __aenter__(self) -> MemoryLifecycle:
        await self.init()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
