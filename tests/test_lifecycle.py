# tests/test_lifecycle.py
"""
Tests for MemoryLifecycle, schedulers and snapshot sinks.

Covers:
- No jobs scheduled until init()
- Sweep and flush registered with the injected scheduler
- Snapshot round trip through JsonFileSnapshotSink
- close() cancels jobs, stops the scheduler and writes a final snapshot
- AsyncioScheduler repeats jobs and survives job failures
"""

import asyncio

import pytest

from chat_context_pipeline.memory import (
    AsyncioScheduler,
    ConversationMemory,
    JsonFileSnapshotSink,
    ManualScheduler,
    MemoryLifecycle,
    Scheduler,
    SnapshotSink,
)
from tests.fakes import FakeClock

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _RecordingSink:
    def __init__(self, sessions=None):
        self.sessions = list(sessions or [])
        self.writes = 0

    async def write(self, sessions):
        self.sessions = list(sessions)
        self.writes += 1

    async def read(self):
        return list(self.sessions)


def _make_memory(clock=None, **kwargs):
    return ConversationMemory(clock=clock or FakeClock(), **kwargs)


# ===========================================================================
# MemoryLifecycle
# ===========================================================================


class TestMemoryLifecycle:
    def test_construction_schedules_nothing(self):
        scheduler = ManualScheduler()
        MemoryLifecycle(_make_memory(), scheduler, sink=_RecordingSink())
        assert len(scheduler) == 0

    @pytest.mark.asyncio
    async def test_init_registers_sweep(self):
        scheduler = ManualScheduler()
        lifecycle = MemoryLifecycle(_make_memory(), scheduler, sweep_interval=600)
        await lifecycle.init()
        assert scheduler.intervals == [600]
        assert lifecycle.running

    @pytest.mark.asyncio
    async def test_init_registers_flush_with_sink(self):
        scheduler = ManualScheduler()
        lifecycle = MemoryLifecycle(
            _make_memory(), scheduler, sweep_interval=600, sink=_RecordingSink(), flush_interval=60
        )
        await lifecycle.init()
        assert scheduler.intervals == [600, 60]

    @pytest.mark.asyncio
    async def test_init_is_idempotent(self):
        scheduler = ManualScheduler()
        lifecycle = MemoryLifecycle(_make_memory(), scheduler)
        await lifecycle.init()
        await lifecycle.init()
        assert len(scheduler) == 1

    @pytest.mark.asyncio
    async def test_scheduled_sweep_evicts_expired(self, clock):
        memory = _make_memory(clock, session_ttl=3600)
        scheduler = ManualScheduler()
        lifecycle = MemoryLifecycle(memory, scheduler)
        await lifecycle.init()

        await memory.add_message("s1", "user", "hello")
        clock.advance(3601)
        assert await memory.get_session_summary("s1") is not None

        await scheduler.run_pending()
        assert await memory.get_session_summary("s1") is None
        assert await memory.get_active_sessions() == []

    @pytest.mark.asyncio
    async def test_flush_writes_snapshot(self):
        memory = _make_memory()
        sink = _RecordingSink()
        lifecycle = MemoryLifecycle(memory, ManualScheduler(), sink=sink)
        await memory.add_message("s1", "user", "Volkswagen")

        assert await lifecycle.flush() == 1
        assert [s.session_id for s in sink.sessions] == ["s1"]

    @pytest.mark.asyncio
    async def test_snapshot_is_a_copy(self):
        memory = _make_memory()
        sink = _RecordingSink()
        lifecycle = MemoryLifecycle(memory, ManualScheduler(), sink=sink)
        await memory.add_message("s1", "user", "first")
        await lifecycle.flush()
        await memory.add_message("s1", "user", "second")

        assert len(sink.sessions[0].messages) == 1

    @pytest.mark.asyncio
    async def test_flush_without_sink(self):
        lifecycle = MemoryLifecycle(_make_memory(), ManualScheduler())
        assert await lifecycle.flush() == 0

    @pytest.mark.asyncio
    async def test_init_restores_from_sink(self):
        source = _make_memory()
        await source.add_message("s1", "user", "Volkswagen")
        sink = _RecordingSink(await source.snapshot())

        memory = _make_memory()
        await MemoryLifecycle(memory, ManualScheduler(), sink=sink).init()

        summary = await memory.get_session_summary("s1")
        assert summary.message_count == 1
        assert summary.dominant_topics == ["volkswagen"]

    @pytest.mark.asyncio
    async def test_close_cancels_and_flushes(self):
        scheduler = ManualScheduler()
        sink = _RecordingSink()
        memory = _make_memory()
        lifecycle = MemoryLifecycle(memory, scheduler, sink=sink)
        await lifecycle.init()
        await memory.add_message("s1", "user", "hello")

        await lifecycle.close()

        assert len(scheduler) == 0
        assert not lifecycle.running
        assert sink.writes == 1
        assert await scheduler.run_pending() == 0

    @pytest.mark.asyncio
    async def test_close_leaves_no_pending_tasks(self):
        scheduler = AsyncioScheduler()
        lifecycle = MemoryLifecycle(_make_memory(), scheduler, sweep_interval=60, sink=_RecordingSink())
        await lifecycle.init()
        tasks = list(lifecycle._handles)
        assert len(tasks) == 2

        await lifecycle.close()

        assert all(task.done() and task.cancelled() for task in tasks)
        assert scheduler._tasks == set()

    @pytest.mark.asyncio
    async def test_close_awaits_scheduler_shutdown(self):
        class _StoppableScheduler(ManualScheduler):
            def __init__(self):
                super().__init__()
                self.shutdowns = 0

            async def shutdown(self):
                self.shutdowns += 1

        scheduler = _StoppableScheduler()
        lifecycle = MemoryLifecycle(_make_memory(), scheduler)
        await lifecycle.init()
        await lifecycle.close()
        assert scheduler.shutdowns == 1
        assert len(scheduler) == 0

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        scheduler = ManualScheduler()
        sink = _RecordingSink()
        async with MemoryLifecycle(_make_memory(), scheduler, sink=sink):
            assert len(scheduler) == 2
        assert len(scheduler) == 0
        assert sink.writes == 1


# ===========================================================================
# JsonFileSnapshotSink
# ===========================================================================


class TestJsonFileSnapshotSink:
    def test_satisfies_protocol(self, tmp_path):
        assert isinstance(JsonFileSnapshotSink(tmp_path / "s.json"), SnapshotSink)

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path):
        memory = _make_memory()
        await memory.add_message("s1", "user", "porównaj VW i Polsat")
        await memory.add_message("s1", "assistant", "Oto porównanie", metadata={"context_length": 42})
        sessions = await memory.snapshot()

        sink = JsonFileSnapshotSink(tmp_path / "nested" / "sessions.json")
        await sink.write(sessions)

        assert (tmp_path / "nested" / "sessions.json").exists()
        assert [s.model_dump() for s in await sink.read()] == [s.model_dump() for s in sessions]

    @pytest.mark.asyncio
    async def test_missing_file_reads_empty(self, tmp_path):
        assert await JsonFileSnapshotSink(tmp_path / "absent.json").read() == []

    @pytest.mark.asyncio
    async def test_lifecycle_with_file(self, tmp_path):
        path = tmp_path / "sessions.json"
        first = _make_memory()
        async with MemoryLifecycle(first, ManualScheduler(), sink=JsonFileSnapshotSink(path)):
            await first.add_message("s1", "user", "hello")

        second = _make_memory()
        async with MemoryLifecycle(second, ManualScheduler(), sink=JsonFileSnapshotSink(path)):
            assert (await second.get_session_summary("s1")).message_count == 1


# ===========================================================================
# Schedulers
# ===========================================================================


class TestSchedulers:
    def test_protocol(self):
        assert isinstance(ManualScheduler(), Scheduler)
        assert isinstance(AsyncioScheduler(), Scheduler)

    def test_rejects_non_positive_interval(self):
        async def job():
            pass

        with pytest.raises(ValueError):
            ManualScheduler().every(0, job)

    @pytest.mark.asyncio
    async def test_manual_cancel(self):
        scheduler = ManualScheduler()
        calls = []

        async def job():
            calls.append(1)

        handle = scheduler.every(10, job)
        assert await scheduler.run_pending() == 1
        scheduler.cancel(handle)
        assert await scheduler.run_pending() == 0
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_asyncio_scheduler_repeats(self):
        scheduler = AsyncioScheduler()
        calls = []

        async def job():
            calls.append(1)

        handle = scheduler.every(0.01, job)
        await asyncio.sleep(0.1)
        scheduler.cancel(handle)
        await scheduler.shutdown()
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_asyncio_scheduler_survives_failures(self):
        scheduler = AsyncioScheduler()
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first run fails")

        scheduler.every(0.01, flaky)
        await asyncio.sleep(0.1)
        await scheduler.shutdown()
        assert len(calls) >= 2
