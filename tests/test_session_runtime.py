import asyncio

import pytest

from app.services.behavior_engine.monitor import SNAPSHOT_KEY, WritingMonitor
from app.services.behavior_engine.states import TriggerReason
from app.services.session_runtime import MonitorSession, PeriodicTask, SessionRegistry


class RecordingSink:
    def __init__(self):
        self.batches = []

    async def send(self, session_id, records):
        self.batches.append((session_id, list(records)))


class BlockingSink:
    """Holds every send open until released."""

    def __init__(self):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.batches = []

    async def send(self, session_id, records):
        self.entered.set()
        await self.release.wait()
        self.batches.append(list(records))


class TestPeriodicTask:

    @pytest.mark.asyncio
    async def test_runs_until_stopped(self):
        calls = []
        task = PeriodicTask("tick", 0.01, lambda: calls.append(1))
        task.start()
        await asyncio.sleep(0.1)
        await task.stop()
        count = len(calls)
        assert count >= 1
        assert not task.running

        await asyncio.sleep(0.05)
        assert len(calls) == count

    @pytest.mark.asyncio
    async def test_failing_run_does_not_stop_the_loop(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise ValueError("boom")

        task = PeriodicTask("flaky", 0.01, flaky)
        task.start()
        await asyncio.sleep(0.1)
        await task.stop()
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_awaits_coroutine_callbacks(self):
        calls = []

        async def tick():
            calls.append(1)

        task = PeriodicTask("async-tick", 0.01, tick)
        task.start()
        await asyncio.sleep(0.1)
        await task.stop()
        assert calls

    @pytest.mark.asyncio
    async def test_stop_before_start_is_noop(self):
        task = PeriodicTask("idle", 1.0, lambda: None)
        await task.stop()
        assert not task.running


class TestMonitorSession:

    def test_decision_tick_queues_payloads(self, clock):
        session = MonitorSession("s1", WritingMonitor(clock=clock))
        assert session.decision_tick() is None

        clock.advance(11)
        payload = session.decision_tick()
        assert payload.trigger_reason == TriggerReason.IDEA_SPARK

        drained = session.drain_triggers()
        assert drained == [payload]
        assert session.drain_triggers() == []

    def test_on_trigger_callback_replaces_queue(self, clock):
        seen = []
        session = MonitorSession(
            "s1",
            WritingMonitor(clock=clock),
            on_trigger=lambda s, p: seen.append((s.session_id, p.trigger_reason)),
        )
        clock.advance(11)
        session.decision_tick()
        assert seen == [("s1", TriggerReason.IDEA_SPARK)]
        assert session.drain_triggers() == []

    @pytest.mark.asyncio
    async def test_close_flushes_with_snapshot_after_stopping_decisions(self, clock):
        sink = RecordingSink()
        monitor = WritingMonitor(clock=clock)
        session = MonitorSession("s1", monitor, sink=sink, log_session_id="log-1",
                                 decision_interval=3600, flush_interval=3600)
        session.start()
        assert session.running

        monitor.on_input_event("a")
        monitor.on_input_event("b")
        await session.close()

        assert not session.running
        assert len(sink.batches) == 1
        log_session_id, records = sink.batches[0]
        assert log_session_id == "log-1"
        assert [r.raw_key for r in records] == ["a", "b", SNAPSHOT_KEY]

        # Closing twice does not flush twice
        await session.close()
        assert len(sink.batches) == 1

    @pytest.mark.asyncio
    async def test_close_waits_for_in_flight_flush(self, clock):
        sink = BlockingSink()
        monitor = WritingMonitor(clock=clock)
        session = MonitorSession("s1", monitor, sink=sink, log_session_id="log-1",
                                 decision_interval=3600, flush_interval=0.01)
        monitor.on_input_event("a")
        session.start()
        await asyncio.wait_for(sink.entered.wait(), timeout=1.0)

        closing = asyncio.ensure_future(session.close())
        await asyncio.sleep(0.05)
        sink.release.set()
        await asyncio.wait_for(closing, timeout=1.0)

        keys = [r.raw_key for batch in sink.batches for r in batch]
        assert keys == ["a", SNAPSHOT_KEY]
        assert session.flusher.batches_dropped == 0
        assert not session.running

    @pytest.mark.asyncio
    async def test_log_session_can_be_attached_later(self, clock):
        sink = RecordingSink()
        monitor = WritingMonitor(clock=clock)
        session = MonitorSession("s1", monitor, sink=sink)

        monitor.on_input_event("a")
        assert await session.flusher.flush_tick() == 0
        assert len(monitor.log_buffer) == 1

        session.log_session_id = "log-2"
        assert await session.flusher.flush_tick() == 1
        assert sink.batches[0][0] == "log-2"


class TestSessionRegistry:

    @pytest.mark.asyncio
    async def test_create_get_close(self, clock):
        registry = SessionRegistry(clock=clock, decision_interval=3600, flush_interval=3600)
        session = registry.create(log_session_id="log-1")
        assert session.session_id in registry
        assert registry.get(session.session_id) is session
        assert session.running

        await registry.close(session.session_id)
        assert session.session_id not in registry
        assert not session.running
        with pytest.raises(KeyError):
            registry.get(session.session_id)

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self, clock):
        registry = SessionRegistry(clock=clock)
        first = registry.create(start=False)
        second = registry.create(start=False)
        assert first.monitor is not second.monitor

        first.monitor.update_content("hello", 5)
        assert second.monitor.doc_length == 0
        assert len(registry) == 2

        await registry.close_all()
        assert len(registry) == 0
