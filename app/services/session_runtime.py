"""
Session runtime - ownership scope and timers for writing monitors.

Each editing session gets its own WritingMonitor, LogFlusher and two periodic
tasks (decision tick, flush tick). Everything runs on the asyncio event loop,
so timer callbacks only ever interleave with request handlers between awaits.
"""

import asyncio
import logging
import uuid
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional

from app.config import MonitorPolicy
from app.services.behavior_engine.monitor import WritingMonitor
from app.services.behavior_engine.trigger_engine import TriggerPayload
from app.services.log_shipping import LogFlusher, LogSink

logger = logging.getLogger(__name__)

PENDING_TRIGGER_CAPACITY = 20

TickCallback = Callable[[], Any]
TriggerCallback = Callable[["MonitorSession", TriggerPayload], None]


class PeriodicTask:
    """
    Run `callback` every `interval` seconds on the running event loop.

    The next run starts only after the previous one finished, so runs never
    overlap. A failing run is logged and the loop keeps going. stop() lets an
    in-flight run finish before the loop exits.
    """

    def __init__(self, name: str, interval: float, callback: TickCallback):
        self.name = name
        self.interval = interval
        self.callback = callback
        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        self._stopping.set()
        await task

    async def _run(self) -> None:
        stopping = self._stopping
        while True:
            try:
                await asyncio.wait_for(stopping.wait(), timeout=self.interval)
                return
            except asyncio.TimeoutError:
                pass
            try:
                result = self.callback()
                if asyncio.iscoroutine(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Periodic task {self.name} failed: {e}", exc_info=True)


class MonitorSession:
    """One active editing session: monitor, log pipeline and timers."""

    def __init__(
        self,
        session_id: str,
        monitor: WritingMonitor,
        sink: Optional[LogSink] = None,
        log_session_id: Optional[str] = None,
        decision_interval: float = 1.0,
        flush_interval: float = 5.0,
        on_trigger: Optional[TriggerCallback] = None,
    ):
        self.session_id = session_id
        self.monitor = monitor
        # Destination for shipped logs; None until the application has one
        self.log_session_id = log_session_id
        self.on_trigger = on_trigger

        self.flusher = LogFlusher(monitor.log_buffer, sink, lambda: self.log_session_id)
        self.pending_triggers: Deque[TriggerPayload] = deque(maxlen=PENDING_TRIGGER_CAPACITY)

        self._decision_task = PeriodicTask(f"decision-{session_id}", decision_interval, self.decision_tick)
        self._flush_task = PeriodicTask(f"flush-{session_id}", flush_interval, self.flusher.flush_tick)
        self.closed = False

    def start(self) -> None:
        self._decision_task.start()
        self._flush_task.start()
        logger.info(f"Monitor session {self.session_id} started")

    @property
    def running(self) -> bool:
        return self._decision_task.running or self._flush_task.running

    def decision_tick(self) -> Optional[TriggerPayload]:
        payload = self.monitor.check_status()
        if payload is None:
            return None
        self.dispatch(payload)
        return payload

    def dispatch(self, payload: TriggerPayload) -> None:
        if self.on_trigger is not None:
            self.on_trigger(self, payload)
        else:
            self.pending_triggers.append(payload)

    def drain_triggers(self) -> List[TriggerPayload]:
        drained = list(self.pending_triggers)
        self.pending_triggers.clear()
        return drained

    async def close(self) -> None:
        """Teardown: stop deciding, force a final flush, then stop the flush timer."""
        if self.closed:
            return
        self.closed = True
        await self._decision_task.stop()
        await self.flusher.force_flush(self.monitor.snapshot_log_record())
        await self._flush_task.stop()
        logger.info(f"Monitor session {self.session_id} closed")


class SessionRegistry:
    """Owns every live MonitorSession; sessions are never global."""

    def __init__(
        self,
        sink: Optional[LogSink] = None,
        policy: Optional[MonitorPolicy] = None,
        decision_interval: float = 1.0,
        flush_interval: float = 5.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.sink = sink
        self.policy = policy or MonitorPolicy()
        self.decision_interval = decision_interval
        self.flush_interval = flush_interval
        self.clock = clock
        self._sessions: Dict[str, MonitorSession] = {}

    def create(self, log_session_id: Optional[str] = None, start: bool = True) -> MonitorSession:
        session_id = uuid.uuid4().hex
        monitor = (
            WritingMonitor(policy=self.policy, clock=self.clock)
            if self.clock is not None
            else WritingMonitor(policy=self.policy)
        )
        session = MonitorSession(
            session_id=session_id,
            monitor=monitor,
            sink=self.sink,
            log_session_id=log_session_id,
            decision_interval=self.decision_interval,
            flush_interval=self.flush_interval,
        )
        self._sessions[session_id] = session
        if start:
            session.start()
        return session

    def get(self, session_id: str) -> MonitorSession:
        return self._sessions[session_id]

    async def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id)
        await session.close()

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
