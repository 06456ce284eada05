import logging
from typing import Callable, Optional

from .buffer import LogBuffer, LogRecord
from .sink import LogSink

logger = logging.getLogger(__name__)


class LogFlusher:
    """
    Best-effort shipper for the log buffer.

    Each tick either ships the whole buffer to the current session or, when
    there is no destination, keeps it under the soft cap. A failed send drops
    the batch for good: the logs are diagnostics, and the decision loop must
    never depend on their delivery.
    """

    def __init__(
        self,
        buffer: LogBuffer,
        sink: Optional[LogSink],
        session_provider: Callable[[], Optional[str]],
    ):
        self.buffer = buffer
        self.sink = sink
        self.session_provider = session_provider

        self.batches_sent = 0
        self.batches_dropped = 0
        self.records_dropped = 0

    async def flush_tick(self) -> int:
        """Run one flush evaluation. Returns the number of records shipped."""
        if len(self.buffer) == 0:
            return 0

        session_id = self.session_provider()
        if self.sink is None or not session_id:
            # No destination yet: normal state, not an error
            self.records_dropped += self.buffer.enforce_cap()
            return 0

        batch = self.buffer.drain()
        try:
            await self.sink.send(session_id, batch)
        except Exception as e:
            self.batches_dropped += 1
            self.records_dropped += len(batch)
            logger.warning(f"Log flush failed for session {session_id}, dropping {len(batch)} records: {e}")
            return 0

        self.batches_sent += 1
        logger.info(f"Flushed {len(batch)} log records to session {session_id}")
        return len(batch)

    async def force_flush(self, snapshot_record: LogRecord) -> int:
        """Mark the moment with a synthetic snapshot record, then flush."""
        self.buffer.append(snapshot_record)
        return await self.flush_tick()
