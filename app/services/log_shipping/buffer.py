import logging
from dataclasses import dataclass
from typing import List

from app.services.behavior_engine.events import SinkType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogRecord:
    timestamp_ms: int
    raw_key: str
    sink_type: SinkType
    cursor_offset: int

    def to_wire(self) -> dict:
        # Keystroke-log schema of the sink: {t, k, type, pos}
        return {
            "t": self.timestamp_ms,
            "k": self.raw_key,
            "type": self.sink_type.value,
            "pos": self.cursor_offset,
        }


class LogBuffer:
    """
    Per-event log records waiting to be shipped.

    Unbounded between flush ticks; the flusher calls enforce_cap when it has
    nowhere to send, so memory stays bounded under sustained backpressure.
    """

    def __init__(self, soft_cap: int = 5000):
        self.soft_cap = soft_cap
        self._records: List[LogRecord] = []

    def append(self, record: LogRecord) -> None:
        self._records.append(record)

    def drain(self) -> List[LogRecord]:
        """Swap out the whole buffer. Never partial."""
        batch, self._records = self._records, []
        return batch

    def enforce_cap(self) -> int:
        """Drop the oldest records beyond the soft cap. Returns how many were dropped."""
        overflow = len(self._records) - self.soft_cap
        if overflow <= 0:
            return 0
        del self._records[:overflow]
        logger.warning(f"Log buffer over soft cap ({self.soft_cap}); dropped {overflow} oldest records")
        return overflow

    def clear(self) -> None:
        self._records = []

    def snapshot(self) -> List[LogRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)
