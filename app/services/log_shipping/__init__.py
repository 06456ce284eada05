"""
Log Shipping - best-effort keystroke-log pipeline.

Buffers per-event records and ships them in batches on its own timer,
independent of trigger decisions.
"""

from .buffer import LogBuffer, LogRecord
from .flusher import LogFlusher
from .sink import HttpLogSink, LogSink

__all__ = ["LogBuffer", "LogRecord", "LogFlusher", "HttpLogSink", "LogSink"]
