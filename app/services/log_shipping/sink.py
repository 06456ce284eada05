"""
Log sinks: where drained keystroke-log batches go.

The sink is an external collaborator. HttpLogSink posts batches to the
application's log endpoint using httpx for async HTTP.
"""

import logging
from typing import List, Optional, Protocol

import httpx

from .buffer import LogRecord

logger = logging.getLogger(__name__)


class LogSink(Protocol):
    async def send(self, session_id: str, records: List[LogRecord]) -> None:
        ...


class HttpLogSink:
    """POSTs {session_id, events} batches; raises on transport errors or non-2xx."""

    def __init__(self, url: str, timeout: float = 5.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def send(self, session_id: str, records: List[LogRecord]) -> None:
        body = {
            "session_id": session_id,
            "events": [r.to_wire() for r in records],
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.post(self.url, json=body)
            resp.raise_for_status()
        logger.debug(f"Shipped {len(records)} log records for session {session_id}")
