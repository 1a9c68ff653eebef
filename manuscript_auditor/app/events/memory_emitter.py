from __future__ import annotations

import math
from typing import AsyncIterator, List

import anyio

from manuscript_auditor.app.events.models import AuditEvent, AuditEventType
from manuscript_auditor.app.events.emitter import AuditEventEmitter


_TERMINAL_EVENTS = {
    AuditEventType.AUDIT_COMPLETED,
    AuditEventType.AUDIT_FAILED,
}


class MemoryQueueEventEmitter(AuditEventEmitter):
    """
    In-memory event emitter backed by an unbounded anyio memory stream.

    Properties:
    - single-consumer
    - non-blocking for the validation path
    - deterministic ordering
    - closes itself on audit completion or failure
    """

    def __init__(self) -> None:
        self._send, self._receive = anyio.create_memory_object_stream(math.inf)
        self._closed = False
        self.history: List[AuditEvent] = []

    async def emit(self, event: AuditEvent) -> None:
        if self._closed:
            return

        self.history.append(event)

        try:
            self._send.send_nowait(event)
        except (anyio.BrokenResourceError, anyio.ClosedResourceError):
            # Consumer went away; observability never breaks the run
            self._closed = True
            return

        if event.event_type in _TERMINAL_EVENTS:
            await self.close()

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            await self._send.aclose()

    async def stream(self) -> AsyncIterator[AuditEvent]:
        """
        Async generator yielding emitted events in order.
        """
        async with self._receive:
            async for event in self._receive:
                yield event
