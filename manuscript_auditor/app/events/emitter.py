from __future__ import annotations

from typing import Protocol

from manuscript_auditor.app.events.models import AuditEvent


class AuditEventEmitter(Protocol):
    """
    Interface for broadcasting validation progress.

    Implementations must be:
    - non-blocking (or minimally blocking)
    - fail-safe (emission failures must not crash the run)
    - observational only
    """

    async def emit(self, event: AuditEvent) -> None:
        ...


class NullEventEmitter:
    """
    A safe no-op emitter, used whenever nobody is listening.
    """

    async def emit(self, event: AuditEvent) -> None:
        return
