"""Local identity provider used for development and tests."""

from __future__ import annotations

import inspect
from typing import Dict, List, Optional

import structlog

from tenant_access.domain.interfaces import (
    IdentitySession,
    IIdentityProvider,
    SessionChangeCallback,
)

logger = structlog.get_logger(__name__)


class LocalIdentityProvider(IIdentityProvider):
    """Tracks sessions in memory and notifies listeners on sign-in and sign-out.

    Only one session is current at a time, matching a single browser tab.
    """

    def __init__(self):
        self._sessions: Dict[str, IdentitySession] = {}
        self._current_id: Optional[str] = None
        self._listeners: List[SessionChangeCallback] = []
        self.terminated: List[str] = []

    async def current_session(self) -> Optional[IdentitySession]:
        if self._current_id is None:
            return None
        return self._sessions.get(self._current_id)

    def on_session_change(self, callback: SessionChangeCallback):
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def sign_in(self, session: IdentitySession) -> IdentitySession:
        self._sessions[session.session_id] = session
        self._current_id = session.session_id
        logger.info("Session started", session_id=session.session_id, tenant_id=session.tenant_id)
        await self._notify(session)
        return session

    async def terminate_session(self, session_id: str) -> None:
        removed = self._sessions.pop(session_id, None)
        if removed is None:
            return
        self.terminated.append(session_id)
        if self._current_id == session_id:
            self._current_id = None
        logger.info("Session terminated", session_id=session_id, tenant_id=removed.tenant_id)
        await self._notify(None)

    async def _notify(self, session: Optional[IdentitySession]) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(session)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.error(
                    "Session change listener failed",
                    listener=getattr(listener, "__name__", repr(listener)),
                    error=str(exc),
                )


__all__ = ["LocalIdentityProvider"]
