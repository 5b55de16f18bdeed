"""Background runner for the enforcement guard and the trial sweep."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from tenant_access.application.enforcement_guard import (
    AccessCheckpoint,
    AccessDecision,
    EnforcementGuard,
)
from tenant_access.domain.interfaces import IdentitySession, IIdentityProvider

logger = structlog.get_logger(__name__)


class SessionStatusMonitor:
    """
    Runs the guard on sign-in and then every ``interval_minutes``.

    Lifecycle: ``start()`` subscribes to session changes and starts the
    periodic task; ``shutdown()`` unsubscribes, cancels the task and waits
    for in-flight sign-in checks. Overlapping runs are allowed.
    """

    def __init__(
        self,
        guard: EnforcementGuard,
        identity: IIdentityProvider,
        interval_minutes: int = 10,
    ):
        self._guard = guard
        self._identity = identity
        self._interval = interval_minutes
        self._task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._sign_in_checks: set = set()
        self._shutdown = False
        self.last_decision: Optional[AccessDecision] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._shutdown = False
        self._unsubscribe = self._identity.on_session_change(self._on_session_change)
        self._task = asyncio.create_task(self._check_loop())
        logger.info("Session status monitor started", interval_minutes=self._interval)

    async def shutdown(self) -> None:
        self._shutdown = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._sign_in_checks:
            await asyncio.gather(*list(self._sign_in_checks), return_exceptions=True)
        logger.info("Session status monitor stopped")

    async def run_check(
        self, checkpoint: AccessCheckpoint = AccessCheckpoint.PERIODIC
    ) -> AccessDecision:
        decision = await self._guard.check_access(checkpoint)
        self.last_decision = decision
        if not decision.allowed:
            logger.info(
                "Session ended by status monitor",
                tenant_id=decision.tenant_id,
                checkpoint=checkpoint.value,
                redirect_url=decision.redirect_url,
            )
        return decision

    def _on_session_change(self, session: Optional[IdentitySession]) -> None:
        if session is None or self._shutdown:
            return
        task = asyncio.create_task(self.run_check(AccessCheckpoint.SIGN_IN))
        self._sign_in_checks.add(task)
        task.add_done_callback(self._sign_in_checks.discard)

    async def _check_loop(self) -> None:
        while not self._shutdown:
            try:
                await asyncio.sleep(self._interval * 60)
                await self.run_check(AccessCheckpoint.PERIODIC)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.warning("Error during periodic subscription check", error=str(e))


class PeriodicTrialSweep:
    """Runs the trial expiry sweep on a fixed interval."""

    def __init__(
        self,
        sweep: Callable[[], Awaitable[object]],
        interval_minutes: int = 60,
    ):
        self._sweep = sweep
        self._interval = interval_minutes
        self._task: Optional[asyncio.Task] = None
        self._shutdown = False

    def start(self) -> None:
        if self._interval <= 0:
            logger.info("Periodic trial sweep disabled")
            return
        if self._task is None or self._task.done():
            self._shutdown = False
            self._task = asyncio.create_task(self._sweep_loop())
            logger.info("Periodic trial sweep started", interval_minutes=self._interval)

    async def shutdown(self) -> None:
        self._shutdown = True
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _sweep_loop(self) -> None:
        while not self._shutdown:
            try:
                await asyncio.sleep(self._interval * 60)
                await self._sweep()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.warning("Error during periodic trial sweep", error=str(e))


__all__ = ["PeriodicTrialSweep", "SessionStatusMonitor"]
