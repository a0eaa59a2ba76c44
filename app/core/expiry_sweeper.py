"""Background sweeper that expires delegations whose window has ended.

Runs once at startup and then on a fixed interval (hourly by default). Each
run is a single bulk UPDATE, so runs are independent and idempotent: a failed
run is logged and the next tick simply tries again, which at worst detects an
expiry one interval late.
"""

import asyncio
from datetime import datetime

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.clock import Clock, system_clock
from app.core.delegation_repository import DelegationRepository
from app.logging_config import get_logger

logger = get_logger(__name__)


class ExpirySweeper:
    """Cancellable periodic task bound to the application lifespan.

    Configuration:
        interval_seconds: Seconds between sweeps (default: 3600)
        run_on_startup: Sweep immediately when started (default: True)

    Metrics:
        runs_total: Successful sweeps
        expired_total: Delegations expired across all sweeps
        failed_total: Sweeps that raised
        last_run_at: Reference time of the last successful sweep
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        clock: Clock = system_clock,
        interval_seconds: int = 3600,
        run_on_startup: bool = True,
    ):
        """Initialize ExpirySweeper.

        Args:
            session_factory: Factory producing AsyncSession instances
            clock: Time source for the sweep reference time
            interval_seconds: Sweep period
            run_on_startup: Whether the first sweep happens immediately
        """
        self.session_factory = session_factory
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.run_on_startup = run_on_startup

        self._running = False
        self._task: asyncio.Task | None = None

        self.metrics: dict = {
            "runs_total": 0,
            "expired_total": 0,
            "failed_total": 0,
            "last_run_at": None,
        }

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the sweeper background task."""
        if self._running:
            logger.warning("expiry_sweeper_already_running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run(), name="delegation-expiry-sweeper")
        logger.info(
            "expiry_sweeper_started",
            interval_seconds=self.interval_seconds,
            run_on_startup=self.run_on_startup,
        )

    async def stop(self) -> None:
        """Stop the sweeper background task and wait for it to finish."""
        if not self._running:
            logger.warning("expiry_sweeper_not_running")
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("expiry_sweeper_stopped")

    async def _run(self) -> None:
        """Main sweeper loop."""
        if not self.run_on_startup:
            await asyncio.sleep(self.interval_seconds)

        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                self.metrics["failed_total"] += 1
                logger.error("expiry_sweep_failed", error=str(e), exc_info=True)

            await asyncio.sleep(self.interval_seconds)

    async def run_once(self, at: datetime | None = None) -> int:
        """Expire every delegation whose window ended before ``at``.

        Args:
            at: Reference time, defaults to clock.now()

        Returns:
            Number of delegations expired by this run
        """
        at = at or self.clock.now()
        async with self.session_factory() as session:
            expired = await DelegationRepository.sweep_expired(session, at)
            await session.commit()

        self.metrics["runs_total"] += 1
        self.metrics["expired_total"] += expired
        self.metrics["last_run_at"] = at

        if expired:
            logger.info("delegations_auto_expired", count=expired, at=at.isoformat())
        else:
            logger.debug("expiry_sweep_noop", at=at.isoformat())
        return expired

    def get_metrics(self) -> dict:
        """Get sweeper metrics."""
        return self.metrics.copy()
