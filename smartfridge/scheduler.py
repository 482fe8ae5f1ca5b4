"""Scheduled expiry check for the fridge inventory."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class ExpiryScheduler:
    """Runs the daily check for products about to expire.

    Uses APScheduler for cron-based scheduling.
    """

    def __init__(self, config, inventory) -> None:
        """Initialize scheduler with a FridgeConfig and an InventoryDB.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.cron import CronTrigger
        except ImportError:
            raise ImportError("apscheduler is required: pip install apscheduler")

        self._config = config
        self._inventory = inventory
        self._scheduler = AsyncIOScheduler()
        self._CronTrigger = CronTrigger
        self._running = False

    def setup_jobs(self) -> None:
        """Register scheduled jobs based on config."""
        schedule = self._config.scheduler.expiry_check_schedule
        self._scheduler.add_job(
            self._job_check_expiring,
            trigger=self._parse_cron(schedule),
            id="expiry_check",
            name="Expiring products check",
            replace_existing=True,
        )
        logger.info("Registered expiry check job: %s", schedule)

    def start(self) -> None:
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    def stop(self) -> None:
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(next_run) if next_run else None,
            })
        return jobs

    def _parse_cron(self, expr: str):
        """Parse a cron expression into a CronTrigger."""
        parts = expr.split()
        if len(parts) == 5:
            return self._CronTrigger(
                minute=parts[0],
                hour=parts[1],
                day=parts[2],
                month=parts[3],
                day_of_week=parts[4],
            )
        raise ValueError(f"Invalid cron expression: {expr}")

    def check_expiring(self) -> list[dict]:
        """Return the products expiring within ``warn_days`` and log them."""
        days = self._config.scheduler.warn_days
        expiring = self._inventory.get_expiring(days)
        if expiring:
            logger.warning("%d products expiring within %d days", len(expiring), days)
            for product in expiring:
                logger.info(
                    "  %s (%s) expires %s",
                    product["name"] or product["barcode"],
                    product["category"] or "-",
                    product["expiry_date"],
                )
        return expiring

    async def _job_check_expiring(self) -> None:
        logger.info("Checking expiring products...")
        try:
            self.check_expiring()
        except Exception:
            logger.exception("Expiry check failed")
