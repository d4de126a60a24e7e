"""
Background refresh of the portfolio on a fixed interval.
"""

import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

JOB_ID = 'portfolio_refresh'


class PortfolioPoller:
    """Runs PortfolioService.refresh every interval_seconds until stopped"""

    def __init__(self, portfolio_service, interval_seconds: int = 300):
        self.portfolio_service = portfolio_service
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def _tick(self):
        try:
            self.portfolio_service.refresh()
        except Exception as e:
            # Keep the timer alive; the last good summary stays in place
            logger.error(f"Scheduled portfolio refresh failed: {str(e)}")

    def start(self) -> BackgroundScheduler:
        if self._scheduler is not None:
            return self._scheduler

        scheduler = BackgroundScheduler()
        scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler

        logger.info(f"Portfolio poller started, every {self.interval_seconds}s")
        return scheduler

    def stop(self):
        """Cancel the timer; safe to call more than once"""
        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Portfolio poller stopped")
