"""Periodic trigger for the nudge evaluator."""

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from lumen_flow.nudges.evaluator import NudgeEvaluator, RunResult
from lumen_flow.utils.config import Config

logger = logging.getLogger(__name__)

JOB_ID = "evaluate_nudges"


class NudgeScheduler:
    """Runs the nudge evaluator on a fixed interval.

    The job is registered with ``max_instances=1`` and ``coalesce=True``, so
    runs never overlap within a process and missed runs collapse into one.
    """

    def __init__(self, config: Config, evaluator: NudgeEvaluator | None = None):
        self.config = config
        self.evaluator = evaluator or NudgeEvaluator(config)
        self._scheduler: AsyncIOScheduler | None = None
        self.last_result: RunResult | None = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    async def start(self, run_immediately: bool = True) -> None:
        """Start the scheduler.

        Args:
            run_immediately: Also run one pass right away
        """
        if self._scheduler is not None:
            logger.warning("Nudge scheduler is already running")
            return
        if not self.config.nudges.enabled:
            logger.info("Nudges are disabled in config, scheduler not started")
            return

        interval = self.config.nudges.interval_minutes
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._run_job,
            trigger=IntervalTrigger(minutes=interval),
            id=JOB_ID,
            name="Evaluate notification nudges",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(f"Nudge scheduler started, running every {interval} minutes")

        if run_immediately:
            await self._run_job()

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._scheduler is None:
            logger.warning("Nudge scheduler is not running")
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Nudge scheduler stopped")

    async def _run_job(self) -> RunResult | None:
        # The evaluator is synchronous; keep the event loop responsive
        try:
            self.last_result = await asyncio.to_thread(self.evaluator.run)
        except Exception as e:
            logger.error(f"Nudge run failed: {e}")
            return None
        return self.last_result

    def run_once(self) -> RunResult:
        """Run one evaluator pass synchronously."""
        self.last_result = self.evaluator.run()
        return self.last_result
