# paperinsight/scheduler/scheduler_service.py

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.triggers.cron import CronTrigger

from paperinsight.config import Config
from paperinsight.jobs.daily_arxiv import run_daily_arxiv_job

logger = logging.getLogger(__name__)


class SchedulerService:
    """
    Long-running scheduler service.

    - Starts APScheduler (background thread)
    - Registers the daily arXiv fetch from config
    - Analysis jobs do NOT go through here; they run as asyncio tasks
    """

    JOB_DAILY_ARXIV = "daily_arxiv"

    def __init__(self, scheduler_config=None):
        self.config = scheduler_config or Config.scheduler
        self.scheduler = BackgroundScheduler(
            timezone=self.config.timezone,
            executors={"default": ThreadPoolExecutor(max_workers=1)},
        )
        self._started = False

    # --------------------------------------------------
    # Lifecycle
    # --------------------------------------------------

    def start(self) -> None:
        """
        Start scheduler (idempotent).
        """
        if self._started:
            return

        if not self.config.enabled:
            logger.info("⏸ Scheduler disabled by config")
            return

        logger.info("⏱ Starting SchedulerService...")
        self.scheduler.start()
        self.reload()
        self._started = True

    def shutdown(self) -> None:
        """
        Graceful shutdown.
        """
        if not self._started:
            return

        logger.info("🛑 Stopping SchedulerService...")
        self.scheduler.shutdown(wait=False)
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    # --------------------------------------------------
    # Reload logic
    # --------------------------------------------------

    def reload(self) -> None:
        """
        Reload all jobs from config.

        Safe to call multiple times.
        """
        logger.info("🔄 Reloading scheduler jobs...")

        self.scheduler.remove_all_jobs()
        self._add_daily_arxiv(job_id=self.JOB_DAILY_ARXIV, cron_expr=self.config.daily_fetch_job)

        self._log_jobs()

    # --------------------------------------------------
    # Job registration
    # --------------------------------------------------

    def _add_daily_arxiv(self, job_id: str, cron_expr: str) -> None:
        trigger = CronTrigger.from_crontab(cron_expr, timezone=self.config.timezone)

        self.scheduler.add_job(
            run_daily_arxiv_job,
            trigger=trigger,
            kwargs={
                "query": self.config.daily_fetch_query,
                "max_results": self.config.daily_fetch_max_results,
            },
            id=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
        )

        logger.info(f"✅ Job registered: {job_id} ({cron_expr})")

    # --------------------------------------------------
    # Debug helpers
    # --------------------------------------------------

    def _log_jobs(self) -> None:
        jobs = self.scheduler.get_jobs()
        if not jobs:
            logger.warning("⚠️ No scheduled jobs")
            return

        logger.info("📅 Active jobs:")
        for job in jobs:
            logger.info(f"  - {job.id} | next run at {job.next_run_time}")
