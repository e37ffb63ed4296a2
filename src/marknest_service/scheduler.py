"""
Daily trash cleanup scheduling.

Runs the document sweep on a cron trigger (02:00 by default) with
APScheduler. Within one process the job never overlaps itself
(max_instances=1, coalesce=True); across processes the sweeper's TaskLock
makes a concurrent run skip. Sweep output is appended to the cleanup log
file in addition to the normal log stream.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from .config.settings import Settings
from .core.trash_sweeper import TrashSweeper, SweepReport
from .infrastructure.database.client import DatabaseClient

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JOB_ID = "cleanup_trashed_documents"

# Loggers whose output belongs in the cleanup log file
CLEANUP_LOGGERS = (
    __name__,
    "marknest_service.core.trash_sweeper",
    "marknest_service.core.task_lock",
)


class CleanupScheduler:
    """Owns the AsyncIOScheduler that triggers the daily document sweep."""

    def __init__(self, sweeper: TrashSweeper, settings: Settings):
        self.sweeper = sweeper
        self.settings = settings
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._log_handler: Optional[logging.Handler] = None
        self.last_report: Optional[SweepReport] = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    async def run_cleanup(self) -> SweepReport:
        """Scheduled job: sweep trashed documents without asking for confirmation."""
        logger.info("Scheduled trash cleanup started")
        try:
            report = await self.sweeper.sweep_documents()
        except Exception as e:
            logger.exception(f"Scheduled trash cleanup failed: {e}")
            raise
        self.last_report = report
        if report.failed_ids:
            logger.warning(f"Documents that could not be purged: {', '.join(report.failed_ids)}")
        return report

    def start(self):
        """Start the scheduler. Must be called with a running event loop."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self._attach_log_file()
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.scheduler.add_job(
            self.run_cleanup,
            CronTrigger(
                hour=self.settings.cleanup_schedule_hour,
                minute=self.settings.cleanup_schedule_minute,
                timezone="UTC",
            ),
            id=JOB_ID,
            name="Permanently delete documents past the trash retention window",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(
            f"Cleanup scheduler started (daily at "
            f"{self.settings.cleanup_schedule_hour:02d}:{self.settings.cleanup_schedule_minute:02d} UTC)"
        )

    def shutdown(self):
        if self.scheduler is None:
            return
        self.scheduler.shutdown(wait=False)
        self.scheduler = None
        self._detach_log_file()
        logger.info("Cleanup scheduler stopped")

    def _attach_log_file(self):
        path = Path(self.settings.cleanup_log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        for name in CLEANUP_LOGGERS:
            logging.getLogger(name).addHandler(handler)
        self._log_handler = handler

    def _detach_log_file(self):
        if self._log_handler is None:
            return
        for name in CLEANUP_LOGGERS:
            logging.getLogger(name).removeHandler(self._log_handler)
        self._log_handler.close()
        self._log_handler = None


async def run_scheduler(settings: Settings, stop_event: Optional[asyncio.Event] = None):
    """
    Run the cleanup scheduler in the foreground until cancelled.

    Args:
        settings: Application settings
        stop_event: Optional event that ends the loop when set
    """
    db_client = DatabaseClient(settings.database_url, echo=settings.database_echo)
    await db_client.verify_connection()

    sweeper = TrashSweeper(db_client, settings.retention(), settings.task_lock_expiry_minutes)
    cleanup = CleanupScheduler(sweeper, settings)
    cleanup.start()

    stop_event = stop_event or asyncio.Event()
    try:
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Scheduler cancelled")
    finally:
        cleanup.shutdown()
        await db_client.close()

