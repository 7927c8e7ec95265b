import logging
from typing import Any, Awaitable, Callable, List, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


class SyncScheduler:
    """One recurring APScheduler job per auto-synced table."""

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler()

    @staticmethod
    def job_id(table: str) -> str:
        return f"sync_{table}"

    def schedule(
        self,
        table: str,
        interval_seconds: int,
        job: Callable[..., Awaitable[Any]],
        *args: Any
    ):
        """(Re)arm the job of ``table``; other tables are untouched."""
        self.cancel(table)
        self.scheduler.add_job(
            job,
            trigger=IntervalTrigger(seconds=interval_seconds),
            args=list(args),
            id=self.job_id(table),
            name=f"Sync {table}",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        logger.info(f"Scheduled {table} sync every {interval_seconds}s")

    def cancel(self, table: str) -> bool:
        job_id = self.job_id(table)
        if self.scheduler.get_job(job_id) is None:
            return False
        self.scheduler.remove_job(job_id)
        logger.info(f"Cancelled scheduled sync for {table}")
        return True

    def cancel_all(self):
        for job in self.scheduler.get_jobs():
            if job.id.startswith("sync_"):
                self.scheduler.remove_job(job.id)

    def is_scheduled(self, table: str) -> bool:
        return self.scheduler.get_job(self.job_id(table)) is not None

    def scheduled_tables(self) -> List[str]:
        return [
            job.id[len("sync_"):]
            for job in self.scheduler.get_jobs()
            if job.id.startswith("sync_")
        ]

    def interval_of(self, table: str) -> Optional[float]:
        job = self.scheduler.get_job(self.job_id(table))
        if job is None:
            return None
        return job.trigger.interval.total_seconds()

    def start(self):
        """Start the scheduler"""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Sync scheduler started")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Sync scheduler stopped")
