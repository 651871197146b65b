from apscheduler.schedulers.asyncio import AsyncIOScheduler
from adventure.crud import session_store
from adventure.core.config import settings
import logging

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")

async def prune_inactive_sessions_job():
    """
    An async job function wrapper to be called by the scheduler.
    """
    logger.info("Scheduled job: Starting cleanup of inactive sessions...")
    try:
        deleted_count = session_store.remove_inactive_sessions(
            session_store.get_store(),
            inactive_hours=settings.INACTIVE_SESSION_CLEANUP_HOURS
        )
        logger.info(f"Scheduled job: Cleanup finished. Deleted {deleted_count} inactive sessions.")
    except Exception as e:
        logger.error(f"Scheduled job failed: {e}")

def setup_scheduler():
    """
    Adds jobs to the scheduler.
    """
    scheduler.add_job(
        prune_inactive_sessions_job,
        'interval',
        hours=settings.INACTIVE_SESSION_CLEANUP_HOURS,
        id="prune_sessions_job",
        replace_existing=True
    )
    logger.info("Cleanup job has been added to the scheduler. It will run every %d hours.", settings.INACTIVE_SESSION_CLEANUP_HOURS)
