"""
Background Scheduler - Periodic Reference Data Refresh

Benchmark curves and the job catalog are versioned files that can be
replaced on disk without a deploy. This module reloads them on a fixed
interval using APScheduler.

Default Schedule: Every 24 hours (configurable via REFERENCE_REFRESH_HOURS)

A failed reload keeps the previously loaded version active.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from skillbench.config import get_settings
from skillbench.services.reference_data import ReferenceDataStore

logger = logging.getLogger(__name__)

settings = get_settings()
scheduler = AsyncIOScheduler()


async def refresh_reference_data(store: ReferenceDataStore) -> bool:
    """
    Reload benchmark and job catalog datasets from disk.

    Returns:
        True when a new version was installed
    """
    previous = store.version
    reloaded = store.reload()
    if reloaded and store.version != previous:
        logger.info(f"Reference data updated: v{previous} -> v{store.version}")
    return reloaded


def start_scheduler(store: ReferenceDataStore):
    """Start the background scheduler"""
    scheduler.add_job(
        refresh_reference_data,
        trigger=IntervalTrigger(hours=settings.reference_refresh_hours),
        args=[store],
        id="refresh_reference_data",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started: reloading reference data every {settings.reference_refresh_hours} hours")


def stop_scheduler():
    """Stop the background scheduler"""
    if scheduler.running:
        scheduler.shutdown()
