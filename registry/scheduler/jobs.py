"""APScheduler jobs: periodic sweep of stored blobs no member points at."""

import logging
import os
import time
from typing import Optional

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from registry.config import get_settings
from registry.domain.models.user import User
from registry.domain.repositories.file_storage import FileStorage
from registry.infrastructure.database import SessionLocal
from registry.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from registry.infrastructure.storage.base import PASSPORTS, SIGNATURES, field_for_subdir, timestamp_from_filename

settings = get_settings()
logger = logging.getLogger(__name__)
tz = pytz.timezone(settings.TIMEZONE)

scheduler = AsyncIOScheduler(timezone=tz)


def _stem(filename: str) -> str:
    return os.path.splitext(filename)[0]


def sweep_orphaned_files(
    db: Session,
    storage: FileStorage,
    grace_minutes: int,
    now_ms: Optional[int] = None,
) -> dict:
    """Delete blobs that no member references and that are older than the grace period.

    Age comes from the timestamp embedded in the filename; names without one
    are never touched.
    """
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    cutoff = now_ms - grace_minutes * 60 * 1000

    # Backends may report a normalised extension (jpeg -> jpg), so match on stems
    referenced = {_stem(name) for name in SQLAlchemyUserRepository(db, User).referenced_files()}
    listing = storage.list_files()

    deleted, kept = [], 0
    for sub in (PASSPORTS, SIGNATURES):
        field = field_for_subdir(sub)
        for filename in listing[sub]:
            created_ms = timestamp_from_filename(filename)
            if _stem(filename) in referenced or created_ms is None or created_ms > cutoff:
                kept += 1
                continue
            if storage.delete_file(filename, field):
                deleted.append(filename)

    return {"deleted": deleted, "kept": kept}


def orphan_sweep_job():
    """Periodic job: reconcile storage with member records.

    Must stay synchronous: the database and storage calls block, and the
    scheduler runs plain functions in its thread pool.
    """
    from registry.infrastructure.storage.factory import get_file_storage

    db = SessionLocal()
    try:
        result = sweep_orphaned_files(db, get_file_storage(), settings.ORPHAN_GRACE_MINUTES)
        logger.info(f"Orphan sweep removed {len(result['deleted'])} blobs, kept {result['kept']}")
    except Exception as e:
        logger.error(f"Orphan sweep failed: {e}")
    finally:
        db.close()


def start_scheduler():
    """Start the APScheduler with the orphan sweep job."""
    scheduler.add_job(
        orphan_sweep_job,
        trigger=IntervalTrigger(minutes=settings.ORPHAN_SWEEP_INTERVAL_MINUTES, timezone=tz),
        id="orphan_sweep",
        name=f"Orphan blob sweep (every {settings.ORPHAN_SWEEP_INTERVAL_MINUTES} mins)",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(f"Scheduler started, orphan sweep every {settings.ORPHAN_SWEEP_INTERVAL_MINUTES} mins")


def stop_scheduler():
    """Stop the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
