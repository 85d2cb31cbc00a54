"""Background task that purges trash items past the retention window."""

from __future__ import annotations

import asyncio
import logging

from pawlegal.config import get_settings
from pawlegal.constants import LogAction
from pawlegal.database import async_session_factory
from pawlegal.services.audit_log import log_action
from pawlegal.services.trash_service import purge_expired
from pawlegal.utils.messages import msg

logger = logging.getLogger(__name__)

SYSTEM_USER = {"user_id": None, "email": "system"}

_purge_task: asyncio.Task | None = None


async def run_trash_purge() -> int:
    """Delete expired trash items in a dedicated session. Returns the count."""
    async with async_session_factory() as db:
        try:
            count = await purge_expired(db)
            if count:
                await log_action(
                    db,
                    LogAction.TRASH_PURGED,
                    msg("trash.expired_purged", count=count),
                    SYSTEM_USER,
                    metadata={"count": count, "trigger": "scheduled"},
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    return count


async def trash_purge_loop(interval_seconds: float) -> None:
    """Purge forever, every *interval_seconds*; a failed run is logged and retried next tick."""
    while True:
        try:
            count = await run_trash_purge()
            logger.info("Trash purge run finished: %d item(s) removed", count)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Trash purge run failed")
        await asyncio.sleep(interval_seconds)


def start_trash_purge_background() -> asyncio.Task | None:
    """Start the purge loop once per process, unless disabled in settings."""
    global _purge_task
    settings = get_settings()
    if not settings.TRASH_PURGE_ENABLED:
        logger.info("Trash purge disabled")
        return None
    if _purge_task is not None and not _purge_task.done():
        return _purge_task
    _purge_task = asyncio.create_task(trash_purge_loop(settings.TRASH_PURGE_INTERVAL_HOURS * 3600))
    return _purge_task


async def stop_trash_purge_background() -> None:
    """Cancel the purge loop and wait for it to finish."""
    global _purge_task
    if _purge_task is None:
        return
    _purge_task.cancel()
    try:
        await _purge_task
    except asyncio.CancelledError:
        pass
    _purge_task = None
