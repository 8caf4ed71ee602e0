"""
Celery tasks running the seat consistency audit outside the web process.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

from .celery_app import celery_app
from ..database import close_database, get_db_session, init_database
from ..services.consistency_service import ConsistencyService

logger = logging.getLogger(__name__)


def _run(job: Callable[[ConsistencyService], Awaitable[Any]]) -> Any:
    """Run ``job`` against a fresh database connection in a private event loop."""

    async def _with_database():
        await init_database(seed_seats=False, run_consistency_audit=False)
        try:
            async with get_db_session() as session:
                return await job(ConsistencyService(session))
        finally:
            await close_database()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(_with_database())
    finally:
        loop.close()


@celery_app.task(name="consistency_audit_task")
def consistency_audit_task() -> Dict[str, Any]:
    """
    Periodic repair of seat occupancy flags.

    Scheduled by beat every ``consistency_audit_interval_seconds``.
    """
    logger.info("Starting seat consistency audit")
    result = _run(lambda service: service.fix_seat_consistency())
    return result.model_dump()


@celery_app.task(name="consistency_report_task")
def consistency_report_task() -> Dict[str, Any]:
    """On-demand, read-only consistency report."""
    report = _run(lambda service: service.get_consistency_report())
    if not report.is_consistent:
        logger.warning("Seat consistency report found drift: %s", report.model_dump())
    return report.model_dump()
