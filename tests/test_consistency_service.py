"""Tests for the consistency auditor."""

import json
import logging

import pytest
from sqlalchemy import func, select, update

from train_reservation_platform.models import ReservationSeat, Seat
from train_reservation_platform.services.consistency_service import ConsistencyService
from train_reservation_platform.services.reservation_commit_service import ReservationCommitService
from train_reservation_platform.utils.logging_config import JSONFormatter

from helpers import context_for, seat_ids_by_code, seats_by_code


async def _drift(session, users):
    """One reservation, one flag wrongly cleared, one wrongly set, one orphan link."""
    e1a, e1b, e2a, e3a = await seat_ids_by_code(session, "E1A", "E1B", "E2A", "E3A")
    await ReservationCommitService(session).commit(context_for(users["alice"]), [e1a, e1b])

    await session.execute(update(Seat).where(Seat.id == e1b).values(is_occupied=False))
    await session.execute(update(Seat).where(Seat.id == e2a).values(is_occupied=True))
    session.add(ReservationSeat(reservation_id=987654, seat_id=e3a))
    await session.commit()


@pytest.mark.asyncio
async def test_clean_database_is_consistent(session):
    report = await ConsistencyService(session).get_consistency_report()

    assert report.total_seats == 137
    assert report.occupied_seats == 0
    assert report.is_consistent


@pytest.mark.asyncio
async def test_report_describes_drift_without_fixing_it(session, users):
    await _drift(session, users)

    report = await ConsistencyService(session).get_consistency_report()

    assert report.occupied_seats == 2
    assert report.seats_with_active_reservations == 2
    assert report.orphaned_reservation_seats == 1
    assert report.inconsistent_seats == 1
    assert not report.is_consistent
    assert (await seats_by_code(session, "E2A"))["E2A"].is_occupied


@pytest.mark.asyncio
async def test_fix_restores_flags_from_links(session, users):
    await _drift(session, users)
    service = ConsistencyService(session)

    result = await service.fix_seat_consistency()

    assert result.seats_marked_occupied == 2
    assert result.orphaned_links_removed == 1
    assert result.flags_changed == 2

    seats = await seats_by_code(session, "E1A", "E1B", "E2A", "E3A")
    assert seats["E1A"].is_occupied
    assert seats["E1B"].is_occupied
    assert not seats["E2A"].is_occupied
    assert not seats["E3A"].is_occupied
    assert await session.scalar(select(func.count(ReservationSeat.id))) == 2
    assert (await service.get_consistency_report()).is_consistent


@pytest.mark.asyncio
async def test_fix_is_idempotent(session, users):
    await _drift(session, users)
    service = ConsistencyService(session)
    await service.fix_seat_consistency()

    second = await service.fix_seat_consistency()

    assert second.flags_changed == 0
    assert second.orphaned_links_removed == 0
    assert second.seats_marked_occupied == 2


@pytest.mark.asyncio
async def test_fix_logs_business_event(session, users, caplog):
    await _drift(session, users)
    business_logger = logging.getLogger("train_reservation_platform.business")
    business_logger.addHandler(caplog.handler)
    try:
        with caplog.at_level(logging.INFO, logger="train_reservation_platform.business"):
            result = await ConsistencyService(session).fix_seat_consistency()
    finally:
        business_logger.removeHandler(caplog.handler)

    (record,) = [r for r in caplog.records if getattr(r, "event_type", None) == "seat_consistency_fixed"]
    assert record.details == {
        "seats_marked_occupied": result.seats_marked_occupied,
        "orphaned_links_removed": 1,
        "flags_changed": 2,
    }
    rendered = json.loads(JSONFormatter().format(record))
    assert rendered["extra"]["details"]["flags_changed"] == 2
