"""Tests for the seat listing cache and its invalidation."""

from typing import Dict

import pytest
import pytest_asyncio

from train_reservation_platform.cache import CacheKeyBuilder, CacheTTL, get_cache
from train_reservation_platform.models import CarClass
from train_reservation_platform.services.reservation_commit_service import ReservationCommitService
from train_reservation_platform.services.seat_service import SeatService

from helpers import context_for, seat_ids_by_code


class InMemoryRedis:
    """The subset of the redis client the cache uses."""

    def __init__(self):
        self.data: Dict[str, bytes] = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value.encode("utf-8")

    async def setex(self, key, ttl, value):
        await self.set(key, value)

    async def incrby(self, key, amount):
        value = int(self.data.get(key, b"0")) + amount
        self.data[key] = str(value).encode("utf-8")
        return value


@pytest_asyncio.fixture
async def redis_cache(db):
    cache = get_cache()
    cache.client = InMemoryRedis()
    yield cache
    cache.client = None


@pytest.mark.asyncio
async def test_listing_is_served_from_cache(session, redis_cache):
    first = await SeatService(session).list_by_class(CarClass.SECOND)

    key = CacheKeyBuilder.seat_class(CarClass.SECOND.value, 0)
    assert await redis_cache.get(key) == first.model_dump(mode="json")
    cached = await SeatService(session).list_by_class(CarClass.SECOND)
    assert cached.statistics == first.statistics
    assert [seat.id for seat in cached.seats] == [seat.id for seat in first.seats]


@pytest.mark.asyncio
async def test_late_write_of_stale_listing_is_not_served(session, users, redis_cache):
    service = SeatService(session)
    stale = await service.list_by_class(CarClass.ECONOMY)
    assert stale.statistics.occupied == 0

    await ReservationCommitService(session).commit(
        context_for(users["alice"]),
        await seat_ids_by_code(session, "E1A")
    )
    # A reader that queried before the commit stores its result afterwards
    await redis_cache.set(
        CacheKeyBuilder.seat_class(CarClass.ECONOMY.value, 0),
        stale.model_dump(mode="json"),
        CacheTTL.SEAT_CLASS
    )

    fresh = await service.list_by_class(CarClass.ECONOMY)

    assert fresh.statistics.occupied == 1
    assert await redis_cache.get_version(
        CacheKeyBuilder.seat_class_version(CarClass.ECONOMY.value)
    ) == 1
