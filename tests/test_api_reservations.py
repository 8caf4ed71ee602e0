"""API tests for seat maps, reservations and the admin audit endpoints."""

from typing import Dict

import pytest

from helpers import current_totp, login


async def _seat_ids(client, car_class: str) -> Dict[str, int]:
    response = await client.get(f"/api/v1/seats/{car_class}")
    assert response.status_code == 200
    return {seat["seat_code"]: seat["id"] for seat in response.json()["seats"]}


async def _reserve(client, headers, seat_ids):
    return await client.post(
        "/api/v1/reservations",
        json={"seat_ids": seat_ids},
        headers=headers
    )


@pytest.mark.asyncio
async def test_seat_map_is_public(client):
    response = await client.get("/api/v1/seats/first")

    assert response.status_code == 200
    data = response.json()
    assert data["statistics"] == {"total": 20, "occupied": 0, "available": 20}
    assert data["seats"][0]["seat_code"] == "F1A"


@pytest.mark.asyncio
async def test_unknown_car_class(client):
    response = await client.get("/api/v1/seats/business")

    assert response.status_code == 400
    assert response.json()["error"]["error_code"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_reservations_require_authentication(client):
    assert (await client.get("/api/v1/reservations")).status_code == 401
    response = await client.post("/api/v1/reservations", json={"seat_ids": [1]})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_list_and_delete_reservation(client, users):
    headers = await login(client, "alice")
    seats = await _seat_ids(client, "economy")

    response = await _reserve(client, headers, [seats["E1B"], seats["E1A"]])
    assert response.status_code == 201
    reservation_id = response.json()["id"]

    economy = (await client.get("/api/v1/seats/economy")).json()
    assert economy["statistics"]["occupied"] == 2

    listing = (await client.get("/api/v1/reservations", headers=headers)).json()
    assert [r["id"] for r in listing] == [reservation_id]
    assert [seat["seat_code"] for seat in listing[0]["seats"]] == ["E1A", "E1B"]
    assert listing[0]["car_classes"] == ["economy"]

    response = await client.delete(f"/api/v1/reservations/{reservation_id}", headers=headers)
    assert response.status_code == 200

    economy = (await client.get("/api/v1/seats/economy")).json()
    assert economy["statistics"]["occupied"] == 0
    assert (await client.get("/api/v1/reservations", headers=headers)).json() == []


@pytest.mark.asyncio
async def test_conflict_lists_seats_taken_by_others(client, users):
    alice = await login(client, "alice")
    bob = await login(client, "bob")
    seats = await _seat_ids(client, "second")

    assert (await _reserve(client, alice, [seats["S3A"]])).status_code == 201
    assert (await _reserve(client, bob, [seats["S3C"]])).status_code == 201

    response = await _reserve(client, bob, [seats["S3A"], seats["S3B"], seats["S3C"]])

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["error_code"] == "SEAT_CONFLICT"
    assert error["details"]["occupied_seat_codes"] == ["S3A", "S3C"]
    # bob's own seat is not reported as lost
    assert error["details"]["conflicting_seat_ids"] == [seats["S3A"]]
    assert error["details"]["conflicting_seat_codes"] == ["S3A"]
    assert error["suggestions"]

    second = (await client.get("/api/v1/seats/second")).json()
    assert second["statistics"]["occupied"] == 2


@pytest.mark.asyncio
async def test_unknown_seat_id(client, users):
    headers = await login(client, "alice")
    seats = await _seat_ids(client, "economy")

    response = await _reserve(client, headers, [seats["E2A"], 999999])

    assert response.status_code == 404
    assert response.json()["error"]["error_code"] == "UNKNOWN_SEAT"
    economy = (await client.get("/api/v1/seats/economy")).json()
    assert economy["statistics"]["occupied"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("seat_ids", [[], ["a"], [0], [3, 3], [True]])
async def test_malformed_seat_ids(client, users, seat_ids):
    headers = await login(client, "alice")

    response = await _reserve(client, headers, seat_ids)

    assert response.status_code == 400
    assert response.json()["error"]["error_code"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_first_class_requires_totp(client, users):
    headers = await login(client, "bob")
    seats = await _seat_ids(client, "first")

    response = await _reserve(client, headers, [seats["F5B"]])
    assert response.status_code == 403
    assert response.json()["error"]["error_code"] == "POLICY_DENIED"
    assert "seat" not in str(response.json()["error"].get("details", {}))

    await client.post(
        "/api/v1/sessions/totp",
        json={"code": current_totp(users["bob"])},
        headers=headers
    )
    response = await _reserve(client, headers, [seats["F5B"]])
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_cannot_delete_someone_elses_reservation(client, users):
    alice = await login(client, "alice")
    bob = await login(client, "bob")
    seats = await _seat_ids(client, "economy")
    reservation_id = (await _reserve(client, alice, [seats["E5A"]])).json()["id"]

    response = await client.delete(f"/api/v1/reservations/{reservation_id}", headers=bob)
    missing = await client.delete("/api/v1/reservations/424242", headers=bob)

    assert response.status_code == 404
    assert response.json()["error"]["error_code"] == "NOT_FOUND_OR_FORBIDDEN"
    assert missing.json()["error"]["message"] == response.json()["error"]["message"]
    economy = (await client.get("/api/v1/seats/economy")).json()
    assert economy["statistics"]["occupied"] == 1


@pytest.mark.asyncio
async def test_deleting_twice_returns_not_found(client, users):
    headers = await login(client, "alice")
    seats = await _seat_ids(client, "economy")
    reservation_id = (await _reserve(client, headers, [seats["E6C"]])).json()["id"]

    first = await client.delete(f"/api/v1/reservations/{reservation_id}", headers=headers)
    second = await client.delete(f"/api/v1/reservations/{reservation_id}", headers=headers)

    assert first.status_code == 200
    assert second.status_code == 404
    assert second.json()["error"]["error_code"] == "NOT_FOUND_OR_FORBIDDEN"
    economy = (await client.get("/api/v1/seats/economy")).json()
    assert economy["statistics"]["occupied"] == 0


@pytest.mark.asyncio
async def test_consistency_endpoints_are_admin_only(client, users):
    alice = await login(client, "alice")
    carol = await login(client, "carol")

    assert (await client.get("/api/v1/consistency/report", headers=alice)).status_code == 403

    report = await client.get("/api/v1/consistency/report", headers=carol)
    assert report.status_code == 200
    assert report.json()["inconsistent_seats"] == 0

    repair = await client.post("/api/v1/consistency/repair", headers=carol)
    assert repair.status_code == 200
    assert repair.json()["flags_changed"] == 0
