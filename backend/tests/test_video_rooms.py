import asyncio
import json

import pytest

from database.models import Doctor
from services.errors import ProvisionError


async def test_ensure_room_reuses_existing_room_without_network(rooms, hms, store, doctor, db):
    doctor.room_id = "existing-room"
    db.commit()

    assert await rooms.ensure_room(doctor, store) == "existing-room"
    assert hms.requests == []


async def test_ensure_room_creates_and_persists_once(rooms, hms, store, doctor):
    first = await rooms.ensure_room(doctor, store)
    second = await rooms.ensure_room(doctor, store)

    assert first == second == "room-id-1"
    assert hms.rooms_created == 1
    assert store.current_room_id(doctor.id) == "room-id-1"


async def test_ensure_room_request_shape(rooms, hms, store, doctor):
    await rooms.ensure_room(doctor, store)

    (request,) = hms.room_requests()
    assert request.headers["Authorization"] == "Bearer hms-token"
    assert json.loads(request.content) == {
        "name": f"room-{doctor.id}",
        "description": "Room for Dr. Anjali Mehta",
        "template_id": "template-1",
    }


async def test_concurrent_provisioning_creates_a_single_room(rooms, hms, store, doctor):
    results = await asyncio.gather(*(rooms.ensure_room(doctor, store) for _ in range(5)))

    assert set(results) == {"room-id-1"}
    assert hms.rooms_created == 1


async def test_lost_compare_and_set_returns_the_persisted_room(rooms, hms, store, doctor, db):
    doctor_id = doctor.id

    def other_process_wins():
        db.execute(
            Doctor.__table__.update().where(Doctor.id == doctor_id).values(room_id="other-process-room")
        )
        db.commit()

    hms.on_room_create = other_process_wins

    assert await rooms.ensure_room(doctor, store) == "other-process-room"
    assert store.current_room_id(doctor_id) == "other-process-room"


@pytest.mark.parametrize("status", [400, 401, 500, 503])
async def test_ensure_room_non_success_status_is_provision_error(rooms, hms, store, doctor, status):
    hms.room_status = status

    with pytest.raises(ProvisionError):
        await rooms.ensure_room(doctor, store)

    assert store.current_room_id(doctor.id) is None


async def test_ensure_room_timeout_is_provision_error(rooms, hms, store, doctor):
    hms.room_timeout = True

    with pytest.raises(ProvisionError, match="timed out"):
        await rooms.ensure_room(doctor, store)

    assert store.current_room_id(doctor.id) is None


async def test_mint_join_link_builds_meeting_url(rooms, hms):
    link = await rooms.mint_join_link("room-9", "Anjali Mehta", "doctor")

    assert link == "https://meet.test/meeting/room-9-doctor"
    (request,) = hms.requests
    assert request.url.path == "/v2/room-codes/room/room-9"
    assert json.loads(request.content) == {"role": "doctor", "user_id": "Anjali Mehta"}


async def test_mint_join_link_without_matching_role_is_empty(rooms, hms):
    hms.roles = {"guest"}

    assert await rooms.mint_join_link("room-9", "Anjali Mehta", "doctor") == ""


async def test_mint_join_link_provider_failure_raises(rooms, hms):
    hms.code_status = 500

    with pytest.raises(ProvisionError):
        await rooms.mint_join_link("room-9", "Rahul Kumar", "guest")
