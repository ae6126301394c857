"""
Tests for QR check-in at the door.
"""

import asyncio

import pytest
from httpx import AsyncClient

from app.core.exceptions import AlreadyCheckedIn, CheckInNotAllowed, CheckInTokenNotFound
from app.schemas.registration import RegistrationCreate
from app.services import check_in_service
from app.services.registration_service import cancel_registration, submit_registration

from conftest import registration_payload


async def register(session_factory, make_event, make_invitation, companion=False, **event_kwargs):
    event_id = await make_event(**event_kwargs)
    token = await make_invitation(event_id)
    data = RegistrationCreate(**registration_payload(token, companion=companion))
    return await submit_registration(session_factory, data)


@pytest.mark.asyncio
async def test_check_in_registrant(session_factory, dispatcher, sheets, make_event, make_invitation):
    result = await register(session_factory, make_event, make_invitation)

    response = await check_in_service.check_in(session_factory, result.registrant.qr_code, dispatcher)
    await dispatcher.drain(timeout=5)

    assert response.kind == "registrant"
    assert response.registration_id == result.registrant.registration_id
    assert response.checked_in_at is not None
    assert response.already_checked_in is False
    assert sheets.check_ins == [result.registrant.registration_id]


@pytest.mark.asyncio
async def test_second_scan_is_rejected(session_factory, make_event, make_invitation):
    result = await register(session_factory, make_event, make_invitation)
    await check_in_service.check_in(session_factory, result.registrant.qr_code)

    with pytest.raises(AlreadyCheckedIn):
        await check_in_service.check_in(session_factory, result.registrant.qr_code)

    preview = await check_in_service.lookup(session_factory, result.registrant.qr_code)
    assert preview.already_checked_in is True


@pytest.mark.asyncio
async def test_racing_scanners_admit_once(session_factory, make_event, make_invitation):
    result = await register(session_factory, make_event, make_invitation)

    outcomes = await asyncio.gather(
        *(check_in_service.check_in(session_factory, result.registrant.qr_code) for _ in range(4)),
        return_exceptions=True,
    )

    assert len([o for o in outcomes if not isinstance(o, BaseException)]) == 1
    assert all(isinstance(o, AlreadyCheckedIn) for o in outcomes if isinstance(o, BaseException))


@pytest.mark.asyncio
async def test_companion_checks_in_independently(session_factory, make_event, make_invitation):
    result = await register(session_factory, make_event, make_invitation, companion=True)

    response = await check_in_service.check_in(session_factory, result.companion.qr_code)
    assert response.kind == "companion"
    assert response.primary_name == "Ada Lovelace"
    assert response.registration_id == result.companion.registration_id

    primary = await check_in_service.lookup(session_factory, result.registrant.qr_code)
    assert primary.already_checked_in is False


@pytest.mark.asyncio
async def test_waitlisted_cannot_check_in(session_factory, make_event, make_invitation):
    result = await register(
        session_factory, make_event, make_invitation, companion=True, capacity=1, current_registrations=1
    )

    with pytest.raises(CheckInNotAllowed):
        await check_in_service.check_in(session_factory, result.registrant.qr_code)
    with pytest.raises(CheckInNotAllowed):
        await check_in_service.check_in(session_factory, result.companion.qr_code)


@pytest.mark.asyncio
async def test_cancelled_cannot_check_in(session_factory, make_event, make_invitation):
    result = await register(session_factory, make_event, make_invitation)
    await cancel_registration(session_factory, result.registrant.id)

    with pytest.raises(CheckInNotAllowed):
        await check_in_service.check_in(session_factory, result.registrant.qr_code)


@pytest.mark.asyncio
async def test_unknown_code(session_factory):
    with pytest.raises(CheckInTokenNotFound):
        await check_in_service.lookup(session_factory, "0" * 32)


@pytest.mark.asyncio
async def test_check_in_endpoints(client: AsyncClient, make_event, make_invitation):
    event_id = await make_event()
    token = await make_invitation(event_id)
    submitted = (await client.post("/api/v1/rsvp/submit", json=registration_payload(token))).json()
    qr_code = submitted["registrant"]["qr_code"]

    response = await client.get(f"/api/v1/check-in/{qr_code}")
    assert response.status_code == 200
    assert response.json()["already_checked_in"] is False

    response = await client.post(f"/api/v1/check-in/{qr_code}")
    assert response.status_code == 200
    assert response.json()["name"] == "Ada Lovelace"

    response = await client.post(f"/api/v1/check-in/{qr_code}")
    assert response.status_code == 400
    assert response.json()["code"] == "already_checked_in"

    response = await client.get("/api/v1/check-in/not-a-code")
    assert response.status_code == 404
