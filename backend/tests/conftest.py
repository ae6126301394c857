"""
Pytest fixtures for test database, client, collaborators and seed data.

Each test gets a fresh SQLite file database (aiosqlite, BEGIN IMMEDIATE), so
concurrent units of work genuinely contend for the store. Point
TEST_DATABASE_URL at PostgreSQL to run the same suite against it.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select, update

from app.main import app
from app.db.base import Base
from app.db.session import create_engine, create_session_factory, get_session_factory
from app.db.unit_of_work import UnitOfWork
from app.models import Event, Invitation, Registrant, Companion
from app.models.enums import InviteType
from app.services import invitation_service
from app.services.collaborator_factory import get_dispatcher
from app.services.dispatcher import SideEffectDispatcher
from app.services.interfaces.notifications import CalendarRenderer, CheckInArtifactRenderer, Mailer, SheetSync

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")


class RecordingMailer(Mailer):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def _record(self, kind, **payload):
        if self.fail:
            raise ConnectionError("mail provider unreachable")
        self.sent.append((kind, payload))

    async def send_confirmation(self, event, registrant, companion, check_in_image, calendar_file):
        self._record(
            "confirmation",
            to=registrant.email,
            companion=companion,
            check_in_image=check_in_image,
            calendar_file=calendar_file,
        )

    async def send_companion_confirmation(self, event, companion, primary_name, check_in_image, calendar_file):
        self._record(
            "companion_confirmation",
            to=companion.email,
            primary_name=primary_name,
            check_in_image=check_in_image,
            calendar_file=calendar_file,
        )

    async def send_waitlist_notice(self, event, registrant, companion):
        self._record("waitlist", to=registrant.email, companion=companion)

    def kinds(self):
        return [kind for kind, _ in self.sent]


class RecordingSheetSync(SheetSync):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.rows = []
        self.check_ins = []

    async def sync_registrant(self, registrant, companion, event_name):
        if self.fail:
            raise TimeoutError("sheet webhook timed out")
        self.rows.append((registrant.registration_id, companion.registration_id if companion else None, event_name))

    async def update_check_in(self, registration_id):
        self.check_ins.append(registration_id)


class StubQrRenderer(CheckInArtifactRenderer):
    def __init__(self, fail: bool = False):
        self.fail = fail

    def render(self, token):
        if self.fail:
            raise ValueError("renderer crashed")
        return b"PNG:" + token.encode()


class StubCalendarRenderer(CalendarRenderer):
    def __init__(self, fail: bool = False):
        self.fail = fail

    def render(self, event, attendee_name, attendee_email, registration_id):
        if self.fail:
            raise ValueError("calendar crashed")
        return f"ICS:{registration_id}".encode()


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'rsvp_test.db'}"
    engine = create_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def sheets():
    return RecordingSheetSync()


@pytest_asyncio.fixture
async def dispatcher(mailer, sheets) -> AsyncGenerator[SideEffectDispatcher, None]:
    dispatcher = SideEffectDispatcher(
        mailer=mailer,
        sheets=sheets,
        qr_renderer=StubQrRenderer(),
        calendar_renderer=StubCalendarRenderer(),
    )
    yield dispatcher
    await dispatcher.drain(timeout=5)


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, dispatcher) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the test database and recording collaborators."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_event(session_factory):
    """Create an event; returns its id."""

    async def _make_event(
        capacity: int = 100,
        current_registrations: int = 0,
        waitlist_enabled: bool = True,
        registration_open: bool = True,
        name: str = "Founders Dinner",
    ) -> int:
        async with UnitOfWork(session_factory) as uow:
            event = Event(
                name=name,
                description="An evening with the founders",
                date=datetime.now(timezone.utc) + timedelta(days=30),
                start_time="18:30",
                end_time="22:00",
                venue_name="The Glasshouse",
                venue_address="1 Harbour St",
                venue_city="Springfield",
                venue_state="IL",
                venue_zip_code="62701",
                dress_code="Cocktail",
                capacity=capacity,
                current_registrations=current_registrations,
                waitlist_enabled=waitlist_enabled,
                registration_open=registration_open,
            )
            uow.session.add(event)
            await uow.session.flush()
            return event.id

    return _make_event


@pytest.fixture
def make_invitation(session_factory):
    """Issue an invitation; returns its token. `expires_at` overrides the 30-day default."""

    async def _make_invitation(
        event_id: int,
        email: str = "guest@example.com",
        expires_at: Optional[datetime] = None,
        is_used: bool = False,
        invite_type: InviteType = InviteType.GENERAL,
    ) -> str:
        async with UnitOfWork(session_factory) as uow:
            invitation = await invitation_service.issue_invitation(uow.session, event_id, email, invite_type)
            if expires_at is not None or is_used:
                await uow.session.execute(
                    update(Invitation)
                    .where(Invitation.id == invitation.id)
                    .values(
                        expires_at=expires_at or invitation.expires_at,
                        is_used=is_used,
                    )
                )
            return invitation.token

    return _make_invitation


@pytest.fixture
def db_state(session_factory):
    """Snapshot of what is committed: counter, invitation flag, row counts."""

    async def _db_state(event_id: int, token: Optional[str] = None) -> dict:
        async with session_factory() as db:
            event = await db.get(Event, event_id)
            state = {
                "current_registrations": event.current_registrations,
                "capacity": event.capacity,
                "registrants": await db.scalar(
                    select(func.count()).select_from(Registrant).where(Registrant.event_id == event_id)
                ),
                "companions": await db.scalar(
                    select(func.count())
                    .select_from(Companion)
                    .join(Registrant, Companion.registrant_id == Registrant.id)
                    .where(Registrant.event_id == event_id)
                ),
            }
            if token is not None:
                invitation = await invitation_service.find_by_token(db, token)
                state["invitation_used"] = invitation.is_used
            return state

    return _db_state


def registration_payload(token: str, companion: bool = False, email: str = "ada@example.com") -> dict:
    payload = {
        "token": token,
        "name": "Ada Lovelace",
        "company": "Analytical Engines Ltd",
        "title": "Chief Programmer",
        "email": email,
    }
    if companion:
        payload["companion"] = {
            "name": "Charles Babbage",
            "company": "Analytical Engines Ltd",
            "title": "Inventor",
            "email": "charles@example.com",
        }
    return payload
