#!/usr/bin/env python3
"""
Seed an event and a batch of invitations.

Writes one invitation token per line to --tokens-file, which the load test
(locust/locustfile.py) reads to drive concurrent redemptions.

Usage:
  python scripts/seed.py --capacity 10 --invitations 200 --tokens-file tokens.txt
"""

import argparse
import asyncio
from datetime import datetime, timezone, timedelta

from app.core.logging import setup_logging, get_logger
from app.db.session import get_engine, get_session_factory
from app.db.unit_of_work import UnitOfWork
from app.models.enums import InviteType
from app.models.event import Event
from app.services import invitation_service

logger = get_logger(__name__)

INVITE_TYPES = [InviteType.VIP, InviteType.PARTNER, InviteType.GENERAL]


async def seed(capacity: int, invitations: int, waitlist: bool, tokens_file: str) -> None:
    async with UnitOfWork(get_session_factory()) as uow:
        event = Event(
            name="Official Launch",
            description="An evening of networking, innovation and celebration.",
            date=datetime.now(timezone.utc) + timedelta(days=30),
            start_time="19:00",
            end_time="23:00",
            venue_name="The Grand Hall",
            venue_address="900 W Olympic Blvd",
            venue_city="Los Angeles",
            venue_state="CA",
            venue_zip_code="90015",
            dress_code="Business Formal",
            capacity=capacity,
            current_registrations=0,
            waitlist_enabled=waitlist,
            registration_open=True,
        )
        uow.session.add(event)
        await uow.session.flush()

        tokens = []
        for i in range(invitations):
            invitation = await invitation_service.issue_invitation(
                uow.session,
                event.id,
                f"guest{i}@example.com",
                INVITE_TYPES[i % len(INVITE_TYPES)],
            )
            tokens.append(invitation.token)

    with open(tokens_file, "w") as f:
        f.write("\n".join(tokens) + "\n")

    logger.info("seed_complete", event_id=event.id, capacity=capacity, invitations=len(tokens), tokens_file=tokens_file)
    await get_engine().dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--capacity", type=int, default=150)
    parser.add_argument("--invitations", type=int, default=3)
    parser.add_argument("--no-waitlist", action="store_true")
    parser.add_argument("--tokens-file", default="tokens.txt")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(seed(args.capacity, args.invitations, not args.no_waitlist, args.tokens_file))


if __name__ == "__main__":
    main()
