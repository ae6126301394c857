"""Initial schema: events, invitations, registrants, companions.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Events table
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("venue_name", sa.String(255), nullable=False),
        sa.Column("venue_address", sa.String(255), nullable=False),
        sa.Column("venue_city", sa.String(100), nullable=False),
        sa.Column("venue_state", sa.String(100), nullable=False),
        sa.Column("venue_zip_code", sa.String(20), nullable=False),
        sa.Column("dress_code", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("current_registrations", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("waitlist_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("registration_open", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # The seat counter may never leave 0..capacity, whatever the application does
        sa.CheckConstraint("capacity > 0", name="check_capacity_positive"),
        sa.CheckConstraint("current_registrations >= 0", name="check_registrations_non_negative"),
        sa.CheckConstraint("current_registrations <= capacity", name="check_registrations_lte_capacity"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_date", "events", ["date"])

    # Invitations table
    op.create_table(
        "invitations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("invite_type", sa.String(20), nullable=False, server_default=sa.text("'GENERAL'")),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("invite_type IN ('VIP', 'PARTNER', 'GENERAL')", name="check_invite_type"),
    )
    op.create_index("ix_invitations_id", "invitations", ["id"])
    op.create_index("ix_invitations_token", "invitations", ["token"], unique=True)
    op.create_index("ix_invitations_event_id", "invitations", ["event_id"])

    # Registrants table
    op.create_table(
        "registrants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("company", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("registration_id", sa.String(40), nullable=False),
        sa.Column("qr_code", sa.String(128), nullable=False),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invitation_id", sa.Integer(), sa.ForeignKey("invitations.id"), nullable=False),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # One invitation yields at most one registrant
        sa.UniqueConstraint("invitation_id", name="uq_registrants_invitation_id"),
        sa.UniqueConstraint("registration_id", name="uq_registrants_registration_id"),
        sa.UniqueConstraint("qr_code", name="uq_registrants_qr_code"),
        sa.CheckConstraint(
            "status IN ('CONFIRMED', 'WAITLISTED', 'CANCELLED')",
            name="check_registrant_status",
        ),
    )
    op.create_index("ix_registrants_email", "registrants", ["email"])
    op.create_index("ix_registrants_event_id", "registrants", ["event_id"])

    # Companions table
    op.create_table(
        "companions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("company", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("registration_id", sa.String(40), nullable=False),
        sa.Column("qr_code", sa.String(128), nullable=False),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "registrant_id",
            sa.Uuid(),
            sa.ForeignKey("registrants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("registrant_id", name="uq_companions_registrant_id"),
        sa.UniqueConstraint("registration_id", name="uq_companions_registration_id"),
        sa.UniqueConstraint("qr_code", name="uq_companions_qr_code"),
    )


def downgrade() -> None:
    op.drop_table("companions")
    op.drop_table("registrants")
    op.drop_table("invitations")
    op.drop_table("events")
