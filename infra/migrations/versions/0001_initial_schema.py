"""initial scheduling schema

Revision ID: 0001_initial
Revises:
Create Date: 2025-05-01 09:00:00
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "providers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("owner_user_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("display_name", sa.String(120), nullable=False),
        sa.Column("specialty", sa.String(120), nullable=False),
        sa.Column("city", sa.String(80), nullable=False),
        sa.Column("neighborhood", sa.String(80), nullable=False),
        sa.Column("rating", sa.Float(), nullable=False),
        sa.Column("review_count", sa.Integer(), nullable=False),
        sa.Column("base_price", sa.Float(), nullable=True),
        sa.Column("procedures", sa.JSON(), nullable=False),
        sa.Column("recommendation_reason", sa.Text(), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=False),
        sa.Column("next_available_date", sa.Date(), nullable=True),
        sa.Column("next_available_time", sa.Time(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("rating >= 0 AND rating <= 5", name="ck_providers_rating_range"),
    )
    op.create_index("ix_providers_owner_user_id", "providers", ["owner_user_id"])
    op.create_index("ix_providers_next_available", "providers", ["next_available_date"])

    op.create_table(
        "resources",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("provider_id", sa.Uuid(), sa.ForeignKey("providers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("type IN ('practitioner', 'room', 'device')", name="ck_resources_type_valid"),
    )
    op.create_index("ix_resources_provider_id", "resources", ["provider_id"])

    op.create_table(
        "staff_members",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("provider_id", sa.Uuid(), sa.ForeignKey("providers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("role", sa.String(80), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_staff_members_provider_id", "staff_members", ["provider_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("provider_id", sa.Uuid(), sa.ForeignKey("providers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("resource_id", sa.Uuid(), sa.ForeignKey("resources.id", ondelete="SET NULL"), nullable=True),
        sa.Column("slot_id", sa.Uuid(), nullable=True),
        sa.Column("procedure_slug", sa.String(80), nullable=False),
        sa.Column("procedure_name", sa.String(160), nullable=False),
        sa.Column("preferred_date", sa.Date(), nullable=False),
        sa.Column("preferred_time", sa.Time(), nullable=True),
        sa.Column("wants_virtual_consult", sa.Boolean(), nullable=False),
        sa.Column("consult_preferred_date", sa.Date(), nullable=True),
        sa.Column("consult_preferred_time", sa.Time(), nullable=True),
        sa.Column("investment_level", sa.String(20), nullable=False),
        sa.Column("market_highest_price", sa.Float(), nullable=True),
        sa.Column("price_paid", sa.Float(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status_valid",
        ),
    )
    op.create_index("ix_bookings_slot_id", "bookings", ["slot_id"])
    op.create_index("ix_bookings_user_created", "bookings", ["user_id", "created_at"])
    op.create_index("ix_bookings_provider_date", "bookings", ["provider_id", "preferred_date"])

    op.create_table(
        "availability_slots",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("provider_id", sa.Uuid(), sa.ForeignKey("providers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("resource_id", sa.Uuid(), sa.ForeignKey("resources.id", ondelete="CASCADE"), nullable=True),
        sa.Column(
            "staff_member_id", sa.Uuid(), sa.ForeignKey("staff_members.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("slot_type", sa.String(16), nullable=False),
        sa.Column("block_reason", sa.String(80), nullable=True),
        sa.Column("block_note", sa.Text(), nullable=True),
        sa.Column("booking_id", sa.Uuid(), sa.ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_recurring", sa.Boolean(), nullable=False),
        sa.Column("recurrence_pattern", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("start_time < end_time", name="ck_slots_time_order"),
        sa.CheckConstraint("slot_type IN ('available', 'blocked', 'booked')", name="ck_slots_type_valid"),
    )
    op.create_index(
        "ix_slots_provider_type_start", "availability_slots", ["provider_id", "slot_type", "start_time"]
    )
    op.create_index("ix_slots_resource_start", "availability_slots", ["resource_id", "start_time"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("booking_id", sa.Uuid(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("type IN ('confirmation_call', 'follow_up_call')", name="ck_tasks_type_valid"),
        sa.CheckConstraint("status IN ('pending', 'completed')", name="ck_tasks_status_valid"),
    )
    op.create_index("ix_tasks_booking_id", "tasks", ["booking_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("action", sa.String(255), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("tasks")
    op.drop_table("availability_slots")
    op.drop_table("bookings")
    op.drop_table("staff_members")
    op.drop_table("resources")
    op.drop_table("providers")
