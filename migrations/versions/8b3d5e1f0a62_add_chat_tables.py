"""add chat tables

Revision ID: 8b3d5e1f0a62
Revises: 4f1a9c2e7b30
Create Date: 2026-10-08 14:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "8b3d5e1f0a62"
down_revision = "4f1a9c2e7b30"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "chat_rooms",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("booking_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("provider_id", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ),
        sa.ForeignKeyConstraint(["customer_id"], ["users.id"], ),
        sa.ForeignKeyConstraint(["provider_id"], ["provider_profiles.id"], ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("booking_id", name="uq_chat_rooms_booking")
    )
    with op.batch_alter_table("chat_rooms", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_chat_rooms_customer_id"), ["customer_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_chat_rooms_provider_id"), ["provider_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_chat_rooms_updated_at"), ["updated_at"], unique=False)

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("chat_room_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("sender_role", sa.String(length=10), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["chat_room_id"], ["chat_rooms.id"], ),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id")
    )
    with op.batch_alter_table("chat_messages", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_chat_messages_chat_room_id"), ["chat_room_id"], unique=False)


def downgrade():
    with op.batch_alter_table("chat_messages", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_chat_messages_chat_room_id"))
    op.drop_table("chat_messages")

    with op.batch_alter_table("chat_rooms", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_chat_rooms_updated_at"))
        batch_op.drop_index(batch_op.f("ix_chat_rooms_provider_id"))
        batch_op.drop_index(batch_op.f("ix_chat_rooms_customer_id"))
    op.drop_table("chat_rooms")
