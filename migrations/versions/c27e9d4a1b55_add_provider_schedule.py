"""add provider schedule

Revision ID: c27e9d4a1b55
Revises: 8b3d5e1f0a62
Create Date: 2026-10-17 09:10:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "c27e9d4a1b55"
down_revision = "8b3d5e1f0a62"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "provider_availability",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("provider_id", sa.Integer(), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["provider_id"], ["provider_profiles.id"], ),
        sa.PrimaryKeyConstraint("id")
    )
    with op.batch_alter_table("provider_availability", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_provider_availability_provider_id"), ["provider_id"], unique=False)

    op.create_table(
        "provider_blocked_times",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("provider_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["provider_id"], ["provider_profiles.id"], ),
        sa.PrimaryKeyConstraint("id")
    )
    with op.batch_alter_table("provider_blocked_times", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_provider_blocked_times_provider_id"), ["provider_id"], unique=False)


def downgrade():
    with op.batch_alter_table("provider_blocked_times", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_provider_blocked_times_provider_id"))
    op.drop_table("provider_blocked_times")

    with op.batch_alter_table("provider_availability", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_provider_availability_provider_id"))
    op.drop_table("provider_availability")
