"""create_hotels_and_reservations

Revision ID: 4c1f0a2b9d10
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4c1f0a2b9d10"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "hotels",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("whatsapp_to", sa.String(length=64), nullable=False),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=8), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_hotels_whatsapp_to"), "hotels", ["whatsapp_to"], unique=True)

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("reference_no", sa.String(length=64), nullable=False),
        sa.Column("hotel_id", sa.Integer(), nullable=False),
        sa.Column("phone", sa.String(length=64), nullable=False),
        sa.Column("hotel", sa.String(length=200), nullable=True),
        sa.Column("checkin", sa.String(length=32), nullable=True),
        sa.Column("checkout", sa.String(length=32), nullable=True),
        sa.Column("guests", sa.Integer(), nullable=True),
        sa.Column("nights", sa.Integer(), nullable=True),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=True),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["hotel_id"],
            ["hotels.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_reservations_reference_no"), "reservations", ["reference_no"], unique=True
    )
    op.create_index(op.f("ix_reservations_hotel_id"), "reservations", ["hotel_id"], unique=False)
    op.create_index(op.f("ix_reservations_phone"), "reservations", ["phone"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_reservations_phone"), table_name="reservations")
    op.drop_index(op.f("ix_reservations_hotel_id"), table_name="reservations")
    op.drop_index(op.f("ix_reservations_reference_no"), table_name="reservations")
    op.drop_table("reservations")
    op.drop_index(op.f("ix_hotels_whatsapp_to"), table_name="hotels")
    op.drop_table("hotels")
