"""create upcoming fixtures

Revision ID: 20261017000100
Revises: 
Create Date: 2026-10-17 00:01:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261017000100"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "upcoming_fixtures",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("external_id", sa.String(), nullable=False),
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("sport", sa.String(), nullable=True),
        sa.Column("league", sa.String(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("starting_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("channel_slug", sa.String(), nullable=True),
        sa.Column("channel_name", sa.String(), nullable=False, server_default=""),
        sa.Column("channel_link", sa.String(), nullable=False, server_default=""),
        sa.Column("broadcast_country", sa.String(), nullable=False, server_default=""),
        sa.Column("country", sa.String(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.UniqueConstraint("external_id", name="uq_upcoming_fixtures_external_id"),
    )
    op.create_index("ix_upcoming_fixtures_id", "upcoming_fixtures", ["id"], unique=False)
    op.create_index("ix_upcoming_fixtures_event_id", "upcoming_fixtures", ["event_id"], unique=False)
    op.create_index(
        "ix_upcoming_fixtures_starting_at", "upcoming_fixtures", ["starting_at"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_upcoming_fixtures_starting_at", table_name="upcoming_fixtures")
    op.drop_index("ix_upcoming_fixtures_event_id", table_name="upcoming_fixtures")
    op.drop_index("ix_upcoming_fixtures_id", table_name="upcoming_fixtures")
    op.drop_table("upcoming_fixtures")
