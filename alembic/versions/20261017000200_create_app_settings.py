"""create app settings

Revision ID: 20261017000200
Revises: 20261017000100
Create Date: 2026-10-17 00:02:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261017000200"
down_revision = "20261017000100"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("sportsdb_api_key_enc", sa.Text(), nullable=True),
        sa.Column("days_to_fetch", sa.Integer(), nullable=False, server_default="14"),
        sa.Column("max_fixtures", sa.Integer(), nullable=False, server_default="250"),
        sa.Column("lookup_delay_ms", sa.Integer(), nullable=False, server_default="250"),
        sa.Column("day_delay_ms", sa.Integer(), nullable=False, server_default="1000"),
        sa.Column("polite_days", sa.Integer(), nullable=False, server_default="6"),
        sa.Column("request_timeout_seconds", sa.Integer(), nullable=False, server_default="15"),
        sa.Column(
            "allowed_countries",
            sa.Text(),
            nullable=False,
            server_default="United Kingdom,UK",
        ),
        sa.Column(
            "allowed_channels",
            sa.Text(),
            nullable=False,
            server_default="Sky Sports,TNT Sports,Amazon Prime,BBC,ITV,Terrestrial TV",
        ),
        sa.Column(
            "keep_unparsed_start_times",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("app_settings")
