"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

JSON_COLUMNS = (
    "characteristics_json",
    "legacy_characteristics_json",
    "skill_advances_json",
    "faction_skill_advances_json",
    "skill_specializations_json",
    "specialization_advances_json",
    "talents_json",
    "psychic_powers_json",
    "equipment_json",
    "weapons_json",
    "reputation_json",
    "injuries_json",
    "conditions_json",
    "applied_origin_bonuses_json",
    "applied_faction_bonuses_json",
    "change_log_json",
)


def upgrade() -> None:
    op.create_table(
        "characters",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("player", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("campaign", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("is_archived", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("creation_progress", sa.Integer, nullable=False, server_default="0"),
        sa.Column("homeworld", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("faction", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=120), nullable=False, server_default=""),
        sa.Column(
            "selected_faction_talent_choice",
            sa.String(length=120),
            nullable=False,
            server_default="",
        ),
        sa.Column("background", sa.Text),
        sa.Column("short_term_goal", sa.Text),
        sa.Column("long_term_goal", sa.Text),
        sa.Column("description", sa.Text),
        sa.Column("notes", sa.Text),
        sa.Column("wounds", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_wounds", sa.Integer, nullable=False, server_default="0"),
        sa.Column("corruption", sa.Integer, nullable=False, server_default="0"),
        sa.Column("critical_wounds", sa.Integer, nullable=False, server_default="0"),
        sa.Column("fate", sa.Integer, nullable=False, server_default="3"),
        sa.Column("spent_fate", sa.Integer, nullable=False, server_default="0"),
        sa.Column("solars", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_experience", sa.Integer, nullable=False, server_default="0"),
        sa.Column("spent_experience", sa.Integer, nullable=False, server_default="0"),
        sa.Column("current_session", sa.Integer, nullable=False, server_default="1"),
        *[sa.Column(name, postgresql.JSONB) for name in JSON_COLUMNS],
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_characters_campaign", "characters", ["campaign"])


def downgrade() -> None:
    op.drop_index("ix_characters_campaign", table_name="characters")
    op.drop_table("characters")
