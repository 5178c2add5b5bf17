from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class CharacterRecord(Base):
    __tablename__ = "characters"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    player: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    campaign: Mapped[str] = mapped_column(String(200), nullable=False, default="", index=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    creation_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    homeworld: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    faction: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    selected_faction_talent_choice: Mapped[str] = mapped_column(String(120), nullable=False, default="")

    background: Mapped[str | None] = mapped_column(Text)
    short_term_goal: Mapped[str | None] = mapped_column(Text)
    long_term_goal: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)

    wounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_wounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    corruption: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    critical_wounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fate: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    spent_fate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    solars: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    spent_experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_session: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    characteristics_json: Mapped[dict | None] = mapped_column(JSONB)
    legacy_characteristics_json: Mapped[dict | None] = mapped_column(JSONB)
    skill_advances_json: Mapped[dict | None] = mapped_column(JSONB)
    faction_skill_advances_json: Mapped[dict | None] = mapped_column(JSONB)
    skill_specializations_json: Mapped[dict | None] = mapped_column(JSONB)
    specialization_advances_json: Mapped[dict | None] = mapped_column(JSONB)
    talents_json: Mapped[list | None] = mapped_column(JSONB)
    psychic_powers_json: Mapped[list | None] = mapped_column(JSONB)
    equipment_json: Mapped[list | None] = mapped_column(JSONB)
    weapons_json: Mapped[list | None] = mapped_column(JSONB)
    reputation_json: Mapped[list | None] = mapped_column(JSONB)
    injuries_json: Mapped[dict | None] = mapped_column(JSONB)
    conditions_json: Mapped[list | None] = mapped_column(JSONB)
    applied_origin_bonuses_json: Mapped[dict | None] = mapped_column(JSONB)
    applied_faction_bonuses_json: Mapped[dict | None] = mapped_column(JSONB)
    change_log_json: Mapped[list | None] = mapped_column(JSONB)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
