from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Integer, SmallInteger, String, Text, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class DailyChallenge(Base):
    __tablename__ = "daily_challenges"
    __table_args__ = (
        CheckConstraint("status IN ('next','active','archived')", name="ck_daily_challenges_status"),
        CheckConstraint(
            "difficulty IN ('easy','normal','hard')",
            name="ck_daily_challenges_difficulty",
        ),
        CheckConstraint(
            "estimated_moves IS NULL OR (estimated_moves BETWEEN 1 AND 6)",
            name="ck_daily_challenges_estimated_moves_range",
        ),
        CheckConstraint("hints_used >= 0", name="ck_daily_challenges_hints_used_non_negative"),
        Index("idx_daily_challenges_date", "challenge_date"),
        Index(
            "uq_daily_challenges_single_active",
            "status",
            unique=True,
            postgresql_where=text("status = 'active'"),
        ),
        Index(
            "uq_daily_challenges_single_next",
            "status",
            unique=True,
            postgresql_where=text("status = 'next'"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    challenge_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    start_actor_id: Mapped[int] = mapped_column(Integer, nullable=False)
    start_actor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_actor_profile_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    end_actor_id: Mapped[int] = mapped_column(Integer, nullable=False)
    end_actor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    end_actor_profile_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    estimated_moves: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    hints_used: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    start_actor_hint: Mapped[str | None] = mapped_column(Text, nullable=True)
    end_actor_hint: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    promoted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def actor_ids(self) -> frozenset[int]:
        return frozenset({self.start_actor_id, self.end_actor_id})
