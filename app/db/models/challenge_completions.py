from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class ChallengeCompletion(Base):
    __tablename__ = "user_challenge_completions"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "challenge_id",
            name="uq_user_challenge_completions_user_challenge",
        ),
        CheckConstraint("moves BETWEEN 1 AND 6", name="ck_user_challenge_completions_moves_range"),
        CheckConstraint(
            "trophy_tier IN ('walkOfFame','oscar','goldenGlobe','emmy','sag','popcorn')",
            name="ck_user_challenge_completions_trophy_tier",
        ),
        Index("idx_user_challenge_completions_user_completed", "user_id", "completed_at"),
        Index("idx_user_challenge_completions_challenge", "challenge_id"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    challenge_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("daily_challenges.id"),
        nullable=False,
    )
    moves: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    connections: Mapped[str] = mapped_column(Text, nullable=False)
    trophy_tier: Mapped[str] = mapped_column(String(16), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
