from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


def _counter() -> Mapped[int]:
    return mapped_column(Integer, nullable=False, server_default=text("0"), default=0)


class UserStats(Base):
    __tablename__ = "user_stats"
    __table_args__ = (
        CheckConstraint("total_completions >= 0", name="ck_user_stats_total_completions_non_negative"),
        CheckConstraint("total_moves >= 0", name="ck_user_stats_total_moves_non_negative"),
        CheckConstraint(
            "current_streak >= 0 AND max_streak >= current_streak",
            name="ck_user_stats_streak_bounds",
        ),
    )

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    total_completions: Mapped[int] = _counter()
    total_moves: Mapped[int] = _counter()

    trophy_walk_of_fame: Mapped[int] = _counter()
    trophy_oscar: Mapped[int] = _counter()
    trophy_golden_globe: Mapped[int] = _counter()
    trophy_emmy: Mapped[int] = _counter()
    trophy_sag: Mapped[int] = _counter()
    trophy_popcorn: Mapped[int] = _counter()

    completions_at_1_move: Mapped[int] = _counter()
    completions_at_2_moves: Mapped[int] = _counter()
    completions_at_3_moves: Mapped[int] = _counter()
    completions_at_4_moves: Mapped[int] = _counter()
    completions_at_5_moves: Mapped[int] = _counter()
    completions_at_6_moves: Mapped[int] = _counter()

    current_streak: Mapped[int] = _counter()
    max_streak: Mapped[int] = _counter()
    last_played_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
