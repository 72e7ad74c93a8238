"""Pricing plan model definition."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base


class Plan(Base):
    """A pricing tier offered to one audience (physician, nurse, patient, organization).

    ``min_specialists`` / ``max_specialists`` bound the specialist bracket the
    tier applies to; ``0`` leaves that side open.
    """

    __tablename__ = "plans"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    audience: Mapped[str] = mapped_column(String, nullable=False, index=True)
    min_specialists: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_specialists: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monthly_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    quarterly_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    annual_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def slug(self) -> str:
        return self.id

    def contains(self, specialist_count: int) -> bool:
        """Return whether ``specialist_count`` falls inside this plan's bracket."""
        lower_ok = self.min_specialists == 0 or self.min_specialists <= specialist_count
        upper_ok = self.max_specialists == 0 or self.max_specialists >= specialist_count
        return lower_ok and upper_ok

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<Plan {self.id} {self.audience} "
            f"[{self.min_specialists}-{self.max_specialists}] {self.monthly_price}>"
        )
