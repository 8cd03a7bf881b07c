from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Purchase(Base, TimestampMixin):
    __tablename__ = "purchases"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("ix_purchases_occurred_at", "occurred_at"),
        Index("ix_purchases_category_occurred_at", "category", "occurred_at"),
        CheckConstraint("amount_cents > 0", name="ck_purchases_amount_positive"),
    )


class CategoryBudget(Base, TimestampMixin):
    __tablename__ = "monthly_budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "amount_cents >= 0", name="ck_monthly_budgets_amount_non_negative"
        ),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_monthly_budgets_month"),
        UniqueConstraint(
            "category", "year", "month", name="uq_monthly_budget_category_month"
        ),
        Index("ix_monthly_budgets_year_month", "year", "month"),
    )
