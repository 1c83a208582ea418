"""
models/esg_response.py — SQLAlchemy ORM model for one user's ESG answers for one year.

Table: esg_responses
One row per (user_id, year) — enforced by uq_esg_responses_user_id_year.

Raw questionnaire inputs are nullable until supplied. The four derived columns
are written only by store.upsert_year(), which recomputes them from the raw
columns in the same write, so they never drift from the stored inputs.
"""
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from esgtracker.database import Base

if TYPE_CHECKING:
    from esgtracker.models.user import UserORM


class ESGResponseORM(Base):
    __tablename__ = "esg_responses"
    __table_args__ = (
        UniqueConstraint("user_id", "year", name="uq_esg_responses_user_id_year"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Financial year key, unique per user",
    )

    # --- Environmental ---
    total_electricity_consumption: Mapped[Optional[float]] = mapped_column(Float, comment="kWh")
    renewable_electricity_consumption: Mapped[Optional[float]] = mapped_column(Float, comment="kWh")
    total_fuel_consumption: Mapped[Optional[float]] = mapped_column(Float, comment="liters")
    carbon_emissions: Mapped[Optional[float]] = mapped_column(Float, comment="T CO2e")

    # --- Social ---
    total_employees: Mapped[Optional[int]] = mapped_column(Integer)
    female_employees: Mapped[Optional[int]] = mapped_column(Integer)
    average_training_hours: Mapped[Optional[float]] = mapped_column(Float, comment="hours per employee per year")
    community_investment: Mapped[Optional[float]] = mapped_column(Float)

    # --- Governance ---
    independent_board_members: Mapped[Optional[float]] = mapped_column(Float, comment="percent, 0-100")
    has_data_privacy_policy: Mapped[Optional[bool]] = mapped_column(Boolean)
    total_revenue: Mapped[Optional[float]] = mapped_column(Float)

    # --- Derived (written by store.upsert_year only) ---
    carbon_intensity: Mapped[Optional[float]] = mapped_column(Float, comment="T CO2e per unit revenue")
    renewable_electricity_ratio: Mapped[Optional[float]] = mapped_column(Float, comment="percent")
    diversity_ratio: Mapped[Optional[float]] = mapped_column(Float, comment="percent")
    community_spend_ratio: Mapped[Optional[float]] = mapped_column(Float, comment="percent")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    user: Mapped["UserORM"] = relationship(back_populates="responses")
