"""Prospect model module."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import JSON, Date, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pipeline_crm.core.enums import ProspectStage, Temperature
from pipeline_crm.models.base import Base, TimestampMixin


class Prospect(Base, TimestampMixin):
    __tablename__ = "prospects"
    __table_args__ = (
        Index("idx_prospects_stage", "stage"),
        Index("idx_prospects_temperature", "temperature"),
        Index("idx_prospects_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(320))
    phone: Mapped[str | None] = mapped_column(String(64))
    source: Mapped[str | None] = mapped_column(String(255))
    # Stored as free text; the service layer constrains values to ProspectStage/Temperature.
    stage: Mapped[str] = mapped_column(String(40), nullable=False, default=ProspectStage.NEW.value)
    temperature: Mapped[str] = mapped_column(String(20), nullable=False, default=Temperature.WARM.value)
    commitment: Mapped[str | None] = mapped_column(String(40))
    product_interest: Mapped[str | None] = mapped_column(String(255))
    estimated_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    next_action: Mapped[str | None] = mapped_column(Text)
    next_action_date: Mapped[date | None] = mapped_column(Date)
    last_meeting_date: Mapped[date | None] = mapped_column(Date)
    notes: Mapped[str | None] = mapped_column(Text)
    sensitivity: Mapped[int | None] = mapped_column(Integer)
    executive_summary: Mapped[str | None] = mapped_column(Text)
    objections: Mapped[list | None] = mapped_column(JSON)
    key_quotes: Mapped[list | None] = mapped_column(JSON)

    def __repr__(self) -> str:
        return f"<Prospect id={self.id} name={self.name!r} stage={self.stage}>"
