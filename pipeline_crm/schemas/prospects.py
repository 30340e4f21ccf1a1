"""Prospect request/response schemas for API and service contracts."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pipeline_crm.core.enums import Commitment, ProspectStage, Temperature

_OPTIONAL_FIELDS = (
    "company",
    "email",
    "phone",
    "source",
    "commitment",
    "product_interest",
    "estimated_amount",
    "next_action",
    "next_action_date",
    "last_meeting_date",
    "notes",
    "sensitivity",
    "executive_summary",
)


class ProspectPayload(BaseModel):
    """Complete set of editable prospect fields, as submitted by the form.

    Identity and timestamps are never part of the payload.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(min_length=1, max_length=255)
    company: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=64)
    source: str | None = Field(default=None, max_length=255)
    stage: ProspectStage = ProspectStage.NEW
    temperature: Temperature = Temperature.WARM
    commitment: Commitment | None = None
    product_interest: str | None = Field(default=None, max_length=255)
    estimated_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    next_action: str | None = Field(default=None, max_length=2000)
    next_action_date: date | None = None
    last_meeting_date: date | None = None
    notes: str | None = Field(default=None, max_length=20000)
    sensitivity: int | None = Field(default=None, ge=0, le=10)
    executive_summary: str | None = Field(default=None, max_length=10000)
    objections: list[str] | None = None
    key_quotes: list[str] | None = None

    @field_validator(*_OPTIONAL_FIELDS, mode="before")
    @classmethod
    def blank_is_null(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("email")
    @classmethod
    def email_has_at_sign(cls, value: str | None) -> str | None:
        if value is not None and "@" not in value:
            raise ValueError("email must contain '@'")
        return value

    def to_store_values(self, exclude_unset: bool = False) -> dict[str, Any]:
        """Return field values with enums flattened to their stored strings.

        With ``exclude_unset`` only the fields the caller actually sent are
        returned, so an update leaves the other stored values alone.
        """
        values = self.model_dump(exclude_unset=exclude_unset)
        for key in ("stage", "temperature", "commitment"):
            member = values.get(key)
            if member is not None:
                values[key] = member.value
        return values


class StageMoveRequest(BaseModel):
    stage: ProspectStage


class MarkLostRequest(BaseModel):
    reason: str = Field(default="Not specified", min_length=1, max_length=2000)


class ProspectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    source: str | None = None
    stage: str
    temperature: str
    commitment: str | None = None
    product_interest: str | None = None
    estimated_amount: Decimal | None = None
    next_action: str | None = None
    next_action_date: date | None = None
    last_meeting_date: date | None = None
    notes: str | None = None
    sensitivity: int | None = None
    executive_summary: str | None = None
    objections: list[str] | None = None
    key_quotes: list[str] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class HistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    prospect_id: str
    field_changed: str
    previous_value: str | None = None
    new_value: str | None = None
    created_at: datetime | None = None


class FieldChangeResponse(BaseModel):
    field: str
    previous_value: str
    new_value: str


class ProspectMutationResponse(BaseModel):
    prospect: ProspectResponse
    changes: list[FieldChangeResponse] = Field(default_factory=list)
    warning: str | None = None


class ProspectListResponse(BaseModel):
    items: list[ProspectResponse]
    total: int
    store_is_empty: bool
    offer_create_prospect: bool


class BoardColumnResponse(BaseModel):
    stage: str
    label: str
    color: str
    count: int
    prospects: list[ProspectResponse]


class BoardResponse(BaseModel):
    columns: list[BoardColumnResponse]


class StageShareResponse(BaseModel):
    stage: str
    label: str
    count: int
    percentage: float


class UpcomingActionResponse(BaseModel):
    prospect_id: str
    name: str
    next_action: str | None = None
    next_action_date: date


class DashboardResponse(BaseModel):
    active_count: int
    pipeline_value: Decimal
    currency: str
    hot_count: int
    actions_this_week: int
    upcoming_actions: list[UpcomingActionResponse]
    stage_distribution: list[StageShareResponse]
