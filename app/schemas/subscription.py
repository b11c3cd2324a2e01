from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer, field_validator

from app.errors import ValidationError
from app.services.billing import BillingSummary
from app.services.periods import format_month_year, parse_month_year
from app.services.records import SubscriptionDraft, SubscriptionRecord

# Largest value a BIGINT price column holds
MAX_PRICE = 2**63 - 1


def _month_year(value: str, field: str) -> date:
    try:
        return parse_month_year(value, field)
    except ValidationError as e:
        # pydantic reports ValueError as a 422 validation failure
        raise ValueError(e.detail) from e


class SubscriptionCreate(BaseModel):
    service_name: str = Field(..., min_length=1, max_length=200)
    price: int = Field(..., ge=0, le=MAX_PRICE)
    user_id: UUID
    start_date: str = Field(..., description="Start month, MM-YYYY")
    end_date: Optional[str] = Field(None, description="End month, MM-YYYY. Omit for a perpetual subscription")

    @field_validator("service_name")
    @classmethod
    def validate_service_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("service_name must not be blank")
        return v

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v: str) -> str:
        _month_year(v, "start_date")
        return v

    @field_validator("end_date")
    @classmethod
    def validate_end_date(cls, v: str | None) -> str | None:
        if v is not None:
            _month_year(v, "end_date")
        return v

    def to_draft(self) -> SubscriptionDraft:
        return SubscriptionDraft(
            service_name=self.service_name,
            price=self.price,
            user_id=self.user_id,
            start_date=parse_month_year(self.start_date, "start_date"),
            end_date=parse_month_year(self.end_date, "end_date") if self.end_date is not None else None,
        )


# Updates are full replacements and take the same body as creation
SubscriptionUpdate = SubscriptionCreate


class SubscriptionResponse(BaseModel):
    id: UUID
    service_name: str
    price: int
    user_id: UUID
    start_date: date
    end_date: Optional[date] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @field_serializer("start_date")
    def serialize_start_date(self, v: date) -> str:
        return format_month_year(v)

    @field_serializer("end_date")
    def serialize_end_date(self, v: date | None) -> str | None:
        return format_month_year(v) if v is not None else None

    @classmethod
    def from_record(cls, record: SubscriptionRecord) -> "SubscriptionResponse":
        return cls.model_validate(record)


class SummaryResponse(BaseModel):
    """Total cost of the filtered subscriptions over the billing window."""

    start: str  # "MM-YYYY"
    end: str  # "MM-YYYY"
    total: int
    subscription_count: int
    months_billed: int

    @classmethod
    def from_summary(cls, summary: BillingSummary) -> "SummaryResponse":
        return cls(
            start=format_month_year(summary.window.start),
            end=format_month_year(summary.window.end),
            total=summary.total,
            subscription_count=summary.subscription_count,
            months_billed=summary.months_billed,
        )
