"""Immutable subscription values passed between the service stages."""

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from app.services.periods import normalize_month


@dataclass(frozen=True)
class SubscriptionDraft:
    """Candidate subscription as supplied by a create or update request."""

    service_name: str
    price: int
    user_id: UUID
    start_date: date
    end_date: Optional[date] = None

    @property
    def is_perpetual(self) -> bool:
        return self.end_date is None

    def normalized(self) -> "SubscriptionDraft":
        return replace(
            self,
            start_date=normalize_month(self.start_date),
            end_date=normalize_month(self.end_date) if self.end_date is not None else None,
        )


@dataclass(frozen=True)
class SubscriptionRecord:
    """A stored subscription."""

    id: UUID
    service_name: str
    price: int
    user_id: UUID
    start_date: date
    end_date: Optional[date]
    created_at: datetime

    @property
    def is_perpetual(self) -> bool:
        return self.end_date is None

    def with_values(self, draft: SubscriptionDraft) -> "SubscriptionRecord":
        """Full replace of every mutable field, keeping id and created_at."""
        return replace(
            self,
            service_name=draft.service_name,
            price=draft.price,
            user_id=draft.user_id,
            start_date=draft.start_date,
            end_date=draft.end_date,
        )
