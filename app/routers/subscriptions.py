from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.dependencies import get_subscription_service
from app.errors import ValidationError
from app.schemas.subscription import (
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionUpdate,
    SummaryResponse,
)
from app.services.periods import MonthWindow
from app.services.subscriptions import SubscriptionService

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])

# Handlers are plain `def`: the service blocks on per-pair locks, so they
# must run in the threadpool rather than on the event loop.


def _filters(user_id: Optional[str], service_name: Optional[str]) -> tuple[Optional[UUID], Optional[str]]:
    """Empty query values mean no filter on that field."""
    parsed_user_id = None
    if user_id:
        try:
            parsed_user_id = UUID(user_id)
        except ValueError:
            raise ValidationError("user_id must be a valid UUID")
    return parsed_user_id, service_name or None


@router.post("", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
def create_subscription(
    subscription_data: SubscriptionCreate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Create a subscription. Fails with 409 if it overlaps another one for the same user and service."""
    record = service.create(subscription_data.to_draft())
    return SubscriptionResponse.from_record(record)


@router.get("", response_model=list[SubscriptionResponse])
def list_subscriptions(
    user_id: Optional[str] = Query(default=None, description="Filter by user ID"),
    service_name: Optional[str] = Query(default=None, max_length=200, description="Filter by service name"),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """List subscriptions, optionally filtered by user and/or service."""
    user_uuid, service_name = _filters(user_id, service_name)
    return [SubscriptionResponse.from_record(r) for r in service.list(user_uuid, service_name)]


@router.get("/summary", response_model=SummaryResponse)
def get_summary(
    start: str = Query(..., description="Start month MM-YYYY"),
    end: str = Query(..., description="End month MM-YYYY"),
    user_id: Optional[str] = Query(default=None, description="Filter by user ID"),
    service_name: Optional[str] = Query(default=None, max_length=200, description="Filter by service name"),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Total cost of matching subscriptions over the [start, end] months, both inclusive."""
    window = MonthWindow.from_tokens(start, end)
    user_uuid, service_name = _filters(user_id, service_name)
    summary = service.summary(window, user_id=user_uuid, service_name=service_name)
    return SummaryResponse.from_summary(summary)


@router.get("/{subscription_id}", response_model=SubscriptionResponse)
def get_subscription(
    subscription_id: UUID,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Get a single subscription by ID."""
    return SubscriptionResponse.from_record(service.get(subscription_id))


@router.put("/{subscription_id}", response_model=SubscriptionResponse)
def update_subscription(
    subscription_id: UUID,
    subscription_data: SubscriptionUpdate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Replace a subscription. The id and created_at stay the same."""
    record = service.update(subscription_id, subscription_data.to_draft())
    return SubscriptionResponse.from_record(record)


@router.delete("/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subscription(
    subscription_id: UUID,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Delete a subscription."""
    service.delete(subscription_id)
    return None
