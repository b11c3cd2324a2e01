from app.schemas.subscription import (
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionUpdate,
    SummaryResponse,
)

__all__ = [
    "SubscriptionCreate",
    "SubscriptionResponse",
    "SubscriptionUpdate",
    "SummaryResponse",
]
