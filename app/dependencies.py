from fastapi import Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.repositories.subscriptions import SqlSubscriptionRepo
from app.services.subscriptions import SubscriptionService


def get_subscription_service(db: Session = Depends(get_db)) -> SubscriptionService:
    """Build the subscription service on top of the request's session."""
    return SubscriptionService(SqlSubscriptionRepo(db))
