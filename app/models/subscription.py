import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, Column, Date, DateTime, Index, String, Uuid

from app.db import Base


def utc_now():
    return datetime.now(timezone.utc)


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    service_name = Column(String(200), nullable=False, index=True)
    price = Column(BigInteger, nullable=False)  # Minor currency units per month
    user_id = Column(Uuid, nullable=False, index=True)
    start_date = Column(Date, nullable=False)  # Always the 1st of the month
    end_date = Column(Date, nullable=True)  # NULL = perpetual
    created_at = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_subscriptions_price_non_negative"),
        Index("ix_subscriptions_user_service", "user_id", "service_name"),
    )
