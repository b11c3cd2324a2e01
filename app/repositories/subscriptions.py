from __future__ import annotations

import hashlib
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import NotFoundError, PersistenceError
from app.models.subscription import Subscription, utc_now
from app.services.records import SubscriptionDraft, SubscriptionRecord

logger = logging.getLogger(__name__)


# mapper ORM -> record
def _record(row: Subscription) -> SubscriptionRecord:
    return SubscriptionRecord(
        id=row.id,
        service_name=row.service_name,
        price=int(row.price),
        user_id=row.user_id,
        start_date=row.start_date,
        end_date=row.end_date,
        created_at=row.created_at,
    )


def pair_lock_key(user_id: UUID, service_name: str) -> int:
    """Stable signed 64-bit key for a (user, service) pair."""
    digest = hashlib.blake2b(f"{user_id}:{service_name}".encode(), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


class SqlSubscriptionRepo:
    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, exc: SQLAlchemyError) -> PersistenceError:
        self.db.rollback()
        logger.exception(f"Failed to {action}: {exc}")
        return PersistenceError(f"Failed to {action}")

    def _row(self, subscription_id: UUID) -> Subscription:
        row = self.db.get(Subscription, subscription_id)
        if row is None:
            raise NotFoundError()
        return row

    def create(self, draft: SubscriptionDraft) -> SubscriptionRecord:
        try:
            row = Subscription(
                service_name=draft.service_name,
                price=draft.price,
                user_id=draft.user_id,
                start_date=draft.start_date,
                end_date=draft.end_date,
                created_at=utc_now(),
            )
            self.db.add(row)
            self.db.flush()
            self.db.refresh(row)
            return _record(row)
        except SQLAlchemyError as e:
            raise self._fail("create subscription", e)

    def get_by_id(self, subscription_id: UUID) -> SubscriptionRecord:
        try:
            return _record(self._row(subscription_id))
        except SQLAlchemyError as e:
            raise self._fail("load subscription", e)

    def list(
        self,
        user_id: Optional[UUID] = None,
        service_name: Optional[str] = None,
    ) -> list[SubscriptionRecord]:
        query = select(Subscription)
        if user_id is not None:
            query = query.where(Subscription.user_id == user_id)
        if service_name is not None:
            query = query.where(Subscription.service_name == service_name)

        try:
            return [_record(row) for row in self.db.execute(query).scalars().all()]
        except SQLAlchemyError as e:
            raise self._fail("list subscriptions", e)

    def update(self, record: SubscriptionRecord) -> SubscriptionRecord:
        """Replace every mutable column of the stored row with ``record``."""
        try:
            row = self._row(record.id)
            row.service_name = record.service_name
            row.price = record.price
            row.user_id = record.user_id
            row.start_date = record.start_date
            row.end_date = record.end_date
            self.db.flush()
            return _record(row)
        except SQLAlchemyError as e:
            raise self._fail("update subscription", e)

    def delete(self, subscription_id: UUID) -> None:
        try:
            self.db.delete(self._row(subscription_id))
            self.db.flush()
        except SQLAlchemyError as e:
            raise self._fail("delete subscription", e)

    def lock_pair(self, user_id: UUID, service_name: str) -> None:
        """Hold a transaction-scoped lock on the pair until commit or rollback.

        Only PostgreSQL has advisory locks; other backends rely on the
        in-process lock taken by the service.
        """
        if self.db.get_bind().dialect.name != "postgresql":
            return
        try:
            self.db.execute(
                text("SELECT pg_advisory_xact_lock(:key)"),
                {"key": pair_lock_key(user_id, service_name)},
            )
        except SQLAlchemyError as e:
            raise self._fail("lock subscription pair", e)

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("commit", e)

    def rollback(self) -> None:
        self.db.rollback()
