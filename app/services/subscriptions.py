"""Subscription use cases: normalize -> check overlaps -> persist."""

import logging
import threading
from contextlib import contextmanager
from typing import Optional
from uuid import UUID

from app.errors import ValidationError
from app.repositories.subscriptions import SqlSubscriptionRepo
from app.services.billing import BillingSummary, summarize
from app.services.overlap import ensure_no_overlap
from app.services.periods import MonthWindow
from app.services.records import SubscriptionDraft, SubscriptionRecord

logger = logging.getLogger(__name__)


class PairLocks:
    """In-process locks keyed by (user_id, service_name).

    An entry lives only while some thread holds or waits for it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, number of holders and waiters]
        self._locks: dict[tuple[str, str], list] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: tuple[str, str]) -> threading.Lock:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
            return entry[0]

    def _release(self, key: tuple[str, str]) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[0].release()
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *pairs: tuple[UUID, str]):
        # Sorted so two updates swapping pairs cannot deadlock
        keys = sorted({(str(user_id), service_name) for user_id, service_name in pairs})
        acquired = []
        try:
            for key in keys:
                self._checkout(key).acquire()
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._release(key)


pair_locks = PairLocks()


def _prepare(draft: SubscriptionDraft) -> SubscriptionDraft:
    if not draft.service_name or not draft.service_name.strip():
        raise ValidationError("service_name is required")
    if draft.price < 0:
        raise ValidationError("price cannot be negative")

    draft = draft.normalized()
    if draft.end_date is not None and draft.end_date < draft.start_date:
        logger.warning(
            f"Subscription for user {draft.user_id} service {draft.service_name} "
            f"ends ({draft.end_date}) before it starts ({draft.start_date})"
        )
    return draft


class SubscriptionService:
    def __init__(self, repo: SqlSubscriptionRepo, locks: PairLocks = pair_locks):
        self.repo = repo
        self.locks = locks

    @contextmanager
    def _exclusive(self, *pairs: tuple[UUID, str]):
        """Serialize read-check-write for the given pairs and commit on success."""
        with self.locks.hold(*pairs):
            try:
                for user_id, service_name in sorted(set(pairs), key=lambda p: (str(p[0]), p[1])):
                    self.repo.lock_pair(user_id, service_name)
                yield
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

    def create(self, draft: SubscriptionDraft) -> SubscriptionRecord:
        draft = _prepare(draft)
        with self._exclusive((draft.user_id, draft.service_name)):
            existing = self.repo.list(draft.user_id, draft.service_name)
            ensure_no_overlap(draft, existing)
            created = self.repo.create(draft)

        logger.info(f"Created subscription {created.id} ({created.service_name}) for user {created.user_id}")
        return created

    def get(self, subscription_id: UUID) -> SubscriptionRecord:
        return self.repo.get_by_id(subscription_id)

    def list(
        self,
        user_id: Optional[UUID] = None,
        service_name: Optional[str] = None,
    ) -> list[SubscriptionRecord]:
        return self.repo.list(user_id, service_name)

    def update(self, subscription_id: UUID, draft: SubscriptionDraft) -> SubscriptionRecord:
        """Replace a subscription in full. id and created_at are preserved."""
        draft = _prepare(draft)
        current = self.repo.get_by_id(subscription_id)

        pairs = {(current.user_id, current.service_name), (draft.user_id, draft.service_name)}
        with self._exclusive(*pairs):
            # Re-read under the lock in case it was deleted meanwhile. If its
            # pair changed since the first read, that old pair is not locked;
            # moving a record out of a pair cannot create an overlap there.
            current = self.repo.get_by_id(subscription_id)
            existing = self.repo.list(draft.user_id, draft.service_name)
            ensure_no_overlap(draft, existing, exclude_id=subscription_id)
            updated = self.repo.update(current.with_values(draft))

        logger.info(f"Updated subscription {updated.id}")
        return updated

    def delete(self, subscription_id: UUID) -> None:
        try:
            self.repo.delete(subscription_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Deleted subscription {subscription_id}")

    def summary(
        self,
        window: MonthWindow,
        user_id: Optional[UUID] = None,
        service_name: Optional[str] = None,
    ) -> BillingSummary:
        subscriptions = self.repo.list(user_id, service_name)
        return summarize(subscriptions, window)
