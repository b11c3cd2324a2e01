import logging
from typing import Iterable, Optional
from uuid import UUID

from app.errors import ConflictError
from app.services.periods import intervals_overlap
from app.services.records import SubscriptionDraft, SubscriptionRecord

logger = logging.getLogger(__name__)


def find_overlaps(
    candidate: SubscriptionDraft,
    existing: Iterable[SubscriptionRecord],
    exclude_id: Optional[UUID] = None,
) -> list[SubscriptionRecord]:
    """Return every existing subscription whose period collides with the candidate.

    Only records for the same user and service are considered, and the
    record with ``exclude_id`` (the candidate's own prior version on
    update) is skipped.
    """
    conflicts = []
    for record in existing:
        if exclude_id is not None and record.id == exclude_id:
            continue
        if record.user_id != candidate.user_id or record.service_name != candidate.service_name:
            continue
        if intervals_overlap(
            candidate.start_date, candidate.end_date, record.start_date, record.end_date
        ):
            conflicts.append(record)
    return conflicts


def ensure_no_overlap(
    candidate: SubscriptionDraft,
    existing: Iterable[SubscriptionRecord],
    exclude_id: Optional[UUID] = None,
) -> None:
    """Raise ConflictError if the candidate overlaps any existing subscription."""
    conflicts = find_overlaps(candidate, existing, exclude_id=exclude_id)
    if conflicts:
        logger.warning(
            f"Subscription for user {candidate.user_id} service {candidate.service_name} "
            f"overlaps with {[str(c.id) for c in conflicts]}"
        )
        raise ConflictError(candidate.service_name)
