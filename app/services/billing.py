"""Cost aggregation over a billing window."""

from dataclasses import dataclass
from typing import Iterable

from app.services.periods import MonthWindow, months_between
from app.services.records import SubscriptionRecord


@dataclass(frozen=True)
class BillingSummary:
    window: MonthWindow
    total: int
    subscription_count: int
    months_billed: int


def billed_months(subscription: SubscriptionRecord, window: MonthWindow) -> int:
    """Number of months of ``subscription`` that fall inside ``window``."""
    overlap = window.clip(subscription.start_date, subscription.end_date)
    if overlap is None:
        return 0
    return months_between(*overlap)


def subscription_cost(subscription: SubscriptionRecord, window: MonthWindow) -> int:
    return billed_months(subscription, window) * subscription.price


def summarize(subscriptions: Iterable[SubscriptionRecord], window: MonthWindow) -> BillingSummary:
    """Total cost of all subscriptions intersecting the window.

    Perpetual subscriptions are billed up to the end of the window.
    Subscriptions outside the window are skipped entirely and do not
    count towards ``subscription_count``.
    """
    total = 0
    count = 0
    months = 0
    for sub in subscriptions:
        sub_months = billed_months(sub, window)
        if sub_months == 0:
            continue
        count += 1
        months += sub_months
        total += sub_months * sub.price

    return BillingSummary(window=window, total=total, subscription_count=count, months_billed=months)


def total_cost(subscriptions: Iterable[SubscriptionRecord], window: MonthWindow) -> int:
    return summarize(subscriptions, window).total
