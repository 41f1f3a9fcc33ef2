# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Subscription validity rules.

Pure functions over an organization row: no I/O, so they are shared by the
request guards, the subscription info endpoint and the expiry sweep.
"""

import calendar
import math
from dataclasses import dataclass
from datetime import datetime

from .models.organization import Organization, SubscriptionStatus
from .plans import PlanType, is_pro

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class SubscriptionValidation:
    is_valid: bool
    reason: str | None = None
    needs_renewal: bool = False
    remaining_events: int | None = None
    days_until_expiry: int | None = None


def add_months(moment: datetime, months: int) -> datetime:
    """Same day ``months`` later, clamped to the last day of a shorter month."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def days_until(moment: datetime | None, now: datetime) -> int | None:
    """Whole days left until ``moment``, rounded up. Negative once past."""
    if moment is None:
        return None
    return math.ceil((moment - now).total_seconds() / SECONDS_PER_DAY)


def expiry_date(org: Organization) -> datetime | None:
    """The date the current paid plan lapses, if any."""
    if org.subscription_type == PlanType.EVENEMENTIELLE.value:
        return org.package_expiry_date
    if is_pro(org.subscription_type):
        return org.subscription_end_date
    return None


def days_until_expiry(org: Organization, now: datetime) -> int | None:
    return days_until(expiry_date(org), now)


def validate_subscription(org: Organization | None, now: datetime) -> SubscriptionValidation:
    """Decide whether the organization's current plan is usable.

    Only status and expiry make a subscription invalid. A package with no
    events left is still valid; creation guards deny it separately.
    """
    if org is None:
        return SubscriptionValidation(is_valid=False, reason="Organization not found")

    sub_type = org.subscription_type

    if sub_type == PlanType.DECOUVERTE.value:
        return SubscriptionValidation(is_valid=True)

    if sub_type == PlanType.EVENEMENTIELLE.value or is_pro(sub_type):
        days = days_until_expiry(org, now)

        if org.subscription_status != SubscriptionStatus.ACTIVE.value:
            return SubscriptionValidation(
                is_valid=False,
                reason=f"Subscription is {org.subscription_status}",
                needs_renewal=True,
                days_until_expiry=days,
            )

        if sub_type == PlanType.EVENEMENTIELLE.value:
            if org.package_expiry_date is not None and org.package_expiry_date < now:
                return SubscriptionValidation(
                    is_valid=False,
                    reason="Event package expired",
                    needs_renewal=True,
                    remaining_events=org.package_remaining_events or 0,
                    days_until_expiry=days,
                )
            return SubscriptionValidation(
                is_valid=True,
                remaining_events=org.package_remaining_events or 0,
                days_until_expiry=days,
            )

        if org.subscription_end_date is not None and org.subscription_end_date < now:
            return SubscriptionValidation(
                is_valid=False,
                reason="Subscription expired",
                needs_renewal=True,
                days_until_expiry=days,
            )
        return SubscriptionValidation(is_valid=True, days_until_expiry=days)

    return SubscriptionValidation(is_valid=False, reason="Unknown subscription type")
