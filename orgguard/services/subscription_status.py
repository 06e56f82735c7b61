"""
Automatic subscription status transitions.

trial    -> expired   once trial_ends_at has passed
active   -> past_due  once the period ended without a completed payment since
past_due -> expired   once the period ended more than the grace window ago

Trials ending within the warning window get a single "expiring soon" notice.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from orgguard.models import (
    OrganizationSubscription,
    SubscriptionAuditLog,
    SubscriptionNotification,
    SubscriptionPayment,
)
from orgguard.schemas.subscription import StatusChange
from orgguard.services.timezone import as_utc, utc_now

logger = logging.getLogger(__name__)


def _notify(db: Session, organization_id, notification_type: str, title: str, message: str) -> None:
    db.add(
        SubscriptionNotification(
            organization_id=organization_id,
            notification_type=notification_type,
            title=title,
            message=message,
        )
    )


def _transition(
    db: Session,
    subscription: OrganizationSubscription,
    new_status: str,
    changes: list[StatusChange],
) -> None:
    changes.append(
        StatusChange(
            subscription_id=subscription.id,
            organization_id=subscription.organization_id,
            old_status=subscription.status,
            new_status=new_status,
        )
    )
    subscription.status = new_status


def _has_payment_since(db: Session, subscription_id, since: datetime) -> bool:
    count = (
        db.query(func.count(SubscriptionPayment.id))
        .filter(
            SubscriptionPayment.subscription_id == subscription_id,
            SubscriptionPayment.payment_status == "completed",
            SubscriptionPayment.payment_date >= since,
        )
        .scalar()
    )
    return bool(count)


def sweep_subscription_statuses(
    db: Session,
    now: Optional[datetime] = None,
    grace_days: int = 30,
    warning_days: int = 3,
) -> list[StatusChange]:
    now = as_utc(now or utc_now())
    changes: list[StatusChange] = []

    expired_trials = (
        db.query(OrganizationSubscription)
        .filter(
            OrganizationSubscription.status == "trial",
            OrganizationSubscription.trial_ends_at < now,
        )
        .all()
    )
    for subscription in expired_trials:
        _transition(db, subscription, "expired", changes)
        _notify(
            db,
            subscription.organization_id,
            "trial_expired",
            "Trial Expired",
            "Trial period has ended. Subscription marked as expired.",
        )
    db.flush()

    lapsed = (
        db.query(OrganizationSubscription)
        .filter(
            OrganizationSubscription.status == "active",
            OrganizationSubscription.current_period_end < now,
        )
        .all()
    )
    for subscription in lapsed:
        if _has_payment_since(db, subscription.id, subscription.current_period_end):
            continue
        _transition(db, subscription, "past_due", changes)
        _notify(
            db,
            subscription.organization_id,
            "past_due",
            "Subscription Past Due",
            "Payment period ended without a recorded payment.",
        )
    db.flush()

    grace_cutoff = now - timedelta(days=grace_days)
    long_past_due = (
        db.query(OrganizationSubscription)
        .filter(
            OrganizationSubscription.status == "past_due",
            OrganizationSubscription.current_period_end < grace_cutoff,
        )
        .all()
    )
    for subscription in long_past_due:
        _transition(db, subscription, "expired", changes)
    db.flush()

    warning_cutoff = now + timedelta(days=warning_days)
    expiring = (
        db.query(OrganizationSubscription)
        .filter(
            OrganizationSubscription.status == "trial",
            OrganizationSubscription.trial_ends_at > now,
            OrganizationSubscription.trial_ends_at <= warning_cutoff,
        )
        .all()
    )
    for subscription in expiring:
        already_sent = (
            db.query(func.count(SubscriptionNotification.id))
            .filter(
                SubscriptionNotification.organization_id == subscription.organization_id,
                SubscriptionNotification.notification_type == "trial_expiring_soon",
            )
            .scalar()
        )
        if already_sent:
            continue
        _notify(
            db,
            subscription.organization_id,
            "trial_expiring_soon",
            "Trial Expiring Soon",
            f"Trial period ends in {warning_days} days or less.",
        )

    for change in changes:
        db.add(
            SubscriptionAuditLog(
                subscription_id=change.subscription_id,
                action="status_changed",
                old_value={"status": change.old_status},
                new_value={"status": change.new_status, "auto": True},
                performed_by=None,
            )
        )
        logger.info(
            "Subscription %s status %s -> %s",
            change.subscription_id,
            change.old_status,
            change.new_status,
        )

    db.commit()
    return changes
