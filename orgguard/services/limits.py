"""
Plan limit resolution and enforcement.

Limits are advisory point-in-time checks: the caller reads usage, asks the gate, then
writes. Two concurrent creations can both pass at ``count == limit - 1``; nothing here
serializes them.
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from orgguard.core.exceptions import LimitExceededError
from orgguard.models import BillingPlan, OrganizationSubscription, PlanLimit
from orgguard.schemas.subscription import PlanLimitRecord, SubscriptionRecord
from orgguard.services.notification_service import Notifier, send_notification

logger = logging.getLogger(__name__)

LIMIT_NOTIFICATION_CHANNEL = "toast.error"


def resolve_effective_limits(
    plan_limits: Iterable[PlanLimitRecord],
    custom_limits: Optional[Mapping[str, Optional[int]]] = None,
) -> dict[str, int]:
    """
    Merge plan defaults with per-organization overrides.

    Only keys defined by the plan are returned; an override for a key the plan does
    not define is ignored.
    """
    overrides = custom_limits or {}
    limits: dict[str, int] = {}
    for plan_limit in plan_limits:
        key = plan_limit.limit_key
        limits[key] = int(overrides[key]) if overrides.get(key) is not None else plan_limit.limit_value
    return limits


def effective_limit(
    plan_limits: Iterable[PlanLimitRecord],
    custom_limits: Optional[Mapping[str, Optional[int]]],
    limit_key: str,
) -> Optional[int]:
    """Effective ceiling for one key, or None when the plan leaves it unconstrained."""
    return resolve_effective_limits(plan_limits, custom_limits).get(limit_key)


def limit_denial_message(limit_key: str, plan_name: Optional[str]) -> str:
    return (
        f"You've reached the limit for {limit_key.replace('_', ' ')} on your "
        f"{plan_name or 'your'} plan. Please upgrade or contact support."
    )


class LimitGate:
    """Allow/deny decisions for creation actions against an organization's plan."""

    def __init__(
        self,
        subscription: Optional[SubscriptionRecord],
        plan_limits: Iterable[PlanLimitRecord] = (),
        notifier: Notifier = send_notification,
    ):
        self.subscription = subscription
        self.plan_limits = list(plan_limits)
        self.notifier = notifier
        self.last_denial: Optional[str] = None

    @property
    def plan_name(self) -> Optional[str]:
        return self.subscription.plan_name if self.subscription else None

    def effective_limits(self) -> dict[str, int]:
        if self.subscription is None:
            return {}
        return resolve_effective_limits(self.plan_limits, self.subscription.custom_limits)

    def limit_for(self, limit_key: str) -> Optional[int]:
        return self.effective_limits().get(limit_key)

    def allow(self, limit_key: str, current_count: int) -> bool:
        limit = self.limit_for(limit_key)
        if limit is None:
            return True
        if current_count < limit:
            return True

        message = limit_denial_message(limit_key, self.plan_name)
        self.last_denial = message
        logger.info(
            "Limit reached org=%s key=%s current=%s limit=%s",
            self.subscription.organization_id if self.subscription else None,
            limit_key,
            current_count,
            limit,
        )
        self.notifier(
            LIMIT_NOTIFICATION_CHANNEL,
            message,
            {"limit_key": limit_key, "limit": limit, "current": current_count},
        )
        return False

    def check(self, limit_key: str, current_count: int) -> None:
        """Like ``allow`` but raises LimitExceededError on denial."""
        if not self.allow(limit_key, current_count):
            raise LimitExceededError(
                limit_key=limit_key,
                limit=self.limit_for(limit_key) or 0,
                current=current_count,
                message=self.last_denial or limit_denial_message(limit_key, self.plan_name),
            )


def get_subscription(db: Session, organization_id: UUID) -> Optional[SubscriptionRecord]:
    row = (
        db.query(OrganizationSubscription, BillingPlan.name, BillingPlan.slug)
        .join(BillingPlan, OrganizationSubscription.plan_id == BillingPlan.id)
        .filter(OrganizationSubscription.organization_id == organization_id)
        .first()
    )
    if row is None:
        return None
    subscription, plan_name, plan_slug = row
    return SubscriptionRecord(
        id=subscription.id,
        organization_id=subscription.organization_id,
        plan_id=subscription.plan_id,
        plan_name=plan_name,
        plan_slug=plan_slug,
        status=subscription.status,
        custom_limits=subscription.custom_limits,
        trial_ends_at=subscription.trial_ends_at,
        current_period_end=subscription.current_period_end,
    )


def get_plan_limits(db: Session, plan_id: UUID) -> list[PlanLimitRecord]:
    rows = db.query(PlanLimit).filter(PlanLimit.plan_id == plan_id).all()
    return [PlanLimitRecord.model_validate(row) for row in rows]


def load_limit_gate(
    db: Session,
    organization_id: Optional[UUID],
    notifier: Notifier = send_notification,
) -> LimitGate:
    if organization_id is None:
        return LimitGate(None, (), notifier)
    subscription = get_subscription(db, organization_id)
    if subscription is None:
        return LimitGate(None, (), notifier)
    return LimitGate(subscription, get_plan_limits(db, subscription.plan_id), notifier)
