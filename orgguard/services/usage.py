from __future__ import annotations

from datetime import datetime, time
from typing import Literal, Mapping, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from orgguard.models import (
    DynamicLink,
    NotificationCampaign,
    OrganizationIntegration,
    OrganizationMember,
    WhatsAppGroup,
)
from orgguard.schemas.usage import UsageItem, UsageSnapshot
from orgguard.services.timezone import as_utc, start_of_month, utc_now

MonthBasis = Literal["organization", "server"]

LIMIT_LABELS = {
    "team_members": "Team Members",
    "whatsapp_numbers": "WhatsApp Numbers",
    "groups_synced": "Groups Synced",
    "campaigns_per_month": "Campaigns This Month",
    "dynamic_links": "Dynamic Links",
}

# limit key -> UsageSnapshot field
USAGE_METRIC_FOR_LIMIT = {
    "team_members": "team_members",
    "whatsapp_numbers": "integrations",
    "groups_synced": "groups",
    "campaigns_per_month": "campaigns",
    "dynamic_links": "dynamic_links",
}

UNLIMITED_THRESHOLD = 9999
APPROACHING_PERCENT = 80.0


def month_start(now: datetime, tz: Optional[str], basis: MonthBasis = "organization") -> datetime:
    """
    UTC instant from which "campaigns this month" are counted.

    ``organization`` uses the first of the month on the org's calendar; ``server`` uses
    the server's local clock.
    """
    if basis == "organization":
        return start_of_month(tz, now)
    local_now = as_utc(now).astimezone()
    first = datetime.combine(local_now.date().replace(day=1), time.min, tzinfo=local_now.tzinfo)
    return as_utc(first)


class UsageAggregator:
    """Counts current consumption per metric for one organization."""

    def __init__(self, db: Session):
        self.db = db

    def _count(self, model, organization_id: UUID, *criteria) -> int:
        return (
            self.db.query(func.count(model.id))
            .filter(model.organization_id == organization_id, *criteria)
            .scalar()
            or 0
        )

    def count_team_members(self, organization_id: UUID) -> int:
        return self._count(OrganizationMember, organization_id)

    def count_groups(self, organization_id: UUID) -> int:
        return self._count(WhatsAppGroup, organization_id)

    def count_campaigns_since(self, organization_id: UUID, since: datetime) -> int:
        return self._count(
            NotificationCampaign, organization_id, NotificationCampaign.created_at >= since
        )

    def count_integrations(self, organization_id: UUID) -> int:
        return self._count(OrganizationIntegration, organization_id)

    def count_dynamic_links(self, organization_id: UUID) -> int:
        return self._count(DynamicLink, organization_id)

    def snapshot(
        self,
        organization_id: Optional[UUID],
        *,
        now: Optional[datetime] = None,
        timezone: Optional[str] = None,
        month_basis: MonthBasis = "organization",
    ) -> UsageSnapshot:
        if organization_id is None:
            return UsageSnapshot()
        since = month_start(now or utc_now(), timezone, month_basis)
        return UsageSnapshot(
            team_members=self.count_team_members(organization_id),
            groups=self.count_groups(organization_id),
            campaigns=self.count_campaigns_since(organization_id, since),
            integrations=self.count_integrations(organization_id),
            dynamic_links=self.count_dynamic_links(organization_id),
        )


def current_count(snapshot: UsageSnapshot, limit_key: str) -> Optional[int]:
    field = USAGE_METRIC_FOR_LIMIT.get(limit_key)
    return getattr(snapshot, field) if field else None


def usage_report(snapshot: UsageSnapshot, effective_limits: Mapping[str, int]) -> list[UsageItem]:
    items: list[UsageItem] = []
    for key, label in LIMIT_LABELS.items():
        current = current_count(snapshot, key) or 0
        limit = effective_limits.get(key) or 0
        percentage = min(current / limit * 100, 100.0) if limit > 0 else 0.0
        if percentage >= 100:
            state = "reached"
        elif percentage >= APPROACHING_PERCENT:
            state = "approaching"
        else:
            state = "ok"
        items.append(
            UsageItem(
                key=key,
                label=label,
                current=current,
                limit=limit,
                percentage=round(percentage, 2),
                unlimited=limit >= UNLIMITED_THRESHOLD,
                state=state,
            )
        )
    return items
