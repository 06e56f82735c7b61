"""
Gated Creation API Routes
Each creation is checked against the organization's plan limit before the insert
"""
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from orgguard.api.dependencies import get_app_settings, get_notifier, get_now, require_organization
from orgguard.config import Settings
from orgguard.core.context import OrgContext
from orgguard.database import get_db
from orgguard.models import DynamicLink, NotificationCampaign, OrganizationMember, WhatsAppGroup
from orgguard.schemas.organization import CampaignCreate, DynamicLinkCreate, GroupCreate, MemberCreate
from orgguard.services.limits import load_limit_gate
from orgguard.services.notification_service import Notifier
from orgguard.services.usage import UsageAggregator, current_count

router = APIRouter()


def enforce_limit(
    db: Session,
    ctx: OrgContext,
    limit_key: str,
    settings: Settings,
    notifier: Notifier,
    now: datetime,
) -> None:
    """Raise LimitExceededError when the organization is already at ``limit_key``."""
    snapshot = UsageAggregator(db).snapshot(
        ctx.organization_id,
        now=now,
        timezone=ctx.timezone,
        month_basis=settings.usage_month_basis,
    )
    gate = load_limit_gate(db, ctx.organization_id, notifier)
    gate.check(limit_key, current_count(snapshot, limit_key) or 0)


@router.post("/whatsapp-groups", status_code=status.HTTP_201_CREATED)
async def create_whatsapp_group(
    payload: GroupCreate,
    ctx: OrgContext = Depends(require_organization),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    notifier: Notifier = Depends(get_notifier),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    enforce_limit(db, ctx, "groups_synced", settings, notifier, now)
    group = WhatsAppGroup(
        organization_id=ctx.organization_id,
        group_name=payload.group_name,
        invite_link=payload.invite_link,
        created_at=now,
    )
    db.add(group)
    db.commit()
    db.refresh(group)
    return {"id": str(group.id), "group_name": group.group_name, "invite_link": group.invite_link}


@router.post("/dynamic-links", status_code=status.HTTP_201_CREATED)
async def create_dynamic_link(
    payload: DynamicLinkCreate,
    ctx: OrgContext = Depends(require_organization),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    notifier: Notifier = Depends(get_notifier),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    enforce_limit(db, ctx, "dynamic_links", settings, notifier, now)
    if db.query(DynamicLink.id).filter(DynamicLink.slug == payload.slug).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slug already in use")
    link = DynamicLink(
        organization_id=ctx.organization_id,
        slug=payload.slug,
        destination_url=payload.destination_url,
        created_at=now,
    )
    db.add(link)
    db.commit()
    db.refresh(link)
    return {"id": str(link.id), "slug": link.slug, "destination_url": link.destination_url}


@router.post("/notification-campaigns", status_code=status.HTTP_201_CREATED)
async def create_notification_campaign(
    payload: CampaignCreate,
    ctx: OrgContext = Depends(require_organization),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    notifier: Notifier = Depends(get_notifier),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    enforce_limit(db, ctx, "campaigns_per_month", settings, notifier, now)
    campaign = NotificationCampaign(
        organization_id=ctx.organization_id,
        name=payload.name,
        created_at=now,
    )
    db.add(campaign)
    db.commit()
    db.refresh(campaign)
    return {"id": str(campaign.id), "name": campaign.name, "status": campaign.status}


@router.post("/members", status_code=status.HTTP_201_CREATED)
async def add_member(
    payload: MemberCreate,
    ctx: OrgContext = Depends(require_organization),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    notifier: Notifier = Depends(get_notifier),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    existing = (
        db.query(OrganizationMember.id)
        .filter(
            OrganizationMember.organization_id == ctx.organization_id,
            OrganizationMember.user_id == payload.user_id,
        )
        .first()
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User is already a member")

    enforce_limit(db, ctx, "team_members", settings, notifier, now)
    member = OrganizationMember(
        organization_id=ctx.organization_id,
        user_id=payload.user_id,
        role=payload.role,
        created_at=now,
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    return {"id": str(member.id), "user_id": str(member.user_id), "role": member.role}
