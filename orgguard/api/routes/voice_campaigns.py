"""
Voice Campaign API Routes
Status writes that fan out to realtime watchers
"""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orgguard.api.dependencies import get_feed, require_organization
from orgguard.core.context import OrgContext
from orgguard.database import get_db
from orgguard.realtime.change_feed import ChangeFeed
from orgguard.schemas.voice_campaign import (
    VoiceCampaignCallRecord,
    VoiceCampaignCallUpdate,
    VoiceCampaignRecord,
    VoiceCampaignUpdate,
)
from orgguard.services import voice_campaigns as campaign_service

router = APIRouter()


@router.get("/{campaign_id}", response_model=VoiceCampaignRecord)
async def get_voice_campaign(
    campaign_id: UUID,
    ctx: OrgContext = Depends(require_organization),
    db: Session = Depends(get_db),
) -> VoiceCampaignRecord:
    campaign = campaign_service.get_campaign(db, ctx.organization_id, campaign_id)
    return VoiceCampaignRecord.model_validate(campaign)


@router.patch("/{campaign_id}", response_model=VoiceCampaignRecord)
async def patch_voice_campaign(
    campaign_id: UUID,
    payload: VoiceCampaignUpdate,
    ctx: OrgContext = Depends(require_organization),
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_feed),
) -> VoiceCampaignRecord:
    return campaign_service.update_campaign(db, feed, ctx.organization_id, campaign_id, payload)


@router.patch("/{campaign_id}/calls/{call_id}", response_model=VoiceCampaignCallRecord)
async def patch_voice_campaign_call(
    campaign_id: UUID,
    call_id: UUID,
    payload: VoiceCampaignCallUpdate,
    ctx: OrgContext = Depends(require_organization),
    db: Session = Depends(get_db),
    feed: ChangeFeed = Depends(get_feed),
) -> VoiceCampaignCallRecord:
    return campaign_service.update_call(db, feed, ctx.organization_id, campaign_id, call_id, payload)
