from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from orgguard.core.exceptions import NotFoundError
from orgguard.models import VoiceCampaign, VoiceCampaignCall
from orgguard.realtime.campaign_watch import CALLS_TABLE, CAMPAIGNS_TABLE
from orgguard.realtime.change_feed import ChangeFeed
from orgguard.schemas.voice_campaign import (
    VoiceCampaignCallRecord,
    VoiceCampaignCallUpdate,
    VoiceCampaignRecord,
    VoiceCampaignUpdate,
)

logger = logging.getLogger(__name__)


def get_campaign(db: Session, organization_id: UUID, campaign_id: UUID) -> VoiceCampaign:
    campaign = (
        db.query(VoiceCampaign)
        .filter(VoiceCampaign.id == campaign_id, VoiceCampaign.organization_id == organization_id)
        .first()
    )
    if campaign is None:
        raise NotFoundError(f"Voice campaign {campaign_id} not found")
    return campaign


def update_campaign(
    db: Session,
    feed: ChangeFeed,
    organization_id: UUID,
    campaign_id: UUID,
    payload: VoiceCampaignUpdate,
) -> VoiceCampaignRecord:
    campaign = get_campaign(db, organization_id, campaign_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(campaign, field, value)
    db.commit()
    db.refresh(campaign)

    record = VoiceCampaignRecord.model_validate(campaign)
    feed.publish(CAMPAIGNS_TABLE, "UPDATE", record.model_dump(mode="json"))
    return record


def update_call(
    db: Session,
    feed: ChangeFeed,
    organization_id: UUID,
    campaign_id: UUID,
    call_id: UUID,
    payload: VoiceCampaignCallUpdate,
) -> VoiceCampaignCallRecord:
    get_campaign(db, organization_id, campaign_id)
    call = (
        db.query(VoiceCampaignCall)
        .filter(VoiceCampaignCall.id == call_id, VoiceCampaignCall.campaign_id == campaign_id)
        .first()
    )
    if call is None:
        raise NotFoundError(f"Call {call_id} not found in campaign {campaign_id}")

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(call, field, value)
    db.commit()
    db.refresh(call)

    record = VoiceCampaignCallRecord.model_validate(call)
    delivered = feed.publish(CALLS_TABLE, "UPDATE", record.model_dump(mode="json"))
    logger.debug("Call %s update delivered to %s watcher(s)", call_id, delivered)
    return record
