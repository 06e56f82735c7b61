"""
WebSocket API Endpoints
Live call and campaign updates for one voice campaign
"""
from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from orgguard.api.dependencies import is_super_admin
from orgguard.core.security import user_id_from_token
from orgguard.models import OrganizationMember, VoiceCampaign
from orgguard.realtime.campaign_watch import CampaignWatch, watch_voice_campaign

logger = logging.getLogger(__name__)
router = APIRouter()


def _can_watch(websocket: WebSocket, user_id: UUID, campaign_id: UUID) -> bool:
    db = websocket.app.state.session_factory()
    try:
        campaign = db.get(VoiceCampaign, campaign_id)
        if campaign is None:
            return False
        if is_super_admin(db, user_id):
            return True
        return (
            db.query(OrganizationMember.id)
            .filter(
                OrganizationMember.organization_id == campaign.organization_id,
                OrganizationMember.user_id == user_id,
            )
            .first()
            is not None
        )
    finally:
        db.close()


async def _forward_events(websocket: WebSocket, watch: CampaignWatch) -> None:
    async for event in watch:
        await websocket.send_json(
            {
                "type": "postgres_changes",
                "table": event.table,
                "event": event.event_type,
                "new": event.new,
                "commit_timestamp": event.commit_timestamp.isoformat(),
            }
        )


async def _read_client(websocket: WebSocket) -> None:
    while True:
        data = await websocket.receive_text()
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            continue
        if isinstance(message, dict) and message.get("type") == "ping":
            await websocket.send_json({"type": "pong", "status": "alive"})


@router.websocket("/ws/voice-campaigns/{campaign_id}")
async def voice_campaign_updates(
    websocket: WebSocket,
    campaign_id: UUID,
    token: Optional[str] = Query(default=None),
):
    """
    Stream changes for one campaign.

    Example:
      ws://localhost:8000/ws/voice-campaigns/<campaign_id>?token=<jwt>
    """
    secret_key = websocket.app.state.settings.secret_key.get_secret_value()
    user_id = user_id_from_token(token, secret_key)
    if user_id is None or not _can_watch(websocket, user_id, campaign_id):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    feed = websocket.app.state.change_feed
    async with watch_voice_campaign(feed, str(campaign_id)) as watch:
        await websocket.send_json(
            {
                "type": "connection_established",
                "campaign_id": str(campaign_id),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )
        tasks = [
            asyncio.create_task(_forward_events(websocket, watch)),
            asyncio.create_task(_read_client(websocket)),
        ]
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                exc = task.exception()
                if exc is not None and not isinstance(exc, WebSocketDisconnect):
                    raise exc
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
    logger.debug("Watcher for campaign %s disconnected", campaign_id)
