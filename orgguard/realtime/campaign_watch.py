from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from orgguard.realtime.change_feed import ChangeFeed, Subscription
from orgguard.schemas.voice_campaign import ChangeEvent

CALLS_TABLE = "voice_campaign_calls"
CAMPAIGNS_TABLE = "voice_campaigns"


class CampaignWatch:
    """Merged stream of call and campaign changes for one campaign."""

    def __init__(self, campaign_id: str, subscriptions: List[Subscription], queue: asyncio.Queue):
        self.campaign_id = campaign_id
        self.subscriptions = subscriptions
        self.queue = queue

    async def get(self) -> ChangeEvent:
        return await self.queue.get()

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        return await self.get()

    def close(self) -> None:
        for subscription in self.subscriptions:
            subscription.unsubscribe()


@asynccontextmanager
async def watch_voice_campaign(feed: ChangeFeed, campaign_id: str) -> AsyncIterator[CampaignWatch]:
    """
    Subscribe to every call change and to campaign updates for ``campaign_id``.

    Both subscriptions are removed when the block exits, including on cancellation.
    """
    campaign_id = str(campaign_id)
    queue: asyncio.Queue = asyncio.Queue()
    subscriptions: List[Subscription] = []
    watch = CampaignWatch(campaign_id, subscriptions, queue)
    try:
        subscriptions.append(
            feed.subscribe(CALLS_TABLE, f"campaign_id=eq.{campaign_id}", ("*",), queue=queue)
        )
        subscriptions.append(
            feed.subscribe(CAMPAIGNS_TABLE, f"id=eq.{campaign_id}", ("UPDATE",), queue=queue)
        )
        yield watch
    finally:
        watch.close()


class CampaignState:
    """Local view of a campaign rebuilt from change events."""

    def __init__(self, campaign: Optional[Dict[str, Any]] = None):
        self.campaign = campaign
        self.calls: Dict[str, Dict[str, Any]] = {}

    def apply(self, event: ChangeEvent) -> None:
        if not event.new:
            return
        if event.table == CALLS_TABLE:
            call_id = str(event.new.get("id"))
            self.calls[call_id] = {**self.calls.get(call_id, {}), **event.new}
        elif event.table == CAMPAIGNS_TABLE:
            self.campaign = {**(self.campaign or {}), **event.new}

    def calls_by_status(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for call in self.calls.values():
            status = call.get("status") or "pending"
            counts[status] = counts.get(status, 0) + 1
        return counts
