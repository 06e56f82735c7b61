"""Realtime change delivery for voice campaigns."""

from .campaign_watch import CampaignState, CampaignWatch, watch_voice_campaign
from .change_feed import ChangeFeed, Subscription, parse_filter

__all__ = [
    "CampaignState",
    "CampaignWatch",
    "ChangeFeed",
    "Subscription",
    "parse_filter",
    "watch_voice_campaign",
]
