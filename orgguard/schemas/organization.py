from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class OrgTimeResponse(BaseModel):
    timezone: str
    label: str
    abbreviation: str
    today: str
    yesterday: str
    tomorrow: str
    start_of_day: str
    end_of_day: str


class GroupCreate(BaseModel):
    group_name: str
    invite_link: Optional[str] = None


class DynamicLinkCreate(BaseModel):
    slug: str
    destination_url: str


class CampaignCreate(BaseModel):
    name: str


class MemberCreate(BaseModel):
    user_id: UUID
    role: str = "viewer"
