from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class UsageSnapshot(BaseModel):
    team_members: int = 0
    groups: int = 0
    campaigns: int = 0
    integrations: int = 0
    dynamic_links: int = 0


class UsageItem(BaseModel):
    key: str
    label: str
    current: int
    limit: int
    percentage: float
    unlimited: bool = False
    state: Literal["ok", "approaching", "reached"] = "ok"


class UsageResponse(BaseModel):
    plan_name: Optional[str] = None
    snapshot: UsageSnapshot
    items: list[UsageItem]
