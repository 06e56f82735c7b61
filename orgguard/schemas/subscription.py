from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlanLimitRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[UUID] = None
    plan_id: Optional[UUID] = None
    limit_key: str
    limit_value: int
    description: Optional[str] = None


class SubscriptionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    plan_id: UUID
    plan_name: Optional[str] = None
    plan_slug: Optional[str] = None
    status: str
    custom_limits: dict[str, Optional[int]] = Field(default_factory=dict)
    trial_ends_at: Optional[datetime] = None
    current_period_end: Optional[datetime] = None

    @field_validator("custom_limits", mode="before")
    @classmethod
    def default_custom_limits(cls, value):
        return value or {}


class StatusChange(BaseModel):
    subscription_id: UUID
    organization_id: UUID
    old_status: str
    new_status: str


class EffectiveLimitsResponse(BaseModel):
    plan_name: Optional[str] = None
    status: Optional[str] = None
    limits: dict[str, int] = Field(default_factory=dict)


class LimitCheckRequest(BaseModel):
    limit_key: str
    current_count: Optional[int] = Field(default=None, ge=0)


class LimitCheckResponse(BaseModel):
    limit_key: str
    allowed: bool
    current_count: int
    limit: Optional[int] = None
    message: Optional[str] = None
