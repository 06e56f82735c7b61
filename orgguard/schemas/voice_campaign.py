from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

CampaignStatus = Literal["draft", "scheduled", "running", "paused", "completed", "failed"]
CallStatus = Literal[
    "pending",
    "queued",
    "ringing",
    "in-progress",
    "completed",
    "busy",
    "no-answer",
    "failed",
    "cancelled",
]
CallOutcome = Literal[
    "confirmed",
    "rescheduled",
    "not_interested",
    "angry",
    "wrong_number",
    "voicemail",
    "no_response",
]


class VoiceCampaignRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    name: str
    status: CampaignStatus = "draft"
    total_contacts: int = 0
    calls_completed: int = 0
    calls_confirmed: int = 0
    calls_rescheduled: int = 0
    calls_not_interested: int = 0
    calls_no_answer: int = 0
    calls_failed: int = 0
    total_cost: Optional[Decimal] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class VoiceCampaignCallRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    campaign_id: UUID
    organization_id: UUID
    contact_name: str
    contact_phone: str
    status: CallStatus = "pending"
    outcome: Optional[CallOutcome] = None
    call_duration_seconds: Optional[int] = None
    total_cost: Optional[Decimal] = None


class VoiceCampaignUpdate(BaseModel):
    status: Optional[CampaignStatus] = None
    calls_completed: Optional[int] = None
    calls_confirmed: Optional[int] = None
    calls_failed: Optional[int] = None


class VoiceCampaignCallUpdate(BaseModel):
    status: Optional[CallStatus] = None
    outcome: Optional[CallOutcome] = None
    call_duration_seconds: Optional[int] = None
    total_cost: Optional[Decimal] = None


class ChangeEvent(BaseModel):
    table: str
    event_type: Literal["INSERT", "UPDATE", "DELETE"]
    new: dict[str, Any]
    commit_timestamp: datetime
