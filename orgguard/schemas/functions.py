from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class WorkshopTestRequest(BaseModel):
    """Optional overrides for the workshop confirmation test message."""

    destination: Optional[str] = None
    user_name: Optional[str] = None
    workshop_name: str = "Test Workshop"
    workshop_date: str = "1st January"
    workshop_time: str = "7 PM"
    registration_url: str = "https://example.com/registration-successful"

    def template_params(self, user_name: str) -> List[str]:
        return [
            user_name,
            self.workshop_name,
            self.workshop_date,
            self.workshop_time,
            self.registration_url,
        ]


class VoiceAgent(BaseModel):
    id: Any = None
    name: str


class VoiceAgentList(BaseModel):
    agents: List[VoiceAgent] = Field(default_factory=list)
