"""
Organization Time API Routes
Calendar boundaries in the organization's timezone
"""
from datetime import datetime
from typing import Dict, List

from fastapi import APIRouter, Depends

from orgguard.api.dependencies import get_now, get_org_context
from orgguard.core.context import OrgContext
from orgguard.schemas.organization import OrgTimeResponse
from orgguard.services import timezone as tz_service

router = APIRouter()


@router.get("/org-time", response_model=OrgTimeResponse)
async def get_org_time(
    ctx: OrgContext = Depends(get_org_context),
    now: datetime = Depends(get_now),
) -> OrgTimeResponse:
    zone = ctx.timezone or tz_service.DEFAULT_TIMEZONE
    return OrgTimeResponse(
        timezone=zone,
        label=tz_service.timezone_label(zone),
        abbreviation=tz_service.timezone_abbreviation(zone),
        today=tz_service.today(zone, now),
        yesterday=tz_service.yesterday(zone, now),
        tomorrow=tz_service.tomorrow(zone, now),
        start_of_day=tz_service.start_of_day(zone, now).isoformat(),
        end_of_day=tz_service.end_of_day(zone, now).isoformat(),
    )


@router.get("/timezones")
async def list_timezones() -> Dict[str, List[Dict[str, str]]]:
    return {"timezones": tz_service.COMMON_TIMEZONES}
