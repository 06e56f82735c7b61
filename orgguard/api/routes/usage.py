"""
Usage API Routes
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orgguard.api.dependencies import get_app_settings, get_now, require_organization
from orgguard.config import Settings
from orgguard.core.context import OrgContext
from orgguard.database import get_db
from orgguard.schemas.usage import UsageResponse
from orgguard.services.limits import load_limit_gate
from orgguard.services.usage import UsageAggregator, usage_report

router = APIRouter()


@router.get("/usage", response_model=UsageResponse)
async def get_usage(
    ctx: OrgContext = Depends(require_organization),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    now: datetime = Depends(get_now),
) -> UsageResponse:
    """Current counts per limited resource, with percentage of the plan limit used."""
    snapshot = UsageAggregator(db).snapshot(
        ctx.organization_id,
        now=now,
        timezone=ctx.timezone,
        month_basis=settings.usage_month_basis,
    )
    gate = load_limit_gate(db, ctx.organization_id)
    return UsageResponse(
        plan_name=gate.plan_name,
        snapshot=snapshot,
        items=usage_report(snapshot, gate.effective_limits()),
    )
