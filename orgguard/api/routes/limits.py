"""
Plan Limit API Routes
Effective limits and allow/deny checks for the caller's organization
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orgguard.api.dependencies import get_app_settings, get_notifier, get_now, require_organization
from orgguard.config import Settings
from orgguard.core.context import OrgContext
from orgguard.database import get_db
from orgguard.schemas.subscription import EffectiveLimitsResponse, LimitCheckRequest, LimitCheckResponse
from orgguard.services.limits import load_limit_gate
from orgguard.services.notification_service import Notifier
from orgguard.services.usage import UsageAggregator, current_count

router = APIRouter()


@router.get("/limits", response_model=EffectiveLimitsResponse)
async def get_effective_limits(
    ctx: OrgContext = Depends(require_organization),
    db: Session = Depends(get_db),
) -> EffectiveLimitsResponse:
    gate = load_limit_gate(db, ctx.organization_id)
    return EffectiveLimitsResponse(
        plan_name=gate.plan_name,
        status=gate.subscription.status if gate.subscription else None,
        limits=gate.effective_limits(),
    )


@router.post("/limits/check", response_model=LimitCheckResponse)
async def check_limit(
    payload: LimitCheckRequest,
    ctx: OrgContext = Depends(require_organization),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    notifier: Notifier = Depends(get_notifier),
    now: datetime = Depends(get_now),
) -> LimitCheckResponse:
    """
    Would one more creation be allowed?

    When ``current_count`` is omitted the organization's live usage is counted.
    """
    count = payload.current_count
    if count is None:
        snapshot = UsageAggregator(db).snapshot(
            ctx.organization_id,
            now=now,
            timezone=ctx.timezone,
            month_basis=settings.usage_month_basis,
        )
        count = current_count(snapshot, payload.limit_key) or 0

    gate = load_limit_gate(db, ctx.organization_id, notifier)
    allowed = gate.allow(payload.limit_key, count)
    return LimitCheckResponse(
        limit_key=payload.limit_key,
        allowed=allowed,
        current_count=count,
        limit=gate.limit_for(payload.limit_key),
        message=None if allowed else gate.last_denial,
    )
