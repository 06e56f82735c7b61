"""
Subscription API Routes
"""
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orgguard.api.dependencies import get_app_settings, get_now, require_super_admin
from orgguard.config import Settings
from orgguard.core.context import OrgContext
from orgguard.database import get_db
from orgguard.services.subscription_status import sweep_subscription_statuses

router = APIRouter()


@router.post("/sweep")
async def run_subscription_sweep(
    _admin: OrgContext = Depends(require_super_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    now: datetime = Depends(get_now),
) -> Dict[str, Any]:
    """Run the status sweep immediately instead of waiting for the schedule."""
    changes = sweep_subscription_statuses(
        db,
        now=now,
        grace_days=settings.past_due_grace_days,
        warning_days=settings.trial_warning_days,
    )
    return {
        "success": True,
        "updated": len(changes),
        "changes": [change.model_dump(mode="json") for change in changes],
        "timestamp": now.isoformat(),
    }
