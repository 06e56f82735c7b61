"""
Feature Override API Routes
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orgguard.api.dependencies import get_org_context, require_organization
from orgguard.core.context import OrgContext
from orgguard.database import get_db
from orgguard.schemas.module import FeatureCheckResponse, FeatureOverrideRecord
from orgguard.services.feature_overrides import (
    PERMISSION_KEYS,
    PERMISSION_LABELS,
    ROUTE_TO_PERMISSION,
    default_permissions_for_role,
    get_feature_overrides,
    is_feature_available,
    load_feature_override_gate,
)
from orgguard.services.modules import load_module_gate

router = APIRouter()


@router.get("/feature-overrides", response_model=FeatureOverrideRecord)
async def get_overrides(
    ctx: OrgContext = Depends(require_organization),
    db: Session = Depends(get_db),
) -> FeatureOverrideRecord:
    return get_feature_overrides(db, ctx.organization_id)


@router.get("/features/check", response_model=FeatureCheckResponse)
async def check_feature(
    module: Optional[str] = Query(default=None),
    permission: Optional[str] = Query(default=None),
    integration: Optional[str] = Query(default=None),
    ctx: OrgContext = Depends(get_org_context),
    db: Session = Depends(get_db),
) -> FeatureCheckResponse:
    """Module enablement combined with the organization's admin overrides."""
    available = is_feature_available(
        load_module_gate(db, ctx),
        load_feature_override_gate(db, ctx.organization_id),
        module=module,
        permission=permission,
        integration=integration,
    )
    return FeatureCheckResponse(
        available=available,
        module=module,
        permission=permission,
        integration=integration,
    )


@router.get("/permissions")
async def get_permission_catalog(
    role: Optional[str] = Query(default=None),
    _ctx: OrgContext = Depends(get_org_context),
) -> Dict[str, Any]:
    """Permission keys with labels, route mapping, and optionally a role's defaults."""
    catalog: Dict[str, Any] = {
        "permissions": [{"key": key, "label": PERMISSION_LABELS[key]} for key in PERMISSION_KEYS],
        "routes": ROUTE_TO_PERMISSION,
    }
    if role:
        catalog["defaults"] = default_permissions_for_role(role)
    return catalog
