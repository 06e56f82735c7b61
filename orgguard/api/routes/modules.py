"""
Module API Routes
Catalog, per-organization enablement and config
"""
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orgguard.api.dependencies import get_now, get_org_context, require_organization, require_super_admin
from orgguard.core.context import OrgContext
from orgguard.database import get_db
from orgguard.schemas.module import ModuleStatus, ModuleToggle
from orgguard.services.modules import list_modules, load_module_gate, set_module_enabled

router = APIRouter()


@router.get("/modules")
async def get_modules(
    ctx: OrgContext = Depends(get_org_context),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    gate = load_module_gate(db, ctx)
    catalog = list_modules(db)
    return {
        "modules": [
            {
                **module.model_dump(mode="json"),
                "enabled": gate.is_enabled(module.slug),
            }
            for module in catalog
        ],
        "enabled": [module.slug for module in gate.enabled_modules],
    }


@router.get("/modules/{slug}", response_model=ModuleStatus)
async def get_module_status(
    slug: str,
    ctx: OrgContext = Depends(get_org_context),
    db: Session = Depends(get_db),
) -> ModuleStatus:
    gate = load_module_gate(db, ctx)
    return ModuleStatus(slug=slug, enabled=gate.is_enabled(slug), config=gate.get_config(slug))


@router.put("/modules/{slug}", response_model=ModuleStatus)
async def toggle_module(
    slug: str,
    payload: ModuleToggle,
    ctx: OrgContext = Depends(require_organization),
    _admin: OrgContext = Depends(require_super_admin),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ModuleStatus:
    """Enable or disable a module for the organization in ``X-Organization-Id``."""
    row = set_module_enabled(db, ctx.organization_id, slug, payload.is_enabled, payload.config, now=now)
    return ModuleStatus(slug=slug, enabled=row.is_enabled, config=row.config)
