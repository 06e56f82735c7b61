from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from orgguard.core.context import OrgContext
from orgguard.core.exceptions import NotFoundError
from orgguard.models import Module, OrganizationModule
from orgguard.schemas.module import ModuleRecord, OrganizationModuleRecord
from orgguard.services.timezone import utc_now

logger = logging.getLogger(__name__)


class ModuleGate:
    """Decides whether a feature area is visible for the current organization."""

    def __init__(
        self,
        organization_id: Optional[UUID],
        org_modules: Iterable[OrganizationModuleRecord] = (),
        is_super_admin: bool = False,
    ):
        self.organization_id = organization_id
        self.org_modules = list(org_modules)
        self.is_super_admin = is_super_admin

    def _row(self, slug: str) -> Optional[OrganizationModuleRecord]:
        for org_module in self.org_modules:
            if org_module.module and org_module.module.slug == slug:
                return org_module
        return None

    def is_enabled(self, slug: str) -> bool:
        if self.is_super_admin:
            return True
        if self.organization_id is None:
            return False
        row = self._row(slug)
        return bool(row and row.is_enabled)

    def get_config(self, slug: str) -> Optional[dict[str, Any]]:
        """Retained configuration for the module, whether or not it is enabled."""
        row = self._row(slug)
        return row.config if row else None

    @property
    def enabled_modules(self) -> list[ModuleRecord]:
        return [om.module for om in self.org_modules if om.is_enabled and om.module]


def list_modules(db: Session) -> list[ModuleRecord]:
    rows = db.query(Module).order_by(Module.display_order.asc()).all()
    return [ModuleRecord.model_validate(row) for row in rows]


def get_organization_modules(db: Session, organization_id: UUID) -> list[OrganizationModuleRecord]:
    rows = (
        db.query(OrganizationModule)
        .options(joinedload(OrganizationModule.module))
        .filter(OrganizationModule.organization_id == organization_id)
        .all()
    )
    return [OrganizationModuleRecord.model_validate(row) for row in rows]


def load_module_gate(db: Session, ctx: OrgContext) -> ModuleGate:
    org_modules = get_organization_modules(db, ctx.organization_id) if ctx.organization_id else []
    return ModuleGate(ctx.organization_id, org_modules, is_super_admin=ctx.is_super_admin)


def set_module_enabled(
    db: Session,
    organization_id: UUID,
    slug: str,
    enabled: bool,
    config: Optional[dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> OrganizationModuleRecord:
    """Enable or disable a module for an organization, creating the row if needed."""
    module = db.query(Module).filter(Module.slug == slug).first()
    if module is None:
        raise NotFoundError(f"Module '{slug}' not found")

    org_module = (
        db.query(OrganizationModule)
        .filter(
            OrganizationModule.organization_id == organization_id,
            OrganizationModule.module_id == module.id,
        )
        .first()
    )
    if org_module is None:
        org_module = OrganizationModule(
            organization_id=organization_id,
            module_id=module.id,
            config={},
        )
        db.add(org_module)

    org_module.is_enabled = enabled
    if enabled:
        org_module.enabled_at = now or utc_now()
    if config is not None:
        org_module.config = config
    db.commit()
    db.refresh(org_module)
    logger.info("Module %s set enabled=%s for org=%s", slug, enabled, organization_id)
    return OrganizationModuleRecord.model_validate(org_module)
