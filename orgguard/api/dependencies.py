"""Shared API dependencies: settings, change feed, and the caller's organization context."""
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from orgguard.config import Settings
from orgguard.core.context import OrgContext
from orgguard.core.security import get_current_user_id
from orgguard.database import get_db
from orgguard.models import Organization, OrganizationMember, UserRole
from orgguard.realtime.change_feed import ChangeFeed
from orgguard.services.notification_service import Notifier

SUPER_ADMIN_ROLE = "super_admin"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_feed(request: Request) -> ChangeFeed:
    return request.app.state.change_feed


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_now(request: Request) -> datetime:
    """Current instant from ``app.state.clock``."""
    return request.app.state.clock()


def is_super_admin(db: Session, user_id: UUID) -> bool:
    return (
        db.query(UserRole.id)
        .filter(UserRole.user_id == user_id, UserRole.role == SUPER_ADMIN_ROLE)
        .first()
        is not None
    )


def get_org_context(
    x_organization_id: Optional[UUID] = Header(default=None, alias="X-Organization-Id"),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> OrgContext:
    """
    Resolve who is calling and for which organization.

    No header means no organization: gates then deny module access and skip limits.
    """
    super_admin = is_super_admin(db, user_id)
    if x_organization_id is None:
        return OrgContext(
            user_id=user_id,
            organization_id=None,
            timezone=settings.default_timezone,
            is_super_admin=super_admin,
        )

    organization = db.get(Organization, x_organization_id)
    if organization is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")

    if not super_admin:
        membership = (
            db.query(OrganizationMember.id)
            .filter(
                OrganizationMember.organization_id == x_organization_id,
                OrganizationMember.user_id == user_id,
            )
            .first()
        )
        if membership is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not a member of this organization",
            )

    return OrgContext(
        user_id=user_id,
        organization_id=organization.id,
        timezone=organization.timezone or settings.default_timezone,
        is_super_admin=super_admin,
    )


def require_organization(ctx: OrgContext = Depends(get_org_context)) -> OrgContext:
    if ctx.organization_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Organization-Id header is required",
        )
    return ctx


def require_super_admin(ctx: OrgContext = Depends(get_org_context)) -> OrgContext:
    if not ctx.is_super_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin access required")
    return ctx
