"""
Per-organization deny-lists for permissions and integrations.

An override always wins: a module can be enabled and still be unusable if the
organization's override row disables the permission or integration behind it.
"""
from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from orgguard.models import OrganizationFeatureOverride
from orgguard.schemas.module import FeatureOverrideRecord
from orgguard.services.modules import ModuleGate

PERMISSION_KEYS = (
    "dashboard",
    "daily_money_flow",
    "customers",
    "customer_insights",
    "call_schedule",
    "sales_closers",
    "batch_icc",
    "batch_futures",
    "batch_high_future",
    "workshops",
    "sales",
    "funnels",
    "products",
    "users",
)

PERMISSION_LABELS = {
    "dashboard": "Dashboard",
    "daily_money_flow": "Daily Money Flow",
    "customers": "Customers",
    "customer_insights": "Customer Insights",
    "call_schedule": "1:1 Call Schedule",
    "sales_closers": "Sales Closers",
    "batch_icc": "Insider Crypto Club",
    "batch_futures": "Future Mentorship",
    "batch_high_future": "High Future",
    "workshops": "All Workshops",
    "sales": "Sales",
    "funnels": "Active Funnels",
    "products": "Products",
    "users": "Users",
}

ROUTE_TO_PERMISSION = {
    "/": "dashboard",
    "/daily-money-flow": "daily_money_flow",
    "/leads": "customers",
    "/onboarding": "customer_insights",
    "/calls": "call_schedule",
    "/sales-closers": "sales_closers",
    "/batches": "batch_icc",
    "/futures-mentorship": "batch_futures",
    "/high-future": "batch_high_future",
    "/workshops": "workshops",
    "/sales": "sales",
    "/funnels": "funnels",
    "/products": "products",
    "/users": "users",
}

DEFAULT_PERMISSIONS = {
    "admin": list(PERMISSION_KEYS),
    "manager": [
        "daily_money_flow",
        "customers",
        "sales_closers",
        "batch_icc",
        "batch_futures",
        "batch_high_future",
        "workshops",
    ],
    "sales_rep": ["call_schedule", "sales_closers", "batch_icc"],
    "viewer": [],
}


def default_permissions_for_role(role: str) -> dict[str, bool]:
    enabled = DEFAULT_PERMISSIONS.get(role, [])
    return {key: key in enabled for key in PERMISSION_KEYS}


class FeatureOverrideGate:
    def __init__(
        self,
        disabled_permissions: Iterable[str] = (),
        disabled_integrations: Iterable[str] = (),
    ):
        self.disabled_permissions = frozenset(disabled_permissions)
        self.disabled_integrations = frozenset(disabled_integrations)

    def is_permission_disabled(self, key: str) -> bool:
        return key in self.disabled_permissions

    def is_integration_disabled(self, slug: str) -> bool:
        return slug in self.disabled_integrations


def get_feature_overrides(db: Session, organization_id: UUID) -> FeatureOverrideRecord:
    row = (
        db.query(OrganizationFeatureOverride)
        .filter(OrganizationFeatureOverride.organization_id == organization_id)
        .first()
    )
    if row is None:
        return FeatureOverrideRecord()
    return FeatureOverrideRecord.model_validate(row)


def load_feature_override_gate(db: Session, organization_id: Optional[UUID]) -> FeatureOverrideGate:
    if organization_id is None:
        return FeatureOverrideGate()
    record = get_feature_overrides(db, organization_id)
    return FeatureOverrideGate(record.disabled_permissions, record.disabled_integrations)


def is_feature_available(
    module_gate: ModuleGate,
    override_gate: FeatureOverrideGate,
    *,
    module: Optional[str] = None,
    permission: Optional[str] = None,
    integration: Optional[str] = None,
) -> bool:
    """A feature is available only if its module is enabled and no override disables it."""
    if permission and override_gate.is_permission_disabled(permission):
        return False
    if integration and override_gate.is_integration_disabled(integration):
        return False
    if module and not module_gate.is_enabled(module):
        return False
    return True
