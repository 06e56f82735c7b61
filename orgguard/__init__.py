"""OrgGuard: plan limits, module gating and organization-timezone rules."""

__version__ = "1.0.0"
