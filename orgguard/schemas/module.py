from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ModuleRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    is_premium: bool = False
    display_order: int = 0


class OrganizationModuleRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    module_id: UUID
    is_enabled: bool = False
    enabled_at: Optional[datetime] = None
    config: dict[str, Any] = Field(default_factory=dict)
    module: Optional[ModuleRecord] = None

    @field_validator("is_enabled", mode="before")
    @classmethod
    def null_is_disabled(cls, value):
        return bool(value)

    @field_validator("config", mode="before")
    @classmethod
    def default_config(cls, value):
        return value or {}


class FeatureOverrideRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    disabled_permissions: list[str] = Field(default_factory=list)
    disabled_integrations: list[str] = Field(default_factory=list)

    @field_validator("disabled_permissions", "disabled_integrations", mode="before")
    @classmethod
    def default_lists(cls, value):
        return value or []


class ModuleStatus(BaseModel):
    slug: str
    enabled: bool
    config: Optional[dict[str, Any]] = None


class ModuleToggle(BaseModel):
    is_enabled: bool
    config: Optional[dict[str, Any]] = None


class FeatureCheckResponse(BaseModel):
    available: bool
    module: Optional[str] = None
    permission: Optional[str] = None
    integration: Optional[str] = None
