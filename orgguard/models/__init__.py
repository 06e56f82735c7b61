"""
SQLAlchemy models for OrgGuard.
"""
from __future__ import annotations

import uuid

from sqlalchemy import (
    DECIMAL,
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    logo_url = Column(Text)
    is_active = Column(Boolean, default=True)
    timezone = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class OrganizationMember(Base):
    __tablename__ = "organization_members"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, nullable=False)
    role = Column(Text, default="viewer")
    is_org_admin = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    role = Column(Text, nullable=False)


class BillingPlan(Base):
    __tablename__ = "billing_plans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    description = Column(Text)
    monthly_price = Column(DECIMAL(10, 2), default=0)
    yearly_price = Column(DECIMAL(10, 2), default=0)
    is_custom = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    display_order = Column(Integer, default=0)


class PlanLimit(Base):
    __tablename__ = "plan_limits"
    __table_args__ = (UniqueConstraint("plan_id", "limit_key"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    plan_id = Column(Uuid, ForeignKey("billing_plans.id", ondelete="CASCADE"), nullable=False)
    limit_key = Column(Text, nullable=False)
    limit_value = Column(Integer, nullable=False)
    description = Column(Text)


class OrganizationSubscription(Base):
    __tablename__ = "organization_subscriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    plan_id = Column(Uuid, ForeignKey("billing_plans.id"), nullable=False)
    status = Column(Text, default="trial")
    billing_cycle = Column(Text, default="monthly")
    current_price = Column(DECIMAL(10, 2))
    custom_price = Column(DECIMAL(10, 2))
    custom_limits = Column(JSONType, default=dict)
    trial_started_at = Column(DateTime(timezone=True))
    trial_ends_at = Column(DateTime(timezone=True))
    current_period_start = Column(DateTime(timezone=True))
    current_period_end = Column(DateTime(timezone=True))
    cancelled_reason = Column(Text)
    admin_notes = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    plan = relationship("BillingPlan")


class SubscriptionPayment(Base):
    __tablename__ = "subscription_payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subscription_id = Column(
        Uuid, ForeignKey("organization_subscriptions.id", ondelete="CASCADE"), nullable=False
    )
    amount = Column(DECIMAL(10, 2), default=0)
    payment_status = Column(Text, default="pending")
    payment_date = Column(DateTime(timezone=True))


class SubscriptionNotification(Base):
    __tablename__ = "subscription_notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    notification_type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SubscriptionAuditLog(Base):
    __tablename__ = "subscription_audit_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subscription_id = Column(
        Uuid, ForeignKey("organization_subscriptions.id", ondelete="CASCADE"), nullable=False
    )
    action = Column(Text, nullable=False)
    old_value = Column(JSONType, default=dict)
    new_value = Column(JSONType, default=dict)
    performed_by = Column(Uuid)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Module(Base):
    __tablename__ = "modules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    slug = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    description = Column(Text)
    icon = Column(Text)
    is_premium = Column(Boolean, default=False)
    display_order = Column(Integer, default=0)


class OrganizationModule(Base):
    __tablename__ = "organization_modules"
    __table_args__ = (UniqueConstraint("organization_id", "module_id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    module_id = Column(Uuid, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False)
    is_enabled = Column(Boolean, default=False)
    enabled_at = Column(DateTime(timezone=True))
    config = Column(JSONType, default=dict)

    module = relationship("Module")


class OrganizationFeatureOverride(Base):
    __tablename__ = "organization_feature_overrides"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    disabled_permissions = Column(JSONType, default=list)
    disabled_integrations = Column(JSONType, default=list)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class WhatsAppGroup(Base):
    __tablename__ = "whatsapp_groups"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    group_name = Column(Text, nullable=False)
    invite_link = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class NotificationCampaign(Base):
    __tablename__ = "notification_campaigns"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    status = Column(Text, default="draft")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class OrganizationIntegration(Base):
    __tablename__ = "organization_integrations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    integration_type = Column(Text, nullable=False)
    integration_name = Column(Text)
    config = Column(JSONType, default=dict)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class DynamicLink(Base):
    __tablename__ = "dynamic_links"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    destination_url = Column(Text)
    click_count = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VoiceCampaign(Base):
    __tablename__ = "voice_campaigns"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    agent_type = Column(Text, default="workshop_reminder")
    bolna_agent_id = Column(Text)
    status = Column(Text, default="draft")
    scheduled_at = Column(DateTime(timezone=True))
    total_contacts = Column(Integer, default=0)
    calls_completed = Column(Integer, default=0)
    calls_confirmed = Column(Integer, default=0)
    calls_rescheduled = Column(Integer, default=0)
    calls_not_interested = Column(Integer, default=0)
    calls_no_answer = Column(Integer, default=0)
    calls_failed = Column(Integer, default=0)
    total_cost = Column(DECIMAL(12, 4), default=0)
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class VoiceCampaignCall(Base):
    __tablename__ = "voice_campaign_calls"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    campaign_id = Column(Uuid, ForeignKey("voice_campaigns.id", ondelete="CASCADE"), nullable=False)
    organization_id = Column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    contact_name = Column(Text, nullable=False)
    contact_phone = Column(Text, nullable=False)
    status = Column(Text, default="pending")
    outcome = Column(Text)
    call_duration_seconds = Column(Integer)
    total_cost = Column(DECIMAL(12, 4))
    call_started_at = Column(DateTime(timezone=True))
    call_ended_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
