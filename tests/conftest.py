import os
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('SECRET_KEY', 'test-secret-key')
os.environ.setdefault('SUBSCRIPTION_SWEEP_ENABLED', 'false')

from fastapi.testclient import TestClient  # noqa: E402

from orgguard.config import Settings  # noqa: E402
from orgguard.core.security import create_access_token  # noqa: E402
from orgguard.database import build_engine, build_session_factory, init_db  # noqa: E402
from orgguard.main import create_app  # noqa: E402
from orgguard.models import (  # noqa: E402
    BillingPlan,
    DynamicLink,
    Module,
    NotificationCampaign,
    Organization,
    OrganizationFeatureOverride,
    OrganizationIntegration,
    OrganizationMember,
    OrganizationModule,
    OrganizationSubscription,
    PlanLimit,
    UserRole,
    VoiceCampaign,
    VoiceCampaignCall,
    WhatsAppGroup,
)

FIXED_NOW = datetime(2024, 1, 15, 6, 30, tzinfo=timezone.utc)


class Seeder:
    """Inserts fixture rows and commits each one."""

    def __init__(self, db):
        self.db = db

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def organization(self, name='Acme', tz=None):
        slug = f"{name.lower()}-{uuid.uuid4().hex[:8]}"
        return self._save(Organization(name=name, slug=slug, timezone=tz))

    def plan(self, name='Starter', limits=None):
        plan = self._save(BillingPlan(name=name, slug=f"{name.lower()}-{uuid.uuid4().hex[:8]}"))
        for key, value in (limits or {}).items():
            self.db.add(PlanLimit(plan_id=plan.id, limit_key=key, limit_value=value))
        self.db.commit()
        return plan

    def subscription(self, org, plan, status='active', custom_limits=None, **fields):
        return self._save(
            OrganizationSubscription(
                organization_id=org.id,
                plan_id=plan.id,
                status=status,
                custom_limits=custom_limits or {},
                **fields,
            )
        )

    def member(self, org, user_id=None, role='admin'):
        user_id = user_id or uuid.uuid4()
        self._save(OrganizationMember(organization_id=org.id, user_id=user_id, role=role))
        return user_id

    def super_admin(self, user_id=None):
        user_id = user_id or uuid.uuid4()
        self._save(UserRole(user_id=user_id, role='super_admin'))
        return user_id

    def module(self, slug, name=None, display_order=0):
        return self._save(Module(slug=slug, name=name or slug.title(), display_order=display_order))

    def org_module(self, org, module, enabled=True, config=None):
        return self._save(
            OrganizationModule(
                organization_id=org.id,
                module_id=module.id,
                is_enabled=enabled,
                config=config or {},
            )
        )

    def feature_override(self, org, permissions=(), integrations=()):
        return self._save(
            OrganizationFeatureOverride(
                organization_id=org.id,
                disabled_permissions=list(permissions),
                disabled_integrations=list(integrations),
            )
        )

    def groups(self, org, count):
        for i in range(count):
            self.db.add(WhatsAppGroup(organization_id=org.id, group_name=f"Group {i}"))
        self.db.commit()

    def dynamic_links(self, org, count):
        for i in range(count):
            self.db.add(
                DynamicLink(
                    organization_id=org.id,
                    slug=f"link-{uuid.uuid4().hex[:10]}",
                    destination_url=f"https://example.com/{i}",
                )
            )
        self.db.commit()

    def campaign(self, org, created_at, name='Campaign'):
        return self._save(NotificationCampaign(organization_id=org.id, name=name, created_at=created_at))

    def integration(self, org, integration_type='bolna', config=None, is_active=True):
        return self._save(
            OrganizationIntegration(
                organization_id=org.id,
                integration_type=integration_type,
                integration_name=integration_type.title(),
                config=config or {},
                is_active=is_active,
            )
        )

    def voice_campaign(self, org, name='Workshop reminders'):
        return self._save(VoiceCampaign(organization_id=org.id, name=name, status='running'))

    def call(self, campaign, contact_name='Asha', contact_phone='919800000000'):
        return self._save(
            VoiceCampaignCall(
                campaign_id=campaign.id,
                organization_id=campaign.organization_id,
                contact_name=contact_name,
                contact_phone=contact_phone,
            )
        )


@pytest.fixture
def settings():
    return Settings(
        database_url='sqlite://',
        app_env='test',
        secret_key='test-secret-key',
        subscription_sweep_enabled=False,
        cors_origins='*',
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def app(settings):
    app = create_app(settings)
    init_db(app.state.engine)
    app.state.clock = lambda: FIXED_NOW
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def app_db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app_seed(app_db):
    return Seeder(app_db)


@pytest.fixture
def auth_headers(settings):
    def _headers(user_id, organization_id=None):
        token = create_access_token(str(user_id), settings.secret_key.get_secret_value())
        headers = {'Authorization': f'Bearer {token}'}
        if organization_id is not None:
            headers['X-Organization-Id'] = str(organization_id)
        return headers

    return _headers
