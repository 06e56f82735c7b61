import uuid

from orgguard.services.feature_overrides import (
    PERMISSION_KEYS,
    ROUTE_TO_PERMISSION,
    FeatureOverrideGate,
    default_permissions_for_role,
    get_feature_overrides,
    is_feature_available,
    load_feature_override_gate,
)
from orgguard.services.modules import ModuleGate


def test_disabled_integration_membership():
    gate = FeatureOverrideGate(disabled_integrations=['sms'])
    assert gate.is_integration_disabled('sms') is True
    assert gate.is_integration_disabled('email') is False
    assert gate.is_permission_disabled('sms') is False


def test_override_wins_over_enabled_module():
    modules = ModuleGate(uuid.uuid4(), [], is_super_admin=True)
    overrides = FeatureOverrideGate(disabled_permissions=['funnels'], disabled_integrations=['sms'])

    assert is_feature_available(modules, overrides, module='funnels') is True
    assert is_feature_available(modules, overrides, module='funnels', permission='funnels') is False
    assert is_feature_available(modules, overrides, integration='sms') is False
    assert is_feature_available(modules, overrides, integration='whatsapp') is True


def test_disabled_module_blocks_even_without_overrides():
    modules = ModuleGate(uuid.uuid4(), [])
    assert is_feature_available(modules, FeatureOverrideGate(), module='voice') is False


def test_missing_override_row_means_nothing_disabled(seed, db):
    org = seed.organization()
    record = get_feature_overrides(db, org.id)
    assert record.disabled_permissions == []
    assert record.disabled_integrations == []
    assert load_feature_override_gate(db, None).disabled_integrations == frozenset()


def test_loads_override_row(seed, db):
    org = seed.organization()
    seed.feature_override(org, permissions=['sales'], integrations=['sms'])
    gate = load_feature_override_gate(db, org.id)
    assert gate.is_permission_disabled('sales')
    assert gate.is_integration_disabled('sms')


def test_permission_catalog():
    admin = default_permissions_for_role('admin')
    assert set(admin) == set(PERMISSION_KEYS)
    assert all(admin.values())
    assert not any(default_permissions_for_role('viewer').values())
    assert not any(default_permissions_for_role('unknown').values())
    assert set(ROUTE_TO_PERMISSION.values()) <= set(PERMISSION_KEYS)
