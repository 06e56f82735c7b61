from datetime import datetime, timezone

from orgguard.schemas.usage import UsageSnapshot
from orgguard.services.usage import UsageAggregator, current_count, month_start, usage_report

NOW = datetime(2024, 2, 1, 20, 0, tzinfo=timezone.utc)  # 01:30 IST Feb 2


def test_snapshot_counts_each_metric(seed, db):
    org = seed.organization(tz='Asia/Kolkata')
    other = seed.organization('Other')
    seed.member(org)
    seed.member(org)
    seed.member(other)
    seed.groups(org, 3)
    seed.dynamic_links(org, 2)
    seed.integration(org, 'whatsapp')
    seed.campaign(org, datetime(2024, 2, 1, 10, 0, tzinfo=timezone.utc))
    # Feb 1 00:30 IST, inside the org's February
    seed.campaign(org, datetime(2024, 1, 31, 19, 0, tzinfo=timezone.utc))
    seed.campaign(org, datetime(2024, 1, 20, 10, 0, tzinfo=timezone.utc))

    snapshot = UsageAggregator(db).snapshot(org.id, now=NOW, timezone='Asia/Kolkata')
    assert snapshot == UsageSnapshot(
        team_members=2,
        groups=3,
        campaigns=2,
        integrations=1,
        dynamic_links=2,
    )


def test_snapshot_without_organization_is_zero(db):
    assert UsageAggregator(db).snapshot(None, now=NOW) == UsageSnapshot()


def test_month_start_bases():
    assert month_start(NOW, 'Asia/Kolkata', 'organization') == datetime(
        2024, 1, 31, 18, 30, tzinfo=timezone.utc
    )
    server = month_start(NOW, 'Asia/Kolkata', 'server')
    local = server.astimezone()
    assert local.day == 1
    assert (local.hour, local.minute) == (0, 0)
    assert server <= NOW


def test_current_count_maps_limit_keys():
    snapshot = UsageSnapshot(team_members=1, groups=2, campaigns=3, integrations=4, dynamic_links=5)
    assert current_count(snapshot, 'groups_synced') == 2
    assert current_count(snapshot, 'whatsapp_numbers') == 4
    assert current_count(snapshot, 'campaigns_per_month') == 3
    assert current_count(snapshot, 'unknown') is None


def test_usage_report_states():
    snapshot = UsageSnapshot(team_members=4, groups=5, campaigns=1, integrations=0, dynamic_links=7)
    items = {
        item.key: item
        for item in usage_report(
            snapshot,
            {'team_members': 5, 'groups_synced': 5, 'campaigns_per_month': 9999, 'dynamic_links': 5},
        )
    }
    assert items['team_members'].state == 'approaching'
    assert items['team_members'].percentage == 80.0
    assert items['groups_synced'].state == 'reached'
    assert items['dynamic_links'].percentage == 100.0
    assert items['campaigns_per_month'].unlimited is True
    assert items['campaigns_per_month'].state == 'ok'
    assert items['whatsapp_numbers'].limit == 0
    assert items['whatsapp_numbers'].percentage == 0.0
