from comparison import compare_reference_set, default_reference_profiles, instance_type_impact
from models import SourceProfile


def test_reference_set(catalog):
    rows = compare_reference_set(catalog)

    assert [row.name for row in rows] == ["Small", "Medium", "Large", "X-Large"]
    assert [row.source.instance_class for row in rows] == [
        "db.m5.large", "db.r5.xlarge", "db.r5.2xlarge", "db.r5.4xlarge"
    ]
    for row in rows:
        assert row.target.sql_nodes == 3
        assert row.target.storage_nodes == 3
        assert row.target.placement_nodes == 3
        assert row.target.analytics_nodes == 0
        assert row.savings == row.source.monthly_cost - row.monthly_cost


def test_reference_rows_are_priced_on_instances_only(catalog):
    small, _, large, xlarge = compare_reference_set(catalog)

    # 3 x c5.4xlarge + 3 x i3.4xlarge + 3 x m5.2xlarge + monitoring
    assert small.selection.sql_instance_class == "c5.4xlarge"
    assert small.monthly_cost == 3 * 493 + 3 * 998 + 3 * 278 + 246
    assert small.source.monthly_cost == 218 * 2
    assert small.vcpu == 2
    assert small.memory_gb == 8

    assert large.selection.sql_instance_class == "r5.2xlarge"
    assert xlarge.selection.sql_instance_class == "r5.4xlarge"
    assert xlarge.monthly_cost == 3 * 774 + 3 * 998 + 3 * 278 + 246
    assert xlarge.cost.storage_cost == 0
    assert xlarge.cost.orchestration_cost == 0


def test_reference_set_is_deterministic(catalog):
    assert compare_reference_set(catalog) == compare_reference_set(catalog)


def test_custom_profiles(catalog):
    profiles = [("Tiny", SourceProfile(instance_class="db.r5.large", instance_count=1, storage_gb=0,
                                       read_ops_per_sec=0, write_ops_per_sec=0, monthly_cost=10000,
                                       read_replica_count=0))]
    (row,) = compare_reference_set(catalog, reference_profiles=profiles)
    assert row.name == "Tiny"
    assert row.savings_percent > 0
    assert row.cost.payback_months == 0


def test_reference_profiles_have_no_storage(catalog):
    for _, profile in default_reference_profiles(catalog):
        assert profile.instance_count == 2
        assert profile.storage_gb == 0
        assert profile.multi_az is False


def test_instance_type_impact(catalog):
    rows = {row.instance_class: row for row in instance_type_impact(2, catalog)}

    assert set(rows) == set(catalog.source_instance_types)
    assert rows["db.m5.large"].sql_nodes == 3
    assert rows["db.m5.large"].sql_instance_class == "c5.4xlarge"
    assert rows["db.r5.4xlarge"].sql_instance_class == "r5.4xlarge"
    assert rows["db.r5.4xlarge"].sql_tier_cost == 3 * 774

    large_fleet = {row.instance_class: row for row in instance_type_impact(8, catalog)}
    # 128 vCPU over 16-vCPU nodes
    assert large_fleet["db.r5.4xlarge"].sql_nodes == 8
