import dataclasses

import pytest

from cluster_sizing import ClusterSizingCalculator
from models import InstanceSelection, InvalidConfiguration, TargetTopology


@pytest.fixture
def sizing(catalog):
    return ClusterSizingCalculator(catalog)


def test_reference_scenario(sizing, source, workload, target, selection):
    topology, new_selection = sizing.derive_topology(source, workload, target, selection)

    # 24 vCPU -> 3 SQL nodes, x1.5 for a 3x peak
    assert topology.sql_nodes == 5
    assert topology.storage_nodes == 3
    assert topology.placement_nodes == 3
    assert topology.analytics_nodes == 0
    assert topology.use_analytics_tier is False
    assert topology.worker_nodes == 8
    assert new_selection.sql_instance_class == "c5.4xlarge"


def test_inputs_are_not_modified(sizing, source, workload, target):
    selection = InstanceSelection(sql_instance_class="r5.8xlarge")
    before_target = dataclasses.replace(target)
    sizing.derive_topology(source, workload, target, selection)
    assert selection.sql_instance_class == "r5.8xlarge"
    assert target == before_target


def test_manual_instance_kept_without_auto_select(sizing, source, workload, target):
    selection = InstanceSelection(sql_instance_class="r5.8xlarge")
    _, new_selection = sizing.derive_topology(source, workload, target, selection, auto_select_instances=False)
    assert new_selection.sql_instance_class == "r5.8xlarge"


@pytest.mark.parametrize("memory_gb,expected", [
    (8, "c5.4xlarge"),
    (32, "c5.4xlarge"),
    (64, "r5.2xlarge"),
    (127, "r5.2xlarge"),
    (128, "r5.4xlarge"),
    (512, "r5.4xlarge"),
])
def test_sql_instance_follows_source_memory(sizing, memory_gb, expected):
    assert sizing.select_sql_instance_type(memory_gb) == expected


def test_sql_nodes_use_selected_instance_vcpu(sizing, source, workload, target):
    source = dataclasses.replace(source, instance_class="db.r5.4xlarge", instance_count=4, read_replica_count=0)
    workload = dataclasses.replace(workload, traffic_spikes=False)
    # 64 vCPU on 16-vCPU r5.4xlarge
    topology, selection = sizing.derive_topology(source, workload, target, InstanceSelection())
    assert selection.sql_instance_class == "r5.4xlarge"
    assert topology.sql_nodes == 4


def test_connections_drive_sql_nodes(sizing, source, workload, target, selection):
    workload = dataclasses.replace(workload, concurrent_connections=2600, traffic_spikes=False)
    topology, _ = sizing.derive_topology(source, workload, target, selection)
    assert topology.sql_nodes == 6


def test_low_peak_ratio_keeps_floor(sizing, source, workload, target, selection):
    workload = dataclasses.replace(workload, peak_to_normal_ratio=1)
    topology, _ = sizing.derive_topology(source, workload, target, selection)
    assert topology.sql_nodes == 3


def test_spike_factor_is_capped(sizing, workload):
    assert sizing.spike_factor(dataclasses.replace(workload, peak_to_normal_ratio=10)) == 2.0
    assert sizing.spike_factor(dataclasses.replace(workload, traffic_spikes=False)) == 1.0


@pytest.mark.parametrize("ratio,expected_nodes", [
    ("90/10", 3),
    ("80/20", 3),
    ("50/50", 5),
    ("30/70", 6),
    ("70/30", 3),
])
def test_write_heavy_storage_scaling(sizing, source, workload, target, selection, ratio, expected_nodes):
    workload = dataclasses.replace(workload, read_write_ratio=ratio)
    topology, _ = sizing.derive_topology(source, workload, target, selection)
    assert topology.storage_nodes == expected_nodes


def test_unrecognised_ratio_has_no_adjustment(sizing):
    assert sizing.write_heavy_factor("60:40") == 1.0


def test_storage_nodes_grow_with_writes(sizing):
    previous = 0
    for writes in (0, 1000, 15000, 15001, 30001, 100000):
        nodes = sizing.storage_nodes_for_writes(writes)
        assert nodes >= previous
        assert nodes % 3 == 0
        previous = nodes
    assert sizing.storage_nodes_for_writes(16000) == 6


@pytest.mark.parametrize("ratio", ["90/10", "80/20", "50/50", "30/70", "70/30"])
def test_topology_storage_nodes_never_shrink_as_writes_rise(sizing, source, workload, target, selection, ratio):
    workload = dataclasses.replace(workload, read_write_ratio=ratio)
    previous = 0
    for writes in (0, 1000, 5000, 15000, 15001, 30000, 45001, 100000):
        busier = dataclasses.replace(source, write_ops_per_sec=writes)
        topology, _ = sizing.derive_topology(busier, workload, target, selection)
        assert topology.storage_nodes >= 3
        assert topology.storage_nodes >= previous
        previous = topology.storage_nodes


def test_storage_nodes_for_capacity(sizing, source, workload, target, selection):
    # 100 TB compressed to 40 TB, x3 replicas, 9.6 TB per AZ-row of nodes
    source = dataclasses.replace(source, storage_gb=100000)
    topology, _ = sizing.derive_topology(source, workload, target, selection)
    assert topology.storage_nodes == 39


@pytest.mark.parametrize("workload_type", ["OLAP", "Mixed"])
def test_analytics_tier(sizing, source, workload, target, selection, workload_type):
    workload = dataclasses.replace(workload, workload_type=workload_type)
    topology, _ = sizing.derive_topology(source, workload, target, selection)
    assert topology.use_analytics_tier is True
    assert topology.analytics_nodes == 2

    source = dataclasses.replace(source, storage_gb=100000)
    topology, _ = sizing.derive_topology(source, workload, target, selection)
    assert topology.analytics_nodes == 9


def test_tier_floors(sizing, source, workload, selection):
    source = dataclasses.replace(source, instance_class="db.m5.large", instance_count=1, read_replica_count=0,
                                 storage_gb=0, write_ops_per_sec=0)
    workload = dataclasses.replace(workload, concurrent_connections=1, traffic_spikes=False)
    topology, _ = sizing.derive_topology(source, workload, TargetTopology(placement_nodes=1), selection)
    assert topology.sql_nodes == 3
    assert topology.storage_nodes == 3
    assert topology.placement_nodes == 3
    assert topology.worker_nodes == 7


def test_placement_nodes_above_floor_kept(sizing, source, workload, selection):
    topology, _ = sizing.derive_topology(source, workload, TargetTopology(placement_nodes=5), selection)
    assert topology.placement_nodes == 5


def test_unknown_source_class_uses_fallback(sizing, source, workload, target, selection):
    source = dataclasses.replace(source, instance_class="db.x9.huge", read_replica_count=0)
    topology, new_selection = sizing.derive_topology(source, workload, target, selection)
    assert new_selection.sql_instance_class == "c5.4xlarge"
    assert topology.sql_nodes >= 3


def test_zero_instances_rejected(sizing, source, workload, target, selection):
    source = dataclasses.replace(source, instance_count=0)
    with pytest.raises(InvalidConfiguration):
        sizing.derive_topology(source, workload, target, selection)


def test_replication_factor_bounds(sizing, source, workload, selection):
    with pytest.raises(InvalidConfiguration):
        sizing.derive_topology(source, workload, TargetTopology(replication_factor=2), selection)
    topology, _ = sizing.derive_topology(source, workload, TargetTopology(replication_factor=5), selection)
    assert topology.replication_factor == 5
