import logging

from catalog import DEFAULT_CATALOG
from cluster_sizing import ClusterSizingCalculator
from config import Config
from cost_model import MigrationCostCalculator, estimate_source_monthly_cost
from models import (
    ComparisonRow,
    InstanceImpactRow,
    InstanceSelection,
    OperationalConfig,
    SourceProfile,
    StorageConfig,
    TargetTopology,
    WorkloadProfile,
)

logger = logging.getLogger(__name__)

# Reference source deployments, two instances each
REFERENCE_CONFIGS = [
    ("Small", "db.m5.large"),
    ("Medium", "db.r5.xlarge"),
    ("Large", "db.r5.2xlarge"),
    ("X-Large", "db.r5.4xlarge"),
]
REFERENCE_INSTANCE_COUNT = 2

# Minimal migration: no spikes, no write-heavy scaling, no analytics tier
BASELINE_WORKLOAD = WorkloadProfile(
    read_write_ratio="80/20",
    workload_type="OLTP",
    concurrent_connections=1,
    traffic_spikes=False,
    peak_to_normal_ratio=1,
)
BASELINE_SELECTION = InstanceSelection(
    sql_instance_class="c5.4xlarge",
    storage_instance_class="i3.4xlarge",
    placement_instance_class="m5.2xlarge",
    analytics_instance_class="i3.8xlarge",
    monitoring_instance_class="c5.2xlarge",
)


def default_reference_profiles(catalog=None):
    """The fixed (name, SourceProfile) reference set"""
    catalog = catalog or DEFAULT_CATALOG
    profiles = []
    for name, instance_class in REFERENCE_CONFIGS:
        profiles.append((name, SourceProfile(
            instance_class=instance_class,
            instance_count=REFERENCE_INSTANCE_COUNT,
            storage_gb=0,
            provisioned_iops=0,
            read_ops_per_sec=0,
            write_ops_per_sec=0,
            monthly_cost=estimate_source_monthly_cost(
                catalog, instance_class, REFERENCE_INSTANCE_COUNT, multi_az=False, read_replica_count=0
            ),
            multi_az=False,
            read_replica_count=0,
        )))
    return profiles


def compare_reference_set(catalog=None, reference_profiles=None):
    """
    Baseline migration cost for each reference source deployment.

    `reference_profiles` is a list of (name, SourceProfile) pairs and defaults to the
    fixed reference set. Every row is sized with the baseline workload and
    priced on instances only, so rows answer "what would a baseline migration
    of this size cost" rather than reflecting the current configuration.
    """
    catalog = catalog or DEFAULT_CATALOG
    sizing = ClusterSizingCalculator(catalog)
    costing = MigrationCostCalculator(catalog)
    if reference_profiles is None:
        reference_profiles = default_reference_profiles(catalog)

    rows = []
    for name, source in reference_profiles:
        topology, selection = sizing.derive_topology(source, BASELINE_WORKLOAD, TargetTopology(), BASELINE_SELECTION)
        cost = costing.aggregate(
            topology, selection, StorageConfig.empty(), OperationalConfig.compute_only(), source.monthly_cost
        )
        spec = catalog.source_spec(source.instance_class)
        rows.append(ComparisonRow(
            name=name,
            source=source,
            vcpu=spec["vcpu"],
            memory_gb=spec["memory"],
            target=topology,
            selection=selection,
            cost=cost,
        ))
        logger.debug("Reference %s (%s): %d SQL nodes on %s, $%.2f/month",
                     name, source.instance_class, topology.sql_nodes,
                     selection.sql_instance_class, cost.total_monthly_cost)
    return rows


def instance_type_impact(instance_count, catalog=None):
    """SQL-tier size and cost implied by each source instance class at the given count"""
    catalog = catalog or DEFAULT_CATALOG
    sizing = ClusterSizingCalculator(catalog)

    rows = []
    for instance_class, spec in catalog.source_instance_types.items():
        sql_nodes = sizing.sql_nodes_for_vcpu(spec["vcpu"] * instance_count, Config.DEFAULT_VCPU_PER_SQL_NODE)
        sql_instance = sizing.select_sql_instance_type(spec["memory"])
        rows.append(InstanceImpactRow(
            instance_class=instance_class,
            vcpu=spec["vcpu"],
            memory_gb=spec["memory"],
            sql_nodes=sql_nodes,
            sql_instance_class=sql_instance,
            sql_tier_cost=catalog.instance_monthly_cost(sql_instance, "sql") * sql_nodes,
        ))
    return rows
