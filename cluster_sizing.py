import math
import logging
from dataclasses import replace

from catalog import DEFAULT_CATALOG
from config import Config
from models import TargetTopology
from utils import validate_configuration

logger = logging.getLogger(__name__)


class ClusterSizingCalculator:
    """
    Derives a distributed SQL cluster topology (SQL, storage, placement and
    analytics tiers) from a source relational database and its workload.
    """

    # Read/Write ratios, matched exactly; anything else sizes storage at 1x
    READ_WRITE_RATIOS = {
        '90/10': {
            'read_percentage': 90,
            'write_percentage': 10,
            'storage_multiplier': 1.0,
            'description': 'Read-heavy workload'
        },
        '80/20': {
            'read_percentage': 80,
            'write_percentage': 20,
            'storage_multiplier': 1.0,
            'description': 'Typical OLTP workload'
        },
        '50/50': {
            'read_percentage': 50,
            'write_percentage': 50,
            'storage_multiplier': 1.5,
            'description': 'Balanced read/write workload'
        },
        '30/70': {
            'read_percentage': 30,
            'write_percentage': 70,
            'storage_multiplier': 2.0,
            'description': 'Write-heavy transactional workload'
        }
    }

    WORKLOAD_TYPES = {
        'OLTP': {'analytics_tier': False, 'description': 'Transactional point reads and writes'},
        'OLAP': {'analytics_tier': True, 'description': 'Analytical scans served by columnar replicas'},
        'Mixed': {'analytics_tier': True, 'description': 'Transactional and analytical queries together'},
    }

    # SQL-tier instance class by source memory per instance
    HIGH_MEMORY_INSTANCE = "r5.4xlarge"
    MEDIUM_MEMORY_INSTANCE = "r5.2xlarge"
    DEFAULT_SQL_INSTANCE = "c5.4xlarge"

    def __init__(self, catalog=None):
        self.catalog = catalog or DEFAULT_CATALOG

    def select_sql_instance_type(self, memory_gb):
        """Pick the SQL-tier instance class that mirrors the source memory profile"""
        if memory_gb >= Config.HIGH_MEMORY_THRESHOLD_GB:
            return self.HIGH_MEMORY_INSTANCE
        if memory_gb >= Config.MEDIUM_MEMORY_THRESHOLD_GB:
            return self.MEDIUM_MEMORY_INSTANCE
        return self.DEFAULT_SQL_INSTANCE

    def effective_source_vcpu(self, source):
        """Aggregate source vCPU; replicas add load in proportion to the primaries"""
        vcpu = self.catalog.source_spec(source.instance_class)["vcpu"]
        total_vcpu = vcpu * source.instance_count
        replica_vcpu = total_vcpu * (source.read_replica_count / source.instance_count)
        return total_vcpu + replica_vcpu

    def sql_nodes_for_vcpu(self, total_vcpu, vcpu_per_node=Config.DEFAULT_VCPU_PER_SQL_NODE):
        return max(Config.MIN_TIER_NODES, math.ceil(total_vcpu / vcpu_per_node))

    def sql_nodes_for_connections(self, concurrent_connections):
        return max(Config.MIN_TIER_NODES, math.ceil(concurrent_connections / Config.CONNECTIONS_PER_SQL_NODE))

    def storage_nodes_for_capacity(self, storage_gb, replication_factor):
        """Nodes needed to hold the compressed, replicated data, in multiples of the AZ count"""
        zones = Config.AVAILABILITY_ZONES
        return math.ceil(
            (storage_gb * Config.COMPRESSION_RATIO * replication_factor) /
            (Config.STORAGE_USAGE_RATIO * Config.NODE_CAPACITY_GB * zones)
        ) * zones

    def storage_nodes_for_writes(self, write_ops_per_sec):
        zones = Config.AVAILABILITY_ZONES
        return max(Config.MIN_TIER_NODES,
                   math.ceil(write_ops_per_sec / Config.WRITES_PER_STORAGE_NODE / zones) * zones)

    def write_heavy_factor(self, read_write_ratio):
        ratio = self.READ_WRITE_RATIOS.get(read_write_ratio)
        if ratio is None:
            logger.debug("Read/write ratio %r not recognised, no write-heavy adjustment", read_write_ratio)
            return 1.0
        return ratio['storage_multiplier']

    def uses_analytics_tier(self, workload_type):
        return self.WORKLOAD_TYPES.get(workload_type, {}).get('analytics_tier', False)

    def analytics_nodes(self, storage_gb, replication_factor):
        return max(Config.MIN_ANALYTICS_NODES, math.ceil(
            (storage_gb * Config.COMPRESSION_RATIO * Config.ANALYTICS_REPLICAS) /
            (replication_factor * Config.STORAGE_USAGE_RATIO * Config.NODE_CAPACITY_GB)
        ))

    def spike_factor(self, workload):
        if not workload.traffic_spikes:
            return 1.0
        return min(2.0, workload.peak_to_normal_ratio / 2)

    def worker_nodes(self, sql_nodes, storage_nodes, placement_nodes, analytics_nodes):
        # +1 for the monitoring stack
        components = sql_nodes + storage_nodes + placement_nodes + analytics_nodes + 1
        return max(Config.MIN_WORKER_NODES, math.ceil(components / Config.COMPONENTS_PER_WORKER))

    def derive_topology(self, source, workload, current_target, current_selection, auto_select_instances=True):
        """
        Size every tier of the target cluster for the given source workload.

        Returns a new (TargetTopology, InstanceSelection) pair; the inputs are
        not modified. Only the SQL-tier instance class is derived, and only when
        auto_select_instances is set. Raises InvalidConfiguration on inputs that
        cannot be sized (e.g. zero source instances).
        """
        validate_configuration(source, workload, current_target)

        replication_factor = current_target.replication_factor
        source_spec = self.catalog.source_spec(source.instance_class)

        # Step 1: SQL-tier instance class follows the source memory per instance
        selection = replace(current_selection)
        if auto_select_instances:
            selection.sql_instance_class = self.select_sql_instance_type(source_spec["memory"])

        # Step 2: SQL nodes from aggregate source compute
        effective_vcpu = self.effective_source_vcpu(source)
        vcpu_per_sql_node = self.catalog.instance_vcpu(
            selection.sql_instance_class, default=Config.DEFAULT_VCPU_PER_SQL_NODE
        )
        sql_from_cpu = self.sql_nodes_for_vcpu(effective_vcpu, vcpu_per_sql_node)

        # Step 3: SQL nodes from client connections
        sql_from_connections = self.sql_nodes_for_connections(workload.concurrent_connections)
        base_sql_nodes = max(sql_from_cpu, sql_from_connections)

        # Step 4: storage nodes from capacity and write throughput
        capacity_nodes = self.storage_nodes_for_capacity(source.storage_gb, replication_factor)
        write_nodes = self.storage_nodes_for_writes(source.write_ops_per_sec)
        base_storage_nodes = max(Config.MIN_TIER_NODES, capacity_nodes, write_nodes)

        # Step 5: workload adjustments
        write_factor = self.write_heavy_factor(workload.read_write_ratio)
        spike = self.spike_factor(workload)
        storage_nodes = math.ceil(base_storage_nodes * write_factor)
        # Peak ratios below 2 shrink the spike factor under 1; the quorum floor still holds
        sql_nodes = max(Config.MIN_TIER_NODES, math.ceil(base_sql_nodes * spike))
        placement_nodes = max(Config.MIN_TIER_NODES, current_target.placement_nodes)

        # Step 6: analytics tier for OLAP / Mixed workloads
        use_analytics = self.uses_analytics_tier(workload.workload_type)
        analytics_nodes = self.analytics_nodes(source.storage_gb, replication_factor) if use_analytics else 0

        # Step 7: Kubernetes worker nodes hosting all components
        worker_nodes = self.worker_nodes(sql_nodes, storage_nodes, placement_nodes, analytics_nodes)

        logger.debug(
            "Derived topology: effective vCPU %.1f -> SQL %d (cpu %d, conn %d, spike %.2f), "
            "storage %d (capacity %d, writes %d, factor %.1f), placement %d, analytics %d, workers %d",
            effective_vcpu, sql_nodes, sql_from_cpu, sql_from_connections, spike,
            storage_nodes, capacity_nodes, write_nodes, write_factor,
            placement_nodes, analytics_nodes, worker_nodes,
        )

        topology = TargetTopology(
            sql_nodes=sql_nodes,
            storage_nodes=storage_nodes,
            placement_nodes=placement_nodes,
            analytics_nodes=analytics_nodes,
            use_analytics_tier=use_analytics,
            worker_nodes=worker_nodes,
            replication_factor=replication_factor,
            availability_zones=current_target.availability_zones,
        )
        return topology, selection
