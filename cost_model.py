import logging

from catalog import DEFAULT_CATALOG
from config import Config
from models import CostLine, CostSummary
from utils import calculate_payback_period, calculate_savings_percentage, calculate_volume_cost

logger = logging.getLogger(__name__)

TIERS = ("sql", "storage", "placement", "analytics")


def estimate_source_monthly_cost(catalog, instance_class, instance_count, multi_az, read_replica_count):
    """Source bill: primaries (doubled for a Multi-AZ standby) plus read replicas"""
    instance_cost = catalog.source_spec(instance_class)["monthly_cost"]
    return (instance_cost * instance_count * (2 if multi_az else 1) +
            instance_cost * read_replica_count)


class MigrationCostCalculator:
    """Prices a derived cluster topology and compares it with the source database"""

    BREAKDOWN_LABELS = {
        "sql": "SQL Nodes",
        "storage": "Storage Nodes",
        "placement": "Placement Nodes",
        "analytics": "Analytics Nodes",
    }

    def __init__(self, catalog=None):
        self.catalog = catalog or DEFAULT_CATALOG

    @staticmethod
    def node_count(topology, tier):
        return getattr(topology, f"{tier}_nodes")

    def tier_compute_costs(self, topology, selection):
        """Monthly instance cost per tier, plus the single monitoring instance"""
        costs = {}
        for tier in TIERS:
            instance_cost = self.catalog.instance_monthly_cost(selection.for_tier(tier), tier)
            costs[tier] = instance_cost * self.node_count(topology, tier)
        costs["monitoring"] = self.catalog.instance_monthly_cost(selection.monitoring_instance_class, "monitoring")
        return costs

    def compute_cost(self, topology, selection):
        return sum(self.tier_compute_costs(topology, selection).values())

    def tier_storage_costs(self, topology, selection, storage_config):
        """
        Monthly block-volume cost per tier.

        Local NVMe on the storage tier is included in the instance price, so
        that tier is only charged for its configured additional volume.
        """
        costs = {}
        for tier in TIERS:
            tier_storage = getattr(storage_config, tier)
            volume_cost = calculate_volume_cost(
                tier_storage.storage_class,
                tier_storage.size_gb,
                tier_storage.provisioned_iops,
                tier_storage.provisioned_throughput_mbs,
                catalog=self.catalog,
            )
            costs[tier] = volume_cost * self.node_count(topology, tier)
        return costs

    def local_storage_capacity_gb(self, selection, storage_config):
        """Free local NVMe per storage node; 0 unless enabled and the class has it"""
        if not storage_config.use_local_instance_store:
            return 0
        return self.catalog.local_storage_gb(selection.storage_instance_class)

    def aggregate(self, topology, selection, storage_config, operational, source_monthly_cost):
        """
        Price the topology and compare it with the source bill.

        The breakdown is rebuilt on every call and the total is the exact sum of
        its lines. Savings percent is 0 for a free source; payback is None when
        there are no monthly savings to recover the migration cost.
        """
        compute = self.tier_compute_costs(topology, selection)
        storage = self.tier_storage_costs(topology, selection, storage_config)

        total_storage_cost = sum(storage.values())
        backup_cost = operational.backup_size_gb * Config.BACKUP_COST_GB if operational.backup_enabled else 0
        network_cost = operational.network_traffic_gb * Config.NETWORK_COST_GB
        orchestration_cost = (operational.orchestration_cluster_count * operational.orchestration_cluster_monthly_cost +
                              operational.orchestration_monitoring_monthly_cost)

        breakdown = [CostLine(self.BREAKDOWN_LABELS[tier], compute[tier]) for tier in TIERS]
        breakdown += [
            CostLine("Monitoring", compute["monitoring"]),
            CostLine("Storage", total_storage_cost),
            CostLine("Backup", backup_cost),
            CostLine("Network", network_cost),
            CostLine("Kubernetes", orchestration_cost),
        ]

        total_monthly_cost = sum(line.monthly_value for line in breakdown)
        savings_amount = source_monthly_cost - total_monthly_cost

        summary = CostSummary(
            total_monthly_cost=total_monthly_cost,
            breakdown=breakdown,
            savings_amount=savings_amount,
            savings_percent=calculate_savings_percentage(savings_amount, source_monthly_cost),
            payback_months=calculate_payback_period(operational.one_time_migration_cost, savings_amount),
            compute_cost=sum(compute.values()),
            storage_cost=total_storage_cost,
            backup_cost=backup_cost,
            network_cost=network_cost,
            orchestration_cost=orchestration_cost,
            one_time_cost=operational.one_time_migration_cost,
        )

        logger.debug("Cluster cost $%.2f/month vs source $%.2f/month", total_monthly_cost, source_monthly_cost)
        return summary
