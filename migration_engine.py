import logging

from catalog import DEFAULT_CATALOG
from cluster_sizing import ClusterSizingCalculator
from comparison import compare_reference_set
from cost_model import MigrationCostCalculator, estimate_source_monthly_cost
from history import record_change
from models import (
    InstanceSelection,
    OperationalConfig,
    RecomputeResult,
    SourceProfile,
    StorageConfig,
    TargetTopology,
    WorkloadProfile,
)
from utils import validate_configuration

logger = logging.getLogger(__name__)

TRUE_STRINGS = {"true", "yes", "y", "1"}


def _as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


class MigrationEngine:
    """
    Single entry point for sizing and pricing a migration.

    The engine keeps no state between calls: callers pass the complete prior
    state to recompute() and keep the returned result for the next call.
    """

    def __init__(self, catalog=None):
        self.catalog = catalog or DEFAULT_CATALOG
        self.sizing = ClusterSizingCalculator(self.catalog)
        self.costing = MigrationCostCalculator(self.catalog)

    def recompute(self, source, workload, target, selection, storage_config, operational,
                  history=(), previous_instance_class=None):
        """
        Derive the topology, price it, and log a source instance class change.

        previous_instance_class is the class used by the prior recompute, or
        None on the first call. The SQL-tier instance class is re-derived only
        on the first call or when the source class changes; otherwise the
        caller's selection, including any manual override, is kept.
        """
        validate_configuration(source, workload, target, storage_config, operational)

        class_changed = previous_instance_class is not None and previous_instance_class != source.instance_class
        auto_select = previous_instance_class is None or class_changed

        new_target, new_selection = self.sizing.derive_topology(
            source, workload, target, selection, auto_select_instances=auto_select
        )
        cost_summary = self.costing.aggregate(
            new_target, new_selection, storage_config, operational, source.monthly_cost
        )

        new_history = list(history)
        if class_changed:
            new_history = record_change(
                previous_instance_class, source.instance_class, new_target, new_selection,
                new_history, catalog=self.catalog,
            )

        volume_types = [getattr(storage_config, tier).storage_class
                        for tier in ("sql", "storage", "placement", "analytics")]
        warnings = self.catalog.unknown_keys(new_selection, source.instance_class, volume_types)

        logger.info(
            "Recomputed %s x%d: SQL %d, storage %d, placement %d, analytics %d -> $%.2f/month (saves $%.2f)",
            source.instance_class, source.instance_count, new_target.sql_nodes, new_target.storage_nodes,
            new_target.placement_nodes, new_target.analytics_nodes,
            cost_summary.total_monthly_cost, cost_summary.savings_amount,
        )

        return RecomputeResult(
            target=new_target,
            selection=new_selection,
            cost_summary=cost_summary,
            history=new_history,
            source_instance_class=source.instance_class,
            warnings=warnings,
        )

    def compare_reference_set(self):
        return compare_reference_set(self.catalog)

    def profiles_from_row(self, row):
        """Build source and workload profiles from a validated bulk upload row"""
        instance_count = int(row["instance_count"])
        read_replicas = int(row.get("read_replica_count", 0))
        multi_az = _as_bool(row.get("multi_az", False))
        monthly_cost = row.get("monthly_cost")
        if monthly_cost is None:
            monthly_cost = estimate_source_monthly_cost(
                self.catalog, row["instance_class"], instance_count, multi_az, read_replicas
            )

        source = SourceProfile(
            instance_class=row["instance_class"],
            instance_count=instance_count,
            storage_gb=float(row["storage_gb"]),
            provisioned_iops=float(row.get("provisioned_iops", 3000)),
            read_ops_per_sec=float(row.get("read_ops_per_sec", 0)),
            write_ops_per_sec=float(row["write_ops_per_sec"]),
            monthly_cost=float(monthly_cost),
            multi_az=multi_az,
            read_replica_count=read_replicas,
        )
        workload = WorkloadProfile(
            read_write_ratio=row.get("read_write_ratio", "80/20"),
            workload_type=row.get("workload_type", "OLTP"),
            concurrent_connections=int(row.get("concurrent_connections", 200)),
            traffic_spikes=_as_bool(row.get("traffic_spikes", False)),
            peak_to_normal_ratio=float(row.get("peak_to_normal_ratio", 1)),
        )
        return source, workload

    def size_batch(self, rows, operational=None):
        """
        Recompute every bulk upload row independently.

        Returns {workload_name: {"source", "workload", "result"}} or
        {"error": message} for rows the engine rejects.
        """
        results = {}
        for idx, row in enumerate(rows):
            name = row.get("workload_name") or f"Workload {idx + 1}"
            try:
                source, workload = self.profiles_from_row(row)
                row_operational = operational or OperationalConfig(backup_size_gb=source.storage_gb)
                result = self.recompute(
                    source, workload, TargetTopology(), InstanceSelection(),
                    StorageConfig(), row_operational,
                )
                results[name] = {"source": source, "workload": workload, "result": result}
            except (KeyError, TypeError, ValueError) as e:  # InvalidConfiguration is a ValueError
                logger.warning("Skipping workload %s: %s", name, e)
                results[name] = {"error": str(e)}
        return results
