"""
Data structures shared by the sizing engine, cost model and reports
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from config import Config


class InvalidConfiguration(ValueError):
    """Raised when a configuration violates a sizing precondition"""

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


@dataclass
class SourceProfile:
    instance_class: str = "db.r5.2xlarge"
    instance_count: int = 2
    storage_gb: float = 1000
    provisioned_iops: float = 3000
    read_ops_per_sec: float = 5000
    write_ops_per_sec: float = 1000
    monthly_cost: float = 2208 * 2
    multi_az: bool = True
    read_replica_count: int = 1


@dataclass
class WorkloadProfile:
    read_write_ratio: str = "80/20"
    workload_type: str = "OLTP"
    concurrent_connections: int = 200
    traffic_spikes: bool = True
    peak_to_normal_ratio: float = 3
    data_growth_rate: float = 10  # percent per month


@dataclass
class TargetTopology:
    sql_nodes: int = 3
    storage_nodes: int = 3
    placement_nodes: int = 3
    analytics_nodes: int = 0
    use_analytics_tier: bool = False
    worker_nodes: int = 6
    replication_factor: int = 3
    availability_zones: int = 3

    @property
    def total_nodes(self) -> int:
        return self.sql_nodes + self.storage_nodes + self.placement_nodes + self.analytics_nodes


@dataclass
class InstanceSelection:
    sql_instance_class: str = "c5.4xlarge"
    storage_instance_class: str = "i3.4xlarge"
    placement_instance_class: str = "m5.4xlarge"
    analytics_instance_class: str = "i3.8xlarge"
    monitoring_instance_class: str = "c5.2xlarge"

    def for_tier(self, tier: str) -> str:
        return getattr(self, f"{tier}_instance_class")


@dataclass
class TierStorage:
    storage_class: str = "gp3"
    size_gb: float = 0
    provisioned_iops: float = 3000
    provisioned_throughput_mbs: float = 125


@dataclass
class StorageConfig:
    sql: TierStorage = field(default_factory=lambda: TierStorage("gp3", 100))
    storage: TierStorage = field(default_factory=lambda: TierStorage("gp3", 0))
    placement: TierStorage = field(default_factory=lambda: TierStorage("gp3", 100))
    analytics: TierStorage = field(default_factory=lambda: TierStorage("gp3", 1000))
    use_local_instance_store: bool = True

    @classmethod
    def empty(cls) -> "StorageConfig":
        """No block volumes on any tier"""
        return cls(
            sql=TierStorage("gp3", 0),
            storage=TierStorage("gp3", 0),
            placement=TierStorage("gp3", 0),
            analytics=TierStorage("gp3", 0),
        )


@dataclass
class OperationalConfig:
    backup_enabled: bool = True
    backup_size_gb: float = 1000
    network_traffic_gb: float = 5000
    orchestration_cluster_count: int = 1
    orchestration_cluster_monthly_cost: float = Config.ORCHESTRATION_CLUSTER_COST
    orchestration_monitoring_monthly_cost: float = Config.ORCHESTRATION_MONITORING_COST
    one_time_migration_cost: float = Config.MIGRATION_COST
    staff_fte: float = 0.5

    @classmethod
    def compute_only(cls, one_time_migration_cost: float = 0) -> "OperationalConfig":
        """Operational settings that add nothing on top of instance costs"""
        return cls(
            backup_enabled=False,
            backup_size_gb=0,
            network_traffic_gb=0,
            orchestration_cluster_count=0,
            orchestration_cluster_monthly_cost=0,
            orchestration_monitoring_monthly_cost=0,
            one_time_migration_cost=one_time_migration_cost,
            staff_fte=0,
        )


@dataclass(frozen=True)
class CostLine:
    label: str
    monthly_value: float


@dataclass
class CostSummary:
    total_monthly_cost: float
    breakdown: List[CostLine]
    savings_amount: float
    savings_percent: float
    payback_months: Optional[float]  # None when savings never pay back
    compute_cost: float = 0.0
    storage_cost: float = 0.0
    backup_cost: float = 0.0
    network_cost: float = 0.0
    orchestration_cost: float = 0.0
    one_time_cost: float = 0.0

    @property
    def annual_savings(self) -> float:
        return self.savings_amount * 12

    @property
    def has_payback(self) -> bool:
        return self.payback_months is not None


@dataclass(frozen=True)
class HistoryEntry:
    sequence_id: int
    from_instance_class: str
    to_instance_class: str
    vcpu_change: str
    memory_change: str
    sql_nodes_change: str
    storage_nodes_change: str
    instance_class_change: str
    sql_nodes: int
    storage_nodes: int
    sql_instance_class: str
    monthly_cost: float


@dataclass
class ComparisonRow:
    name: str
    source: SourceProfile
    vcpu: int
    memory_gb: float
    target: TargetTopology
    selection: InstanceSelection
    cost: CostSummary

    @property
    def monthly_cost(self) -> float:
        return self.cost.total_monthly_cost

    @property
    def savings(self) -> float:
        return self.cost.savings_amount

    @property
    def savings_percent(self) -> float:
        return self.cost.savings_percent


@dataclass(frozen=True)
class InstanceImpactRow:
    instance_class: str
    vcpu: int
    memory_gb: float
    sql_nodes: int
    sql_instance_class: str
    sql_tier_cost: float


@dataclass
class RecomputeResult:
    target: TargetTopology
    selection: InstanceSelection
    cost_summary: CostSummary
    history: List[HistoryEntry]
    source_instance_class: str
    warnings: List[str] = field(default_factory=list)

    @property
    def breakdown(self) -> List[CostLine]:
        return self.cost_summary.breakdown

    @property
    def total_monthly_cost(self) -> float:
        return self.cost_summary.total_monthly_cost

    @property
    def savings_amount(self) -> float:
        return self.cost_summary.savings_amount

    @property
    def savings_percent(self) -> float:
        return self.cost_summary.savings_percent

    @property
    def payback_months(self) -> Optional[float]:
        return self.cost_summary.payback_months
