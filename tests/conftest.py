import pytest

from catalog import PricingCatalog
from migration_engine import MigrationEngine
from models import (
    InstanceSelection,
    OperationalConfig,
    SourceProfile,
    StorageConfig,
    TargetTopology,
    WorkloadProfile,
)


@pytest.fixture
def catalog():
    return PricingCatalog()


@pytest.fixture
def engine(catalog):
    return MigrationEngine(catalog)


@pytest.fixture
def source():
    # db.m5.2xlarge x2 with one replica: 24 effective vCPU
    return SourceProfile(
        instance_class="db.m5.2xlarge",
        instance_count=2,
        storage_gb=1000,
        provisioned_iops=3000,
        read_ops_per_sec=5000,
        write_ops_per_sec=1000,
        monthly_cost=4370,
        multi_az=True,
        read_replica_count=1,
    )


@pytest.fixture
def workload():
    return WorkloadProfile(
        read_write_ratio="80/20",
        workload_type="OLTP",
        concurrent_connections=200,
        traffic_spikes=True,
        peak_to_normal_ratio=3,
    )


@pytest.fixture
def target():
    return TargetTopology()


@pytest.fixture
def selection():
    return InstanceSelection()


@pytest.fixture
def storage_config():
    return StorageConfig()


@pytest.fixture
def operational():
    return OperationalConfig(
        backup_enabled=True,
        backup_size_gb=1000,
        network_traffic_gb=5000,
        orchestration_cluster_count=1,
        orchestration_cluster_monthly_cost=73,
        orchestration_monitoring_monthly_cost=200,
        one_time_migration_cost=5000,
    )
