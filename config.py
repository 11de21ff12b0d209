"""
Configuration settings for the Distributed SQL Migration Calculator
"""
import os

class Config:
    # Application Info
    APP_NAME = "Distributed SQL Migration Calculator"
    APP_VERSION = "1.0.0"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Supported workload descriptors
    READ_WRITE_RATIOS = ["90/10", "80/20", "50/50", "30/70"]
    WORKLOAD_TYPES = ["OLTP", "OLAP", "Mixed"]

    # Cluster topology floors
    MIN_TIER_NODES = 3
    MIN_ANALYTICS_NODES = 2
    MIN_WORKER_NODES = 6
    MIN_REPLICATION_FACTOR = 3
    MAX_REPLICATION_FACTOR = 5
    AVAILABILITY_ZONES = 3

    # Sizing constants
    COMPRESSION_RATIO = 0.4          # on-disk size relative to source data
    STORAGE_USAGE_RATIO = 0.8        # keep storage nodes below 80% full
    NODE_CAPACITY_GB = 4000          # recommended max data per storage node
    WRITES_PER_STORAGE_NODE = 5000
    CONNECTIONS_PER_SQL_NODE = 500
    COMPONENTS_PER_WORKER = 1.5
    ANALYTICS_REPLICAS = 2
    DEFAULT_VCPU_PER_SQL_NODE = 16

    # Memory thresholds (GB) for the SQL-tier instance class
    HIGH_MEMORY_THRESHOLD_GB = 128
    MEDIUM_MEMORY_THRESHOLD_GB = 64

    # Cost Configuration (USD)
    BACKUP_COST_GB = float(os.getenv("BACKUP_COST_GB", 0.023))
    NETWORK_COST_GB = float(os.getenv("NETWORK_COST_GB", 0.01))
    ORCHESTRATION_CLUSTER_COST = float(os.getenv("ORCHESTRATION_CLUSTER_COST", 73))
    ORCHESTRATION_MONITORING_COST = float(os.getenv("ORCHESTRATION_MONITORING_COST", 200))
    MIGRATION_COST = float(os.getenv("MIGRATION_COST", 5000))

    # Block storage baselines included in gp3 pricing
    BASELINE_IOPS = 3000
    BASELINE_THROUGHPUT_MBS = 125

    # Change history
    HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", 10))
