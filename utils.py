"""
Utility functions for the Distributed SQL Migration Calculator
"""
import json
import logging
import math
import numbers
from dataclasses import asdict, is_dataclass
from typing import Dict, List, Any, Optional

import pandas as pd

from catalog import DEFAULT_CATALOG
from config import Config
from models import InvalidConfiguration

logger = logging.getLogger(__name__)

# Bulk upload columns mapped to their SourceProfile / WorkloadProfile field
REQUIRED_COLUMNS = ['workload_name', 'instance_class', 'instance_count', 'storage_gb', 'write_ops_per_sec']

OPTIONAL_COLUMNS = {
    'provisioned_iops': 3000,
    'read_ops_per_sec': 0,
    'monthly_cost': None,  # estimated from the source catalog when missing
    'multi_az': False,
    'read_replica_count': 0,
    'read_write_ratio': '80/20',
    'workload_type': 'OLTP',
    'concurrent_connections': 200,
    'traffic_spikes': False,
    'peak_to_normal_ratio': 1,
}


def get_bulk_template():
    """Generate a template for bulk upload"""
    template_data = {
        'workload_name': ['Orders Service', 'Reporting Warehouse', 'Session Store'],
        'instance_class': ['db.r5.2xlarge', 'db.r5.4xlarge', 'db.m5.large'],
        'instance_count': [2, 2, 1],
        'storage_gb': [1000, 8000, 200],
        'provisioned_iops': [3000, 12000, 3000],
        'read_ops_per_sec': [5000, 2000, 8000],
        'write_ops_per_sec': [1000, 3000, 4000],
        'monthly_cost': [4416, None, None],
        'multi_az': [True, True, False],
        'read_replica_count': [1, 2, 0],
        'read_write_ratio': ['80/20', '90/10', '30/70'],
        'workload_type': ['OLTP', 'OLAP', 'Mixed'],
        'concurrent_connections': [200, 50, 1500],
        'traffic_spikes': [True, False, True],
        'peak_to_normal_ratio': [3, 1, 4],
    }
    return pd.DataFrame(template_data)


def parse_uploaded_file(uploaded_file):
    """Parse an uploaded CSV/Excel file into a list of source workload dictionaries"""
    try:
        if uploaded_file.name.endswith('.csv'):
            df = pd.read_csv(uploaded_file)
        elif uploaded_file.name.endswith(('.xlsx', '.xls')):
            df = pd.read_excel(uploaded_file)
        else:
            return None, ["Unsupported file format. Please upload CSV or Excel file."]
    except Exception as e:
        return None, [f"Error reading file: {str(e)}"]

    logger.debug("Uploaded workload file: shape=%s columns=%s", df.shape, list(df.columns))

    missing_columns = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_columns:
        return None, [f"Missing required columns: {', '.join(missing_columns)}"]

    df_processed = df.copy()
    for col, default in OPTIONAL_COLUMNS.items():
        if col not in df_processed.columns:
            df_processed[col] = default

    # Defaults are filled per record; assigning None back into a numeric column turns it into NaN again
    df_processed = df_processed.astype(object).where(pd.notna(df_processed), None)
    inputs_list = df_processed.to_dict(orient='records')
    for input_data in inputs_list:
        for col, default in OPTIONAL_COLUMNS.items():
            if _is_missing(input_data[col]):
                input_data[col] = default

    valid_inputs = []
    errors = []
    for idx, input_data in enumerate(inputs_list):
        input_errors = validate_inputs(input_data)
        if not input_errors:
            valid_inputs.append(input_data)
        else:
            name = input_data.get('workload_name') or f"Row {idx + 1}"
            errors.append(f"{name}: {', '.join(input_errors)}")

    logger.info("Parsed %d workload(s): %d valid, %d invalid", len(inputs_list), len(valid_inputs), len(errors))
    return valid_inputs, errors


def _is_missing(value):
    return value is None or (isinstance(value, float) and math.isnan(value))


def _is_number(value):
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and not math.isnan(value)


def validate_inputs(inputs: Dict) -> List[str]:
    """Validate a bulk upload row and return list of errors"""
    errors = []

    if not inputs.get('instance_class'):
        errors.append("Instance class is required")

    count = inputs.get('instance_count')
    if not _is_number(count) or count < 1:
        errors.append(f"Instance count must be at least 1 (got: {count})")

    non_negative = {
        'storage_gb': 'Storage (GB)',
        'write_ops_per_sec': 'Write ops/sec',
        'read_ops_per_sec': 'Read ops/sec',
        'provisioned_iops': 'Provisioned IOPS',
        'read_replica_count': 'Read replicas',
    }
    for field_name, display_name in non_negative.items():
        value = inputs.get(field_name)
        if not _is_number(value) or value < 0:
            errors.append(f"{display_name} must be a non-negative number (got: {value})")

    monthly_cost = inputs.get('monthly_cost')
    if monthly_cost is not None and (not _is_number(monthly_cost) or monthly_cost < 0):
        errors.append(f"Monthly cost must be a non-negative number (got: {monthly_cost})")

    if inputs.get('read_write_ratio') not in Config.READ_WRITE_RATIOS:
        errors.append(f"Unsupported read/write ratio: {inputs.get('read_write_ratio')}. "
                      f"Valid options: {', '.join(Config.READ_WRITE_RATIOS)}")

    if inputs.get('workload_type') not in Config.WORKLOAD_TYPES:
        errors.append(f"Unsupported workload type: {inputs.get('workload_type')}. "
                      f"Valid options: {', '.join(Config.WORKLOAD_TYPES)}")

    connections = inputs.get('concurrent_connections')
    if not _is_number(connections) or connections < 1:
        errors.append(f"Concurrent connections must be at least 1 (got: {connections})")

    peak = inputs.get('peak_to_normal_ratio')
    if not _is_number(peak) or peak < 1:
        errors.append(f"Peak to normal ratio must be at least 1 (got: {peak})")

    return errors


def _below(value, minimum):
    """True for values under the minimum, and for NaN, which compares false against everything"""
    return math.isnan(value) or value < minimum


def validate_configuration(source, workload, target=None, storage=None, operational=None):
    """Raise InvalidConfiguration listing every violated precondition"""
    errors = []

    if _below(source.instance_count, 1):
        errors.append(f"source instance count must be at least 1 (got {source.instance_count})")
    if _below(source.read_replica_count, 0):
        errors.append(f"read replica count cannot be negative (got {source.read_replica_count})")
    for name in ('storage_gb', 'provisioned_iops', 'read_ops_per_sec', 'write_ops_per_sec', 'monthly_cost'):
        if _below(getattr(source, name), 0):
            errors.append(f"source {name} must be a non-negative number (got {getattr(source, name)})")

    if _below(workload.concurrent_connections, 1):
        errors.append(f"concurrent connections must be at least 1 (got {workload.concurrent_connections})")
    if _below(workload.peak_to_normal_ratio, 1):
        errors.append(f"peak to normal ratio must be at least 1 (got {workload.peak_to_normal_ratio})")
    if workload.workload_type not in Config.WORKLOAD_TYPES:
        errors.append(f"unsupported workload type {workload.workload_type!r}")

    if target is not None:
        if not Config.MIN_REPLICATION_FACTOR <= target.replication_factor <= Config.MAX_REPLICATION_FACTOR:
            errors.append(f"replication factor must be between {Config.MIN_REPLICATION_FACTOR} and "
                          f"{Config.MAX_REPLICATION_FACTOR} (got {target.replication_factor})")
        if _below(target.placement_nodes, 0):
            errors.append(f"placement nodes cannot be negative (got {target.placement_nodes})")

    if storage is not None:
        for tier in ('sql', 'storage', 'placement', 'analytics'):
            tier_storage = getattr(storage, tier)
            if _below(tier_storage.size_gb, 0):
                errors.append(f"{tier} tier volume size must be a non-negative number (got {tier_storage.size_gb})")
            if _below(tier_storage.provisioned_iops, 0) or _below(tier_storage.provisioned_throughput_mbs, 0):
                errors.append(f"{tier} tier provisioned IOPS/throughput must be non-negative numbers")

    if operational is not None:
        for name in ('backup_size_gb', 'network_traffic_gb', 'orchestration_cluster_count',
                     'orchestration_cluster_monthly_cost', 'orchestration_monitoring_monthly_cost',
                     'one_time_migration_cost', 'staff_fte'):
            if _below(getattr(operational, name), 0):
                errors.append(f"{name} must be a non-negative number (got {getattr(operational, name)})")

    if errors:
        raise InvalidConfiguration(errors)


def format_currency(amount: float, currency: str = "USD") -> str:
    """Format currency amounts with proper formatting"""
    if currency == "USD":
        if amount < 0:
            return f"-${-amount:,.2f}"
        return f"${amount:,.2f}"
    return f"{amount:,.2f} {currency}"


def format_payback(payback_months: Optional[float]) -> str:
    if payback_months is None:
        return "N/A"
    return f"{payback_months:.1f} months"


def calculate_savings_percentage(monthly_savings: float, source_monthly_cost: float) -> float:
    """Savings as a percentage of the source cost, 0 when the source costs nothing"""
    if source_monthly_cost == 0:
        return 0
    return (monthly_savings / source_monthly_cost) * 100


def calculate_payback_period(total_investment: float, monthly_savings: float) -> Optional[float]:
    """Calculate payback period in months; None when savings never repay the investment"""
    if monthly_savings <= 0:
        return None
    return total_investment / monthly_savings


def calculate_storage_costs(
    storage_gb: float,
    storage_type: str = "gp3",
    iops: float = Config.BASELINE_IOPS,
    throughput_mbps: float = Config.BASELINE_THROUGHPUT_MBS,
    catalog=None,
) -> Dict[str, float]:
    """Calculate itemised monthly cost of one block volume"""
    catalog = catalog or DEFAULT_CATALOG
    costs = {"base_storage": 0.0, "additional_iops": 0.0, "additional_throughput": 0.0}

    if storage_gb == 0:
        costs["total"] = 0.0
        return costs

    pricing = catalog.volume_pricing(storage_type)
    if storage_type not in catalog.volume_types:
        storage_type = catalog.DEFAULT_VOLUME_TYPE

    costs["base_storage"] = storage_gb * pricing["gb"]

    if storage_type == "gp3":
        # IOPS and throughput are free up to the gp3 baseline
        extra_iops = max(0, iops - Config.BASELINE_IOPS)
        costs["additional_iops"] = extra_iops * pricing["iops"]

        extra_throughput = max(0, throughput_mbps - Config.BASELINE_THROUGHPUT_MBS)
        costs["additional_throughput"] = extra_throughput * pricing["throughput"]

    elif storage_type in ("io1", "io2"):
        # Provisioned IOPS classes bill every requested IOPS
        costs["additional_iops"] = iops * pricing["iops"]

    costs["total"] = sum(costs.values())
    return costs


def calculate_volume_cost(storage_type, size_gb, iops=Config.BASELINE_IOPS,
                          throughput_mbps=Config.BASELINE_THROUGHPUT_MBS, catalog=None):
    return calculate_storage_costs(size_gb, storage_type, iops, throughput_mbps, catalog)["total"]


def project_storage_growth(storage_gb: float, monthly_growth_percent: float, months: int = 36) -> List[Dict[str, float]]:
    """Compound monthly storage growth, one point per month including month 0"""
    rate = monthly_growth_percent / 100
    return [
        {"month": month, "storage_gb": storage_gb * ((1 + rate) ** month)}
        for month in range(months + 1)
    ]


def _to_serializable(data):
    if is_dataclass(data) and not isinstance(data, type):
        return asdict(data)
    if isinstance(data, list):
        return [_to_serializable(item) for item in data]
    return data


def export_to_json(data: Any, filename: str = None) -> str:
    """Export data to JSON string or file"""
    json_str = json.dumps(_to_serializable(data), indent=2, default=str)

    if filename:
        with open(filename, 'w') as f:
            f.write(json_str)
        return f"Data exported to {filename}"
    else:
        return json_str


def export_to_csv(data: List[Any], filename: str = None) -> str:
    """Export data to CSV string or file"""
    df = pd.DataFrame(_to_serializable(data))

    if filename:
        df.to_csv(filename, index=False)
        return f"Data exported to {filename}"
    else:
        return df.to_csv(index=False)
