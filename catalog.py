import logging
from types import MappingProxyType

logger = logging.getLogger(__name__)


class PricingCatalog:
    """
    Static pricing catalog for the target cluster and the source database.

    Lookups are exact-match on the key. A missing key never raises: each field
    resolves to a documented fallback and the miss is logged.
    """

    VERSION = "2024.1"

    # Target instance classes (approximate on-demand monthly cost, USD)
    INSTANCE_TYPES = {
        # Compute optimized, SQL tier
        "c5.2xlarge": {"vcpu": 8, "memory": 16, "monthly_cost": 246, "description": "Good for SQL nodes"},
        "c5.4xlarge": {"vcpu": 16, "memory": 32, "monthly_cost": 493, "description": "Recommended for SQL nodes"},
        "c5.9xlarge": {"vcpu": 36, "memory": 72, "monthly_cost": 1109, "description": "High performance SQL nodes"},
        # Memory optimized
        "r5.2xlarge": {"vcpu": 8, "memory": 64, "monthly_cost": 387, "description": "Memory optimized"},
        "r5.4xlarge": {"vcpu": 16, "memory": 128, "monthly_cost": 774, "description": "High memory"},
        "r5.8xlarge": {"vcpu": 32, "memory": 256, "monthly_cost": 1548, "description": "Very high memory"},
        # General purpose, placement tier
        "m5.2xlarge": {"vcpu": 8, "memory": 32, "monthly_cost": 278, "description": "Good for placement nodes"},
        "m5.4xlarge": {"vcpu": 16, "memory": 64, "monthly_cost": 556, "description": "High performance placement nodes"},
        # Storage optimized with local NVMe, storage and analytics tiers
        "i3.2xlarge": {"vcpu": 8, "memory": 61, "monthly_cost": 499, "local_storage_gb": 1900, "description": "Recommended for storage nodes"},
        "i3.4xlarge": {"vcpu": 16, "memory": 122, "monthly_cost": 998, "local_storage_gb": 3800, "description": "High performance storage nodes"},
        "i3.8xlarge": {"vcpu": 32, "memory": 244, "monthly_cost": 1995, "local_storage_gb": 7600, "description": "Very high performance storage nodes"},
        "i3en.2xlarge": {"vcpu": 8, "memory": 64, "monthly_cost": 623, "local_storage_gb": 5000, "description": "Dense storage nodes"},
        "i3en.3xlarge": {"vcpu": 12, "memory": 96, "monthly_cost": 935, "local_storage_gb": 7500, "description": "Dense storage nodes+"},
    }

    # Block volume classes (USD per GB-month, per provisioned IOPS-month, per MB/s-month)
    VOLUME_TYPES = {
        "gp3": {"gb": 0.08, "iops": 0.005, "throughput": 0.04},
        "gp2": {"gb": 0.10},
        "io1": {"gb": 0.125, "iops": 0.065},
        "io2": {"gb": 0.125, "iops": 0.065},
    }
    DEFAULT_VOLUME_TYPE = "gp3"

    # Source database instance classes
    SOURCE_INSTANCE_TYPES = {
        "db.m5.large": {"vcpu": 2, "memory": 8, "monthly_cost": 218},
        "db.m5.xlarge": {"vcpu": 4, "memory": 16, "monthly_cost": 437},
        "db.m5.2xlarge": {"vcpu": 8, "memory": 32, "monthly_cost": 874},
        "db.r5.large": {"vcpu": 2, "memory": 16, "monthly_cost": 276},
        "db.r5.xlarge": {"vcpu": 4, "memory": 32, "monthly_cost": 552},
        "db.r5.2xlarge": {"vcpu": 8, "memory": 64, "monthly_cost": 1104},
        "db.r5.4xlarge": {"vcpu": 16, "memory": 128, "monthly_cost": 2208},
    }

    # Fallbacks used when a key is missing from the tables above
    FALLBACK_SQL_VCPU = 16
    FALLBACK_SOURCE = {"vcpu": 8, "memory": 32, "monthly_cost": 0}
    FALLBACK_TIER_COSTS = {
        "sql": 493,
        "storage": 998,
        "placement": 278,
        "analytics": 1995,
        "monitoring": 246,
    }

    def __init__(self, instance_types=None, volume_types=None, source_instance_types=None):
        self.instance_types = MappingProxyType(dict(instance_types or self.INSTANCE_TYPES))
        self.volume_types = MappingProxyType(dict(volume_types or self.VOLUME_TYPES))
        self.source_instance_types = MappingProxyType(dict(source_instance_types or self.SOURCE_INSTANCE_TYPES))

    # Target instance classes

    def has_instance(self, instance_type):
        return instance_type in self.instance_types

    def instance_vcpu(self, instance_type, default=None):
        spec = self.instance_types.get(instance_type)
        if spec is None:
            fallback = self.FALLBACK_SQL_VCPU if default is None else default
            logger.warning("Unknown instance class %r, assuming %s vCPU", instance_type, fallback)
            return fallback
        return spec["vcpu"]

    def instance_memory(self, instance_type):
        spec = self.instance_types.get(instance_type)
        return spec["memory"] if spec else 0

    def instance_monthly_cost(self, instance_type, tier="sql"):
        spec = self.instance_types.get(instance_type)
        if spec is None:
            fallback = self.FALLBACK_TIER_COSTS.get(tier, self.FALLBACK_TIER_COSTS["sql"])
            logger.warning("Unknown instance class %r for %s tier, using $%s/month", instance_type, tier, fallback)
            return fallback
        return spec["monthly_cost"]

    def local_storage_gb(self, instance_type):
        spec = self.instance_types.get(instance_type)
        if spec is None:
            return 0
        return spec.get("local_storage_gb", 0)

    # Block volumes

    def volume_pricing(self, volume_type):
        """Pricing rule for a volume class; unknown classes price as gp3"""
        pricing = self.volume_types.get(volume_type)
        if pricing is None:
            logger.warning("Unknown volume class %r, pricing as %s", volume_type, self.DEFAULT_VOLUME_TYPE)
            return self.volume_types[self.DEFAULT_VOLUME_TYPE]
        return pricing

    # Source database

    def source_spec(self, instance_class):
        spec = self.source_instance_types.get(instance_class)
        if spec is None:
            logger.warning(
                "Unknown source instance class %r, assuming %s vCPU / %sGB",
                instance_class, self.FALLBACK_SOURCE["vcpu"], self.FALLBACK_SOURCE["memory"],
            )
            return dict(self.FALLBACK_SOURCE)
        return dict(spec)

    def unknown_keys(self, selection=None, source_instance_class=None, volume_types=()):
        """List the keys a recompute would resolve through fallbacks"""
        missing = []
        if source_instance_class is not None and source_instance_class not in self.source_instance_types:
            missing.append(f"source instance class '{source_instance_class}'")
        if selection is not None:
            for tier in ("sql", "storage", "placement", "analytics", "monitoring"):
                instance_type = selection.for_tier(tier)
                if instance_type not in self.instance_types:
                    missing.append(f"{tier} instance class '{instance_type}'")
        for volume_type in volume_types:
            if volume_type not in self.volume_types:
                missing.append(f"volume class '{volume_type}'")
        return missing


DEFAULT_CATALOG = PricingCatalog()
