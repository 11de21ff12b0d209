import logging

import pytest

from models import InstanceSelection


def test_known_instance_lookups(catalog):
    assert catalog.instance_vcpu("c5.4xlarge") == 16
    assert catalog.instance_memory("r5.4xlarge") == 128
    assert catalog.instance_monthly_cost("i3.4xlarge", "storage") == 998
    assert catalog.local_storage_gb("i3.4xlarge") == 3800
    assert catalog.local_storage_gb("c5.4xlarge") == 0


@pytest.mark.parametrize("tier,expected", [
    ("sql", 493),
    ("storage", 998),
    ("placement", 278),
    ("analytics", 1995),
    ("monitoring", 246),
])
def test_unknown_instance_uses_tier_fallback(catalog, tier, expected):
    assert catalog.instance_monthly_cost("z9.mega", tier) == expected


def test_unknown_instance_is_logged(catalog, caplog):
    with caplog.at_level(logging.WARNING, logger="catalog"):
        assert catalog.instance_vcpu("z9.mega") == 16
    assert "z9.mega" in caplog.text


def test_unknown_source_class_fallback(catalog):
    spec = catalog.source_spec("db.x1.huge")
    assert spec == {"vcpu": 8, "memory": 32, "monthly_cost": 0}


def test_source_spec_is_a_copy(catalog):
    spec = catalog.source_spec("db.r5.large")
    spec["vcpu"] = 999
    assert catalog.source_spec("db.r5.large")["vcpu"] == 2


def test_tables_are_read_only(catalog):
    with pytest.raises(TypeError):
        catalog.instance_types["new.type"] = {}


def test_unknown_volume_prices_as_gp3(catalog):
    assert catalog.volume_pricing("st1") == catalog.volume_pricing("gp3")


def test_unknown_keys(catalog):
    selection = InstanceSelection(storage_instance_class="z9.mega")
    missing = catalog.unknown_keys(selection, "db.x1.huge", ["gp3", "st1"])
    assert missing == [
        "source instance class 'db.x1.huge'",
        "storage instance class 'z9.mega'",
        "volume class 'st1'",
    ]
    assert catalog.unknown_keys(InstanceSelection(), "db.r5.large", ["gp3"]) == []
