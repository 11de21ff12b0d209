import pytest

from history import record_change
from models import InstanceSelection, TargetTopology

TOPOLOGY = TargetTopology(sql_nodes=5, storage_nodes=3)
SELECTION = InstanceSelection(sql_instance_class="c5.4xlarge")

CLASSES = ["db.m5.large", "db.m5.xlarge", "db.m5.2xlarge", "db.r5.large", "db.r5.xlarge", "db.r5.2xlarge",
           "db.r5.4xlarge"]


def test_unchanged_class_returns_same_history():
    history = []
    assert record_change("db.r5.large", "db.r5.large", TOPOLOGY, SELECTION, history) is history


def test_first_entry_starts_from_baseline():
    history = record_change("db.m5.2xlarge", "db.r5.4xlarge", TOPOLOGY, InstanceSelection("r5.4xlarge"), [])

    assert len(history) == 1
    entry = history[0]
    assert entry.sequence_id == 1
    assert entry.from_instance_class == "db.m5.2xlarge"
    assert entry.to_instance_class == "db.r5.4xlarge"
    assert entry.vcpu_change == "8 → 16"
    assert entry.memory_change == "32GB → 128GB"
    assert entry.sql_nodes_change == "3 → 5"
    assert entry.storage_nodes_change == "3 → 3"
    assert entry.instance_class_change == "c5.4xlarge → r5.4xlarge"
    # 5 x r5.4xlarge, 3 x i3.4xlarge, 3 x m5.4xlarge, monitoring
    assert entry.monthly_cost == 5 * 774 + 3 * 998 + 3 * 556 + 246


def test_next_entry_starts_from_previous_entry():
    history = record_change("db.m5.large", "db.m5.xlarge", TOPOLOGY, SELECTION, [])
    bigger = TargetTopology(sql_nodes=8, storage_nodes=6)
    history = record_change("db.m5.xlarge", "db.r5.4xlarge", bigger, InstanceSelection("r5.4xlarge"), history)

    entry = history[-1]
    assert entry.sequence_id == 2
    assert entry.sql_nodes_change == "5 → 8"
    assert entry.storage_nodes_change == "3 → 6"
    assert entry.instance_class_change == "c5.4xlarge → r5.4xlarge"


def test_prior_history_is_not_modified():
    first = record_change("db.m5.large", "db.m5.xlarge", TOPOLOGY, SELECTION, [])
    second = record_change("db.m5.xlarge", "db.m5.large", TOPOLOGY, SELECTION, first)
    assert len(first) == 1
    assert len(second) == 2


def test_history_is_bounded():
    history = []
    previous = CLASSES[0]
    for i in range(12):
        current = CLASSES[(i + 1) % len(CLASSES)]
        history = record_change(previous, current, TOPOLOGY, SELECTION, history)
        previous = current

    assert len(history) == 10
    assert [entry.sequence_id for entry in history] == list(range(3, 13))
    assert history[-1].to_instance_class == previous


@pytest.mark.parametrize("limit", [1, 3])
def test_custom_limit(limit):
    history = []
    for previous, current in zip(CLASSES, CLASSES[1:]):
        history = record_change(previous, current, TOPOLOGY, SELECTION, history, limit=limit)
    assert len(history) == limit
    assert history[-1].to_instance_class == CLASSES[-1]
