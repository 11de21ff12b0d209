import logging

from catalog import DEFAULT_CATALOG
from config import Config
from cost_model import MigrationCostCalculator
from models import HistoryEntry

logger = logging.getLogger(__name__)

# "From" values for the first transition in an empty log
BASELINE_SQL_NODES = 3
BASELINE_STORAGE_NODES = 3
BASELINE_SQL_INSTANCE = "c5.4xlarge"


def record_change(previous_instance_class, new_instance_class, topology, selection,
                  prior_history, catalog=None, limit=Config.HISTORY_LIMIT):
    """
    Append a source instance class transition to the bounded change log.

    Returns prior_history itself when the class did not change, otherwise a
    new list; the prior list is never modified. Once the log holds `limit`
    entries the oldest is evicted. Sequence ids continue from the last entry
    and restart at 1 only when the log is empty.
    """
    if previous_instance_class == new_instance_class:
        return prior_history

    catalog = catalog or DEFAULT_CATALOG
    previous_spec = catalog.source_spec(previous_instance_class)
    new_spec = catalog.source_spec(new_instance_class)

    if prior_history:
        last = prior_history[-1]
        from_sql_nodes = last.sql_nodes
        from_storage_nodes = last.storage_nodes
        from_sql_instance = last.sql_instance_class
        sequence_id = last.sequence_id + 1
    else:
        from_sql_nodes = BASELINE_SQL_NODES
        from_storage_nodes = BASELINE_STORAGE_NODES
        from_sql_instance = BASELINE_SQL_INSTANCE
        sequence_id = 1

    entry = HistoryEntry(
        sequence_id=sequence_id,
        from_instance_class=previous_instance_class,
        to_instance_class=new_instance_class,
        vcpu_change=f"{previous_spec['vcpu']} → {new_spec['vcpu']}",
        memory_change=f"{previous_spec['memory']}GB → {new_spec['memory']}GB",
        sql_nodes_change=f"{from_sql_nodes} → {topology.sql_nodes}",
        storage_nodes_change=f"{from_storage_nodes} → {topology.storage_nodes}",
        instance_class_change=f"{from_sql_instance} → {selection.sql_instance_class}",
        sql_nodes=topology.sql_nodes,
        storage_nodes=topology.storage_nodes,
        sql_instance_class=selection.sql_instance_class,
        monthly_cost=MigrationCostCalculator(catalog).compute_cost(topology, selection),
    )

    history = list(prior_history)
    if len(history) >= limit:
        history = history[len(history) - limit + 1:]
    history.append(entry)

    logger.info("Recorded source change #%d: %s -> %s", sequence_id, previous_instance_class, new_instance_class)
    return history
