"""Map parsed STATS records onto the exported metric families."""

from typing import NamedTuple, Optional, Tuple

from ..utils.metrics import (
    MetricDescriptor,
    SOURCE_PROCESSED,
    DESTINATION_PROCESSED,
    DESTINATION_DROPPED,
    DESTINATION_WRITTEN,
    DESTINATION_STORED,
    DESTINATION_MEMORY,
    DESTINATION_CPU,
)
from .stats_parser import StatRecord, MIN_OBJECT_TYPE_LENGTH


SOURCE = "source"
DESTINATION = "destination"

# Object type prefix → record group. syslog-ng 3.x reports both the long
# ("source", "destination") and the driver form ("src.file", "dst.file").
PREFIX_GROUPS = {
    "src.": SOURCE,
    "sour": SOURCE,
    "dst.": DESTINATION,
    "dest": DESTINATION,
}

# (record group, metric field) → exported family
ROUTES = {
    (SOURCE, "processed"): SOURCE_PROCESSED,
    (DESTINATION, "processed"): DESTINATION_PROCESSED,
    (DESTINATION, "dropped"): DESTINATION_DROPPED,
    (DESTINATION, "written"): DESTINATION_WRITTEN,
    (DESTINATION, "stored"): DESTINATION_STORED,
    (DESTINATION, "queued"): DESTINATION_STORED,
    (DESTINATION, "memory_usage"): DESTINATION_MEMORY,
    (DESTINATION, "cpu_usage"): DESTINATION_CPU,
}


class Classification(NamedTuple):
    """Target family, label values and sample value for one record."""

    descriptor: MetricDescriptor
    label_values: Tuple[str, ...]
    value: float


def classify(record: StatRecord) -> Optional[Classification]:
    """
    Route a record to its metric family.

    Records the exporter does not surface (stamps, global and center
    totals, ...) return None.

    Args:
        record: Parsed STATS record

    Returns:
        Classification or None
    """
    group = PREFIX_GROUPS.get(record.object_type[:MIN_OBJECT_TYPE_LENGTH])
    if group is None:
        return None

    descriptor = ROUTES.get((group, record.metric))
    if descriptor is None:
        return None

    return Classification(
        descriptor,
        (record.object_type, record.id, record.instance),
        record.value,
    )
