"""Metric data structures shared by the collector and the classifier."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


NAMESPACE = "syslog_ng"


class MetricKind(Enum):
    """Prometheus metric type of an exposed family."""

    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass(frozen=True)
class MetricDescriptor:
    """Static description of one exposed metric family."""

    name: str
    documentation: str
    kind: MetricKind
    labels: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Observation:
    """One classified sample produced during a scrape."""

    descriptor: MetricDescriptor
    label_values: Tuple[str, ...]
    value: float


@dataclass
class ScrapeResult:
    """Outcome of a single scrape of the control socket."""

    up: bool
    observations: List[Observation] = field(default_factory=list)
    error: Optional[str] = None


def build_name(*parts: str) -> str:
    """Join non-empty name parts with underscores, like client_golang's BuildFQName."""
    return "_".join(p for p in parts if p)


SOURCE_LABELS = ("type", "id", "source")
DESTINATION_LABELS = ("type", "id", "destination")

SOURCE_PROCESSED = MetricDescriptor(
    build_name(NAMESPACE, "source_messages_processed", "total"),
    "Number of messages processed by this source.",
    MetricKind.COUNTER,
    SOURCE_LABELS,
)
DESTINATION_PROCESSED = MetricDescriptor(
    build_name(NAMESPACE, "destination_messages_processed", "total"),
    "Number of messages processed by this destination.",
    MetricKind.COUNTER,
    DESTINATION_LABELS,
)
DESTINATION_DROPPED = MetricDescriptor(
    build_name(NAMESPACE, "destination_messages_dropped", "total"),
    "Number of messages dropped by this destination due to store overflow.",
    MetricKind.COUNTER,
    DESTINATION_LABELS,
)
DESTINATION_WRITTEN = MetricDescriptor(
    build_name(NAMESPACE, "destination_messages_written", "total"),
    "Number of messages successfully written by this destination.",
    MetricKind.COUNTER,
    DESTINATION_LABELS,
)
DESTINATION_STORED = MetricDescriptor(
    build_name(NAMESPACE, "destination_messages_stored"),
    "Number of messages currently stored for this destination.",
    MetricKind.GAUGE,
    DESTINATION_LABELS,
)
DESTINATION_MEMORY = MetricDescriptor(
    build_name(NAMESPACE, "destination_bytes_stored"),
    "Bytes of memory currently used to store messages for this destination.",
    MetricKind.GAUGE,
    DESTINATION_LABELS,
)
DESTINATION_CPU = MetricDescriptor(
    build_name(NAMESPACE, "destination_bytes_processed"),
    "CPU usage reported for processing messages of this destination.",
    MetricKind.GAUGE,
    DESTINATION_LABELS,
)
UP = MetricDescriptor(
    build_name(NAMESPACE, "up"),
    "Reads 1 if the syslog-ng server could be reached, else 0.",
    MetricKind.GAUGE,
)

# Order in which data families are exposed after `up`
DATA_DESCRIPTORS = (
    SOURCE_PROCESSED,
    DESTINATION_PROCESSED,
    DESTINATION_DROPPED,
    DESTINATION_WRITTEN,
    DESTINATION_STORED,
    DESTINATION_MEMORY,
    DESTINATION_CPU,
)
