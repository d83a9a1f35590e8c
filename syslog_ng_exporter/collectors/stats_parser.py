"""Parser for lines of the syslog-ng control socket STATS output."""

import math
import re
from dataclasses import dataclass


# Number of ';'-separated fields in a STATS record
STAT_FIELDS = 6
# Shortest object type the classifier can route on (e.g. "src.")
MIN_OBJECT_TYPE_LENGTH = 4

_DECIMAL_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')


class StatParseError(ValueError):
    """Base class for STATS lines that cannot be turned into a record."""


class MalformedRecord(StatParseError):
    """Line has too few fields or an unusable object type."""


class InvalidValue(StatParseError):
    """Value field is not a finite decimal number."""


@dataclass(frozen=True)
class StatRecord:
    """One parsed STATS line.

    Example:
        dst.file;d_mesg#0;/var/log/messages;a;stored;0
    """

    object_type: str
    id: str
    instance: str
    state: str
    metric: str
    value: float


def parse_stat_line(line: str) -> StatRecord:
    """
    Parse a single STATS line.

    Args:
        line: Raw protocol line, optionally with its line terminator

    Returns:
        StatRecord: Parsed record

    Raises:
        MalformedRecord: If the line has fewer than 6 fields or the object
            type is shorter than 4 characters
        InvalidValue: If the value field is not a finite number
    """
    parts = line.rstrip().split(";", STAT_FIELDS - 1)
    if len(parts) < STAT_FIELDS:
        raise MalformedRecord(f"insufficient parts: {len(parts)} < {STAT_FIELDS}")

    object_type, stat_id, instance, state, metric, raw_value = parts

    if len(object_type) < MIN_OBJECT_TYPE_LENGTH:
        raise MalformedRecord(f"invalid name: {object_type!r}")

    if not _DECIMAL_RE.match(raw_value):
        raise InvalidValue(f"invalid value: {raw_value!r}")

    value = float(raw_value)
    if not math.isfinite(value):
        # Overflowing exponents such as 1e999
        raise InvalidValue(f"value out of range: {raw_value!r}")

    return StatRecord(object_type, stat_id, instance, state, metric, value)
