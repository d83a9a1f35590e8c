"""syslog-ng STATS collector."""

import logging
import threading
from typing import Dict, List, Optional

from prometheus_client import Counter
from prometheus_client.core import CollectorRegistry, Metric

from ..config.models import SocketConfig
from ..utils.metrics import (
    DATA_DESCRIPTORS,
    NAMESPACE,
    UP,
    MetricDescriptor,
    Observation,
    ScrapeResult,
    build_name,
)
from .base import BaseCollector
from .control_socket import ControlSocket, ControlSocketError, END_OF_STATS
from .stats_classifier import classify
from .stats_parser import StatParseError, parse_stat_line


class SyslogNgCollector(BaseCollector):
    """
    Collector that scrapes the syslog-ng control socket on every collect.

    Scrapes are serialized by an instance lock: concurrent collect calls
    block until the in-flight scrape finishes. Every collect exposes
    exactly one `syslog_ng_up` sample, before any data family.
    """

    def __init__(
        self,
        config: SocketConfig,
        logger: logging.Logger,
        registry: Optional[CollectorRegistry] = None
    ):
        """
        Initialize syslog-ng collector.

        Args:
            config: Control socket configuration
            logger: Logger instance
            registry: Registry to register this collector with, if any
        """
        self._lock = threading.Lock()
        # Not registered on their own: exposed through this collector
        self.scrape_success = Counter(
            build_name(NAMESPACE, "exporter_scrape_success_total"),
            "Number of successful scrapes of syslog-ng.",
            registry=None,
        )
        self.scrape_failures = Counter(
            build_name(NAMESPACE, "exporter_scrape_failures_total"),
            "Number of errors while scraping syslog-ng.",
            registry=None,
        )
        super().__init__(config, logger, registry)

    def describe(self) -> List[Metric]:
        families = [self._new_family(UP)]
        families.extend(self._new_family(d) for d in DATA_DESCRIPTORS)
        families.extend(self.scrape_success.describe())
        families.extend(self.scrape_failures.describe())
        return families

    def collect(self) -> List[Metric]:
        with self._lock:
            result = self._scrape()
            families = self._to_families(result)
            families.extend(self.scrape_success.collect())
            families.extend(self.scrape_failures.collect())
        return families

    def scrape(self) -> ScrapeResult:
        """
        Run one scrape of the control socket.

        Returns:
            ScrapeResult: Liveness flag and classified observations
        """
        with self._lock:
            return self._scrape()

    def _scrape(self) -> ScrapeResult:
        try:
            response = ControlSocket.fetch_stats(self.config, self.logger)
        except ControlSocketError as e:
            self.logger.error(f"Error scraping syslog-ng: {e}")
            self.scrape_failures.inc()
            return ScrapeResult(up=False, error=str(e))

        result = ScrapeResult(up=True)
        skipped = 0
        # Records are "\n"-terminated; other line breaks may occur inside fields
        for line in response.split("\n"):
            if line.startswith(END_OF_STATS):
                break
            if not line:
                continue

            try:
                record = parse_stat_line(line)
            except StatParseError as e:
                skipped += 1
                self.logger.debug(f"Skipping STATS line {line!r}: {e}")
                continue

            classification = classify(record)
            if classification is not None:
                result.observations.append(Observation(*classification))

        self.scrape_success.inc()
        self.logger.debug(
            f"Scraped {len(result.observations)} metric(s), skipped {skipped} line(s)"
        )
        return result

    def _to_families(self, result: ScrapeResult) -> List[Metric]:
        """
        Convert a scrape result to metric families, `up` first.

        Args:
            result: Scrape outcome

        Returns:
            List[Metric]: `up` followed by every data family with samples
        """
        up = self._new_family(UP)
        up.add_metric([], 1.0 if result.up else 0.0)

        grouped: Dict[MetricDescriptor, Metric] = {}
        for observation in result.observations:
            family = grouped.get(observation.descriptor)
            if family is None:
                family = grouped[observation.descriptor] = self._new_family(observation.descriptor)
            family.add_metric(list(observation.label_values), observation.value)

        return [up] + [grouped[d] for d in DATA_DESCRIPTORS if d in grouped]
