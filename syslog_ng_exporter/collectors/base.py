"""Base collector abstract class for Prometheus custom collectors."""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional
import logging

from prometheus_client.core import CollectorRegistry, CounterMetricFamily, GaugeMetricFamily, Metric

from ..utils.metrics import MetricDescriptor, MetricKind


class BaseCollector(ABC):
    """Abstract base class for all collectors."""

    def __init__(
        self,
        config: Any,
        logger: logging.Logger,
        registry: Optional[CollectorRegistry] = None
    ):
        """
        Initialize base collector.

        Args:
            config: Collector-specific configuration
            logger: Logger instance
            registry: Registry to register this collector with, if any
        """
        self.config = config
        self.logger = logger.getChild(self.__class__.__name__)
        self.registry = registry

        if registry is not None:
            registry.register(self)

    @abstractmethod
    def describe(self) -> Iterable[Metric]:
        """
        Return the metric families this collector exposes, without samples.

        Called by the registry on registration so that registering does
        not trigger a scrape.
        """
        pass

    @abstractmethod
    def collect(self) -> Iterable[Metric]:
        """
        Collect metrics and return them as Prometheus metric families.

        Returns:
            Iterable[Metric]: Metric families with samples
        """
        pass

    @staticmethod
    def _new_family(descriptor: MetricDescriptor) -> Metric:
        """
        Create an empty metric family for a descriptor.

        Args:
            descriptor: Static family description

        Returns:
            CounterMetricFamily or GaugeMetricFamily
        """
        labels = list(descriptor.labels) if descriptor.labels else None
        if descriptor.kind is MetricKind.COUNTER:
            return CounterMetricFamily(descriptor.name, descriptor.documentation, labels=labels)
        return GaugeMetricFamily(descriptor.name, descriptor.documentation, labels=labels)
