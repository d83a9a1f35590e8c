"""Prometheus exporter for the syslog-ng control socket STATS output."""

__version__ = "0.3.0"
