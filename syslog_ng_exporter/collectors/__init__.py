"""Collectors that scrape syslog-ng and expose Prometheus metrics."""
