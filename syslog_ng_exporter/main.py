"""Main application entry point for the syslog-ng Prometheus exporter."""

import argparse
import logging
import os
import signal
import sys
import threading
from typing import Optional, TextIO

from prometheus_client import CollectorRegistry, Info, generate_latest

from . import __version__
from .config.loader import ConfigLoader
from .config.models import ExporterConfig
from .collectors.syslog_ng_collector import SyslogNgCollector
from .server import create_server
from .utils.logger import setup_logger


class ExporterApp:
    """
    Main exporter application.

    Owns the metrics registry and the syslog-ng collector, and serves
    the registry over HTTP until interrupted.
    """

    def __init__(self, config: ExporterConfig, log_stream: Optional[TextIO] = None):
        """
        Initialize exporter application.

        Args:
            config: Validated exporter configuration
            log_stream: Stream for log records (default: stdout)
        """
        self.config = config
        self.logger = setup_logger("syslog_ng_exporter", config.log_level, log_stream)
        self.httpd = None

        self.registry = CollectorRegistry()
        build_info = Info(
            "syslog_ng_exporter_build",
            "Build information of the syslog-ng exporter.",
            registry=self.registry,
        )
        build_info.info({"version": __version__})
        self.collector = SyslogNgCollector(config.socket, self.logger, registry=self.registry)

        self.logger.info(f"Starting syslog_ng_exporter {__version__}")
        self.logger.info(f"Control socket: {config.socket.path}")

    def run_once(self) -> int:
        """
        Scrape once and print the exposition text to stdout.

        Returns:
            int: 0 if syslog-ng was reachable, else 1
        """
        failures_before = self._scrape_failures()
        sys.stdout.write(generate_latest(self.registry).decode("utf-8"))
        sys.stdout.flush()
        return 0 if self._scrape_failures() == failures_before else 1

    def _scrape_failures(self) -> float:
        for family in self.collector.scrape_failures.collect():
            for sample in family.samples:
                if sample.name.endswith("_total"):
                    return sample.value
        return 0.0

    def serve(self) -> None:
        """
        Serve metrics until SIGTERM/SIGINT.

        Raises:
            OSError: If the listener cannot be bound
        """
        telemetry = self.config.telemetry
        self.httpd = create_server(telemetry, self.registry)

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        scheme = "https" if telemetry.tls_enabled else "http"
        self.logger.info(
            f"Listening on {telemetry.address} ({scheme}), metrics at {telemetry.endpoint}"
        )
        try:
            self.httpd.serve_forever()
        finally:
            self.httpd.server_close()
            self.logger.info("Server stopped")

    def _signal_handler(self, signum, frame):
        """
        Handle shutdown signals.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        signal_name = signal.Signals(signum).name
        self.logger.info(f"Received {signal_name}, initiating graceful shutdown...")

        # shutdown() blocks until serve_forever() returns, which runs in this thread
        if self.httpd:
            threading.Thread(target=self.httpd.shutdown, daemon=True).start()


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    parser = argparse.ArgumentParser(
        prog='syslog-ng-exporter',
        description='A syslog-ng exporter for Prometheus',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve metrics on :9577/metrics
  syslog-ng-exporter --socket.path /var/lib/syslog-ng/syslog-ng.ctl

  # Scrape once and print the metrics (useful for testing)
  syslog-ng-exporter --run-once

  # Use a configuration file
  syslog-ng-exporter --config /etc/syslog-ng-exporter.yaml
        """
    )

    # Defaults are None so that unset flags keep config file values
    parser.add_argument('--config', help='Path to YAML configuration file')
    parser.add_argument(
        '--socket.path', dest='socket_path',
        help='Path to syslog-ng control socket (default: /var/lib/syslog-ng/syslog-ng.ctl)'
    )
    parser.add_argument(
        '--socket.timeout', dest='socket_timeout', type=float,
        help='Deadline in seconds for one STATS exchange (default: 30)'
    )
    parser.add_argument(
        '--telemetry.address', dest='telemetry_address',
        help='Address on which to expose metrics (default: :9577)'
    )
    parser.add_argument(
        '--telemetry.endpoint', dest='telemetry_endpoint',
        help='Path under which to expose metrics (default: /metrics)'
    )
    parser.add_argument('--tls.cert-file', dest='tls_cert_file', help='TLS certificate for the listener')
    parser.add_argument('--tls.key-file', dest='tls_key_file', help='TLS private key for the listener')
    parser.add_argument(
        '--tls.client-ca-file', dest='tls_client_ca_file',
        help='CA used to verify client certificates'
    )
    parser.add_argument(
        '--insecure', action='store_true', default=None,
        help='Skip client certificate verification when using https'
    )
    parser.add_argument(
        '--log-level',
        default=os.getenv('LOG_LEVEL'),
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO or LOG_LEVEL env var)'
    )
    parser.add_argument(
        '--run-once', action='store_true',
        help='Scrape once, print the metrics and exit'
    )
    parser.add_argument('--version', action='store_true', help='Print version information')
    return parser


def main(argv=None):
    """
    CLI entry point.

    Parses command-line arguments and starts the exporter.
    """
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"syslog_ng_exporter, version {__version__}")
        sys.exit(0)

    try:
        config = ConfigLoader.from_args(args)
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    try:
        # In run-once mode stdout carries the exposition text
        app = ExporterApp(config, log_stream=sys.stderr if args.run_once else None)

        if args.run_once:
            sys.exit(app.run_once())

        app.serve()

    except Exception as e:
        logging.error(f"Exporter failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
