"""HTTP exposition of the metrics registry."""

import logging
import ssl
from socketserver import ThreadingMixIn
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app

from .config.models import TelemetryConfig


LANDING_PAGE = """<html>
<head><title>Syslog-NG Exporter</title></head>
<body>
<h1>Syslog-NG Exporter</h1>
<p><a href='{endpoint}'>Metrics</a></p>
</body>
</html>
"""


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """WSGI server handling each request in its own thread."""

    daemon_threads = True


class _LoggingHandler(WSGIRequestHandler):
    """Route access logs through the exporter logger instead of stderr."""

    logger = logging.getLogger("syslog_ng_exporter.http")

    def log_message(self, format, *args):
        self.logger.debug(format % args)


def create_app(registry: CollectorRegistry, endpoint: str):
    """
    Build the WSGI application.

    Args:
        registry: Registry exposed on the metrics endpoint
        endpoint: Path of the metrics endpoint, e.g. "/metrics"

    Returns:
        WSGI callable serving metrics, the landing page and 404 otherwise
    """
    metrics_app = make_wsgi_app(registry)
    landing = LANDING_PAGE.format(endpoint=endpoint).encode("utf-8")

    def app(environ, start_response):
        path = environ.get("PATH_INFO", "/")
        if path == endpoint:
            return metrics_app(environ, start_response)

        if path == "/":
            start_response("200 OK", [
                ("Content-Type", "text/html; charset=utf-8"),
                ("Content-Length", str(len(landing))),
            ])
            return [landing]

        body = b"404 page not found\n"
        start_response("404 Not Found", [
            ("Content-Type", "text/plain; charset=utf-8"),
            ("Content-Length", str(len(body))),
        ])
        return [body]

    return app


def build_ssl_context(config: TelemetryConfig) -> ssl.SSLContext:
    """
    Create the server-side TLS context for the listener.

    Client certificates are required when a client CA is configured,
    unless `insecure` is set.

    Args:
        config: Telemetry configuration with TLS files

    Returns:
        ssl.SSLContext: Server context
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.load_cert_chain(certfile=config.tls_cert_file, keyfile=config.tls_key_file)

    if config.tls_client_ca_file and not config.insecure:
        context.load_verify_locations(cafile=config.tls_client_ca_file)
        context.verify_mode = ssl.CERT_REQUIRED
    else:
        context.verify_mode = ssl.CERT_NONE

    return context


def create_server(config: TelemetryConfig, registry: CollectorRegistry) -> WSGIServer:
    """
    Bind the HTTP(S) listener.

    Args:
        config: Telemetry configuration
        registry: Registry to expose

    Returns:
        WSGIServer: Bound server, ready for serve_forever()

    Raises:
        OSError: If the address cannot be bound
        ssl.SSLError: If the TLS files cannot be loaded
    """
    app = create_app(registry, config.endpoint)
    httpd = make_server(
        config.host,
        config.port,
        app,
        server_class=_ThreadingWSGIServer,
        handler_class=_LoggingHandler,
    )

    if config.tls_enabled:
        context = build_ssl_context(config)
        httpd.socket = context.wrap_socket(httpd.socket, server_side=True)

    return httpd
