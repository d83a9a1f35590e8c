"""Pydantic configuration models for the exporter."""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, Tuple


DEFAULT_SOCKET_PATH = "/var/lib/syslog-ng/syslog-ng.ctl"
DEFAULT_LISTEN_ADDRESS = ":9577"
DEFAULT_METRICS_ENDPOINT = "/metrics"


def split_address(address: str) -> Tuple[str, int]:
    """
    Split a listen address into host and port.

    Args:
        address: Address in "[host]:port" form, e.g. ":9577" or "127.0.0.1:9577"

    Returns:
        Tuple[str, int]: Host (empty for all interfaces) and port

    Raises:
        ValueError: If the address has no valid port
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Listen address must be [host]:port, got {address!r}")

    port_number = int(port)
    if port_number > 65535:
        raise ValueError(f"Port out of range in listen address: {address!r}")

    # IPv6 literals are written as [::1]:9577
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, port_number


class SocketConfig(BaseModel):
    """syslog-ng control socket settings."""
    path: str = DEFAULT_SOCKET_PATH
    timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Reject an empty socket path."""
        if not v:
            raise ValueError('Control socket path must not be empty')
        return v


class TelemetryConfig(BaseModel):
    """HTTP listener for the metrics endpoint."""
    address: str = DEFAULT_LISTEN_ADDRESS
    endpoint: str = DEFAULT_METRICS_ENDPOINT
    tls_cert_file: Optional[str] = None
    tls_key_file: Optional[str] = None
    tls_client_ca_file: Optional[str] = None  # Require client certificates signed by this CA
    insecure: bool = False  # Skip client certificate verification

    @field_validator('address')
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Validate [host]:port format."""
        split_address(v)
        return v

    @field_validator('endpoint')
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Metrics path must be absolute and must not shadow the landing page."""
        if not v.startswith('/') or v == '/':
            raise ValueError('Metrics endpoint must start with / and not be the root path')
        return v

    @model_validator(mode='after')
    def cert_and_key_together(self) -> 'TelemetryConfig':
        """TLS needs both a certificate and its key."""
        if bool(self.tls_cert_file) != bool(self.tls_key_file):
            raise ValueError('tls_cert_file and tls_key_file must be set together')
        if self.tls_client_ca_file and not self.tls_cert_file:
            raise ValueError('tls_client_ca_file requires tls_cert_file and tls_key_file')
        return self

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_cert_file and self.tls_key_file)

    @property
    def host(self) -> str:
        return split_address(self.address)[0]

    @property
    def port(self) -> int:
        return split_address(self.address)[1]


class ExporterConfig(BaseModel):
    """Root configuration model for the exporter."""
    socket: SocketConfig = Field(default_factory=SocketConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    log_level: str = "INFO"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise and validate the log level name; empty means INFO."""
        level = v.upper() or 'INFO'
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'Unknown log level: {v}')
        return level
