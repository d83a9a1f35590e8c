"""Shared pytest configuration and fixtures."""

import os
import shutil
import socket
import tempfile
import threading
from pathlib import Path

import pytest

from syslog_ng_exporter.config.models import SocketConfig
from syslog_ng_exporter.utils.logger import setup_logger


EXAMPLE_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.example.yaml"

# STATS output of syslog-ng 3.x shortly after startup
STATS_LEVEL1 = """SourceName;SourceId;SourceInstance;State;Type;Number
destination;d_spol;;a;processed;0
src.internal;s_sys#2;;a;processed;4
src.internal;s_sys#2;;a;stamp;1556092662
center;;received;a;processed;4
src.unix-dgram;s_sys#0;/run/systemd/journal/syslog;a;processed;16
src.unix-dgram;s_sys#0;/run/systemd/journal/syslog;a;stamp;1556092680
destination;d_mesg;;a;processed;7
destination;d_mail;;a;processed;0
destination;d_auth;;a;processed;13
destination;d_mlal;;a;processed;0
center;;queued;a;processed;20
src.none;;;a;processed;0
src.none;;;a;stamp;0
destination;d_cron;;a;processed;0
global;payload_reallocs;;a;processed;0
global;sdata_updates;;a;processed;0
dst.file;d_mesg#0;/var/log/messages;a;dropped;0
dst.file;d_mesg#0;/var/log/messages;a;processed;7
dst.file;d_mesg#0;/var/log/messages;a;stored;0
src.file;s_sys#1;/dev/kmsg;a;processed;0
src.file;s_sys#1;/dev/kmsg;a;stamp;0
destination;d_boot;;a;processed;0
destination;d_kern;;a;processed;0
global;msg_clones;;a;processed;0
source;s_sys;;a;processed;4
dst.file;d_auth#0;/var/log/secure;a;dropped;0
dst.file;d_auth#0;/var/log/secure;a;processed;13
dst.file;d_auth#0;/var/log/secure;a;stored;0
.
"""
# Records of STATS_LEVEL1 the exporter surfaces
STATS_LEVEL1_METRIC_COUNT = 19


class FakeControlSocket:
    """
    Minimal syslog-ng control socket served from a background thread.

    Each accepted connection reads one command line and answers with
    `response`, then sends `drip` one byte every `drip_interval` seconds.
    With `response=None` the connection is held open without answering,
    to exercise timeouts.
    """

    def __init__(self, path: str, response, drip: bytes = b"", drip_interval: float = 0.1):
        self.path = path
        self.response = response
        self.drip = drip
        self.drip_interval = drip_interval
        self.commands = []
        self.connections = 0
        self._stop = threading.Event()

        self._server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._server.bind(path)
        self._server.listen(5)
        self._server.settimeout(0.1)

        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._server.accept()
            except socket.timeout:
                continue
            except OSError:
                break

            with conn:
                self.connections += 1
                conn.settimeout(5)
                data = b""
                while not data.endswith(b"\n"):
                    chunk = conn.recv(64)
                    if not chunk:
                        break
                    data += chunk
                self.commands.append(data)

                if self.response is None:
                    self._stop.wait(5)
                    continue
                data = self.response if isinstance(self.response, bytes) else self.response.encode("utf-8")
                conn.sendall(data)
                self._drip(conn)

    def _drip(self, conn):
        for byte in self.drip:
            if self._stop.wait(self.drip_interval):
                return
            try:
                conn.sendall(bytes([byte]))
            except OSError:
                return

    def close(self):
        self._stop.set()
        self._thread.join(timeout=5)
        self._server.close()


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test", "DEBUG")


@pytest.fixture
def socket_dir():
    """Short temporary directory; AF_UNIX paths are limited to ~100 bytes."""
    path = tempfile.mkdtemp(prefix="sng")
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def control_socket(socket_dir):
    """Factory starting a fake control socket with a canned response."""
    servers = []

    def start(response=STATS_LEVEL1, **kwargs):
        server = FakeControlSocket(os.path.join(socket_dir, f"ctl{len(servers)}"), response, **kwargs)
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.close()


@pytest.fixture
def missing_socket_config(socket_dir):
    """Socket config pointing at a path nothing listens on."""
    return SocketConfig(path=os.path.join(socket_dir, "missing.ctl"), timeout_seconds=1)
