"""Tests for the control socket client."""

import socket
import time

import pytest
from unittest.mock import MagicMock, patch

from syslog_ng_exporter.collectors.control_socket import (
    ControlSocket,
    ControlSocketError,
    ControlSocketTimeout,
)
from syslog_ng_exporter.config.models import SocketConfig

from conftest import STATS_LEVEL1


def test_fetch_stats_sends_command_and_strips_header(control_socket, logger):
    """Test a full STATS exchange against a fake daemon."""
    server = control_socket()

    response = ControlSocket.fetch_stats(SocketConfig(path=server.path), logger)

    assert server.commands == [b"STATS\n"]
    assert not response.startswith("SourceName")
    assert response.splitlines()[0] == "destination;d_spol;;a;processed;0"
    assert response.splitlines()[-1] == "."


def test_fetch_stats_stops_at_sentinel(control_socket, logger):
    """Test data after the end marker is not read."""
    server = control_socket("header\nsrc.file;s;/dev/kmsg;a;processed;1\n.\ndst.file;d;f;a;stored;2\n")

    response = ControlSocket.fetch_stats(SocketConfig(path=server.path), logger)

    assert response == "src.file;s;/dev/kmsg;a;processed;1\n.\n"


def test_fetch_stats_eof_without_sentinel(control_socket, logger):
    """Test EOF after the header ends the response without an error."""
    server = control_socket("header\nsrc.file;s;/dev/kmsg;a;processed;1\n")

    response = ControlSocket.fetch_stats(SocketConfig(path=server.path), logger)

    assert response == "src.file;s;/dev/kmsg;a;processed;1\n"


def test_fetch_stats_header_only(control_socket, logger):
    """Test an empty STATS table is a valid response."""
    server = control_socket("SourceName;SourceId;SourceInstance;State;Type;Number\n.\n")

    assert ControlSocket.fetch_stats(SocketConfig(path=server.path), logger) == ".\n"


def test_fetch_stats_no_header(control_socket, logger):
    """Test a connection closed before any data is an error."""
    server = control_socket("")

    with pytest.raises(ControlSocketError):
        ControlSocket.fetch_stats(SocketConfig(path=server.path), logger)


def test_fetch_stats_missing_socket(missing_socket_config, logger):
    """Test connecting to a missing socket raises ControlSocketError."""
    with pytest.raises(ControlSocketError) as exc_info:
        ControlSocket.fetch_stats(missing_socket_config, logger)

    assert not isinstance(exc_info.value, ControlSocketTimeout)
    assert isinstance(exc_info.value, ConnectionError)


def test_fetch_stats_timeout(control_socket, logger):
    """Test a daemon that never answers hits the deadline."""
    server = control_socket(None)

    with pytest.raises(ControlSocketTimeout):
        ControlSocket.fetch_stats(SocketConfig(path=server.path, timeout_seconds=0.3), logger)


def test_fetch_stats_decodes_invalid_utf8(control_socket, logger):
    """Test undecodable bytes do not fail the exchange."""
    server = control_socket(b"header\ndst.file;d;/var/log/\xff;a;stored;1\n.\n")

    response = ControlSocket.fetch_stats(SocketConfig(path=server.path), logger)

    assert response.splitlines()[-1] == "."


def test_socket_closed_when_write_fails(logger):
    """Test the connection is closed on every exit path."""
    mock_sock = MagicMock()
    mock_sock.sendall.side_effect = BrokenPipeError("broken pipe")

    with patch("syslog_ng_exporter.collectors.control_socket.socket.socket", return_value=mock_sock):
        with pytest.raises(ControlSocketError, match="Error writing to control socket"):
            ControlSocket.fetch_stats(SocketConfig(path="/run/syslog-ng.ctl"), logger)

    mock_sock.close.assert_called()


def test_socket_closed_on_success(control_socket, logger):
    """Test the connection is closed after a successful exchange."""
    server = control_socket()
    real_socket = socket.socket
    created = []

    def tracking_socket(*args, **kwargs):
        sock = real_socket(*args, **kwargs)
        created.append(sock)
        return sock

    with patch("syslog_ng_exporter.collectors.control_socket.socket.socket", side_effect=tracking_socket):
        ControlSocket.fetch_stats(SocketConfig(path=server.path), logger)

    # created[0] is the client side; accepted server sockets follow
    assert created[0].fileno() == -1


def test_read_error_after_header_ends_stream(logger):
    """Test a reset connection after the header is treated as end of data."""
    sock = MagicMock()
    sock.recv.side_effect = [
        b"header\nsrc.file;s;/dev/kmsg;a;processed;1\n",
        ConnectionResetError("reset"),
    ]

    response = ControlSocket.read_response(sock, MagicMock(), logger)

    assert response == "src.file;s;/dev/kmsg;a;processed;1\n"


def test_read_error_drops_partial_line(logger):
    """Test a line cut off by a read error is not returned."""
    sock = MagicMock()
    sock.recv.side_effect = [
        b"header\nsrc.file;s;/dev/kmsg;a;processed;1\ndst.file;d;/var/log/x;a;processed;12",
        ConnectionResetError("reset"),
    ]

    response = ControlSocket.read_response(sock, MagicMock(), logger)

    assert response == "src.file;s;/dev/kmsg;a;processed;1\n"


def test_lines_split_across_reads(logger):
    """Test records arriving in several chunks are reassembled."""
    sock = MagicMock()
    sock.recv.side_effect = [b"head", b"er\nsrc.fi", b"le;s;/dev/kmsg;a;proc", b"essed;1\n.", b"\n"]

    response = ControlSocket.read_response(sock, MagicMock(), logger)

    assert response == "src.file;s;/dev/kmsg;a;processed;1\n.\n"


def test_deadline_applied_before_every_recv(logger):
    """Test each recv gets the remaining time of the exchange."""
    sock = MagicMock()
    sock.recv.side_effect = [b"header\n", b"src.file;s;/dev/kmsg;a;processed;1\n", b".\n"]
    deadline = MagicMock()

    ControlSocket.read_response(sock, deadline, logger)

    assert deadline.apply.call_count == sock.recv.call_count == 3


def test_fetch_stats_slow_drip_hits_deadline(control_socket, logger):
    """Test a daemon trickling bytes without a newline cannot outlast the deadline."""
    server = control_socket("header\n", drip=b"x" * 30, drip_interval=0.1)

    start = time.monotonic()
    with pytest.raises(ControlSocketTimeout):
        ControlSocket.fetch_stats(SocketConfig(path=server.path, timeout_seconds=0.5), logger)

    assert time.monotonic() - start < 1.5


def test_fetch_stats_unterminated_last_line(control_socket, logger):
    """Test a final line without newline before EOF is kept."""
    server = control_socket("header\nsrc.file;s;/dev/kmsg;a;processed;1\n.")

    response = ControlSocket.fetch_stats(SocketConfig(path=server.path), logger)

    assert response == "src.file;s;/dev/kmsg;a;processed;1\n."


def test_stats_fixture_has_sentinel():
    """Sanity check of the canned response used across tests."""
    assert STATS_LEVEL1.rstrip().endswith("\n.")
