"""Client for the syslog-ng control socket."""

import logging
import socket
import time
from typing import List, Optional

from ..config.models import SocketConfig


STATS_COMMAND = b"STATS\n"
RECV_SIZE = 4096
# A line starting with this character ends the STATS output
END_OF_STATS = "."


class ControlSocketError(ConnectionError):
    """The control socket could not be reached or stopped answering."""


class ControlSocketTimeout(ControlSocketError):
    """The STATS exchange did not finish before its deadline."""


class _Deadline:
    """Absolute deadline shared by every blocking call of one exchange."""

    def __init__(self, seconds: float):
        self.expires = time.monotonic() + seconds

    def apply(self, sock: socket.socket) -> None:
        remaining = self.expires - time.monotonic()
        if remaining <= 0:
            raise socket.timeout("deadline exceeded")
        sock.settimeout(remaining)


class ControlSocket:
    """Helper class for control socket operations."""

    @staticmethod
    def connect(config: SocketConfig, deadline: _Deadline, logger: logging.Logger) -> socket.socket:
        """
        Open a stream connection to the control socket.

        Args:
            config: Control socket configuration
            deadline: Deadline for the whole exchange
            logger: Logger instance

        Returns:
            socket.socket: Connected socket

        Raises:
            ControlSocketTimeout: If the deadline passes while connecting
            ControlSocketError: If the connection fails
        """
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            logger.debug(f"Connecting to control socket {config.path}")
            deadline.apply(sock)
            sock.connect(config.path)
            return sock

        except socket.timeout as e:
            sock.close()
            raise ControlSocketTimeout(f"Timed out connecting to {config.path}") from e

        except OSError as e:
            sock.close()
            raise ControlSocketError(f"Error connecting to syslog-ng: {e}") from e

    @staticmethod
    def send_command(
        sock: socket.socket,
        command: bytes,
        deadline: _Deadline,
        logger: Optional[logging.Logger] = None
    ) -> None:
        """
        Write a command to the control socket.

        Raises:
            ControlSocketTimeout: If the deadline passes while writing
            ControlSocketError: If the write fails
        """
        if logger:
            logger.debug(f"Sending command: {command.strip().decode()}")

        try:
            deadline.apply(sock)
            sock.sendall(command)
        except socket.timeout as e:
            raise ControlSocketTimeout("Timed out writing to control socket") from e
        except OSError as e:
            raise ControlSocketError(f"Error writing to control socket: {e}") from e

    @staticmethod
    def read_response(
        sock: socket.socket,
        deadline: _Deadline,
        logger: Optional[logging.Logger] = None
    ) -> str:
        """
        Read a STATS response.

        The first line is a column header and is discarded. Data lines are
        returned up to and including the "." terminator, or up to EOF. The
        deadline is re-applied before every recv, so a daemon trickling
        bytes cannot hold the exchange open past it.

        Returns:
            str: Data lines of the response

        Raises:
            ControlSocketTimeout: If the deadline passes while reading
            ControlSocketError: If the header cannot be read
        """
        lines: List[str] = []
        buffer = b""
        header_read = False

        while True:
            newline = buffer.find(b"\n")
            if newline >= 0:
                raw, buffer = buffer[:newline + 1], buffer[newline + 1:]
                if not header_read:
                    header_read = True
                    continue

                line = raw.decode("utf-8", errors="replace")
                lines.append(line)
                if line.startswith(END_OF_STATS):
                    if logger:
                        logger.debug("Reached end of STATS output")
                    break
                continue

            try:
                deadline.apply(sock)
                chunk = sock.recv(RECV_SIZE)
            except socket.timeout as e:
                stage = "STATS" if header_read else "header"
                raise ControlSocketTimeout(f"Timed out reading {stage} from control socket") from e
            except OSError as e:
                if not header_read:
                    raise ControlSocketError(f"Error reading header from control socket: {e}") from e
                # A partial line cut off by the error may carry a truncated value
                if logger:
                    logger.warning(f"Read error after header, treating as end of STATS: {e}")
                break

            if not chunk:
                if not header_read:
                    raise ControlSocketError("Control socket closed before sending a header")
                if buffer:
                    lines.append(buffer.decode("utf-8", errors="replace"))
                if logger:
                    logger.debug("Control socket closed without end of STATS marker")
                break

            buffer += chunk

        return "".join(lines)

    @staticmethod
    def close(sock: Optional[socket.socket], logger: Optional[logging.Logger] = None) -> None:
        """
        Close a control socket connection.

        Args:
            sock: Connected socket
            logger: Optional logger instance
        """
        try:
            if sock:
                sock.close()
                if logger:
                    logger.debug("Control socket connection closed")
        except OSError as e:
            if logger:
                logger.warning(f"Error closing control socket: {e}")

    @staticmethod
    def fetch_stats(config: SocketConfig, logger: logging.Logger) -> str:
        """
        Run one STATS exchange against the control socket.

        Args:
            config: Control socket configuration
            logger: Logger instance

        Returns:
            str: Response data lines (header stripped)

        Raises:
            ControlSocketError: If the daemon cannot be reached or the
                exchange fails (ControlSocketTimeout past the deadline)
        """
        deadline = _Deadline(config.timeout_seconds)
        sock = None
        try:
            sock = ControlSocket.connect(config, deadline, logger)
            ControlSocket.send_command(sock, STATS_COMMAND, deadline, logger)
            return ControlSocket.read_response(sock, deadline, logger)
        finally:
            ControlSocket.close(sock, logger)
