"""
Marionette server readiness checks.

A marionette server greets every new connection with one packet of the
form ``<length>:<json>``, for example::

    50:{"applicationType":"gecko","marionetteProtocol":3}

Reading that greeting is how we know the runtime finished starting.
"""

from typing import Any, Dict, Optional
import json
import socket
import subprocess
import time

from .errors import ProtocolError, SessionStartError
from .log import session_logger

MAX_LENGTH_DIGITS = 10


def _recv_exact(sock: socket.socket, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = sock.recv(remaining)
        if not chunk:
            raise ProtocolError(f"Connection closed with {remaining} bytes unread")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b''.join(chunks)


def read_packet(sock: socket.socket) -> Dict[str, Any]:
    """
    Read one length-prefixed packet from a marionette connection.

    Returns:
        Decoded JSON body
    """
    digits = b''
    while True:
        ch = sock.recv(1)
        if not ch:
            raise ProtocolError("Connection closed before packet length")
        if ch == b':':
            break
        if not ch.isdigit() or len(digits) >= MAX_LENGTH_DIGITS:
            raise ProtocolError(f"Invalid packet length prefix: {(digits + ch)!r}")
        digits += ch

    if not digits:
        raise ProtocolError("Empty packet length prefix")

    body = _recv_exact(sock, int(digits))
    try:
        return json.loads(body.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise ProtocolError(f"Invalid packet body: {e}") from e


def port_in_use(host: str, port: int) -> bool:
    """True if something already holds ``host:port``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        # Matches the runtime's own bind, so TIME_WAIT leftovers don't count
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError:
            return True
    return False


def wait_for_marionette(
    host: str,
    port: int,
    timeout: float,
    process: Optional[subprocess.Popen] = None,
    interval: float = 0.1
) -> Dict[str, Any]:
    """
    Poll until the marionette server accepts a connection and greets us.

    Args:
        host: Interface the server listens on
        port: Marionette port
        timeout: Seconds to wait before giving up
        process: Runtime process; waiting stops early if it exits
        interval: Seconds between connection attempts

    Returns:
        The server greeting
    """
    deadline = time.monotonic() + timeout
    last_error: Optional[Exception] = None

    while True:
        if process is not None and process.poll() is not None:
            raise SessionStartError(
                f"Runtime exited with code {process.returncode} before marionette started"
            )

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise SessionStartError(
                f"Marionette did not respond on {host}:{port} within {timeout}s"
                + (f" (last error: {last_error})" if last_error else "")
            )

        try:
            with socket.create_connection((host, port), timeout=min(remaining, 5.0)) as sock:
                greeting = read_packet(sock)
            session_logger.debug(f"Marionette greeting on port {port}: {greeting}")
            return greeting
        except (OSError, ProtocolError) as e:
            # Server not listening yet, or still initializing
            last_error = e

        time.sleep(interval)
