"""Local port selection for the OAuth loopback redirect."""

import errno
import socket

LOOPBACK_HOST = "127.0.0.1"

_ADDR_IN_USE = {errno.EADDRINUSE, getattr(errno, "WSAEADDRINUSE", errno.EADDRINUSE)}


def is_address_in_use(error: OSError) -> bool:
    """Whether a bind failure means another socket holds the port."""
    return error.errno in _ADDR_IN_USE


def find_available_port(
    start_port: int,
    host: str = LOOPBACK_HOST,
    max_tries: int | None = None,
) -> int:
    """Find the first bindable port at or above ``start_port``.

    A throwaway socket is bound and released for each candidate. Only
    "address in use" moves the search forward; any other bind error
    propagates. ``start_port=0`` returns the OS-assigned ephemeral port.

    Args:
        start_port: Preferred port
        host: Interface to probe
        max_tries: Optional cap on candidates; unbounded when None

    Returns:
        A port that was free when probed

    Raises:
        OSError: On a non-"in use" bind failure, or when max_tries is exhausted
    """
    port = start_port
    tries = 0
    while True:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError as e:
                if not is_address_in_use(e):
                    raise
                tries += 1
                if max_tries is not None and tries >= max_tries:
                    raise
                port += 1
                continue
            return sock.getsockname()[1]
