"""Unit tests for loopback port selection."""

import errno
import socket
from unittest.mock import MagicMock, patch

import pytest

from contentflow_core.auth import LOOPBACK_HOST, find_available_port, is_address_in_use


def _mock_socket() -> MagicMock:
    sock = MagicMock()
    sock.__enter__.return_value = sock
    sock.__exit__.return_value = False
    return sock


def _bound_socket(port: int = 0) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind((LOOPBACK_HOST, port))
    sock.listen(1)
    return sock


class TestFindAvailablePort:
    """Tests for find_available_port."""

    def test_free_port_returned_as_is(self):
        """A free preferred port is returned unchanged."""
        probe = _bound_socket()
        port = probe.getsockname()[1]
        probe.close()

        assert find_available_port(port) == port

    def test_zero_returns_ephemeral_port(self):
        """start_port=0 yields the OS-assigned port."""
        assert find_available_port(0) > 0

    def test_skips_port_in_use(self):
        """A taken port moves the search to the next one."""
        with patch("contentflow_core.auth.ports.socket.socket") as socket_cls:
            in_use = OSError(errno.EADDRINUSE, "Address already in use")
            sockets = []

            def make_socket(*args):
                sock = _mock_socket()
                port = 9000 + len(sockets)
                sock.bind.side_effect = in_use if len(sockets) < 2 else None
                sock.getsockname.return_value = (LOOPBACK_HOST, port)
                sockets.append(sock)
                return sock

            socket_cls.side_effect = make_socket
            assert find_available_port(9000) == 9002

        bound = [s.bind.call_args.args[0][1] for s in sockets]
        assert bound == [9000, 9001, 9002]

    def test_other_bind_errors_propagate(self):
        """Only "address in use" continues the search."""
        with patch("contentflow_core.auth.ports.socket.socket") as socket_cls:
            sock = _mock_socket()
            sock.bind.side_effect = OSError(errno.EACCES, "Permission denied")
            socket_cls.return_value = sock

            with pytest.raises(OSError) as exc_info:
                find_available_port(80)

        assert exc_info.value.errno == errno.EACCES
        assert sock.bind.call_count == 1

    def test_max_tries_caps_search(self):
        """max_tries bounds the number of candidates."""
        with patch("contentflow_core.auth.ports.socket.socket") as socket_cls:
            sock = _mock_socket()
            sock.bind.side_effect = OSError(errno.EADDRINUSE, "Address already in use")
            socket_cls.return_value = sock

            with pytest.raises(OSError):
                find_available_port(7000, max_tries=3)

        assert sock.bind.call_count == 3

    def test_is_address_in_use(self):
        """Only EADDRINUSE counts as in use."""
        assert is_address_in_use(OSError(errno.EADDRINUSE, "in use"))
        assert not is_address_in_use(OSError(errno.EACCES, "denied"))
