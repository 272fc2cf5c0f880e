"""
Transport Channels

One bidirectional byte stream per station. Frames are fixed length, so both
ends read an exact number of bytes; a stream that closes or stalls before a
frame is complete raises TransportError.

QueueChannel connects tasks in one process. SocketChannel carries the same
frames over TCP.
"""

import logging
import queue
import socket
import time
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from .errors import TransportError

logger = logging.getLogger(__name__)


class Channel(ABC):
    """A byte stream between one station and the combiner."""

    name: str = "channel"

    @abstractmethod
    def send(self, data: bytes):
        pass

    @abstractmethod
    def recv_exact(self, size: int, timeout: Optional[float] = None) -> bytes:
        """Block until exactly `size` bytes arrive."""
        pass

    @abstractmethod
    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


_CLOSED = object()


class QueueChannel(Channel):
    """
    In-process endpoint backed by two queues.

    Usage:
        station_end, combiner_end = QueueChannel.pair()
    """

    def __init__(self, inbox: queue.Queue, outbox: queue.Queue, name: str = "queue"):
        self.inbox = inbox
        self.outbox = outbox
        self.name = name
        self._buffer = bytearray()
        self._closed = False
        self._peer_closed = False

    @classmethod
    def pair(cls, name: str = "queue") -> Tuple["QueueChannel", "QueueChannel"]:
        a_to_b = queue.Queue()
        b_to_a = queue.Queue()
        return cls(b_to_a, a_to_b, name=f"{name}:a"), cls(a_to_b, b_to_a, name=f"{name}:b")

    def send(self, data: bytes):
        if self._closed:
            raise TransportError(f"{self.name}: send on closed channel")
        self.outbox.put(bytes(data))

    def recv_exact(self, size: int, timeout: Optional[float] = None) -> bytes:
        deadline = None if timeout is None else time.monotonic() + timeout

        while len(self._buffer) < size:
            if self._peer_closed:
                raise TransportError(
                    f"{self.name}: stream closed after {len(self._buffer)} of {size} bytes"
                )
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                chunk = self.inbox.get(timeout=remaining)
            except queue.Empty:
                raise TransportError(
                    f"{self.name}: timed out after {timeout}s with "
                    f"{len(self._buffer)} of {size} bytes",
                    timed_out=True,
                    received_bytes=len(self._buffer),
                ) from None
            if chunk is _CLOSED:
                self._peer_closed = True
                continue
            self._buffer.extend(chunk)

        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def close(self):
        if not self._closed:
            self._closed = True
            self.outbox.put(_CLOSED)


class SocketChannel(Channel):
    """TCP endpoint."""

    def __init__(self, sock: socket.socket, name: Optional[str] = None):
        self.sock = sock
        if name is None:
            try:
                host, port = sock.getpeername()[:2]
                name = f"{host}:{port}"
            except OSError:
                name = "socket"
        self.name = name

    @classmethod
    def connect(cls, host: str, port: int, timeout: Optional[float] = None) -> "SocketChannel":
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as e:
            raise TransportError(f"cannot connect to {host}:{port}: {e}") from e
        sock.settimeout(None)
        return cls(sock)

    def send(self, data: bytes):
        try:
            self.sock.sendall(data)
        except OSError as e:
            raise TransportError(f"{self.name}: send failed: {e}") from e

    def recv_exact(self, size: int, timeout: Optional[float] = None) -> bytes:
        self.sock.settimeout(timeout)
        buf = bytearray()
        try:
            while len(buf) < size:
                chunk = self.sock.recv(size - len(buf))
                if not chunk:
                    raise TransportError(
                        f"{self.name}: stream closed after {len(buf)} of {size} bytes"
                    )
                buf.extend(chunk)
        except socket.timeout:
            raise TransportError(
                f"{self.name}: timed out after {timeout}s with {len(buf)} of {size} bytes",
                timed_out=True,
                received_bytes=len(buf),
            ) from None
        except OSError as e:
            raise TransportError(f"{self.name}: receive failed: {e}") from e
        return bytes(buf)

    def close(self):
        try:
            self.sock.close()
        except OSError:
            logger.debug("error closing %s", self.name, exc_info=True)


def listen(host: str, port: int, backlog: int = 5) -> socket.socket:
    """Bound, listening server socket. Port 0 picks a free port."""
    try:
        server = socket.create_server((host, port), backlog=backlog)
    except OSError as e:
        raise TransportError(f"cannot listen on {host}:{port}: {e}") from e
    return server


def accept(server: socket.socket, timeout: Optional[float] = None) -> SocketChannel:
    server.settimeout(timeout)
    try:
        sock, addr = server.accept()
    except socket.timeout:
        raise TransportError(f"no station connected within {timeout}s", timed_out=True) from None
    except OSError as e:
        raise TransportError(f"accept failed: {e}") from e
    sock.settimeout(None)
    return SocketChannel(sock, name=f"{addr[0]}:{addr[1]}")
