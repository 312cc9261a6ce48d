"""Shared fixtures: an in-process RESP server with scripted replies."""

from __future__ import annotations

import socket
import threading
import time

import pytest

from kvwire.errors import KVError
from kvwire.protocol.parser import decode_next
from kvwire.transport.session import Session


class FakeServer:
    """Threaded TCP server answering a handful of test commands.

    Commands::

        PING                -> +PONG
        ECHO <x>            -> bulk <x>
        SET <k> <v>         -> +OK
        GET <k>             -> bulk value, or null bulk if missing
        INCR <k>            -> integer
        FAIL                -> -ERR failure requested
        SLEEP <seconds>     -> +OK after a delay
        LIST                -> array [a, null, b]
        MIXED               -> array [1, [x], -ERR nested]
        NULLARRAY           -> null array
        GARBAGE             -> an undecodable line
        CLOSE               -> server closes the connection
    """

    def __init__(self) -> None:
        self._listener = socket.create_server(("127.0.0.1", 0))
        self._listener.settimeout(0.1)
        self._closed = threading.Event()
        self.host, self.port = self._listener.getsockname()[:2]
        self.store: dict[bytes, bytes] = {}
        self.accepted = 0
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._accept_loop, daemon=True)
        self._thread.start()

    def close(self) -> None:
        self._closed.set()
        self._thread.join()
        self._listener.close()

    def _accept_loop(self) -> None:
        while not self._closed.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            conn.settimeout(None)
            self.accepted += 1
            threading.Thread(target=self._serve, args=(conn,), daemon=True).start()

    def _serve(self, conn: socket.socket) -> None:
        reader = conn.makefile("rb")
        try:
            while True:
                try:
                    request = decode_next(reader)
                except (KVError, OSError):
                    return
                args = [item.data for item in request.items]
                reply = self._handle(args[0].upper(), args[1:])
                if reply is None:
                    conn.shutdown(socket.SHUT_RDWR)
                    return
                conn.sendall(reply)
        except OSError:
            return
        finally:
            reader.close()
            conn.close()

    def _handle(self, name: bytes, args: list[bytes]) -> bytes | None:
        if name == b"PING":
            return b"+PONG\r\n"
        if name == b"ECHO":
            return _bulk(args[0])
        if name == b"SET":
            with self._lock:
                self.store[args[0]] = args[1]
            return b"+OK\r\n"
        if name == b"GET":
            with self._lock:
                value = self.store.get(args[0])
            return b"$-1\r\n" if value is None else _bulk(value)
        if name == b"INCR":
            with self._lock:
                value = int(self.store.get(args[0], b"0")) + 1
                self.store[args[0]] = str(value).encode()
            return b":%d\r\n" % value
        if name == b"FAIL":
            return b"-ERR failure requested\r\n"
        if name == b"SLEEP":
            time.sleep(float(args[0]))
            return b"+OK\r\n"
        if name == b"LIST":
            return b"*3\r\n$1\r\na\r\n$-1\r\n$1\r\nb\r\n"
        if name == b"MIXED":
            return b"*3\r\n:1\r\n*1\r\n$1\r\nx\r\n-ERR nested\r\n"
        if name == b"NULLARRAY":
            return b"*-1\r\n"
        if name == b"GARBAGE":
            return b"?oops\r\n"
        if name == b"CLOSE":
            return None
        return b"-ERR unknown command '" + name + b"'\r\n"


def _bulk(data: bytes) -> bytes:
    return b"$%d\r\n%s\r\n" % (len(data), data)


@pytest.fixture
def server():
    srv = FakeServer()
    yield srv
    srv.close()


@pytest.fixture
def session(server):
    s = Session(server.host, server.port, timeout=2.0)
    yield s
    try:
        s.disconnect()
    except KVError:
        pass


@pytest.fixture
def free_port():
    """A local port with nothing listening on it."""
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
