"""TCP session to a key-value server.

A session owns one socket plus a buffered reader and writer wrapped
around it. Commands are queued with :meth:`Session.send` and only reach
the wire when a reply is requested (or :meth:`Session.flush` is called),
which lets callers pipeline many commands per round trip.
"""

from __future__ import annotations

import logging
import select
import socket
import struct
from typing import BinaryIO

from ..errors import (
    ApplicationError,
    KVConnectionError,
    KVError,
    KVTimeoutError,
    PipelineEmptyError,
    SessionStateError,
    UnexpectedReplyError,
)
from ..protocol.framing import Argument, encode
from ..protocol.commands import Command
from ..protocol.parser import (
    ArrayReply,
    BulkReply,
    IntegerReply,
    Reply,
    StatusReply,
    decode_next,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6379
DEFAULT_TIMEOUT = 2.0


def _decode_text(data: bytes | None) -> str | None:
    if data is None:
        return None
    return data.decode("utf-8")


class Session:
    """One connection to a server, with pipelining.

    Usage::

        session = Session("localhost", 6379)
        session.send(Command.SET, "k", "v").send(Command.GET, "k")
        session.receive_status()   # "OK"
        session.receive_bulk()     # b"v"
        session.disconnect()

    ``pipeline_depth`` counts commands sent whose reply has not been read.
    Every reply-consuming call decrements it by exactly one, including
    calls whose reply is an error.

    A session is not thread-safe. The socket, both buffers and the depth
    counter change together and are not locked; callers that share a
    session must serialize access themselves. Closing the session from
    another thread while a read is blocked is unsupported.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout
        self._sock: socket.socket | None = None
        self._reader: BinaryIO | None = None
        self._writer: BinaryIO | None = None
        self._pipeline_depth = 0

    def __repr__(self) -> str:
        state = "connected" if self._sock is not None else "disconnected"
        return (
            f"Session({self._host}:{self._port}, {state}, "
            f"pipeline_depth={self._pipeline_depth})"
        )

    def __enter__(self) -> Session:
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()

    # ── configuration ──────────────────────────────────────────────

    @property
    def host(self) -> str:
        return self._host

    @host.setter
    def host(self, value: str) -> None:
        self._require_disconnected("host")
        self._host = value

    @property
    def port(self) -> int:
        return self._port

    @port.setter
    def port(self, value: int) -> None:
        self._require_disconnected("port")
        self._port = value

    @property
    def timeout(self) -> float:
        """Connect and read deadline in seconds.

        Changes apply on the next :meth:`connect` or
        :meth:`rollback_timeout`.
        """
        return self._timeout

    @timeout.setter
    def timeout(self, value: float) -> None:
        self._timeout = value

    @property
    def pipeline_depth(self) -> int:
        return self._pipeline_depth

    @property
    def sock(self) -> socket.socket | None:
        return self._sock

    def _require_disconnected(self, what: str) -> None:
        if self._sock is not None:
            raise SessionStateError(f"Cannot change {what} while connected")

    # ── lifecycle ──────────────────────────────────────────────────

    @property
    def is_connected(self) -> bool:
        """Whether the socket is open and usable in both directions.

        Checked on every access, since the server may close the
        connection at any time.
        """
        sock = self._sock
        if sock is None or sock.fileno() == -1:
            return False
        try:
            # a zero-length send fails once the write side is shut down
            sock.send(b"")
            readable, _, _ = select.select([sock], [], [], 0)
            if readable and not sock.recv(1, socket.MSG_PEEK):
                return False
        except (OSError, ValueError):
            return False
        return True

    def connect(self) -> None:
        """Open the connection if it is not already open.

        A handle the server has closed is released first. If replies were
        still pending on it they are lost, so that case raises instead of
        reconnecting.

        Raises:
            KVConnectionError: If the connection cannot be established,
                or a lost connection still had replies pending.
        """
        if self.is_connected:
            return
        if self._sock is not None:
            pending = self._pipeline_depth
            self._release()
            if pending:
                raise KVConnectionError(
                    f"Connection to {self._host}:{self._port} lost with "
                    f"{pending} replies pending"
                )
            logger.debug("Replaced stale connection to %s:%s", self._host, self._port)

        try:
            sock = socket.create_connection((self._host, self._port), self._timeout)
        except socket.timeout as e:
            raise KVTimeoutError(
                f"Timed out connecting to {self._host}:{self._port}"
            ) from e
        except OSError as e:
            raise KVConnectionError(
                f"Could not connect to {self._host}:{self._port}: {e}"
            ) from e

        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            sock.setsockopt(
                socket.SOL_SOCKET, socket.SO_LINGER, _linger(enabled=True, seconds=0)
            )
            sock.settimeout(self._timeout)
            reader = sock.makefile("rb")
            writer = sock.makefile("wb")
        except OSError as e:
            sock.close()
            raise KVConnectionError(
                f"Could not configure connection to {self._host}:{self._port}: {e}"
            ) from e

        self._sock = sock
        self._reader = reader
        self._writer = writer
        self._pipeline_depth = 0
        logger.info("Connected to %s:%s", self._host, self._port)

    def disconnect(self) -> None:
        """Close the connection and reset the pipeline depth.

        Every resource is released even if an earlier one fails to close;
        the first failure is then raised.

        Raises:
            KVConnectionError: If any resource failed to close.
        """
        if self._sock is None:
            return
        error = self._release()
        logger.info("Disconnected from %s:%s", self._host, self._port)
        if error is not None:
            raise KVConnectionError(
                f"Error closing connection to {self._host}:{self._port}: {error}"
            ) from error

    def _release(self) -> OSError | None:
        first_error: OSError | None = None
        for resource in (self._reader, self._writer, self._sock):
            if resource is None:
                continue
            try:
                resource.close()
            except OSError as e:
                logger.warning("Error closing %r: %s", resource, e)
                if first_error is None:
                    first_error = e
        self._reader = None
        self._writer = None
        self._sock = None
        self._pipeline_depth = 0
        return first_error

    def set_timeout_infinite(self) -> None:
        """Block reads without a deadline, e.g. while awaiting a pushed event.

        Pair with :meth:`rollback_timeout` once the long read is done.
        """
        sock = self._connected_socket()
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            sock.settimeout(None)
        except OSError as e:
            raise KVConnectionError(f"Could not clear read timeout: {e}") from e
        logger.debug("Read timeout disabled")

    def rollback_timeout(self) -> None:
        """Restore the configured read deadline."""
        sock = self._connected_socket()
        try:
            sock.settimeout(self._timeout)
        except OSError as e:
            raise KVConnectionError(f"Could not restore read timeout: {e}") from e
        logger.debug("Read timeout restored to %ss", self._timeout)

    def _connected_socket(self) -> socket.socket:
        if self._sock is None:
            raise KVConnectionError("Not connected")
        return self._sock

    # ── send path ──────────────────────────────────────────────────

    def send(self, command: Command | str | bytes, *args: Argument) -> Session:
        """Queue a command; connects first if needed.

        Nothing is written to the socket until a reply is requested or
        :meth:`flush` is called.
        """
        frame = encode(command, args)
        self.connect()
        try:
            self._writer.write(frame)
        except OSError as e:
            raise KVConnectionError(f"Write to {self._host}:{self._port} failed: {e}") from e
        self._pipeline_depth += 1
        return self

    def flush(self) -> None:
        """Write all queued commands to the socket.

        Raises:
            KVConnectionError: If not connected or the write fails.
        """
        if self._writer is None:
            raise KVConnectionError("Not connected")
        try:
            self._writer.flush()
        except socket.timeout as e:
            raise KVTimeoutError(f"Timed out writing to {self._host}:{self._port}") from e
        except OSError as e:
            raise KVConnectionError(f"Write to {self._host}:{self._port} failed: {e}") from e

    # ── receive path ───────────────────────────────────────────────

    def _decode(self) -> Reply:
        try:
            return decode_next(self._reader)
        except KVError:
            raise
        except socket.timeout as e:
            raise KVTimeoutError(
                f"Timed out reading from {self._host}:{self._port}"
            ) from e
        except OSError as e:
            raise KVConnectionError(
                f"Read from {self._host}:{self._port} failed: {e}"
            ) from e

    def _take_reply(self) -> Reply:
        """Consume one pending reply: flush, decrement, decode."""
        if self._pipeline_depth <= 0:
            raise PipelineEmptyError("No command is waiting for a reply")
        self.flush()
        self._pipeline_depth -= 1
        return self._decode()

    def _take_expected(self, *kinds: type) -> Reply:
        reply = self._take_reply()
        if isinstance(reply, ApplicationError):
            raise reply
        if not isinstance(reply, kinds):
            names = " or ".join(kind.__name__ for kind in kinds)
            raise UnexpectedReplyError(f"Expected {names}, got {reply!r}")
        return reply

    def receive_status(self) -> str | None:
        """Read a status reply; a null bulk reads as None."""
        reply = self._take_expected(StatusReply, BulkReply)
        if isinstance(reply, StatusReply):
            return reply.text
        return _decode_text(reply.data)

    def receive_bulk(self) -> bytes | None:
        reply = self._take_expected(BulkReply, StatusReply)
        if isinstance(reply, StatusReply):
            return reply.text.encode("utf-8")
        return reply.data

    def receive_bulk_text(self) -> str | None:
        return _decode_text(self.receive_bulk())

    def receive_integer(self) -> int:
        return self._take_expected(IntegerReply).value

    def receive_array(self) -> list[bytes | None] | None:
        """Read an array of bulk strings; a null array reads as None."""
        reply = self._take_expected(ArrayReply)
        if reply.is_null:
            return None
        values: list[bytes | None] = []
        for item in reply.items:
            if isinstance(item, BulkReply):
                values.append(item.data)
            elif isinstance(item, StatusReply):
                values.append(item.text.encode("utf-8"))
            else:
                raise UnexpectedReplyError(
                    f"Expected an array of bulk strings, found {item!r}"
                )
        return values

    def receive_text_array(self) -> list[str | None] | None:
        values = self.receive_array()
        if values is None:
            return None
        return [_decode_text(value) for value in values]

    def receive_mixed_array(self) -> list[Reply] | None:
        """Read an array whose items may be any reply, errors included."""
        reply = self._take_expected(ArrayReply)
        if reply.is_null:
            return None
        return list(reply.items)

    def drain_one(self) -> Reply:
        """Read the next reply as-is; error replies are returned, not raised."""
        return self._take_reply()

    def drain_all(self, keep: int = 0) -> list[Reply]:
        """Read pending replies until only ``keep`` remain outstanding.

        Error replies are placed in the result at their position instead
        of being raised, so one failed command does not leave the rest of
        the batch unread on the wire.
        """
        replies: list[Reply] = []
        if self._pipeline_depth <= keep:
            return replies
        self.flush()
        while self._pipeline_depth > keep:
            self._pipeline_depth -= 1
            replies.append(self._decode())
        logger.debug("Drained %d replies, %d pending", len(replies), self._pipeline_depth)
        return replies


def _linger(enabled: bool, seconds: int) -> bytes:
    return struct.pack("ii", int(enabled), seconds)
