"""Reply decoding for the RESP2 wire protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Union

from ..errors import ApplicationError, KVConnectionError, MalformedReplyError
from .framing import (
    ARRAY_PREFIX,
    BULK_PREFIX,
    CRLF,
    ERROR_PREFIX,
    INTEGER_PREFIX,
    STATUS_PREFIX,
)


@dataclass(frozen=True)
class StatusReply:
    """Single-line status reply, e.g. ``+OK``."""

    text: str


@dataclass(frozen=True)
class BulkReply:
    """Binary-safe string reply; ``data`` is None for a null bulk."""

    data: bytes | None

    def __repr__(self) -> str:
        if self.data is None:
            return "BulkReply(null)"
        return f"BulkReply({self.data!r})"


@dataclass(frozen=True)
class IntegerReply:
    """Signed 64-bit integer reply."""

    value: int


@dataclass(frozen=True)
class ArrayReply:
    """Array reply; ``items`` is None for a null array.

    Items may be any reply, including nested arrays and
    ``ApplicationError`` values.
    """

    items: tuple[Reply, ...] | None

    @property
    def is_null(self) -> bool:
        return self.items is None

    @property
    def is_bulk_array(self) -> bool:
        """True when every item is a bulk string."""
        if self.items is None:
            return False
        return all(isinstance(item, BulkReply) for item in self.items)


Reply = Union[StatusReply, BulkReply, IntegerReply, ArrayReply, ApplicationError]


def _read_line(stream: BinaryIO) -> bytes:
    line = stream.readline()
    if not line:
        raise KVConnectionError("connection closed by server")
    if not line.endswith(CRLF):
        if not line.endswith(b"\n"):
            raise KVConnectionError("connection closed by server")
        raise MalformedReplyError(f"Line not terminated by CRLF: {line!r}")
    return line[:-2]


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if data is None or len(data) < size:
        raise KVConnectionError("connection closed by server")
    return data


def _parse_int(raw: bytes, what: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise MalformedReplyError(f"Invalid {what}: {raw!r}") from None


def _parse_length(raw: bytes, what: str) -> int:
    length = _parse_int(raw, what)
    if length < -1:
        raise MalformedReplyError(f"Invalid {what}: {length}")
    return length


def decode_next(stream: BinaryIO) -> Reply:
    """Read exactly one reply from a buffered binary stream.

    Error replies are returned as ``ApplicationError`` instances rather
    than raised, so a caller draining a pipeline can keep reading.

    Raises:
        KVConnectionError: If the stream ends before the reply is complete.
        MalformedReplyError: If the bytes do not form a valid reply.
    """
    line = _read_line(stream)
    if not line:
        raise MalformedReplyError("Empty reply line")

    prefix, rest = line[:1], line[1:]

    if prefix == STATUS_PREFIX:
        return StatusReply(rest.decode("utf-8", errors="replace"))

    if prefix == ERROR_PREFIX:
        return ApplicationError(rest.decode("utf-8", errors="replace"))

    if prefix == INTEGER_PREFIX:
        return IntegerReply(_parse_int(rest, "integer reply"))

    if prefix == BULK_PREFIX:
        length = _parse_length(rest, "bulk length")
        if length == -1:
            return BulkReply(None)
        data = _read_exact(stream, length + 2)
        if data[-2:] != CRLF:
            raise MalformedReplyError("Bulk payload not terminated by CRLF")
        return BulkReply(data[:-2])

    if prefix == ARRAY_PREFIX:
        count = _parse_length(rest, "array length")
        if count == -1:
            return ArrayReply(None)
        return ArrayReply(tuple(decode_next(stream) for _ in range(count)))

    raise MalformedReplyError(f"Unknown reply prefix {prefix!r}")
