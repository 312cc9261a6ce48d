"""Request encoder for the RESP2 wire protocol.

Request layout::

    *<n>\\r\\n                      array header, n = 1 + number of arguments
    $<len>\\r\\n<command>\\r\\n      command name as a bulk string
    $<len>\\r\\n<argument>\\r\\n     one bulk string per argument

- Every length is the byte length, written in decimal ASCII
- Frames are self-delimiting, so no external length hint is needed
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

CRLF = b"\r\n"

STATUS_PREFIX = b"+"
ERROR_PREFIX = b"-"
INTEGER_PREFIX = b":"
BULK_PREFIX = b"$"
ARRAY_PREFIX = b"*"

Argument = bytes | bytearray | memoryview | str | int | float


def to_bytes(value: Argument) -> bytes:
    """Convert a single command argument to its wire bytes.

    ``str`` is UTF-8 encoded and numbers are sent in their decimal text
    form. ``bool`` and ``None`` are rejected because they have no
    unambiguous wire representation.
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, bool) or value is None:
        raise TypeError(f"Cannot encode {value!r} as a command argument")
    if isinstance(value, int):
        return str(value).encode("ascii")
    if isinstance(value, float):
        return repr(value).encode("ascii")
    raise TypeError(
        f"Cannot encode {type(value).__name__} as a command argument"
    )


def command_name(command: Enum | str | bytes) -> bytes:
    """Return the wire name of a command given as an enum member, str or bytes."""
    if isinstance(command, Enum):
        command = command.value
    return to_bytes(command)


def _bulk(data: bytes) -> bytes:
    return BULK_PREFIX + str(len(data)).encode("ascii") + CRLF + data + CRLF


def encode(command: Enum | str | bytes, args: Iterable[Argument] = ()) -> bytes:
    """Encode one request frame.

    Args:
        command: Command name.
        args: Command arguments, in order.

    Returns:
        The complete request frame.
    """
    parts = [command_name(command)]
    parts.extend(to_bytes(arg) for arg in args)
    header = ARRAY_PREFIX + str(len(parts)).encode("ascii") + CRLF
    return header + b"".join(_bulk(part) for part in parts)
