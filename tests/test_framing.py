"""Tests for request frame encoding."""

import pytest

from kvwire.protocol.commands import Command
from kvwire.protocol.framing import CRLF, encode, to_bytes


def test_encode_no_arguments():
    """A bare command is a one-element array."""
    assert encode("PING") == b"*1\r\n$4\r\nPING\r\n"


def test_encode_with_arguments():
    """Each argument becomes its own bulk string."""
    frame = encode("SET", [b"key", b"value"])
    assert frame == b"*3\r\n$3\r\nSET\r\n$3\r\nkey\r\n$5\r\nvalue\r\n"


def test_encode_command_enum():
    """Enum members are sent by their wire name."""
    assert encode(Command.GET, [b"k"]) == encode("GET", [b"k"])


def test_encode_bytes_command():
    """Command names may be given as bytes."""
    assert encode(b"PING") == encode("PING")


def test_encode_is_binary_safe():
    """Arguments containing CRLF are length-prefixed, not escaped."""
    frame = encode("SET", [b"k", b"a\r\nb"])
    assert frame.endswith(b"$4\r\na\r\nb\r\n")


def test_encode_str_uses_utf8_byte_length():
    """Lengths count encoded bytes, not characters."""
    frame = encode("ECHO", ["café"])
    assert b"$5\r\ncaf\xc3\xa9\r\n" in frame


def test_encode_accepts_generator():
    """Arguments may come from any iterable."""
    frame = encode("DEL", (k for k in [b"a", b"b"]))
    assert frame.startswith(b"*3" + CRLF)


def test_to_bytes_numbers():
    """Numbers are sent as decimal text."""
    assert to_bytes(42) == b"42"
    assert to_bytes(-7) == b"-7"
    assert to_bytes(1.5) == b"1.5"


def test_to_bytes_bytearray():
    """Buffer types are copied to bytes unchanged."""
    assert to_bytes(bytearray(b"ab")) == b"ab"
    assert to_bytes(memoryview(b"cd")) == b"cd"


def test_to_bytes_rejects_bool_and_none():
    """Values without an unambiguous wire form should raise."""
    with pytest.raises(TypeError):
        to_bytes(True)
    with pytest.raises(TypeError):
        to_bytes(None)


def test_to_bytes_rejects_other_types():
    """Containers are not valid arguments."""
    with pytest.raises(TypeError):
        to_bytes(["list"])
