"""Protocol layer: request encoding, reply decoding, and command names."""

from .framing import encode
from .parser import (
    ArrayReply,
    BulkReply,
    IntegerReply,
    Reply,
    StatusReply,
    decode_next,
)
from .commands import Command, build_command
