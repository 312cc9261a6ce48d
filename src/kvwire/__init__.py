"""Pipelined client session for RESP key-value servers."""

from .errors import (
    ApplicationError,
    KVConnectionError,
    KVError,
    KVTimeoutError,
    MalformedReplyError,
    PipelineEmptyError,
    SessionStateError,
    UnexpectedReplyError,
)
from .protocol import (
    ArrayReply,
    BulkReply,
    Command,
    IntegerReply,
    Reply,
    StatusReply,
    build_command,
    decode_next,
    encode,
)
from .transport import Session

__version__ = "0.1.0"
